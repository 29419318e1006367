"""Short URL storage-and-encoding service."""

__version__ = "1.0.0"
