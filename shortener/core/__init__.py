"""Configuration, exceptions, validators and shared value types."""
