"""
Services module for business logic separation.

- Base62Encoder: random short code generation
- ShortURLService: shorten, resolve, batch, delete and statistics
"""
