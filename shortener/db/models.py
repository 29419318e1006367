"""
Database Models for URL Shortener Service

This module defines the SQLModel schema for the relational repository.

Design Decisions:
- Single table: ownership and soft-deletion live next to the mapping
- short_code is the primary key, so codes are unique without a separate
  sequence; a clash surfaces as IntegrityError and is retried with a new code
- original_url carries its own unique constraint, which is the conflict
  target of the "insert, ignore conflict" statement
- owner is indexed for per-user listing and deletion
"""

import uuid

from sqlalchemy import Boolean, String, Text, Uuid, false
from sqlmodel import Column, Field, SQLModel


class ShortenedURL(SQLModel, table=True):
    """
    Main table storing URL shortening mappings.

    Fields:
    - short_code: Base62 code (primary key)
    - original_url: The long URL that was shortened (unique)
    - owner: Identity of the caller that created the mapping
    - deleted: Soft-delete flag; deleted rows stay for statistics
    """
    __tablename__ = "shortened_urls"

    short_code: str = Field(
        sa_column=Column(String(16), primary_key=True),
        max_length=16
    )
    original_url: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    owner: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))
    deleted: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False, server_default=false())
    )
