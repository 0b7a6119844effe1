"""Attribute encryption for secrets stored in the database."""

from .encryption import TokenEncryptor

__all__ = ["TokenEncryptor"]
