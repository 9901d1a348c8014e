"""Repositories."""

from tokenprism.core.data.repositories.token import TokenRepository

__all__ = ["TokenRepository"]
