"""
Price Cache Exceptions.

Storage failures never reach callers of the cache: the cache logs
and swallows them so resolution continues.
"""

from typing import Optional


class StorageError(Exception):
    """Key-value storage operation failed."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.key:
            parts.append(f"[key={self.key}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class StorageQuotaExceededError(StorageError):
    """Storage refused a write because it is full."""
