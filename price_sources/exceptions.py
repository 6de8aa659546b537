"""
Price Source Exceptions - Exception hierarchy for the price pipeline.

These errors are diagnostic only: the resolution engine absorbs all of
them and substitutes cached or example data.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class PriceSourceError(Exception):
    """Base exception for all price source errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class SourceUnavailableError(PriceSourceError):
    """Provider could not deliver a usable price."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_FIELDS = "missing_fields"
    RELAY_FAILED = "relay_failed"

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        reason: str = NETWORK,
        status_code: Optional[int] = None,
        request_url: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.reason = reason
        self.status_code = status_code
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "reason": self.reason,
            "status_code": self.status_code,
            "request_url": self.request_url,
        })
        return data

    def is_timeout(self) -> bool:
        """Check if the request timed out."""
        return self.reason == self.TIMEOUT

    def is_server_error(self) -> bool:
        """Check if error is server-side."""
        return self.status_code is not None and 500 <= self.status_code < 600


class NoSourceAvailableError(PriceSourceError):
    """No adapter is configured for the requested commodity."""

    def __init__(
        self,
        message: str,
        commodity: Optional[str] = None,
        attempted_sources: Optional[list[str]] = None,
        source_name: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.commodity = commodity
        self.attempted_sources = attempted_sources or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "commodity": self.commodity,
            "attempted_sources": self.attempted_sources,
        })
        return data


class ValidationFailedError(PriceSourceError):
    """Record failed the shape/range check after normalization."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        raw_data: Optional[Any] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.raw_data = raw_data

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["raw_data"] = str(self.raw_data)[:500] if self.raw_data is not None else None
        return data


class UnknownCommodityError(PriceSourceError):
    """No synthetic baseline exists for the commodity (configuration defect)."""

    def __init__(
        self,
        message: str,
        commodity: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, original_error, context)
        self.commodity = commodity

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["commodity"] = self.commodity
        return data
