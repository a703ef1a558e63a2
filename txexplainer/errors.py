"""Exception taxonomy shared by adapters, the pipeline and the HTTP layer."""

from __future__ import annotations


class ExplainerError(Exception):
    """Base class for every error raised by txexplainer."""


class ValidationError(ExplainerError):
    """Caller-correctable input problem (missing digest, unknown chain). Maps to HTTP 400."""


class UpstreamFetchError(ExplainerError):
    """The transaction could not be fetched from any data provider."""


class NotFoundError(UpstreamFetchError):
    """The transaction does not exist on-chain (neither id nor hash lookup matched)."""


class UpstreamError(UpstreamFetchError):
    """A data provider answered with an unexpected HTTP status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class EnhancementFailure(ExplainerError):
    """The AI gateway failed. Never fatal: the pipeline keeps the generated summary."""


class EnhancementTimeout(EnhancementFailure):
    """The AI gateway ran past its time limit."""


class SerializationFailure(ExplainerError):
    """A raw payload could not be represented as JSON data."""
