"""
Error taxonomy for the playground service.

Every error carries the HTTP status it maps to so the FastAPI exception
handler can translate it without a lookup table.
"""


class PlaygroundError(Exception):
    """Base class for all service errors."""

    status_code: int = 500

    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(PlaygroundError):
    """Bad user input (missing field, malformed URL, invalid enum value)."""

    status_code = 400


class ScrapeError(PlaygroundError):
    """Both the primary and the fallback scraping strategies failed."""

    status_code = 500


class SearchError(PlaygroundError):
    """A single search-API call failed. Swallowed by the pipeline."""

    status_code = 502


class SynthesisError(PlaygroundError):
    """The LLM call or its output parsing failed during analysis."""

    status_code = 502


class NotFoundError(PlaygroundError):
    status_code = 404


class StateError(PlaygroundError):
    """An operation was attempted in the wrong lifecycle state."""

    status_code = 400


class UpstreamError(PlaygroundError):
    """An LLM backend failed while answering a chat request."""

    status_code = 500


class ConfigError(PlaygroundError):
    """Required API keys or settings are missing."""

    status_code = 503


class StorageError(PlaygroundError):
    """A database write or read failed."""

    status_code = 500
