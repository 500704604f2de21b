"""Custom exception hierarchy for linkvault.

All application exceptions inherit from :class:`LinkVaultError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "sqlite_record_store", "httpx_page_fetcher")
caused the failure.

The hierarchy is organized by how the pipelines treat each failure:

    LinkVaultError  (base -- catch-all for any linkvault error)
    +-- InputValidationError     (malformed URL or query, user-correctable)
    +-- AuthenticationError      (missing or invalid bearer token)
    +-- RecordNotFoundError      (record or tag missing / not owned)
    +-- ExtractionError          (page fetch or parse failure -- degradable)
    +-- LLMError                 (text generation failure -- degradable)
    +-- EmbeddingGenerationError (embedding provider failure -- hard)
    +-- EmbeddingValidationError (wrong dimension / non-finite -- hard)
    +-- StoreError               (record store failure -- hard)
    +-- ConfigurationError       (startup / missing config)

Degradable failures are caught at the stage boundary and replaced with a
safe default.  Hard failures abort the enclosing pipeline and reach the
API error middleware, which maps them to an HTTP status via
:attr:`LinkVaultError.status_code`.
"""


class LinkVaultError(Exception):
    """Base exception for all linkvault errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Caller errors (4xx)
# ---------------------------------------------------------------------------

class InputValidationError(LinkVaultError):
    """Raised when a URL or query supplied by the caller is malformed."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AuthenticationError(LinkVaultError):
    """Raised when a request carries no bearer token or an invalid one."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RecordNotFoundError(LinkVaultError):
    """Raised when a record or tag does not exist or belongs to another owner."""

    status_code = 404

    def __init__(
        self,
        message: str = "Record not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Degradable stage failures
# ---------------------------------------------------------------------------

class ExtractionError(LinkVaultError):
    """Raised when a page cannot be fetched or parsed.

    Never surfaced to API callers: the metadata and content extractors
    catch it and substitute their fallback values.
    """

    def __init__(
        self,
        message: str = "Page extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(LinkVaultError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Hard failures (5xx)
# ---------------------------------------------------------------------------

class EmbeddingGenerationError(LinkVaultError):
    """Raised when the embedding provider keeps failing after all retries."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingValidationError(LinkVaultError):
    """Raised when an embedding has the wrong dimension or non-finite values."""

    def __init__(
        self,
        message: str = "Embedding failed validation",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreError(LinkVaultError):
    """Raised when the record store cannot complete a read or write."""

    def __init__(
        self,
        message: str = "Record store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(LinkVaultError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
