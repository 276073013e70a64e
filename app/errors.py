"""Exceptions raised while aggregating provider results."""

from __future__ import annotations


class FetchError(RuntimeError):
    """A required media provider could not deliver results."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class MissingCredentialError(FetchError):
    """The selected provider requires an API credential that is not configured."""


class ProviderHTTPError(FetchError):
    """The provider responded with a non-success status or was unreachable."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.status_code = status_code
