"""Error taxonomy.

Request-wide failures (``AuthError``, ``ProviderError``) are raised.
Account-scoped failures are converted to ``AccountFailure`` data by the
resolvers and the orchestrator; a missing file match is not an error.
"""

from __future__ import annotations


class DebridarrError(Exception):
    """Base error for debridarr domain/use cases."""


class AuthError(DebridarrError):
    """The search provider rejected the credential (user must reconfigure)."""

    def __init__(self, error_code: str = "BAD_TOKEN", detail: str = "") -> None:
        super().__init__(detail or error_code)
        self.error_code = error_code
        self.detail = detail


class ProviderError(DebridarrError):
    """Search provider fault (outage, bad response, network)."""

    def __init__(self, error_code: str = "UNKNOWN_ERROR", detail: str = "") -> None:
        super().__init__(f"{error_code}: {detail}" if detail else error_code)
        self.error_code = error_code
        self.detail = detail


class AccountError(DebridarrError):
    """One account's availability check failed.

    Carries the title/description pair shown in the error stream.
    """

    def __init__(self, title: str, description: str) -> None:
        super().__init__(f"{title}: {description}")
        self.title = title
        self.description = description


class DebridAccountError(AccountError):
    """Raised inside a debrid resolver for account-level API faults."""


class MetadataError(DebridarrError):
    """Season metadata enrichment failed (always non-fatal)."""
