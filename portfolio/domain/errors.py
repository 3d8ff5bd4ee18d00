"""Error taxonomy shared by the content store, use cases and API layer."""
from __future__ import annotations


class PortfolioError(Exception):
    """Base class for every error the portfolio backend raises on purpose."""


class InvalidCredentials(PortfolioError):
    """Sign-in was rejected by the authority."""


class Unauthorized(PortfolioError):
    """A mutation was attempted without an admin session."""

    def __init__(self, message: str = "Admin session required", *, authenticated: bool = False) -> None:
        super().__init__(message)
        self.authenticated = authenticated


class PersistenceError(PortfolioError, RuntimeError):
    """A read or write against the content store failed or timed out."""


class StoreTimeout(PersistenceError):
    """The store did not answer in time. A write may still land afterwards."""


class BatchSaveError(PersistenceError):
    """A best-effort batch save where at least one entity did not save.

    Entities listed in ``succeeded`` stay committed. Entities in ``unknown``
    timed out: their write may or may not have landed.
    """

    def __init__(
        self,
        succeeded: list[str],
        failed: dict[str, str],
        unknown: list[str] | None = None,
    ) -> None:
        self.succeeded = succeeded
        self.failed = failed
        self.unknown = list(unknown or [])
        parts = []
        if failed:
            parts.append(f"Save failed for: {', '.join(failed)}")
        if self.unknown:
            parts.append(f"Save timed out for: {', '.join(self.unknown)}")
        super().__init__("; ".join(parts) or "Save failed")


class ValidationError(PortfolioError, ValueError):
    """Malformed input such as an empty required field or inverted price range."""


class NotFoundError(PortfolioError, LookupError):
    """The addressed row does not exist."""
