"""Exception types shared by the indexing pipeline.

Remote failures (Unity Catalog, Solr) are normalized into `RemoteError`
so that callers can classify them by HTTP status without knowing which
client library raised them.
"""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when the environment holds an invalid configuration value."""


class RemoteError(RuntimeError):
    """Raised when a remote service call fails.

    Attributes:
        status: HTTP status code of the failed response, or None when the
                request never produced a response (DNS, connection reset, ...).
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def not_found(self) -> bool:
        """True if the remote side answered 404."""
        return self.status == 404


class AuthError(RemoteError):
    """Raised when Databricks authentication or authorization fails."""


class IndexWriteError(RemoteError):
    """Raised when a batch of documents could not be written to the index."""

    def __init__(
        self, message: str, *, batch_number: int, status: int | None = None
    ) -> None:
        super().__init__(message, status=status)
        self.batch_number = batch_number


class JobStateError(RuntimeError):
    """Raised when an indexing job is moved out of a terminal state."""
