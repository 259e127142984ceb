"""Exceptions raised by the QOTD storage layer.

The command layer catches these and turns them into replies: a
`StorageError` becomes a generic failure message, while an
`EmptyPoolError`, itself a `StorageError`, is reported separately so
that an operator knows the question or poll pool has to be seeded.
"""


class QotdError(Exception):
    """Base class for all QOTD bot errors."""


class StorageError(QotdError):
    """Exception raised when a database read or write fails."""


class EmptyPoolError(StorageError):
    """Exception raised when a global pool has never been seeded."""

    def __init__(self, table: str) -> None:
        super().__init__(f"No rows found in table {table!r}, the pool has to be seeded")
        self.table = table


class LimitExceededError(QotdError):
    """Exception raised when a guild has too many custom entries saved."""

    def __init__(self, table: str, limit: int) -> None:
        super().__init__(f"The limit of {limit} entries in {table!r} has been reached")
        self.table = table
        self.limit = limit
