from qotd_discord.storage.errors import (
    EmptyPoolError,
    LimitExceededError,
    QotdError,
    StorageError,
)
from qotd_discord.storage.store import QotdStore

__all__ = [
    "EmptyPoolError",
    "LimitExceededError",
    "QotdError",
    "QotdStore",
    "StorageError",
]
