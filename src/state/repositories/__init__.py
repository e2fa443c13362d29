"""Repositories."""
from src.state.repositories.cache import CacheRepository
from src.state.repositories.messages import OfflineMessageRepository
__all__ = [
    "CacheRepository",
    "OfflineMessageRepository",
]
