"""State management module."""
from src.state.cache_storage import Cache, CacheAddError, CacheStorage
from src.state.database import DatabaseManager, DatabaseError
from src.state.models import CachedResponse, CacheInfo, MessageState, QueuedMessage, generate_message_id
from src.state.repositories import CacheRepository, OfflineMessageRepository
__all__ = ["Cache", "CacheAddError", "CacheStorage",
           "DatabaseManager", "DatabaseError",
           "CachedResponse", "CacheInfo", "MessageState", "QueuedMessage", "generate_message_id",
           "CacheRepository", "OfflineMessageRepository"]
