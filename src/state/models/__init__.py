"""State models."""
from src.state.models.cache import CachedResponse, CacheInfo
from src.state.models.message import MessageState, QueuedMessage, generate_message_id
__all__ = [
    "CachedResponse", "CacheInfo",
    "MessageState", "QueuedMessage", "generate_message_id",
]
