# Persistence backends
from .state_store import MemoryStateStore, SqlStateStore, StateStorage

__all__ = [
    "StateStorage",
    "MemoryStateStore",
    "SqlStateStore",
]
