"""statekeep: observable state container with middleware and local backup."""

from importlib.metadata import version as _version

__version__ = _version("statekeep")

from statekeep.container import StateContainer
from statekeep.errors import CorruptRecordError, StatekeepError
from statekeep.middleware import MiddlewarePipeline
from statekeep.persistence import PersistedRecord, PersistenceBackend
from statekeep.storage import JsonFileStorage, MemoryStorage, Storage
from statekeep.subscribers import SubscriberRegistry
# textual NOT auto-imported — opt-in only

__all__ = [
    "StateContainer",
    "SubscriberRegistry",
    "MiddlewarePipeline",
    "PersistenceBackend",
    "PersistedRecord",
    "Storage",
    "MemoryStorage",
    "JsonFileStorage",
    "StatekeepError",
    "CorruptRecordError",
]
