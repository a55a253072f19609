"""
sync package

Background requests and load/save/auto-save against the persistence service.
"""

from sync.persistence import PersistenceSync
from sync.worker import InlineRunner, RequestWorker, ThreadedRunner

__all__ = ["InlineRunner", "PersistenceSync", "RequestWorker", "ThreadedRunner"]
