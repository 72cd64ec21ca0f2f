from __future__ import annotations

"""Compatibility facade for the certharvest engine.

Public imports remain stable while implementation lives in `certharvest.engine`.
"""

from .engine import logger
from .engine.dispatcher import Dispatcher, harvest
from .engine.policy import ConnectionPolicy, build_client
from .engine.source import SourceError, iter_targets, open_source
from .engine.worker import FetchResult, QueueClosed, WorkQueue, fetch_common_name, normalize_target

__all__ = [
    "ConnectionPolicy",
    "Dispatcher",
    "FetchResult",
    "QueueClosed",
    "SourceError",
    "WorkQueue",
    "build_client",
    "fetch_common_name",
    "harvest",
    "iter_targets",
    "logger",
    "normalize_target",
    "open_source",
]
