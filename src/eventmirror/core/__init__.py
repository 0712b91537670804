"""Core data models, configurations and errors.

This package provides:
- Data models (LogRecord, LogMeta, AppliedLog, Generation)
- Configuration classes (DispatchConfig, SyncConfig)
- The error hierarchy
"""

from eventmirror.core.config import DispatchConfig, SyncConfig
from eventmirror.core.models import AppliedLog, Generation, LogMeta, LogRecord

__all__ = [
    "DispatchConfig",
    "SyncConfig",
    "AppliedLog",
    "Generation",
    "LogMeta",
    "LogRecord",
]
