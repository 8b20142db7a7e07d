"""
Configuration for the storage tree tools.
"""

from .schema import (
    DiffConfig,
    LoggingConfig,
    StorageTreesConfig,
    load_config,
)

__all__ = [
    'DiffConfig',
    'LoggingConfig',
    'StorageTreesConfig',
    'load_config',
]
