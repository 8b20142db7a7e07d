"""
Configuration schema and loader for the storage tree tools.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from omegaconf import DictConfig, OmegaConf

from ..errors import ConfigError


@dataclass
class DiffConfig:
    ignore_names: List[str] = field(default_factory=list)
    left_name: str = "left"
    right_name: str = "right"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class StorageTreesConfig:
    diff: DiffConfig = field(default_factory=DiffConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _validate_config(cfg: DictConfig) -> None:
    if cfg.diff.left_name == cfg.diff.right_name:
        raise ConfigError(f"diff.left_name and diff.right_name must differ, both are {cfg.diff.left_name!r}")

    if not isinstance(logging.getLevelName(cfg.logging.level.upper()), int):
        raise ConfigError(f"Unknown logging.level {cfg.logging.level!r}")


def load_config(path: Optional[Path] = None) -> DictConfig:
    schema = OmegaConf.structured(StorageTreesConfig)
    cfg = schema
    if path is not None:
        cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
    OmegaConf.set_struct(cfg, True)
    OmegaConf.to_container(cfg, resolve=True, throw_on_missing=True)
    _validate_config(cfg)
    return cfg
