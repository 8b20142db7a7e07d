"""
Command line tools.

Usage:
    # Diff two zarr directory stores, exit status 1 if they differ
    storage-trees-diff data/expected.zarr data/actual.zarr --ignore created

    # List the keys of a store and show its group hierarchy
    storage-trees-inspect data/actual.zarr --max-depth 2
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from .config import load_config
from .diff import show_diff
from .errors import StorageTreeError
from .readers import DirectoryReader, materialize_group
from .tree import NodeKind, attrs, children, node_kind
from .utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def _open_tree(root: str):
    reader = DirectoryReader(root)
    logger.info(f"Opened {reader!r}")
    return materialize_group(reader)


def diff_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Diff two zarr directory stores")
    parser.add_argument("left", help="First store directory")
    parser.add_argument("right", help="Second store directory")
    parser.add_argument("--ignore", nargs="*", default=None,
                        help="Child or attribute keys to leave out of the report")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--log-level", default=None, help="Overrides logging.level")
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
        if args.log_level is not None:
            cfg.logging.level = args.log_level
        setup_logging(cfg.logging.level, cfg.logging.log_file)
        logger.debug(f"Config:\n{OmegaConf.to_yaml(cfg)}")

        ignore = set(cfg.diff.ignore_names)
        if args.ignore:
            ignore.update(args.ignore)

        left = _open_tree(args.left)
        right = _open_tree(args.right)
        report = show_diff(
            lambda name: name in ignore,
            **{cfg.diff.left_name: left, cfg.diff.right_name: right},
        )
    except (StorageTreeError, OmegaConfBaseException, FileNotFoundError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 2

    if report:
        sys.stdout.write(report)
        logger.info("Stores differ")
        return 1
    logger.info("Stores are equal")
    return 0


def _show_tree(group, indent: int = 0, max_depth: int = 3) -> None:
    if indent >= max_depth:
        return
    for key, child in sorted(children(group), key=lambda kv: kv[0]):
        kind = node_kind(child)
        if kind is NodeKind.ARRAY:
            line = f"{key} {child.shape} {child.dtype}"
        else:
            line = f"{key}/"
        print('  ' * indent + line + (f"  {attrs(child)}" if attrs(child) else ""))
        if kind is NodeKind.GROUP:
            _show_tree(child, indent + 1, max_depth)


def inspect_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a zarr directory store")
    parser.add_argument("root", help="Store directory")
    parser.add_argument("--max-depth", type=int, default=3)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    try:
        reader = DirectoryReader(args.root)
        print(f"Inspecting: {reader.path}")
        print("=" * 60)
        for key in reader.key_names():
            print(key)
        print("=" * 60)
        group = materialize_group(reader)
    except StorageTreeError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 2

    root_attrs = attrs(group)
    if root_attrs:
        print(f"/  {root_attrs}")
    _show_tree(group, max_depth=args.max_depth)
    return 0


if __name__ == "__main__":
    sys.exit(diff_main())
