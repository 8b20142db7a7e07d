"""
Read-only keyed blob stores.

Basic version of a zarr storage backend: keys are listed once at construction
and blobs are read on demand. Deleting or changing data is not supported.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, List, Union

import zarr
from zarr.core.buffer import default_buffer_prototype
from zarr.storage import MemoryStore

from .errors import IndexOutOfRange, KeyNotFound, NotFound, StoreIOError

logger = logging.getLogger(__name__)


def _raise_scan_error(err: OSError) -> None:
    raise StoreIOError(f"cannot scan {err.filename}: {err.strerror}") from err


class AbstractReader(ABC):
    """
    Immutable byte blobs addressed by normalized keys.

    Keys start with "/", use "/" as separator and never contain "//" or a
    trailing "/". The order of key_names() defines index based access.
    """

    @abstractmethod
    def key_names(self) -> List[str]:
        """Return every key, in index order."""

    @abstractmethod
    def read_key_idx(self, idx: int) -> bytes:
        """Read the bytes stored at key index idx."""

    def read_key(self, key: str) -> bytes:
        try:
            idx = self.key_names().index(key)
        except ValueError:
            raise KeyNotFound(f"key {key!r} not found in {self!r}") from None
        return self.read_key_idx(idx)

    def __len__(self) -> int:
        return len(self.key_names())

    def __iter__(self) -> Iterator[str]:
        return iter(self.key_names())


def normalize_key(relpath: str) -> str:
    """Turn a path relative to a store root into a "/"-prefixed key."""
    key = relpath.replace("\\", "/").strip("/")
    while "//" in key:
        key = key.replace("//", "/")
    return "/" + key


class DirectoryReader(AbstractReader):
    """
    Keyed blob store over a local directory tree.

    Args:
        root: Directory to scan. Every regular file below it becomes a key.
    """

    def __init__(self, root: Union[str, Path]):
        self.path = os.path.abspath(root)
        if not os.path.isdir(self.path):
            raise NotFound(f"{self.path} is not a directory")

        keys = []
        for dirpath, dirnames, filenames in os.walk(self.path, onerror=_raise_scan_error):
            dirnames.sort()
            for filename in sorted(filenames):
                relpath = os.path.relpath(os.path.join(dirpath, filename), self.path)
                keys.append(normalize_key(relpath))
        self._keys = keys
        logger.debug(f"Scanned {len(keys)} keys under {self.path}")

    def key_names(self) -> List[str]:
        return self._keys

    def read_key_idx(self, idx: int) -> bytes:
        if not 0 <= idx < len(self._keys):
            raise IndexOutOfRange(f"index {idx} outside [0, {len(self._keys)})")
        key = self._keys[idx]
        filename = os.path.join(self.path, *key.split("/"))
        try:
            with open(filename, "rb") as f:
                return f.read()
        except OSError as e:
            raise StoreIOError(f"failed to read {key!r} from {self.path}: {e}") from e

    def __repr__(self) -> str:
        return f"DirectoryReader({self.path!r}, {len(self._keys)} keys)"


def materialize_group(reader: AbstractReader) -> zarr.Group:
    """
    Load every blob of a reader into memory and open it as a zarr group.

    Args:
        reader: Store whose keys follow the zarr key layout below its root.

    Returns:
        Read-only root group.
    """
    prototype = default_buffer_prototype()
    store_dict = {}
    for idx, key in enumerate(reader.key_names()):
        store_dict[key.lstrip("/")] = prototype.buffer.from_bytes(reader.read_key_idx(idx))
    logger.debug(f"Materialized {len(store_dict)} blobs from {reader!r}")
    store = MemoryStore(store_dict, read_only=True)
    return zarr.open_group(store=store, mode="r")
