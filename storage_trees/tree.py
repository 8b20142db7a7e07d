"""
Thin accessors over zarr groups and arrays.

The rest of the package only touches zarr through these helpers: node kind
dispatch, attribute access, children enumeration and array contents.
"""

from enum import Enum
from typing import Any, Dict, Iterator, Tuple, Union

import numpy as np
import zarr
from zarr.storage import MemoryStore

from .errors import CorruptTree

Node = Union[zarr.Group, zarr.Array]


class NodeKind(Enum):
    GROUP = "Group"
    ARRAY = "Array"


def node_kind(node: Any) -> NodeKind:
    """
    Classify a tree node.

    Raises:
        CorruptTree: if the node is neither a zarr group nor a zarr array.
    """
    if isinstance(node, zarr.Group):
        return NodeKind.GROUP
    if isinstance(node, zarr.Array):
        return NodeKind.ARRAY
    raise CorruptTree(f"unsupported tree node of type {type(node).__name__}")


def new_group() -> zarr.Group:
    """Create an empty freestanding group backed by memory."""
    return zarr.group(store=MemoryStore())


def attrs(node: Node) -> Dict[str, Any]:
    return dict(node.attrs)


def children(group: zarr.Group) -> Iterator[Tuple[str, Node]]:
    """Yield (key, child) pairs of the direct children of a group."""
    for key, child in group.members():
        yield key, child


def child_keys(group: zarr.Group) -> set:
    return {key for key, _ in group.members()}


def getarray(array: zarr.Array) -> np.ndarray:
    """Materialize the full contents of an array as numpy."""
    return np.asarray(array[...])


def arrays_equal(data1: np.ndarray, data2: np.ndarray) -> bool:
    """Shape-sensitive element-wise equality; NaN equals NaN for inexact dtypes."""
    if data1.shape != data2.shape:
        return False
    inexact = np.issubdtype(data1.dtype, np.inexact) or np.issubdtype(data2.dtype, np.inexact)
    numeric = np.issubdtype(data1.dtype, np.number) and np.issubdtype(data2.dtype, np.number)
    if inexact and numeric:
        return bool(np.array_equal(data1, data2, equal_nan=True))
    return bool(np.array_equal(data1, data2))
