"""
Structural diff of two storage trees.

The report is plain text, one finding per line:
    "<path><key>" in <name> but not in <other>     child present on one side
    attrs(<name>["<path>"])["<key>"] is <value>   attribute missing or different
    getarray(<name>["<path>"]):                   array contents differ, followed
                                                  by the full array of that side
    <name>["<path>"] isa Group, <other>[...] isa Array

Two trees are equal iff the report is empty.
"""

import logging
import math
import sys
from io import StringIO
from typing import Any, Callable, Optional, TextIO

import numpy as np
import zarr
from rich.cells import cell_len

from .errors import ArityError, TreesDifferError
from .tree import NodeKind, Node, arrays_equal, attrs, child_keys, getarray, node_kind

logger = logging.getLogger(__name__)

IgnoreName = Callable[[str], bool]


def _never(name: str) -> bool:
    return False


def _at(name: str, header: str) -> str:
    return name if not header else f'{name}["{header}"]'


def print_diff(
    io: TextIO,
    group1: Node,
    group2: Node,
    group1name: str = "group1",
    group2name: str = "group2",
    header: str = "",
    ignorename: Optional[IgnoreName] = None,
) -> None:
    """
    Print the difference between two trees to a text stream.

    Args:
        io: Destination stream.
        group1, group2: Groups or arrays to compare.
        group1name, group2name: Display names used in the report.
        header: Path of the nodes being compared, "" at the root, else ending in "/".
        ignorename: Predicate on child keys and attribute keys; matching lines
            are not printed. Recursion into shared children is unaffected.
    """
    ignorename = ignorename or _never
    kind1 = node_kind(group1)
    kind2 = node_kind(group2)
    if kind1 is not kind2:
        print(
            f"{_at(group1name, header)} isa {kind1.value}, {_at(group2name, header)} isa {kind2.value}",
            file=io,
        )
    elif kind1 is NodeKind.GROUP:
        _print_group_diff(io, group1, group2, group1name, group2name, header, ignorename)
    else:
        _print_array_diff(io, group1, group2, group1name, group2name, header, ignorename)


def _print_group_diff(io, group1: zarr.Group, group2: zarr.Group, group1name, group2name, header, ignorename):
    # check both groups have same keys
    ks1 = child_keys(group1)
    ks2 = child_keys(group2)
    for diffk in sorted(ks1 - ks2):
        if not ignorename(diffk):
            print(f'"{header}{diffk}" in {group1name} but not in {group2name}', file=io)
    for diffk in sorted(ks2 - ks1):
        if not ignorename(diffk):
            print(f'"{header}{diffk}" in {group2name} but not in {group1name}', file=io)

    print_attrs_diff(io, group1, group2, group1name, group2name, header, ignorename)

    for key in sorted(ks1 & ks2):
        print_diff(io, group1[key], group2[key], group1name, group2name, f"{header}{key}/", ignorename)


def _print_array_diff(io, array1: zarr.Array, array2: zarr.Array, group1name, group2name, header, ignorename):
    print_attrs_diff(io, array1, array2, group1name, group2name, header, ignorename)
    data1 = getarray(array1)
    data2 = getarray(array2)
    if not arrays_equal(data1, data2):
        with np.printoptions(threshold=sys.maxsize):
            for groupname, data in ((group1name, data1), (group2name, data2)):
                print(f"getarray({_at(groupname, header)}):", file=io)
                print(repr(data), file=io)


def print_attrs_diff(
    io: TextIO,
    group1: Node,
    group2: Node,
    group1name: str = "group1",
    group2name: str = "group2",
    header: str = "",
    ignorename: Optional[IgnoreName] = None,
) -> None:
    """Print the attributes each node has that the other lacks or holds with another value."""
    ignorename = ignorename or _never
    attrs1 = attrs(group1)
    attrs2 = attrs(group2)
    for groupaname, attrsa, attrsb in ((group1name, attrs1, attrs2), (group2name, attrs2, attrs1)):
        for k in sorted(attrsa):
            v = attrsa[k]
            if k in attrsb and _same_value(v, attrsb[k]):
                continue
            if ignorename(k):
                continue
            print(f'attrs({_at(groupaname, header)})["{k}"] is {v!r}', file=io)


def _json_form(value: Any) -> Any:
    # attributes are persisted as JSON
    if isinstance(value, np.ndarray):
        return _json_form(value.tolist())
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (list, tuple)):
        return [_json_form(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_form(v) for k, v in value.items()}
    return value


def _same_value(a: Any, b: Any) -> bool:
    return _same_json(_json_form(a), _json_form(b))


def _same_json(a: Any, b: Any) -> bool:
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(_same_json(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(_same_json(a[k], b[k]) for k in a)
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    if isinstance(a, (list, dict)) or isinstance(b, (list, dict)):
        return False
    return bool(a == b)


def _pad_names(group1name: str, group2name: str):
    width = max(cell_len(group1name), cell_len(group2name))
    return (
        " " * (width - cell_len(group1name)) + group1name,
        " " * (width - cell_len(group2name)) + group2name,
    )


def show_diff(ignorename: Optional[IgnoreName] = None, **trees: Node) -> str:
    """
    Render the diff of exactly two named trees.

    Example:
        >>> print(show_diff(expected=g1, actual=g2))
    """
    if len(trees) != 2:
        raise ArityError(f"must compare two groups, got {len(trees)}")
    (group1name, group1), (group2name, group2) = trees.items()
    group1name, group2name = _pad_names(group1name, group2name)
    buf = StringIO()
    print_diff(buf, group1, group2, group1name, group2name, "", ignorename)
    return buf.getvalue()


def assert_trees_equal(
    group1: Node,
    group2: Node,
    group1name: str = "group1",
    group2name: str = "group2",
    ignorename: Optional[IgnoreName] = None,
) -> None:
    """
    Fail unless two trees have an empty diff.

    Raises:
        TreesDifferError: carrying the report, when the trees differ.
    """
    group1name, group2name = _pad_names(group1name, group2name)
    buf = StringIO()
    print_diff(buf, group1, group2, group1name, group2name, "", ignorename)
    report = buf.getvalue()
    if report:
        logger.warning(f"Trees differ:\n{report}")
        raise TreesDifferError(report)
