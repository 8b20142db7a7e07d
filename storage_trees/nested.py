"""
Nested structure-of-arrays records and their zarr representation.

A StructArray holds named components, each either a numpy array or another
StructArray. Field names are int or str.

Stored layout: the i-th field (1-based) becomes child "i" of the group and the
field's own name goes in the child's "name" attribute, so names that are not
valid or not ASCII keys survive the trip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

import numpy as np
import zarr
from zarr.codecs import BloscCodec, GzipCodec, ZstdCodec

from .errors import (
    ConfigError,
    FieldKindMismatch,
    InvalidAttribute,
    InvalidFieldName,
    MissingField,
    ShapeMismatch,
)
from .tree import NodeKind, arrays_equal, children, getarray, new_group, node_kind

logger = logging.getLogger(__name__)

NAME_ATTRIBUTE = "name"

RawName = Union[int, str]
Component = Union[np.ndarray, "StructArray"]


# ============================================================================
# Field names
# ============================================================================

@dataclass(frozen=True)
class IndexName:
    """Integer field name."""
    value: int


@dataclass(frozen=True)
class SymbolName:
    """String field name."""
    value: str


FieldName = Union[IndexName, SymbolName]


def field_name(token: Any) -> FieldName:
    """
    Tag a raw field name.

    Raises:
        InvalidFieldName: for anything but an int or a str. bool is rejected
            even though it is an int subclass.
    """
    if isinstance(token, bool):
        raise InvalidFieldName(f"field name {token!r} must be an int or a str, got bool")
    if isinstance(token, (int, np.integer)):
        return IndexName(int(token))
    if isinstance(token, str):
        return SymbolName(token)
    raise InvalidFieldName(
        f"field name {token!r} must be an int or a str, got {type(token).__name__}"
    )


def encode_field_name(name: FieldName) -> str:
    """
    Render a field name for the "name" attribute.

    Negative ints, and strings that are empty or start with an ASCII digit,
    would decode as something else, so they are rejected.
    """
    if isinstance(name, IndexName):
        if name.value < 0:
            raise InvalidFieldName(f"int field name {name.value} must not be negative")
        return str(name.value)
    text = name.value
    if not text:
        raise InvalidFieldName("field name must not be an empty string")
    if _is_ascii_digit(text[0]):
        raise InvalidFieldName(
            f"string field name {text!r} starts with a digit and would load back as an int"
        )
    return text


def decode_field_name(text: Any) -> FieldName:
    """Parse a "name" attribute: leading ASCII digit means int, else str."""
    if not isinstance(text, str):
        raise InvalidAttribute(f"{NAME_ATTRIBUTE!r} attribute must be a string, got {text!r}")
    if not text:
        raise InvalidAttribute(f"{NAME_ATTRIBUTE!r} attribute is empty")
    if _is_ascii_digit(text[0]):
        try:
            return IndexName(int(text))
        except ValueError:
            raise InvalidAttribute(f"{NAME_ATTRIBUTE!r} attribute {text!r} is not an integer") from None
    return SymbolName(text)


def _is_ascii_digit(char: str) -> bool:
    return "0" <= char <= "9"


# ============================================================================
# StructArray
# ============================================================================

class StructArray:
    """
    Structure of arrays with int or str field names.

    Components keep their own shapes; a loaded array must match the shape of
    the component it overwrites.

    Args:
        fields: Mapping of field name to component, in field order.
        **named: Extra str-named components, appended after ``fields``.

    Example:
        >>> rec = StructArray({1: np.arange(3), 2: np.arange(2)})
        >>> rec.propertynames()
        (1, 2)
    """

    def __init__(self, fields: Optional[Mapping[RawName, Any]] = None, **named: Any):
        self._fields: Dict[RawName, Component] = {}
        items = list((fields or {}).items()) + list(named.items())
        for name, value in items:
            field_name(name)
            if not isinstance(value, StructArray):
                value = np.asarray(value)
            self._fields[name] = value

    @classmethod
    def from_records(cls, records: np.ndarray) -> "StructArray":
        """Split a numpy structured array into components, recursing into nested dtypes."""
        if records.dtype.names is None:
            raise TypeError(f"expected a structured array, got dtype {records.dtype}")
        fields = {}
        for name in records.dtype.names:
            column = records[name]
            if column.dtype.names is not None and column.dtype.itemsize > 0:
                fields[name] = cls.from_records(column)
            else:
                fields[name] = np.ascontiguousarray(column)
        return cls(fields)

    def propertynames(self) -> Tuple[RawName, ...]:
        return tuple(self._fields)

    def getproperty(self, name: RawName) -> Component:
        try:
            return self._fields[name]
        except KeyError:
            raise MissingField(f"record has no field {name!r}") from None

    def zeros_like(self) -> "StructArray":
        """Return a record with the same layout and zeroed contents."""
        return StructArray({
            name: value.zeros_like() if isinstance(value, StructArray) else np.zeros_like(value)
            for name, value in self._fields.items()
        })

    def __getitem__(self, name: RawName) -> Component:
        return self.getproperty(name)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[RawName]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def items(self):
        return self._fields.items()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructArray):
            return NotImplemented
        if self.propertynames() != other.propertynames():
            return False
        for name, value in self._fields.items():
            theirs = other._fields[name]
            if isinstance(value, StructArray) != isinstance(theirs, StructArray):
                return False
            if isinstance(value, StructArray):
                if value != theirs:
                    return False
            elif value.dtype.itemsize == 0 or theirs.dtype.itemsize == 0:
                # void components carry no values to compare
                if value.dtype != theirs.dtype or value.shape != theirs.shape:
                    return False
            elif not arrays_equal(value, theirs):
                return False
        return True

    def __repr__(self) -> str:
        inner = ", ".join(f"{name!r}: {value!r}" for name, value in self._fields.items())
        return f"StructArray({{{inner}}})"


# ============================================================================
# Codec
# ============================================================================

COMPRESSORS = ("blosc", "zstd", "gzip")


def build_compressors(compression: Optional[str], compression_level: int = 5) -> Any:
    """
    Map a compressor name to zarr codecs.

    Args:
        compression: 'blosc', 'zstd', 'gzip', or None for uncompressed arrays.
        compression_level: Codec level (1-9).
    """
    if compression is None:
        return None
    if compression == 'blosc':
        return (BloscCodec(cname='lz4', clevel=compression_level, shuffle='bitshuffle'),)
    if compression == 'zstd':
        return (ZstdCodec(level=compression_level),)
    if compression == 'gzip':
        return (GzipCodec(level=compression_level),)
    raise ConfigError(f"Unknown compression {compression!r}, expected one of {COMPRESSORS}")


def write_nested_struct_array(
    data: StructArray,
    group: Optional[zarr.Group] = None,
    *,
    compressors: Any = "auto",
) -> zarr.Group:
    """
    Convert a nested StructArray into a zarr group.

    The data can be loaded back with read_nested_struct_array. Components
    whose element type has zero size are not written.

    Args:
        data: Record to store.
        group: Empty group to write into; a new in-memory group if None.
        compressors: Passed to zarr for every array.

    Returns:
        The populated group. No attribute is set on it.
    """
    if group is None:
        group = new_group()
    for i, pname in enumerate(data.propertynames(), start=1):
        encoded = encode_field_name(field_name(pname))
        subdata = data.getproperty(pname)
        if isinstance(subdata, StructArray):
            subgroup = group.create_group(str(i))
            write_nested_struct_array(subdata, subgroup, compressors=compressors)
            subgroup.attrs[NAME_ATTRIBUTE] = encoded
        elif subdata.dtype.itemsize != 0:
            array = group.create_array(str(i), data=subdata, compressors=compressors)
            array.attrs[NAME_ATTRIBUTE] = encoded
        else:
            logger.debug(f"Skipping zero-size field {pname!r} (dtype {subdata.dtype})")
    return group


def read_nested_struct_array(data: StructArray, group: zarr.Group) -> None:
    """
    Overlay a zarr group onto a preallocated StructArray.

    Children are matched to fields by their "name" attribute; arrays are copied
    into the existing components in place. Fields with no child in the group
    are left untouched.

    Raises:
        InvalidAttribute: child with a missing or malformed "name".
        MissingField: child names a field the record does not have.
        ShapeMismatch: stored array shape differs from the field's shape.
        FieldKindMismatch: group/array child meets an array/nested field.
        CorruptTree: child is neither a group nor an array.
    """
    for key, child in children(group):
        kind = node_kind(child)
        pname = decode_field_name(child.attrs.get(NAME_ATTRIBUTE)).value
        target = data.getproperty(pname)
        if kind is NodeKind.ARRAY:
            if isinstance(target, StructArray):
                raise FieldKindMismatch(f"child {key!r} is an array but field {pname!r} is nested")
            newdata = getarray(child)
            if newdata.shape != target.shape:
                raise ShapeMismatch(
                    f"field {pname!r} is {target.shape}, group child {key!r} is {newdata.shape}"
                )
            np.copyto(target, newdata)
        else:
            if not isinstance(target, StructArray):
                raise FieldKindMismatch(f"child {key!r} is a group but field {pname!r} is an array")
            read_nested_struct_array(target, child)
