"""
Storage Trees
Read-side access to hierarchical zarr stores, nested record serialization and tree diffs.
"""

__version__ = "0.1.0"

from .diff import assert_trees_equal, print_attrs_diff, print_diff, show_diff
from .nested import (
    NAME_ATTRIBUTE,
    StructArray,
    build_compressors,
    read_nested_struct_array,
    write_nested_struct_array,
)
from .readers import AbstractReader, DirectoryReader, materialize_group

__all__ = [
    "AbstractReader",
    "DirectoryReader",
    "materialize_group",
    "NAME_ATTRIBUTE",
    "StructArray",
    "build_compressors",
    "read_nested_struct_array",
    "write_nested_struct_array",
    "assert_trees_equal",
    "print_attrs_diff",
    "print_diff",
    "show_diff",
]
