"""
Exception hierarchy for storage trees.

Every error derives from StorageTreeError and from the closest builtin,
so callers can catch either.
"""


class StorageTreeError(Exception):
    """Base class for all storage tree failures."""


class NotFound(StorageTreeError, FileNotFoundError):
    """Raised when a store root is missing or is not a directory."""


class KeyNotFound(NotFound, KeyError):
    """Raised when a key is not part of a reader's scan."""

    def __str__(self) -> str:
        return StorageTreeError.__str__(self)


class StoreIOError(StorageTreeError, OSError):
    """Raised when a blob cannot be read after the initial scan."""


class IndexOutOfRange(StorageTreeError, IndexError):
    """Raised for an index outside a reader's key list."""


class InvalidFieldName(StorageTreeError, ValueError):
    """Raised when a record field name cannot be stored."""


class InvalidAttribute(StorageTreeError, ValueError):
    """Raised when a tree node has a missing or malformed "name" attribute."""


class MissingField(StorageTreeError, KeyError):
    """Raised when a record lacks a field the tree declares."""

    def __str__(self) -> str:
        return StorageTreeError.__str__(self)


class ShapeMismatch(StorageTreeError, ValueError):
    """Raised when array shapes disagree."""


class FieldKindMismatch(StorageTreeError, TypeError):
    """Raised when a tree group meets a flat record field, or the reverse."""


class CorruptTree(StorageTreeError, TypeError):
    """Raised for a tree node that is neither a group nor an array."""


class ArityError(StorageTreeError, TypeError):
    """Raised when a diff is requested on other than exactly two trees."""


class TreesDifferError(StorageTreeError, AssertionError):
    """Raised by assert_trees_equal; carries the diff report."""

    def __init__(self, report: str):
        super().__init__(f"trees differ:\n{report}")
        self.report = report


class ConfigError(StorageTreeError, ValueError):
    """Raised for invalid configuration values."""
