"""
Exceptions raised by transform operations.
"""


class TransformError(Exception):
    """Base class for errors raised by transforms."""


class SizeMismatchError(TransformError, ValueError):
    """An argument does not have the length or shape the transform requires."""


class CloneError(TransformError, TypeError):
    """A cloned transform is not an instance of the source's concrete type."""
