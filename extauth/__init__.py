"""
Extensible authentication core.

A host user model is composed from an ordered list of extensions, each
contributing fields, relations, indexes, changeset logic and structural
validation.
"""

__version__ = "0.1.0"
