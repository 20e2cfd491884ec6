"""Core types and utilities for topothin.

This module provides type definitions, enums, exceptions, and core utilities
used throughout the library.
"""

from .types import (
    SimplifyAlgorithm,
    BuildStage,
    Region,
)

from .errors import (
    TopothinError,
    InvalidGeometryError,
    InvalidStateError,
    SimplificationError,
    DuplicateRegionError,
    StoreError,
    UnmatchedRegionWarning,
)

__all__ = [
    # Enums and records
    'SimplifyAlgorithm',
    'BuildStage',
    'Region',

    # Exceptions and warnings
    'TopothinError',
    'InvalidGeometryError',
    'InvalidStateError',
    'SimplificationError',
    'DuplicateRegionError',
    'StoreError',
    'UnmatchedRegionWarning',
]
