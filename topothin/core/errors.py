"""Exception and warning types raised by topothin.

All fatal conditions derive from :class:`TopothinError` so callers can catch
a single base class. Non-fatal diagnostics are emitted as warnings.
"""

from typing import Optional


class TopothinError(Exception):
    """Base class for all topothin errors."""
    pass


class InvalidGeometryError(TopothinError):
    """Raised when an input ring is malformed (not closed, self-intersecting,
    empty or not polygonal).

    Attributes:
        layer: Layer name of the offending region, if known
        code: Region code of the offending region, if known
    """

    def __init__(self, message: str, layer: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.layer = layer
        self.code = code


class InvalidStateError(TopothinError):
    """Raised when a topology stage is invoked out of order.

    Attributes:
        current: Stage the builder was in
        required: Stage(s) the call needed
    """

    def __init__(self, message: str, current=None, required=None):
        super().__init__(message)
        self.current = current
        self.required = required


class SimplificationError(TopothinError):
    """Raised when reassembled geometry is no longer valid.

    Retrying with a smaller tolerance is the usual remedy.
    """

    def __init__(
        self,
        message: str,
        layer: Optional[str] = None,
        code: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.layer = layer
        self.code = code
        self.reason = reason


class DuplicateRegionError(TopothinError):
    """Raised when a region code occurs twice within one layer."""

    def __init__(self, layer: str, code: str):
        super().__init__(f"Duplicate region code {code!r} in layer {layer!r}")
        self.layer = layer
        self.code = code


class StoreError(TopothinError):
    """Raised when the geometry store cannot be read or written."""
    pass


class UnmatchedRegionWarning(UserWarning):
    """Issued when a fine region matches no coarse region in a layer."""
    pass


__all__ = [
    'TopothinError',
    'InvalidGeometryError',
    'InvalidStateError',
    'SimplificationError',
    'DuplicateRegionError',
    'StoreError',
    'UnmatchedRegionWarning',
]
