"""Shared error types for mdmol."""

from __future__ import annotations


class MdmolError(Exception):
    """Base error type for mdmol."""


class InputError(MdmolError, ValueError):
    """Raised when user input is invalid or unsupported."""


class InvariantError(MdmolError, AssertionError):
    """Raised when parallel arrays or indices are inconsistent (programming error)."""


class TrajectoryError(MdmolError, RuntimeError):
    """Raised when trajectory frames are accessed or appended out of range."""
