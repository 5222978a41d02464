"""Session settings and validation of user-facing option strings."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .constants import (
    DEFAULT_INTERPOLATION_MODE,
    INTERPOLATION_MODES,
    SPLINE_DEFAULT_SUBDIVISIONS,
    SPLINE_DEFAULT_TENSION,
)
from .errors import InputError
from .trajectory.interpolation import InterpolationMode


@dataclass(frozen=True)
class AnalysisSettings:
    interpolation_mode: InterpolationMode = InterpolationMode(DEFAULT_INTERPOLATION_MODE)
    spline_subdivisions: int = SPLINE_DEFAULT_SUBDIVISIONS
    spline_tension: float = SPLINE_DEFAULT_TENSION
    compute_angles_on_load: bool = True

    def __post_init__(self):
        object.__setattr__(self, "interpolation_mode", normalize_interpolation_mode(self.interpolation_mode))
        if int(self.spline_subdivisions) < 1:
            raise InputError(f"spline_subdivisions must be >= 1, got {self.spline_subdivisions}")

    def with_mode(self, mode: str | InterpolationMode) -> AnalysisSettings:
        return replace(self, interpolation_mode=normalize_interpolation_mode(mode))


def normalize_interpolation_mode(mode: str | InterpolationMode | None) -> InterpolationMode:
    if mode is None:
        return InterpolationMode(DEFAULT_INTERPOLATION_MODE)
    if isinstance(mode, InterpolationMode):
        return mode
    name = str(mode).lower()
    if name not in INTERPOLATION_MODES:
        raise InputError(
            f"Unsupported interpolation mode: {mode!r}. Allowed: {list(INTERPOLATION_MODES)}"
        )
    return InterpolationMode(name)
