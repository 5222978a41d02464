"""Trajectory playback: interpolation, backbone angle tables and workers."""

from .interpolation import (
    InterpolationMode,
    box_extent,
    cubic_interpolation,
    cubic_interpolation_periodic,
    de_periodize,
    interpolate,
    interpolate_atomic_positions,
    linear_interpolation,
    linear_interpolation_periodic,
)
from .backbone_angles import (
    BackboneAnglesTrajectory,
    compute_backbone_angles,
    compute_backbone_angles_trajectory,
    compute_molecule_backbone_angles,
    get_backbone_angles,
    init_backbone_angles_trajectory,
)
from .async_tasks import TaskHandle

__all__ = [
    "InterpolationMode",
    "box_extent",
    "de_periodize",
    "linear_interpolation",
    "linear_interpolation_periodic",
    "cubic_interpolation",
    "cubic_interpolation_periodic",
    "interpolate",
    "interpolate_atomic_positions",
    "BackboneAnglesTrajectory",
    "compute_backbone_angles",
    "compute_molecule_backbone_angles",
    "init_backbone_angles_trajectory",
    "compute_backbone_angles_trajectory",
    "get_backbone_angles",
    "TaskHandle",
]
