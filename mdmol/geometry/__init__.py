"""Geometry kernels: spatial hashing, dihedrals, rigid/linear transforms, splines."""

from .spatial_hash import (
    SpatialHashFrame,
    compute_frame,
    for_each_within,
    iter_within,
    query_indices,
)
from .dihedrals import calculate_dihedral_angles, dihedral_angle
from .transforms import (
    compute_bounding_box,
    compute_com,
    compute_linear_transform,
    compute_rotation_stretch,
    decompose,
    transform_positions,
)
from .spline import SplineSegment, compute_backbone_splines, compute_spline, cubic_spline

__all__ = [
    "SpatialHashFrame",
    "compute_frame",
    "iter_within",
    "query_indices",
    "for_each_within",
    "calculate_dihedral_angles",
    "dihedral_angle",
    "transform_positions",
    "compute_bounding_box",
    "compute_com",
    "compute_linear_transform",
    "decompose",
    "compute_rotation_stretch",
    "SplineSegment",
    "cubic_spline",
    "compute_spline",
    "compute_backbone_splines",
]
