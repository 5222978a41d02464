"""mdmol - Molecular dynamics trajectory analysis core for visualization."""

# --- Data model ---
from .structure import (
    BackboneSegment, Bond, Chain, MoleculeDynamic, MoleculeStructure, Residue, Trajectory,
)

# --- Topology ---
from .topology import (
    build_topology, compute_backbone_segments, compute_chains, compute_covalent_bonds,
)

# --- Trajectory ---
from .trajectory import (
    BackboneAnglesTrajectory, InterpolationMode, TaskHandle,
    compute_backbone_angles, compute_backbone_angles_trajectory,
    init_backbone_angles_trajectory, interpolate_atomic_positions,
)

# --- Geometry & coloring ---
from .geometry import SplineSegment, compute_backbone_splines, compute_spline
from .coloring import ColorMapping, compute_atom_colors, compute_atom_radii

# --- Infrastructure ---
from .errors import MdmolError, InputError, InvariantError, TrajectoryError
from .settings import AnalysisSettings, normalize_interpolation_mode
from .session import AnalysisSession
from . import constants

__version__ = "0.1.0"

__all__ = [
    "MoleculeStructure", "MoleculeDynamic", "Trajectory", "Residue", "Chain", "Bond", "BackboneSegment",
    "build_topology", "compute_covalent_bonds", "compute_chains", "compute_backbone_segments",
    "InterpolationMode", "interpolate_atomic_positions",
    "BackboneAnglesTrajectory", "compute_backbone_angles", "init_backbone_angles_trajectory",
    "compute_backbone_angles_trajectory", "TaskHandle",
    "SplineSegment", "compute_spline", "compute_backbone_splines",
    "ColorMapping", "compute_atom_colors", "compute_atom_radii",
    "MdmolError", "InputError", "InvariantError", "TrajectoryError",
    "AnalysisSettings", "normalize_interpolation_mode", "AnalysisSession",
    "constants",
]
