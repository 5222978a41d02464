"""Stateless dihedral angle computation.

Signed torsion angles follow the IUPAC convention: looking along the central
bond p1->p2, the angle is positive when the far plane is rotated clockwise
from the near plane. Cis (same-side) arrangements give 0, trans give pi.
"""

import math

import numpy as np
import torch
import torch.nn.functional as F


def calculate_dihedral_angles(
    p0: torch.Tensor,
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    eps: float = 1e-8,
) -> torch.Tensor:
    """Batched dihedral angles.

    Args:
        p0, p1, p2, p3: Point tensors of shape (..., 3).
        eps: Small value for numerical stability.

    Returns:
        Dihedral angles of shape (...) in radians, range (-pi, pi].
    """
    b1 = p1 - p0
    b2 = p2 - p1
    b3 = p3 - p2

    n1 = torch.cross(b1, b2, dim=-1)
    n2 = torch.cross(b2, b3, dim=-1)

    x = (n1 * n2).sum(dim=-1)
    y = (torch.cross(n1, n2, dim=-1) * F.normalize(b2, dim=-1, eps=eps)).sum(dim=-1)
    angle = torch.atan2(y, x)

    return torch.where(angle <= -math.pi, angle + 2.0 * math.pi, angle)


def dihedral_angle(p0, p1, p2, p3) -> float:
    """Dihedral angle of four points, in radians."""
    pts = [torch.as_tensor(np.asarray(p, dtype=np.float32)) for p in (p0, p1, p2, p3)]
    return float(calculate_dihedral_angles(*pts))
