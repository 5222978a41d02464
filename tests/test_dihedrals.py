"""Tests for mdmol/geometry/dihedrals.py."""

import math

import pytest
import torch

from mdmol.geometry.dihedrals import calculate_dihedral_angles, dihedral_angle


class TestDihedralAngle:
    def test_cis_planar(self):
        assert dihedral_angle([1, 1, 0], [1, 0, 0], [0, 0, 0], [0, 1, 0]) == pytest.approx(0.0, abs=1e-6)

    def test_trans_planar(self):
        assert dihedral_angle([1, 1, 0], [1, 0, 0], [0, 0, 0], [0, -1, 0]) == pytest.approx(math.pi, abs=1e-6)

    def test_trans_is_positive_pi(self):
        """The range is (-pi, pi]: exact trans never comes out as -pi."""
        angle = dihedral_angle([0, 1, 0], [0, 0, 0], [1, 0, 0], [1, -1, 0])
        assert angle == pytest.approx(math.pi, abs=1e-6)
        assert angle > 0

    def test_sign(self):
        # Looking down b->c (+x), a up (+y) and d towards +z: clockwise, positive
        assert dihedral_angle([0, 1, 0], [0, 0, 0], [1, 0, 0], [1, 0, 1]) == pytest.approx(math.pi / 2, abs=1e-6)
        assert dihedral_angle([0, 1, 0], [0, 0, 0], [1, 0, 0], [1, 0, -1]) == pytest.approx(-math.pi / 2, abs=1e-6)

    def test_reversed_order_same_angle(self):
        pts = [[0.3, 1.0, 0.2], [0.0, 0.0, 0.0], [1.5, 0.1, 0.0], [1.7, -0.4, 1.1]]
        assert dihedral_angle(*pts) == pytest.approx(dihedral_angle(*pts[::-1]), abs=1e-5)


class TestCalculateDihedralAngles:
    def test_batched_shape(self):
        p = torch.randn(4, 7, 3)
        angles = calculate_dihedral_angles(p[0], p[1], p[2], p[3])
        assert angles.shape == (7,)
        assert torch.all(angles <= math.pi) and torch.all(angles > -math.pi)

    def test_matches_scalar(self):
        p = torch.randn(4, 5, 3, generator=torch.Generator().manual_seed(0))
        batched = calculate_dihedral_angles(p[0], p[1], p[2], p[3])
        for k in range(5):
            assert batched[k].item() == pytest.approx(
                dihedral_angle(p[0, k].numpy(), p[1, k].numpy(), p[2, k].numpy(), p[3, k].numpy()), abs=1e-5
            )
