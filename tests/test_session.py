"""Tests for mdmol/session.py: playback state and background workers."""

import logging

import numpy as np
import pytest

from mdmol.errors import InvariantError, TrajectoryError
from mdmol.session import AnalysisSession
from mdmol.settings import AnalysisSettings
from mdmol.structure import MoleculeDynamic

WAIT = 10.0


def _frames(molecule, num_frames, step=0.5, box=(100.0, 100.0, 100.0)):
    base = molecule.atom_positions.copy()
    for k in range(num_frames):
        yield base + np.array([k * step, 0.0, 0.0], dtype=np.float32), np.asarray(box)


@pytest.fixture
def session():
    s = AnalysisSession()
    yield s
    s.shutdown()


class TestLoad:
    def test_derives_topology(self, session, helix_molecule, dynamic_factory):
        session.load(dynamic_factory(helix_molecule, 3))
        mol = session.dynamic.molecule
        assert len(mol.chains) == 1
        assert len(mol.backbone_segments) == 10
        assert session.backbone_angles.capacity == 3
        assert session.current_angles().shape == (10, 3)

    def test_without_trajectory(self, session, helix_molecule):
        session.load(MoleculeDynamic(helix_molecule))
        assert session.backbone_angles.capacity == 0
        with pytest.raises(TrajectoryError):
            session.update(0.0)

    def test_no_backbone_residues(self, session, molecule_factory, dynamic_factory):
        mol = molecule_factory((6,))
        for res in mol.residues:
            res.name = "DA"
        session.load(dynamic_factory(mol, 2))
        assert len(mol.chains) > 0
        assert mol.backbone_segments == []
        assert session.current_angles().shape == (0, 3)
        session.update(0.5)
        assert session.current_angles().shape == (0, 3)

    def test_requires_molecule(self, session):
        with pytest.raises(InvariantError):
            session.compute_splines()


class TestUpdate:
    def test_interpolates_positions(self, session, helix_molecule, dynamic_factory):
        base = helix_molecule.atom_positions.copy()
        session.settings = AnalysisSettings(interpolation_mode="linear")
        session.load(dynamic_factory(helix_molecule, 3, shift=[1.0, 0.0, 0.0]))
        positions = session.update(1.5)
        np.testing.assert_allclose(positions, base + [1.5, 0.0, 0.0], atol=1e-4)
        assert session.time == 1.5

    def test_time_clamped(self, session, helix_molecule, dynamic_factory):
        session.load(dynamic_factory(helix_molecule, 2))
        session.update(10.0)
        assert session.time == 1.0

    def test_current_angles_follow_positions(self, session, helix_molecule, dynamic_factory):
        session.load(dynamic_factory(helix_molecule, 2, shift=[0.3, 0.2, 0.1]))
        before = session.current_angles().copy()
        session.update(0.5)
        delta = session.current_angles() - before
        assert np.all(np.abs(np.arctan2(np.sin(delta), np.cos(delta))) < 1e-4)
        assert session.current_angles()[3, 1] == pytest.approx(np.radians(-57.0), abs=1e-3)

    def test_splines(self, session, helix_molecule, dynamic_factory):
        session.load(dynamic_factory(helix_molecule, 1))
        splines = session.compute_splines()
        assert len(splines) == 1
        assert len(splines[0]) == 9 * session.settings.spline_subdivisions + 1


class TestWorkers:
    def test_async_load_then_angles(self, session, helix_molecule, dynamic_factory):
        dynamic = dynamic_factory(helix_molecule, 0, capacity=4, preload=False)
        session.load(dynamic)
        session.load_trajectory_async(_frames(helix_molecule, 4))
        assert session.load_task.wait(WAIT)
        assert session.angles_task.wait(WAIT)
        assert dynamic.trajectory.num_frames == 4
        assert session.load_task.fraction == 1.0
        assert session.backbone_angles.num_frames == 4

    def test_read_error_leaves_fraction(self, session, helix_molecule, dynamic_factory, caplog):
        dynamic = dynamic_factory(helix_molecule, 0, capacity=4, preload=False)
        session.load(dynamic)

        def broken_reader():
            yield from _frames(helix_molecule, 2)
            raise OSError("truncated trajectory")

        with caplog.at_level(logging.ERROR):
            session.load_trajectory_async(broken_reader())
            assert session.load_task.wait(WAIT)
            assert session.angles_task.wait(WAIT)
        assert session.load_task.fraction == pytest.approx(0.5)
        assert "truncated trajectory" in caplog.text
        assert dynamic.trajectory.num_frames == 2
        assert session.backbone_angles.num_frames == 2

    def test_bad_frame_shape_stops_load(self, session, helix_molecule, dynamic_factory, caplog):
        dynamic = dynamic_factory(helix_molecule, 0, capacity=4, preload=False)
        session.load(dynamic)

        def mismatched_reader():
            yield from _frames(helix_molecule, 2)
            yield np.zeros((3, 3), dtype=np.float32), np.array([100.0, 100.0, 100.0])

        with caplog.at_level(logging.ERROR):
            session.load_trajectory_async(mismatched_reader())
            assert session.load_task.wait(WAIT)
            assert session.angles_task.wait(WAIT)
        assert "Frame has shape" in caplog.text
        assert session.load_task.fraction == pytest.approx(0.5)
        assert dynamic.trajectory.num_frames == 2
        assert session.backbone_angles.num_frames == 2

    def test_angles_async_incremental(self, session, helix_molecule, dynamic_factory):
        dynamic = dynamic_factory(helix_molecule, 2, capacity=3)
        session.load(dynamic)
        session.compute_backbone_angles_async()
        assert session.angles_task.wait(WAIT)
        assert session.backbone_angles.num_frames == 2

        dynamic.trajectory.append_frame(helix_molecule.atom_positions)
        session.compute_backbone_angles_async()
        assert session.angles_task.wait(WAIT)
        assert session.backbone_angles.num_frames == 3

    def test_stop_before_completion(self, session, helix_molecule, dynamic_factory):
        dynamic = dynamic_factory(helix_molecule, 0, capacity=1000, preload=False)
        session.load(dynamic)
        session.load_trajectory_async(_frames(helix_molecule, 1000))
        session.load_task.signal_stop_and_wait(WAIT)
        assert not session.load_task.running
        assert dynamic.trajectory.num_frames <= 1000

    def test_concurrent_load_rejected(self, session, helix_molecule, dynamic_factory):
        import threading

        release = threading.Event()
        dynamic = dynamic_factory(helix_molecule, 0, capacity=2, preload=False)
        session.load(dynamic)

        def slow_reader():
            release.wait(WAIT)
            yield from _frames(helix_molecule, 2)

        session.load_trajectory_async(slow_reader())
        try:
            with pytest.raises(InvariantError):
                session.load_trajectory_async(_frames(helix_molecule, 2))
        finally:
            release.set()
            session.load_task.wait(WAIT)

    def test_shutdown_idle(self, session):
        session.shutdown()
        assert not session.load_task.running
        assert not session.angles_task.running
