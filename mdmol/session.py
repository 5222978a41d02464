"""
Analysis Session

Owns one loaded molecule/trajectory pair together with its playback state,
the backbone angle table and the two background workers (trajectory loader
and backbone angle pass).

Usage:
    from mdmol import AnalysisSession, MoleculeDynamic

    session = AnalysisSession()
    session.load(MoleculeDynamic(molecule, trajectory))
    session.load_trajectory_async(frame_reader)
    session.update(2.5)
    angles = session.current_angles()
    session.shutdown()
"""

import logging
import threading
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .coloring import ColorMapping, compute_atom_colors
from .constants import WORKER_JOIN_TIMEOUT
from .errors import InvariantError, MdmolError, TrajectoryError
from .geometry.spline import SplineSegment, compute_backbone_splines
from .settings import AnalysisSettings
from .structure import MoleculeDynamic
from .topology import build_topology
from .trajectory.async_tasks import TaskHandle
from .trajectory.backbone_angles import (
    BackboneAnglesTrajectory,
    compute_backbone_angles_trajectory,
    compute_molecule_backbone_angles,
    init_backbone_angles_trajectory,
)
from .trajectory.interpolation import interpolate_atomic_positions

logger = logging.getLogger(__name__)

Frame = Tuple[np.ndarray, Optional[np.ndarray]]


class AnalysisSession:
    """Playback and analysis state of one loaded molecular dynamic."""

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()
        self.dynamic: Optional[MoleculeDynamic] = None
        self.backbone_angles: Optional[BackboneAnglesTrajectory] = None
        self.time = 0.0

        self.load_task = TaskHandle("load_trajectory")
        self.angles_task = TaskHandle("backbone_angles")
        # Guards the angle worker's queued-update flag and liveness
        self._angles_lock = threading.Lock()
        self._angles_query_update = False
        self._angles_worker_active = False

        self._current_angles = np.zeros((0, 3), dtype=np.float32)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, dynamic: MoleculeDynamic, derive_topology: bool = True) -> None:
        """Replace the session's dynamic; running workers are stopped first."""
        self.stop_workers()
        molecule = dynamic.molecule
        if derive_topology:
            build_topology(molecule)

        self.dynamic = dynamic
        self.time = 0.0
        self.backbone_angles = init_backbone_angles_trajectory(dynamic)
        if dynamic.trajectory is not None and dynamic.trajectory.num_frames > 0:
            molecule.atom_positions[:] = dynamic.trajectory.get_positions(0)
        self._current_angles = compute_molecule_backbone_angles(
            molecule.atom_positions, molecule.backbone_segments, molecule.chains
        )
        logger.info(
            f"Loaded molecule with {molecule.num_atoms} atoms, {molecule.num_residues} residues, "
            f"{len(molecule.chains)} chains"
        )

    def _require_dynamic(self) -> MoleculeDynamic:
        if self.dynamic is None:
            raise InvariantError("No molecule loaded in session")
        return self.dynamic

    def _require_trajectory(self):
        dynamic = self._require_dynamic()
        if dynamic.trajectory is None:
            raise TrajectoryError("Session has no trajectory")
        return dynamic.trajectory

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def update(self, time: float) -> np.ndarray:
        """Interpolate atom positions at ``time`` and refresh current angles."""
        trajectory = self._require_trajectory()
        molecule = self.dynamic.molecule
        if trajectory.num_frames == 0:
            return molecule.atom_positions

        self.time = min(max(float(time), 0.0), float(trajectory.last_frame))
        interpolate_atomic_positions(
            trajectory, self.time, self.settings.interpolation_mode, out=molecule.atom_positions
        )
        compute_molecule_backbone_angles(
            molecule.atom_positions,
            molecule.backbone_segments,
            molecule.chains,
            out=self._current_angles,
        )
        return molecule.atom_positions

    def current_angles(self) -> np.ndarray:
        """[omega, phi, psi] per residue at the current playback time."""
        return self._current_angles

    def compute_splines(self, colors: Optional[np.ndarray] = None) -> List[List[SplineSegment]]:
        molecule = self._require_dynamic().molecule
        if colors is None:
            colors = compute_atom_colors(molecule, ColorMapping.CPK)
        return compute_backbone_splines(
            molecule.atom_positions,
            colors,
            molecule.backbone_segments,
            molecule.chains,
            num_subdivisions=self.settings.spline_subdivisions,
            tension=self.settings.spline_tension,
        )

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def load_trajectory_async(self, frames: Iterable[Frame]) -> TaskHandle:
        """
        Append frames from ``frames`` on a background thread.

        Each item is ``(positions, box)``. Read errors are logged and end the
        load with the progress fraction left where it was; frames that did
        load stay published. The backbone angle pass is scheduled afterwards.
        """
        trajectory = self._require_trajectory()
        if self.load_task.running:
            raise InvariantError("A trajectory load is already running")

        def work(task: TaskHandle) -> None:
            logger.info(f"Loading trajectory frames (capacity {trajectory.capacity})")
            try:
                for positions, box in frames:
                    trajectory.append_frame(positions, box)
                    task.fraction = trajectory.num_frames / max(trajectory.capacity, 1)
                    if task.stop_requested:
                        logger.info(f"Trajectory load stopped at frame {trajectory.num_frames}")
                        break
                else:
                    task.fraction = 1.0
            except (OSError, ValueError, MdmolError) as e:
                logger.error(f"Trajectory load failed after {trajectory.num_frames} frames: {e}")
            if self.settings.compute_angles_on_load and not task.stop_requested:
                self.compute_backbone_angles_async()

        self.load_task.start(work)
        return self.load_task

    def compute_backbone_angles_async(self) -> TaskHandle:
        """Queue an incremental backbone angle pass on the angle worker."""
        self._require_dynamic()
        with self._angles_lock:
            self._angles_query_update = True
            if self._angles_worker_active:
                return self.angles_task
            self._angles_worker_active = True

        # A previous worker may still be unwinding after releasing the lock
        self.angles_task.wait()
        self.angles_task.start(self._angles_work)
        return self.angles_task

    def _angles_work(self, task: TaskHandle) -> None:
        dynamic, data = self.dynamic, self.backbone_angles
        try:
            while True:
                with self._angles_lock:
                    if not self._angles_query_update or task.stop_requested:
                        self._angles_worker_active = False
                        break
                    self._angles_query_update = False
                compute_backbone_angles_trajectory(
                    data, dynamic, should_stop=lambda: task.stop_requested
                )
                if dynamic.trajectory is not None and dynamic.trajectory.num_frames:
                    task.fraction = data.num_frames / dynamic.trajectory.num_frames
        except Exception:
            with self._angles_lock:
                self._angles_worker_active = False
            raise

    def stop_workers(self, timeout: Optional[float] = WORKER_JOIN_TIMEOUT) -> None:
        for task in (self.load_task, self.angles_task):
            if task.running and not task.signal_stop_and_wait(timeout):
                logger.warning(f"Task {task.name} did not stop within {timeout}s")

    def shutdown(self) -> None:
        self.stop_workers()
        logger.info("Session shut down")
