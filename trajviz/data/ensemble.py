"""
Monte Carlo trajectory ensembles.

The ensemble runs come from an external Monte Carlo generator. This module
only aligns them in time and summarizes their spread:
- Common time window and epochs of all runs
- Dispersion statistics in the radial / in-track / cross-track frame
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .trajectory import Trajectory

logger = logging.getLogger(__name__)

def rsw_frame(r: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Rotation from inertial to the radial / in-track / cross-track frame.

    Rows of the returned matrix are the R, S (in-track) and W unit vectors.
    """
    r_hat = r / np.linalg.norm(r)
    w = np.cross(r, v)
    w_norm = np.linalg.norm(w)
    if w_norm == 0:
        raise ValueError("RSW frame is undefined for rectilinear motion")
    w_hat = w / w_norm
    s_hat = np.cross(w_hat, r_hat)
    return np.vstack([r_hat, s_hat, w_hat])

class TrajectoryEnsemble:
    """A set of runs of the same scenario."""

    def __init__(self, trajectories: Sequence[Trajectory], nominal: Optional[int] = None):
        self.trajectories: List[Trajectory] = list(trajectories)
        if not self.trajectories:
            raise ValueError("An ensemble needs at least one trajectory")
        if nominal is not None and not 0 <= nominal < len(self.trajectories):
            raise ValueError(f"Nominal index {nominal} out of range for {len(self.trajectories)} runs")
        self.nominal = nominal

        frames = {t.frame for t in self.trajectories}
        if len(frames) > 1:
            raise ValueError(f"Ensemble runs use different frames: {sorted(frames)}")

    def __len__(self) -> int:
        return len(self.trajectories)

    def common_window(self) -> Tuple[float, float]:
        start = max(t.start for t in self.trajectories)
        end = min(t.end for t in self.trajectories)
        if end <= start:
            raise ValueError("Ensemble runs have no common time window")
        return start, end

    def common_epochs(self, step: float) -> np.ndarray:
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        start, end = self.common_window()
        n = int(np.floor((end - start) / step + 1e-9))
        epochs = start + step * np.arange(n + 1)
        if epochs[-1] < end:
            epochs = np.append(epochs, end)
        return epochs

    def states_at(self, epochs: np.ndarray) -> np.ndarray:
        """States of every run, shape (runs, n_epochs, 6)."""
        return np.stack([t.resample(epochs) for t in self.trajectories])

    def dispersion(self, step: float) -> pd.DataFrame:
        """
        Spread of the runs over time.

        Deviations are taken with respect to the nominal run when one is set,
        otherwise with respect to the ensemble mean.

        Args:
            step: Spacing of the common epochs (s)

        Returns:
            One row per epoch with deviation percentiles and RSW standard deviations
        """
        epochs = self.common_epochs(step)
        states = self.states_at(epochs)

        if self.nominal is not None:
            reference = states[self.nominal]
        else:
            reference = states.mean(axis=0)

        deviations = states - reference[np.newaxis]
        dev_km = np.linalg.norm(deviations[..., :3], axis=-1)
        speeds = np.linalg.norm(states[..., 3:], axis=-1)

        rows = []
        for k, t in enumerate(epochs):
            rotation = rsw_frame(reference[k, :3], reference[k, 3:])
            rsw = deviations[:, k, :3] @ rotation.T
            rows.append({
                'epoch': t,
                'n_runs': len(self),
                'mean_dev_km': float(dev_km[:, k].mean()),
                'p05_dev_km': float(np.percentile(dev_km[:, k], 5)),
                'p50_dev_km': float(np.percentile(dev_km[:, k], 50)),
                'p95_dev_km': float(np.percentile(dev_km[:, k], 95)),
                'radial_std_km': float(rsw[:, 0].std()),
                'in_track_std_km': float(rsw[:, 1].std()),
                'cross_track_std_km': float(rsw[:, 2].std()),
                'speed_std_km_s': float(speeds[:, k].std()),
            })

        logger.info("Computed dispersion of %d runs over %d epochs", len(self), len(epochs))
        return pd.DataFrame(rows)
