"""
Trajectory file I/O.

Trajectories exported by the propagator are read from CSV (one row per
sample) or from the JSON format written by ``save_trajectory``, which carries
provenance metadata and a SHA-256 hash of its content.
"""

import hashlib
import json
import logging
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from ..infra.utils import get_file_hash, json_serializer
from ..physics.elements import MU_EARTH
from .ensemble import TrajectoryEnsemble
from .trajectory import STATE_COLUMNS, Trajectory

logger = logging.getLogger(__name__)

FILE_FORMAT_VERSION = "1.0"
SUPPORTED_SUFFIXES = ('.csv', '.json')

_EPOCH_COLUMNS = ('epoch', 'epoch_s', 't', 'time')
_TIME_SCALE_SUFFIX = re.compile(r'\s+(UTC|TAI|TDB|TT|ET|GPST)$', re.IGNORECASE)

def _normalize_column(name: str) -> str:
    """``"X (km)"`` -> ``"x"``."""
    name = re.sub(r'\(.*?\)|\[.*?\]', '', str(name))
    return name.strip().lower().replace(' ', '_')

def _parse_epochs(column: pd.Series):
    """Seconds since the first sample, and the first sample's datetime if known."""
    if pd.api.types.is_numeric_dtype(column):
        return column.to_numpy(dtype=float), None

    text = column.astype(str).str.strip().str.replace(_TIME_SCALE_SUFFIX, '', regex=True)
    try:
        stamps = pd.to_datetime(text, utc=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse epoch column: {e}") from e
    reference = stamps.iloc[0]
    seconds = (stamps - reference).dt.total_seconds().to_numpy(dtype=float)
    return seconds, reference.to_pydatetime()

def read_trajectory_csv(path: Path, name: Optional[str] = None, mu: float = MU_EARTH,
                        frame: str = "EME2000") -> Trajectory:
    df = pd.read_csv(path)
    df.columns = [_normalize_column(c) for c in df.columns]

    epoch_column = next((c for c in _EPOCH_COLUMNS if c in df.columns), None)
    if epoch_column is None:
        raise ValueError(f"{path}: no epoch column (expected one of {_EPOCH_COLUMNS})")
    missing = [c for c in STATE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing state columns {missing}")

    epochs, reference_epoch = _parse_epochs(df[epoch_column])
    return Trajectory(
        epochs,
        df[STATE_COLUMNS].to_numpy(dtype=float),
        name=name or path.stem,
        frame=frame,
        mu=mu,
        reference_epoch=reference_epoch,
    )

def read_trajectory_json(path: Path, name: Optional[str] = None, mu: Optional[float] = None) -> Trajectory:
    with open(path, 'r') as f:
        data = json.load(f)

    expected = (data.get("file_metadata") or {}).get("file_hash")
    if expected:
        actual = _content_hash({k: v for k, v in data.items() if k != "file_metadata"})
        if actual != expected:
            logger.warning("%s: content hash mismatch (file was modified after saving)", path)

    reference_epoch = data.get("reference_epoch")
    return Trajectory(
        np.asarray(data["epochs"], dtype=float),
        np.asarray(data["states"], dtype=float),
        name=name or data.get("name", path.stem),
        frame=data.get("frame", "EME2000"),
        mu=mu if mu is not None else data.get("mu", MU_EARTH),
        reference_epoch=datetime.fromisoformat(reference_epoch) if reference_epoch else None,
    )

def _content_hash(content: dict) -> str:
    encoded = json.dumps(content, sort_keys=True, default=json_serializer).encode()
    return hashlib.sha256(encoded).hexdigest()

def load_trajectory(path: Union[str, Path], name: Optional[str] = None, mu: Optional[float] = None) -> Trajectory:
    """
    Load a trajectory from CSV or JSON.

    Args:
        path: Trajectory file
        name: Override the trajectory name (defaults to the file's)
        mu: Gravitational parameter of the central body (km^3/s^2)

    Returns:
        The loaded trajectory
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trajectory file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.csv':
        trajectory = read_trajectory_csv(path, name=name, mu=mu if mu is not None else MU_EARTH)
    elif suffix == '.json':
        trajectory = read_trajectory_json(path, name=name, mu=mu)
    else:
        raise ValueError(f"Unsupported trajectory format: {path.suffix}")

    logger.info("Loaded %s (%d samples, %.1f s)", trajectory.name, len(trajectory), trajectory.duration)
    return trajectory

def save_trajectory(trajectory: Trajectory, path: Union[str, Path]) -> Path:
    """Save a trajectory as CSV or JSON (chosen by suffix)."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported trajectory format: {path.suffix}")

    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix == '.csv':
        trajectory.to_dataframe().to_csv(path, index=False)
        logger.info("Saved %s to %s (sha256 %s)", trajectory.name, path, get_file_hash(path)[:12])
        return path

    content = {
        "name": trajectory.name,
        "frame": trajectory.frame,
        "mu": trajectory.mu,
        "reference_epoch": trajectory.reference_epoch.isoformat() if trajectory.reference_epoch else None,
        "epochs": trajectory.epochs.tolist(),
        "states": trajectory.states.tolist(),
    }
    content["file_metadata"] = {
        "file_format_version": FILE_FORMAT_VERSION,
        "save_time": time.time(),
        "file_hash": _content_hash(content),
    }

    with open(path, 'w') as f:
        json.dump(content, f, indent=2, default=json_serializer)

    logger.info("Saved %s to %s", trajectory.name, path)
    return path

def load_ensemble(source: Union[str, Path, Iterable[Union[str, Path]]],
                  nominal: Optional[str] = None,
                  mu: Optional[float] = None) -> TrajectoryEnsemble:
    """
    Load Monte Carlo runs from a directory or a list of files.

    Args:
        source: Directory (every ``*.csv``/``*.json`` in it, sorted) or paths
        nominal: Name of the run to use as nominal
        mu: Gravitational parameter passed to every run

    Returns:
        The ensemble
    """
    if isinstance(source, (str, Path)) and Path(source).is_dir():
        paths: List[Path] = sorted(
            p for p in Path(source).iterdir() if p.suffix.lower() in SUPPORTED_SUFFIXES
        )
    elif isinstance(source, (str, Path)):
        paths = [Path(source)]
    else:
        paths = [Path(p) for p in source]

    if not paths:
        raise FileNotFoundError(f"No trajectory files found in {source}")

    trajectories = [load_trajectory(p, mu=mu) for p in paths]
    nominal_index = None
    if nominal is not None:
        names = [t.name for t in trajectories]
        if nominal not in names:
            raise ValueError(f"Nominal run {nominal!r} not in ensemble {names}")
        nominal_index = names.index(nominal)

    return TrajectoryEnsemble(trajectories, nominal=nominal_index)
