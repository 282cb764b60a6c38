# fieldpath/storage.py
from __future__ import annotations
import json, os
from dataclasses import dataclass
from typing import Optional

from .model import Path, TrajectoryLoadError, path_from_dict, path_to_dict


@dataclass
class Trajectory:
    path: Path
    robot_width: float
    robot_length: float


def _dim(data: dict, key: str, current: float) -> float:
    if key not in data or data[key] is None:
        return float(current)
    try:
        v = float(data[key])
    except (TypeError, ValueError) as e:
        raise TrajectoryLoadError(f"{key} must be a number") from e
    if v <= 0:
        raise TrajectoryLoadError(f"{key} must be positive")
    return v


def trajectory_from_dict(data: dict, robot_width: float, robot_length: float) -> Trajectory:
    """Missing robot dimensions fall back to the current ones."""
    path = path_from_dict(data)
    return Trajectory(
        path=path,
        robot_width=_dim(data, "robotWidth", robot_width),
        robot_length=_dim(data, "robotHeight", robot_length),
    )


def trajectory_to_dict(path: Path, robot_width: Optional[float] = None,
                       robot_length: Optional[float] = None) -> dict:
    out = path_to_dict(path)
    if robot_width is not None:
        out["robotWidth"] = float(robot_width)
    if robot_length is not None:
        out["robotHeight"] = float(robot_length)
    return out


def load_trajectory(filename: str, robot_width: float, robot_length: float) -> Trajectory:
    """Load a trajectory file; raises TrajectoryLoadError on any failure."""
    try:
        with open(filename, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise TrajectoryLoadError(f"Cannot read {filename}: {e}") from e
    except UnicodeDecodeError as e:
        raise TrajectoryLoadError(f"{filename} is not UTF-8 text: {e}") from e
    except json.JSONDecodeError as e:
        raise TrajectoryLoadError(f"{filename} is not valid JSON: {e}") from e
    return trajectory_from_dict(data, robot_width, robot_length)


def save_trajectory(filename: str, path: Path, robot_width: float, robot_length: float) -> str:
    """Save trajectory to JSON file."""
    folder = os.path.dirname(os.path.abspath(filename))
    os.makedirs(folder, exist_ok=True)
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(trajectory_to_dict(path, robot_width, robot_length), f, indent=4)
    return filename
