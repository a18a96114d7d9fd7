"""
Driver availability matching.

This module handles:
    - Selecting verified partners with an active vehicle matching the filters
    - Estimating distance / status through a pluggable DistanceEstimator
    - Deriving ETA and price range for each candidate
"""

from .availability import find_available_drivers, DriverCandidate
from .estimators import (
    DistanceEstimator,
    SimulatedDistanceEstimator,
    HaversineDistanceEstimator,
    get_estimator,
)

__all__ = [
    "find_available_drivers",
    "DriverCandidate",
    "DistanceEstimator",
    "SimulatedDistanceEstimator",
    "HaversineDistanceEstimator",
    "get_estimator",
]
