"""Orientation estimation module"""
from .orientation_estimator import (
    OrientationEstimator,
    OrientationState,
    FusionMode,
    absolute_orientation,
    tilt_compensated_heading
)

__all__ = [
    'OrientationEstimator',
    'OrientationState',
    'FusionMode',
    'absolute_orientation',
    'tilt_compensated_heading',
]
