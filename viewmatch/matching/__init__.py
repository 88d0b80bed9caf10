"""Pose quantization and matching module"""
from .sphere_quantizer import (
    SphereBlock,
    SphereQuantizer,
    QuantizerMode,
    quantize,
    quantize_grid,
    cardinal_direction
)
from .pose_matcher import (
    Location,
    Pose,
    PoseMatcher,
    MatchPolicy,
    MatchResult,
    ToleranceConfig,
    angle_difference,
    location_matches
)
from .reference_manager import ReferenceManager

__all__ = [
    'SphereBlock',
    'SphereQuantizer',
    'QuantizerMode',
    'quantize',
    'quantize_grid',
    'cardinal_direction',
    'Location',
    'Pose',
    'PoseMatcher',
    'MatchPolicy',
    'MatchResult',
    'ToleranceConfig',
    'angle_difference',
    'location_matches',
    'ReferenceManager',
]
