"""
viewmatch - 센서 융합 자세 추정 및 촬영 위치/방향 일치 판정

주요 특징:
- 가속도계 + 지자기 (+ 자이로) 기반 기기 자세 추정
- 축별 Kalman / 이동 평균 노이즈 필터링
- 구면 블록 양자화
- 기준 자세 대비 위치/방향 일치 판정

Version: 1.0
Author: FurSys AI Team
"""

__version__ = "1.0.0"
__author__ = "FurSys AI Team"

from .geometry.vector import Vector3
from .geometry.rotation import (
    Quaternion,
    EulerAngles,
    RotationConverter
)

from .input.sensor_stream import (
    SensorKind,
    SensorSample,
    SensorStream,
    ReplaySensorStream
)

from .estimation.orientation_estimator import (
    OrientationEstimator,
    FusionMode,
    absolute_orientation
)

from .matching.sphere_quantizer import SphereBlock, SphereQuantizer, quantize
from .matching.pose_matcher import (
    Location,
    Pose,
    PoseMatcher,
    MatchPolicy,
    MatchResult,
    ToleranceConfig
)

from .config.system_config import SystemConfig, load_config

from .main import (
    OrientationTrackingSystem,
    OrientationUnavailableError,
    LocationUnavailableError
)

__all__ = [
    # Geometry
    'Vector3',
    'Quaternion',
    'EulerAngles',
    'RotationConverter',
    # Input
    'SensorKind',
    'SensorSample',
    'SensorStream',
    'ReplaySensorStream',
    # Estimation
    'OrientationEstimator',
    'FusionMode',
    'absolute_orientation',
    # Matching
    'SphereBlock',
    'SphereQuantizer',
    'quantize',
    'Location',
    'Pose',
    'PoseMatcher',
    'MatchPolicy',
    'MatchResult',
    'ToleranceConfig',
    # Config
    'SystemConfig',
    'load_config',
    # System
    'OrientationTrackingSystem',
    'OrientationUnavailableError',
    'LocationUnavailableError',
]
