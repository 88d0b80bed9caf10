"""
pose_matcher.py - 기준 자세 대비 일치 판정

현재 (위치, 자세)를 저장된 기준 (위치, 자세)와 비교하여
허용 오차 내에 있는지 판정하고, 실패한 항목을 보고합니다.

위치 판정:
    위도/경도 각각의 절대 차이가 location_degrees 이내
    (대원 거리가 아닌 축별 비교이므로 허용 영역은 원이 아닌 사각형)

자세 판정 정책 (설정으로 하나를 명시적으로 선택):
- ANGULAR: 축별 각도 차이
    azimuth = min(|a-b|, 360-|a-b|)  (원형 차이)
    pitch/roll = |a-b|
- QUATERNION_DOT: 1 - |dot(q_current, q_reference)| <= dot_threshold
두 정책 모두 require_block_match 이면 구면 블록 일치를 추가 조건으로 사용합니다.

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import logging

from ..geometry.rotation import (
    EulerAngles,
    Quaternion,
    RotationConverter,
    normalize_azimuth
)
from .sphere_quantizer import SphereBlock

logger = logging.getLogger(__name__)

REASON_LOCATION = "location"
REASON_ORIENTATION = "orientation"


class MatchPolicy(Enum):
    """자세 비교 정책"""
    ANGULAR = "angular"
    QUATERNION_DOT = "quaternion_dot"


@dataclass(frozen=True)
class Location:
    """위치 (도)"""
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {'latitude': self.latitude, 'longitude': self.longitude}


@dataclass(frozen=True)
class ToleranceConfig:
    """
    허용 오차 설정 (불변)

    Attributes:
        location_degrees: 위도/경도 허용 차이 (도, 약 0.0001 ≈ 10m)
        angle_degrees: 기본 각도 허용 차이 (도)
        azimuth_degrees: 방위각 허용 차이 (None이면 angle_degrees)
        pitch_degrees: pitch 허용 차이 (None이면 angle_degrees)
        roll_degrees: roll 허용 차이 (None이면 angle_degrees)
            ANGULAR 정책에서 pitch/roll은 |a-b|로 비교하며 ±180° 경계를
            넘지 않습니다. roll 179°와 -179°는 358° 차이로 불일치합니다.
        dot_threshold: QUATERNION_DOT 정책의 1 - |dot| 허용치
            (None이면 angle_degrees로부터 1 - cos(angle/2))
        require_block_match: 구면 블록 일치 요구 여부
    """
    location_degrees: float = 0.0001
    angle_degrees: float = 15.0
    azimuth_degrees: Optional[float] = None
    pitch_degrees: Optional[float] = None
    roll_degrees: Optional[float] = None
    dot_threshold: Optional[float] = None
    require_block_match: bool = False

    @property
    def azimuth(self) -> float:
        return self.angle_degrees if self.azimuth_degrees is None else self.azimuth_degrees

    @property
    def pitch(self) -> float:
        return self.angle_degrees if self.pitch_degrees is None else self.pitch_degrees

    @property
    def roll(self) -> float:
        return self.angle_degrees if self.roll_degrees is None else self.roll_degrees

    @property
    def effective_dot_threshold(self) -> float:
        """
        쿼터니언 내적 허용치

        두 단위 쿼터니언이 θ만큼 떨어져 있으면 |dot| = cos(θ/2) 입니다.
        """
        if self.dot_threshold is not None:
            return self.dot_threshold
        return float(1.0 - np.cos(np.deg2rad(self.angle_degrees) / 2.0))


@dataclass
class Pose:
    """
    촬영 기준 스냅샷

    Attributes:
        location: 위치
        orientation: 오일러 각도 (도)
        quaternion: 자세 쿼터니언
        sphere_block: 스냅샷 시점의 구면 블록
        timestamp_ms: 스냅샷 시점의 센서 타임스탬프
    """
    location: Location
    orientation: EulerAngles
    quaternion: Quaternion
    sphere_block: Optional[SphereBlock] = None
    timestamp_ms: Optional[float] = None

    @classmethod
    def from_euler(
        cls,
        location: Location,
        orientation: EulerAngles,
        sphere_block: Optional[SphereBlock] = None,
        timestamp_ms: Optional[float] = None
    ) -> 'Pose':
        """오일러 각도에서 생성 (쿼터니언은 변환하여 채움)"""
        quaternion = RotationConverter().euler_to_quaternion(orientation)
        return cls(
            location=location,
            orientation=orientation,
            quaternion=quaternion,
            sphere_block=sphere_block,
            timestamp_ms=timestamp_ms
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'location': self.location.to_dict(),
            'orientation': self.orientation.to_dict(),
            'quaternion': {
                'x': self.quaternion.x,
                'y': self.quaternion.y,
                'z': self.quaternion.z,
                'w': self.quaternion.w
            },
            'sphere_block': self.sphere_block.to_dict() if self.sphere_block else None,
            'timestamp_ms': self.timestamp_ms
        }


@dataclass
class MatchResult:
    """
    일치 판정 결과

    Attributes:
        ok: 일치 여부
        reasons: 실패한 차원 ('location', 'orientation')
        failed_checks: 실패한 세부 항목
            ('latitude', 'longitude', 'azimuth', 'pitch', 'roll',
             'quaternion', 'sphere_block')
        details: 항목별 차이 값
    """
    ok: bool
    reasons: List[str] = field(default_factory=list)
    failed_checks: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        """사용자 표시용 메시지"""
        if self.ok:
            return "Location and direction match."
        labels = ['direction' if r == REASON_ORIENTATION else r for r in self.reasons]
        return f"Mismatch in {' and '.join(labels)}. Please adjust and try again."

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'reasons': list(self.reasons),
            'failed_checks': list(self.failed_checks),
            'details': dict(self.details),
            'message': self.message
        }


def angle_difference(a: float, b: float) -> float:
    """
    원형 각도 차이 (도, [0, 180])

    angle_difference(350, 10) == 20
    """
    diff = abs(normalize_azimuth(a) - normalize_azimuth(b))
    return min(diff, 360.0 - diff)


def location_matches(
    current: Location,
    reference: Location,
    tolerance_degrees: float
) -> bool:
    """위도/경도 축별 허용 차이 비교"""
    return (
        abs(current.latitude - reference.latitude) <= tolerance_degrees
        and abs(current.longitude - reference.longitude) <= tolerance_degrees
    )


class PoseMatcher:
    """
    자세 일치 판정기

    Example:
        >>> matcher = PoseMatcher(ToleranceConfig(location_degrees=0.0001, angle_degrees=5))
        >>> result = matcher.matches(current_pose, reference_pose)
        >>> if not result.ok:
        ...     print(result.message)
    """

    def __init__(
        self,
        tolerance: Optional[ToleranceConfig] = None,
        policy: Union[MatchPolicy, str] = MatchPolicy.ANGULAR
    ):
        """
        Args:
            tolerance: 허용 오차
            policy: 자세 비교 정책
        """
        self.tolerance = tolerance or ToleranceConfig()
        self.policy = MatchPolicy(policy)

        logger.debug(f"PoseMatcher initialized: policy={self.policy.value}, tolerance={self.tolerance}")

    def matches(self, current: Pose, reference: Pose) -> MatchResult:
        """
        현재 자세와 기준 자세 비교

        Args:
            current: 현재 스냅샷
            reference: 기준 스냅샷

        Returns:
            MatchResult
        """
        failed: List[str] = []
        details: Dict[str, Any] = {}

        # 위치
        d_lat = abs(current.location.latitude - reference.location.latitude)
        d_lon = abs(current.location.longitude - reference.location.longitude)
        details['latitude_diff'] = d_lat
        details['longitude_diff'] = d_lon

        if d_lat > self.tolerance.location_degrees:
            failed.append('latitude')
        if d_lon > self.tolerance.location_degrees:
            failed.append('longitude')
        location_ok = not failed

        # 자세
        if self.policy == MatchPolicy.ANGULAR:
            orientation_failed = self._check_angular(current, reference, details)
        else:
            orientation_failed = self._check_quaternion(current, reference, details)

        if self.tolerance.require_block_match:
            same_block = (
                current.sphere_block is not None
                and reference.sphere_block is not None
                and current.sphere_block.index == reference.sphere_block.index
            )
            details['sphere_block_match'] = same_block
            if not same_block:
                orientation_failed.append('sphere_block')

        failed.extend(orientation_failed)

        reasons = []
        if not location_ok:
            reasons.append(REASON_LOCATION)
        if orientation_failed:
            reasons.append(REASON_ORIENTATION)

        result = MatchResult(
            ok=not reasons,
            reasons=reasons,
            failed_checks=failed,
            details=details
        )

        if result.ok:
            logger.info("Pose matched reference")
        else:
            logger.info(f"Pose mismatch: {', '.join(failed)}")

        return result

    def _check_angular(
        self,
        current: Pose,
        reference: Pose,
        details: Dict[str, Any]
    ) -> List[str]:
        """축별 각도 차이 비교"""
        failed = []

        d_azimuth = angle_difference(current.orientation.azimuth, reference.orientation.azimuth)
        d_pitch = abs(current.orientation.pitch - reference.orientation.pitch)
        d_roll = abs(current.orientation.roll - reference.orientation.roll)

        details['azimuth_diff'] = d_azimuth
        details['pitch_diff'] = d_pitch
        details['roll_diff'] = d_roll

        if d_azimuth > self.tolerance.azimuth:
            failed.append('azimuth')
        if d_pitch > self.tolerance.pitch:
            failed.append('pitch')
        if d_roll > self.tolerance.roll:
            failed.append('roll')

        return failed

    def _check_quaternion(
        self,
        current: Pose,
        reference: Pose,
        details: Dict[str, Any]
    ) -> List[str]:
        """쿼터니언 내적 비교"""
        dot = abs(current.quaternion.normalize().dot(reference.quaternion.normalize()))
        deviation = 1.0 - min(dot, 1.0)

        details['quaternion_deviation'] = deviation
        details['rotation_angle'] = current.quaternion.angle_to(reference.quaternion)

        if deviation > self.tolerance.effective_dot_threshold:
            return ['quaternion']
        return []
