"""
orientation_estimator.py - 가속도계/지자기/자이로 융합 자세 추정

두 가지 갱신 경로:
1. 절대 갱신 (가속도계 + 지자기): 중력 방향과 자북으로 기저를 구성
   - 기울기 보정된 방위각 + pitch/roll
   - 정확하지만 자기 간섭과 순간 노이즈에 민감
2. 상대 갱신 (자이로, 선택): 각속도 적분
   - 단기적으로 매끄럽지만 장기적으로 드리프트

융합 모드:
- COMPLEMENTARY: 자이로 예측값과 절대값 사이를 SLERP (계수 α)
- WINDOW: 절대값 쿼터니언을 이동 평균

센서 샘플은 서로 독립적인 순서/주기로 도착합니다. 센서별 최신 샘플을
보관하고, 필요한 센서가 모두 한 번 이상 도착한 뒤에만 자세를 계산합니다.

Version: 1.0
Author: FurSys AI Team
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set, Union
import logging

from ..geometry.vector import Vector3, DEFAULT_EPSILON
from ..geometry.rotation import Quaternion, EulerAngles, RotationConverter
from ..filtering.smoothing_window import QuaternionWindow
from ..input.sensor_stream import SensorKind, SensorSample

logger = logging.getLogger(__name__)

# 정규화 후 이 크기보다 작은 기저 벡터는 퇴화된 것으로 간주
MIN_BASIS_NORM = 0.5

REQUIRED_SENSORS = frozenset({SensorKind.ACCELEROMETER, SensorKind.MAGNETOMETER})


class FusionMode(Enum):
    """자세 융합 모드"""
    COMPLEMENTARY = "complementary"  # 자이로 + 절대값 상보 필터
    WINDOW = "window"                # 절대값 쿼터니언 이동 평균


@dataclass
class OrientationState:
    """
    자세 추정 상태

    Attributes:
        quaternion: 융합된 자세 (바디 → NED)
        euler: 오일러 각도 (도)
        absolute: 가장 최근 절대 자세 (가속도계 + 지자기)
        timestamp_ms: 마지막 갱신 샘플 타임스탬프
        gyro_active: 자이로 적분 사용 여부
    """
    quaternion: Quaternion
    euler: EulerAngles
    absolute: Optional[Quaternion]
    timestamp_ms: float
    gyro_active: bool

    def to_dict(self) -> dict:
        return {
            'quaternion': {
                'x': self.quaternion.x,
                'y': self.quaternion.y,
                'z': self.quaternion.z,
                'w': self.quaternion.w
            },
            'euler': self.euler.to_dict(),
            'timestamp_ms': self.timestamp_ms,
            'gyro_active': self.gyro_active
        }


def absolute_orientation(
    accel: Vector3,
    mag: Vector3,
    epsilon: float = DEFAULT_EPSILON,
    converter: Optional[RotationConverter] = None
) -> Optional[Quaternion]:
    """
    가속도계/지자기 벡터로부터 절대 자세 계산

    가속도계는 정지 상태에서 중력의 반대 방향(위)을 측정합니다.
        up    = normalize(accel)
        east  = normalize(mag × up)    (자기장의 수평 성분에 수직)
        north = up × east
        down  = -up
    (north, east, down)을 행으로 쌓으면 바디 → NED 회전 행렬입니다.

    Args:
        accel: 가속도계 벡터 (바디 좌표)
        mag: 지자기 벡터 (바디 좌표)
        epsilon: 정규화 크기 하한
        converter: 회전 변환기

    Returns:
        바디 → NED 쿼터니언 (자유낙하, 자기장이 중력과 평행하는 등
        기저가 퇴화되면 None)
    """
    converter = converter or RotationConverter()

    up = accel.normalize(epsilon)
    east = mag.cross(up).normalize(epsilon)

    if up.norm < MIN_BASIS_NORM or east.norm < MIN_BASIS_NORM:
        logger.debug(f"Degenerate sensor basis: |accel|={accel.norm:.3e}, |mag|={mag.norm:.3e}")
        return None

    north = up.cross(east)
    down = -up

    return converter.from_rotation_basis(north, east, down)


def tilt_compensated_heading(
    accel: Vector3,
    mag: Vector3,
    epsilon: float = DEFAULT_EPSILON
) -> Optional[float]:
    """
    기울기 보정 방위각 (도, [0, 360))

    Args:
        accel: 가속도계 벡터
        mag: 지자기 벡터
        epsilon: 정규화 크기 하한

    Returns:
        방위각 (기저가 퇴화되면 None)
    """
    converter = RotationConverter()
    quat = absolute_orientation(accel, mag, epsilon, converter)
    if quat is None:
        return None
    return converter.quaternion_to_euler(quat).azimuth


class OrientationEstimator:
    """
    센서 융합 자세 추정기

    모든 내부 쿼터니언은 매 갱신 후 단위 노름으로 정규화됩니다.
    단일 스레드에서 여러 센서 콜백이 임의 순서로 호출해도 안전합니다.

    Example:
        >>> estimator = OrientationEstimator(mode=FusionMode.COMPLEMENTARY, alpha=0.98)
        >>> estimator.update(accel_sample)
        >>> estimator.update(mag_sample)
        >>> print(estimator.euler)
    """

    def __init__(
        self,
        mode: Union[FusionMode, str] = FusionMode.COMPLEMENTARY,
        alpha: float = 0.98,
        window_size: int = 10,
        epsilon: float = DEFAULT_EPSILON,
        use_gyroscope: bool = True
    ):
        """
        Args:
            mode: 융합 모드
            alpha: 상보 필터 계수 (자이로 가중치, 0~1)
            window_size: WINDOW 모드 평균 윈도우 크기
            epsilon: 0 벡터 정규화 하한
            use_gyroscope: 자이로 적분 사용 여부
        """
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"alpha must be within [0, 1], got {alpha}")

        self.mode = FusionMode(mode)
        self.alpha = alpha
        self.epsilon = epsilon
        self.use_gyroscope = use_gyroscope
        self._converter = RotationConverter()
        self._window = QuaternionWindow(window_size)

        self._latest: Dict[SensorKind, SensorSample] = {}
        self._disabled: Set[SensorKind] = set()
        self._absolute: Optional[Quaternion] = None
        self._fused: Optional[Quaternion] = None
        self._last_gyro_ms: Optional[float] = None
        self._last_timestamp_ms: Optional[float] = None
        self.update_count = 0

        logger.debug(f"OrientationEstimator initialized: mode={self.mode.value}, alpha={alpha}")

    @property
    def gyro_enabled(self) -> bool:
        """자이로 적분 경로 활성 여부"""
        return (
            self.use_gyroscope
            and self.mode == FusionMode.COMPLEMENTARY
            and SensorKind.GYROSCOPE not in self._disabled
        )

    @property
    def gyro_active(self) -> bool:
        """자이로 샘플이 실제로 적분에 쓰이고 있는지 여부"""
        return self.gyro_enabled and self._last_gyro_ms is not None

    @property
    def can_estimate(self) -> bool:
        """필수 센서(가속도계, 지자기)가 모두 사용 가능한지 여부"""
        return not (REQUIRED_SENSORS & self._disabled)

    @property
    def has_required_inputs(self) -> bool:
        """필수 센서 샘플이 모두 한 번 이상 도착했는지 여부"""
        return REQUIRED_SENSORS.issubset(self._latest.keys())

    def latest_sample(self, kind: SensorKind) -> Optional[SensorSample]:
        return self._latest.get(kind)

    def update(self, sample: SensorSample) -> Optional[Quaternion]:
        """
        새 센서 샘플 반영

        Args:
            sample: 센서 샘플 (종류 무관, 임의 순서)

        Returns:
            현재 융합 자세 (아직 계산 불가하면 None)
        """
        if sample.kind in self._disabled:
            logger.debug(f"Ignoring sample from disabled sensor: {sample.kind.value}")
            return self._fused

        self._latest[sample.kind] = sample
        self._last_timestamp_ms = sample.timestamp_ms
        self.update_count += 1

        if sample.kind == SensorKind.GYROSCOPE:
            self._integrate_gyro(sample)
        else:
            self._update_absolute()

        return self._fused

    def _update_absolute(self):
        """가속도계 + 지자기 절대 갱신"""
        if not self.has_required_inputs:
            return

        accel = self._latest[SensorKind.ACCELEROMETER].vector
        mag = self._latest[SensorKind.MAGNETOMETER].vector

        absolute = absolute_orientation(accel, mag, self.epsilon, self._converter)
        if absolute is None:
            # 이전 추정 유지
            return

        self._absolute = absolute

        if self.mode == FusionMode.WINDOW:
            self._fused = self._window.push(absolute)
        elif self._fused is None or not self.gyro_active:
            self._fused = absolute
        # 자이로 활성 시 보정은 자이로 갱신에서 수행

    def _integrate_gyro(self, sample: SensorSample):
        """자이로 각속도 적분 + 상보 필터 보정"""
        if not self.gyro_enabled:
            return

        if self._last_gyro_ms is None:
            self._last_gyro_ms = sample.timestamp_ms
            return

        dt = (sample.timestamp_ms - self._last_gyro_ms) / 1000.0
        if dt <= 0:
            # 시간 기준은 마지막 정상 샘플 유지
            logger.warning(f"Non-positive gyroscope dt ({dt * 1000:.1f} ms), skipping integration")
            return

        self._last_gyro_ms = sample.timestamp_ms

        if self._fused is None:
            return

        delta = Quaternion.from_gyro_rate(sample.vector, dt)
        predicted = (self._fused * delta).normalize()

        if self._absolute is not None:
            fused = Quaternion.slerp(predicted, self._absolute, 1.0 - self.alpha)
        else:
            fused = predicted

        self._fused = fused.normalize()

    def disable(self, kind: SensorKind):
        """
        사용 불가 센서 비활성화

        자이로가 없으면 절대 자세만 사용합니다.
        가속도계/지자기가 없으면 자세를 추정할 수 없습니다.
        """
        if kind in self._disabled:
            return

        self._disabled.add(kind)
        self._latest.pop(kind, None)

        if kind == SensorKind.GYROSCOPE:
            self._last_gyro_ms = None
            if self._absolute is not None and self.mode == FusionMode.COMPLEMENTARY:
                self._fused = self._absolute
            logger.warning("Gyroscope unavailable, falling back to accelerometer/magnetometer only")
        else:
            logger.warning(f"{kind.value} unavailable, orientation cannot be estimated")

    @property
    def disabled_sensors(self) -> Set[SensorKind]:
        return set(self._disabled)

    @property
    def orientation(self) -> Optional[Quaternion]:
        """융합 자세 (바디 → NED)"""
        return self._fused

    @property
    def absolute(self) -> Optional[Quaternion]:
        """가장 최근 절대 자세"""
        return self._absolute

    @property
    def euler(self) -> Optional[EulerAngles]:
        """융합 자세의 오일러 각도"""
        if self._fused is None:
            return None
        return self._converter.quaternion_to_euler(self._fused)

    def get_state(self) -> Optional[OrientationState]:
        """현재 상태 반환"""
        if self._fused is None:
            return None
        return OrientationState(
            quaternion=self._fused,
            euler=self._converter.quaternion_to_euler(self._fused),
            absolute=self._absolute,
            timestamp_ms=self._last_timestamp_ms if self._last_timestamp_ms is not None else 0.0,
            gyro_active=self.gyro_active
        )

    def reset(self, initial: Optional[Quaternion] = None):
        """
        추정기 리셋

        Args:
            initial: 초기 자세 (None이면 첫 절대 자세로 초기화)
        """
        self._latest.clear()
        self._absolute = None
        self._fused = initial.normalize() if initial is not None else None
        self._last_gyro_ms = None
        self._last_timestamp_ms = None
        self._window.clear()
        self.update_count = 0
        logger.debug("OrientationEstimator reset")
