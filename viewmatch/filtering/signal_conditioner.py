"""
signal_conditioner.py - 센서 원시값 노이즈 필터링

센서 종류별로 독립된 채널을 두고, 각 채널의 축마다
선택된 전략으로 노이즈를 줄입니다.

전략:
- KALMAN: 축별 1-상태 Kalman Filter (윈도우 불필요)
- MOVING_AVERAGE: 축별 고정 크기 이동 평균
- NONE: 원시값 그대로 통과

Version: 1.0
Author: FurSys AI Team
"""

from enum import Enum
from typing import Dict, Union
import logging

from ..geometry.vector import Vector3
from ..input.sensor_stream import SensorKind, SensorSample
from .axis_kalman import Vector3KalmanFilter
from .smoothing_window import Vector3Window

logger = logging.getLogger(__name__)


class ConditioningStrategy(Enum):
    """노이즈 필터링 전략"""
    KALMAN = "kalman"
    MOVING_AVERAGE = "moving_average"
    NONE = "none"


class _PassThrough:
    """필터링 없음"""

    def update(self, value: Vector3) -> Vector3:
        return value

    def reset(self):
        pass


class SignalConditioner:
    """
    센서별 신호 조절기

    Example:
        >>> conditioner = SignalConditioner(ConditioningStrategy.KALMAN)
        >>> filtered = conditioner.condition(sample)
    """

    def __init__(
        self,
        strategy: Union[ConditioningStrategy, str] = ConditioningStrategy.KALMAN,
        process_noise: float = 1e-3,
        measurement_noise: float = 0.1,
        window_size: int = 5
    ):
        """
        Args:
            strategy: 필터링 전략
            process_noise: Kalman 프로세스 노이즈
            measurement_noise: Kalman 측정 노이즈
            window_size: 이동 평균 윈도우 크기
        """
        self.strategy = ConditioningStrategy(strategy)
        self.process_noise = process_noise
        self.measurement_noise = measurement_noise
        self.window_size = window_size

        self._channels: Dict[SensorKind, object] = {}

        logger.debug(f"SignalConditioner initialized: strategy={self.strategy.value}")

    def _create_channel(self):
        if self.strategy == ConditioningStrategy.KALMAN:
            return Vector3KalmanFilter(self.process_noise, self.measurement_noise)
        if self.strategy == ConditioningStrategy.MOVING_AVERAGE:
            return Vector3Window(self.window_size)
        return _PassThrough()

    def condition(self, sample: SensorSample) -> SensorSample:
        """
        샘플 필터링

        Args:
            sample: 원시 센서 샘플

        Returns:
            같은 종류/타임스탬프의 필터링된 샘플
        """
        channel = self._channels.get(sample.kind)
        if channel is None:
            channel = self._create_channel()
            self._channels[sample.kind] = channel

        filtered = channel.update(sample.vector)
        return sample.with_vector(filtered)

    def reset(self):
        """모든 채널 리셋"""
        self._channels.clear()
