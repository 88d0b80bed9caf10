"""
axis_kalman.py - 축별 단일 상태 Kalman Filter

센서 원시값의 각 축(x, y, z)에 독립적인 1-상태 필터를 적용합니다.

상태: [estimate]
측정: [raw value]
모델: 상수 모델 (F = 1, H = 1)

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from filterpy.kalman import KalmanFilter
from typing import Optional
import logging

from ..geometry.vector import Vector3

logger = logging.getLogger(__name__)


class AxisKalmanFilter:
    """
    스칼라 신호용 1-상태 Kalman Filter

    샘플당 O(1), 윈도우 불필요.
    첫 관측값으로 추정값을 초기화합니다.

    Example:
        >>> kf = AxisKalmanFilter(process_noise=1e-3, measurement_noise=0.1)
        >>> smoothed = kf.update(raw_value)
    """

    def __init__(
        self,
        process_noise: float = 1e-3,
        measurement_noise: float = 0.1
    ):
        """
        Args:
            process_noise: 프로세스 노이즈 (실제 신호 변화량의 분산)
            measurement_noise: 측정 노이즈 (센서 노이즈의 분산)
        """
        if process_noise < 0 or measurement_noise <= 0:
            raise ValueError(
                f"Invalid noise parameters: process={process_noise}, "
                f"measurement={measurement_noise}"
            )

        self.process_noise = process_noise
        self.measurement_noise = measurement_noise

        self.kf = KalmanFilter(dim_x=1, dim_z=1)
        self.kf.F = np.array([[1.0]])
        self.kf.H = np.array([[1.0]])
        self.kf.Q = np.array([[process_noise]])
        self.kf.R = np.array([[measurement_noise]])

        self._initialized = False

    def update(self, value: float) -> float:
        """
        새 관측값으로 추정값 갱신

        Args:
            value: 원시 관측값

        Returns:
            필터링된 추정값
        """
        if not self._initialized:
            self.kf.x = np.array([[float(value)]])
            self.kf.P = np.array([[self.measurement_noise]])
            self._initialized = True
            return float(value)

        self.kf.predict()
        self.kf.update(float(value))

        return self.estimate

    @property
    def estimate(self) -> Optional[float]:
        """현재 추정값 (초기화 전이면 None)"""
        if not self._initialized:
            return None
        return float(self.kf.x[0, 0])

    @property
    def error_covariance(self) -> Optional[float]:
        """현재 오차 공분산"""
        if not self._initialized:
            return None
        return float(self.kf.P[0, 0])

    @property
    def gain(self) -> float:
        """마지막 업데이트의 칼만 이득"""
        return float(self.kf.K[0, 0])

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def reset(self):
        """필터 리셋"""
        self.kf.x = np.zeros((1, 1))
        self.kf.P = np.eye(1)
        self._initialized = False


class Vector3KalmanFilter:
    """
    3축 벡터용 필터 (축별 AxisKalmanFilter 3개)
    """

    def __init__(
        self,
        process_noise: float = 1e-3,
        measurement_noise: float = 0.1
    ):
        self.axes = [
            AxisKalmanFilter(process_noise, measurement_noise)
            for _ in range(3)
        ]

    def update(self, value: Vector3) -> Vector3:
        """벡터 각 축을 독립적으로 필터링"""
        return Vector3(
            x=self.axes[0].update(value.x),
            y=self.axes[1].update(value.y),
            z=self.axes[2].update(value.z)
        )

    def reset(self):
        for axis in self.axes:
            axis.reset()
