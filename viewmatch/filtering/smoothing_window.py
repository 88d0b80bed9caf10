"""
smoothing_window.py - 고정 크기 이동 평균 윈도우

최근 N개의 값을 FIFO로 보관하고 평균을 제공합니다.
평균은 매번 윈도우 전체로 다시 계산하므로 누적 합의
부동소수점 드리프트가 윈도우 크기 이상으로 커지지 않습니다.

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from collections import deque
from typing import Iterable, List, Optional
import logging

from ..geometry.rotation import Quaternion, normalize_azimuth
from ..geometry.vector import Vector3

logger = logging.getLogger(__name__)


class SmoothingWindow:
    """
    고정 용량 FIFO 윈도우

    용량을 넘으면 가장 오래된 값이 제거됩니다.

    Example:
        >>> window = SmoothingWindow(capacity=20)
        >>> window.push(heading)
        >>> smoothed = window.circular_mean()
    """

    def __init__(self, capacity: int = 20):
        """
        Args:
            capacity: 최대 보관 개수
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.capacity = capacity
        self._values = deque(maxlen=capacity)

    def push(self, value: float) -> float:
        """
        새 값을 추가하고 현재 평균 반환

        Args:
            value: 새 값

        Returns:
            윈도우 산술 평균
        """
        self._values.append(float(value))
        return self.mean()

    def extend(self, values: Iterable[float]):
        for value in values:
            self._values.append(float(value))

    def mean(self) -> Optional[float]:
        """산술 평균 (비어 있으면 None)"""
        if not self._values:
            return None
        return float(np.mean(self._values))

    def circular_mean(self) -> Optional[float]:
        """
        각도(도) 원형 평균

        359°와 1°의 평균이 180°가 아닌 0°가 되도록
        단위 벡터 평균의 방향을 사용합니다.

        Returns:
            [0, 360) 범위 평균 각도 (비어 있으면 None)
        """
        if not self._values:
            return None
        radians = np.deg2rad(np.asarray(self._values))
        mean_sin = np.mean(np.sin(radians))
        mean_cos = np.mean(np.cos(radians))
        return normalize_azimuth(np.rad2deg(np.arctan2(mean_sin, mean_cos)))

    @property
    def values(self) -> List[float]:
        """오래된 순서의 값 목록"""
        return list(self._values)

    @property
    def is_full(self) -> bool:
        return len(self._values) == self.capacity

    def clear(self):
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


class Vector3Window:
    """
    3축 벡터용 이동 평균 (축별 SmoothingWindow 3개)
    """

    def __init__(self, capacity: int = 20):
        self.axes = [SmoothingWindow(capacity) for _ in range(3)]

    def update(self, value: Vector3) -> Vector3:
        return Vector3(
            x=self.axes[0].push(value.x),
            y=self.axes[1].push(value.y),
            z=self.axes[2].push(value.z)
        )

    def reset(self):
        for axis in self.axes:
            axis.clear()


def average_quaternions(quaternions: List[Quaternion]) -> Quaternion:
    """
    쿼터니언 평균 (부호 정렬 후 성분 평균, 정규화)

    q와 -q는 같은 회전이므로 마지막 쿼터니언과의 내적이
    양수가 되도록 부호를 맞춘 뒤 평균합니다.
    회전들이 서로 가까울 때 유효한 근사입니다.

    Args:
        quaternions: 쿼터니언 리스트 (1개 이상)

    Returns:
        평균 단위 쿼터니언
    """
    if len(quaternions) == 0:
        raise ValueError("Cannot average an empty quaternion list")

    reference = quaternions[-1].to_array()
    accum = np.zeros(4)
    for quat in quaternions:
        arr = quat.to_array()
        if np.dot(arr, reference) < 0:
            arr = -arr
        accum += arr

    return Quaternion.from_array(accum / len(quaternions)).normalize()


class QuaternionWindow:
    """
    쿼터니언 이동 평균 윈도우 (window 융합 모드용)
    """

    def __init__(self, capacity: int = 10):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._values = deque(maxlen=capacity)

    def push(self, quat: Quaternion) -> Quaternion:
        self._values.append(quat)
        return average_quaternions(list(self._values))

    def clear(self):
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)
