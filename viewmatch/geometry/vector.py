"""
vector.py - 3차원 벡터

센서 원시값(가속도, 지자기, 각속도)을 담는 불변 벡터 타입입니다.
정규화는 항상 새 벡터를 반환하므로 다른 곳에서 참조 중인
중력/자기장 기준 벡터가 변경되지 않습니다.

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence
import logging

logger = logging.getLogger(__name__)

# 0 벡터 정규화 시 나눗셈 하한
DEFAULT_EPSILON = 1e-6


@dataclass(frozen=True)
class Vector3:
    """
    3차원 벡터 (불변)

    Attributes:
        x, y, z: 성분
    """
    x: float
    y: float
    z: float

    def to_array(self) -> np.ndarray:
        """numpy 배열로 변환 [x, y, z]"""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: Sequence[float]) -> 'Vector3':
        """배열에서 생성"""
        return cls(x=float(arr[0]), y=float(arr[1]), z=float(arr[2]))

    @classmethod
    def zero(cls) -> 'Vector3':
        return cls(x=0.0, y=0.0, z=0.0)

    @property
    def norm(self) -> float:
        """벡터 크기"""
        return float(np.linalg.norm(self.to_array()))

    def normalize(self, epsilon: float = DEFAULT_EPSILON) -> 'Vector3':
        """
        단위 벡터로 정규화

        크기가 epsilon보다 작으면 epsilon으로 나누므로
        0 벡터는 예외 없이 (거의) 0 벡터를 반환합니다.

        Args:
            epsilon: 크기 하한

        Returns:
            새 Vector3
        """
        norm = self.norm
        if norm < epsilon:
            logger.debug(f"Degenerate vector (norm={norm:.2e}), flooring to epsilon")
            norm = epsilon
        return Vector3.from_array(self.to_array() / norm)

    def dot(self, other: 'Vector3') -> float:
        """내적"""
        return float(np.dot(self.to_array(), other.to_array()))

    def cross(self, other: 'Vector3') -> 'Vector3':
        """외적 (self × other)"""
        return Vector3.from_array(np.cross(self.to_array(), other.to_array()))

    def __add__(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> 'Vector3':
        return Vector3(-self.x, -self.y, -self.z)

    def scale(self, factor: float) -> 'Vector3':
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    def __repr__(self) -> str:
        return f"Vector3(x={self.x:.4f}, y={self.y:.4f}, z={self.z:.4f})"
