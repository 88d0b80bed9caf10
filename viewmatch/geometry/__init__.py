"""
geometry 모듈 - 벡터 및 회전 표현

- 불변 3차원 벡터 (정규화, 내적, 외적)
- 쿼터니언 (해밀턴 곱, SLERP, 각속도 적분)
- 오일러 각도 (Azimuth, Pitch, Roll) 변환
"""

from .vector import Vector3, DEFAULT_EPSILON
from .rotation import (
    Quaternion,
    EulerAngles,
    RotationConverter,
    normalize_azimuth,
    normalize_signed_angle
)

__all__ = [
    'Vector3',
    'DEFAULT_EPSILON',
    'Quaternion',
    'EulerAngles',
    'RotationConverter',
    'normalize_azimuth',
    'normalize_signed_angle',
]
