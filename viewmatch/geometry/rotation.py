"""
rotation.py - 회전 표현 및 변환

기기 자세를 나타내는 회전 표현을 제공합니다:
- 쿼터니언 (x, y, z, w) - 내부 상태 (단위 노름 유지)
- 오일러 각도 (Azimuth, Pitch, Roll) - 사용자 표시/비교용
- 회전 행렬 (3x3) - 중력/자기장 기저에서 자세 생성

좌표계 규약:
- 월드 좌표계: NED (x=자북, y=동, z=아래)
- 기기(바디) 좌표계: x=전방, y=오른쪽, z=아래
- 쿼터니언은 바디 벡터를 월드 좌표로 회전 (v_world = q ⊗ v_body ⊗ q*)
- 오일러: 내재적(intrinsic) Z-Y-X 순서
    azimuth = Z축 회전 (자북 기준 시계방향, [0, 360))
    pitch   = Y축 회전 (기수 상승이 양수, [-90, 90])
    roll    = X축 회전 ([-180, 180])

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from scipy.spatial.transform import Rotation, Slerp
from typing import Union
from dataclasses import dataclass
import logging

from .vector import Vector3

logger = logging.getLogger(__name__)

# 오일러 회전 순서 (scipy 대문자 = intrinsic)
EULER_SEQUENCE = 'ZYX'

# 이 값보다 작은 각속도는 "회전 없음"으로 처리 (rad/s)
MIN_ANGULAR_RATE = 1e-9


def normalize_azimuth(angle: float) -> float:
    """방위각을 [0, 360) 범위로 정규화"""
    azimuth = float(angle) % 360.0
    # -1e-14 % 360 == 360.0 이 되는 부동소수점 경계
    if azimuth >= 360.0:
        azimuth = 0.0
    return azimuth


def normalize_signed_angle(angle: float) -> float:
    """각도를 -180 ~ 180 범위로 정규화"""
    while angle > 180:
        angle -= 360
    while angle < -180:
        angle += 360
    return angle


@dataclass(frozen=True)
class EulerAngles:
    """
    오일러 각도 (degrees)

    쿼터니언에서 파생된 값이며 상태의 원본이 아닙니다.

    Attributes:
        azimuth: Z축 회전 (방위각)
        pitch: Y축 회전 (앞뒤 기울기)
        roll: X축 회전 (좌우 기울기)
    """
    azimuth: float
    pitch: float = 0.0
    roll: float = 0.0

    def to_array(self) -> np.ndarray:
        """numpy 배열로 변환 [azimuth, pitch, roll]"""
        return np.array([self.azimuth, self.pitch, self.roll])

    def to_radians(self) -> np.ndarray:
        """라디안 배열로 변환"""
        return np.deg2rad(self.to_array())

    def normalize(self) -> 'EulerAngles':
        """azimuth는 [0, 360), roll은 [-180, 180]으로 정규화"""
        return EulerAngles(
            azimuth=normalize_azimuth(self.azimuth),
            pitch=self.pitch,
            roll=normalize_signed_angle(self.roll)
        )

    def __sub__(self, other: 'EulerAngles') -> np.ndarray:
        """두 오일러 각도의 부호 있는 차이 [dazimuth, dpitch, droll]"""
        return np.array([
            normalize_signed_angle(self.azimuth - other.azimuth),
            self.pitch - other.pitch,
            normalize_signed_angle(self.roll - other.roll)
        ])

    def to_dict(self) -> dict:
        return {'azimuth': self.azimuth, 'pitch': self.pitch, 'roll': self.roll}

    def __repr__(self) -> str:
        return f"EulerAngles(A={self.azimuth:.2f}, P={self.pitch:.2f}, R={self.roll:.2f})"


@dataclass(frozen=True)
class Quaternion:
    """
    쿼터니언 (x, y, z, w) - scipy 형식

    표현: q = w + xi + yj + zk
    단위 쿼터니언 조건: |q| = sqrt(x² + y² + z² + w²) = 1
    """
    x: float
    y: float
    z: float
    w: float

    def to_array(self) -> np.ndarray:
        """[x, y, z, w] 형식 (scipy 표준)"""
        return np.array([self.x, self.y, self.z, self.w])

    @classmethod
    def from_array(cls, arr) -> 'Quaternion':
        """[x, y, z, w] 배열에서 생성"""
        return cls(x=float(arr[0]), y=float(arr[1]), z=float(arr[2]), w=float(arr[3]))

    def normalize(self) -> 'Quaternion':
        """단위 쿼터니언으로 정규화"""
        arr = self.to_array()
        norm = np.linalg.norm(arr)
        if norm < 1e-10:
            return Quaternion.identity()
        return Quaternion.from_array(arr / norm)

    def _rotation(self) -> Rotation:
        return Rotation.from_quat(self.to_array())

    @classmethod
    def from_rotation(cls, rot: Rotation) -> 'Quaternion':
        """scipy Rotation에서 생성"""
        return cls.from_array(rot.as_quat())

    def conjugate(self) -> 'Quaternion':
        """켤레 쿼터니언 (회전의 역)"""
        return Quaternion(x=-self.x, y=-self.y, z=-self.z, w=self.w)

    def inverse(self) -> 'Quaternion':
        """역 회전"""
        return Quaternion.from_rotation(self._rotation().inv())

    def __neg__(self) -> 'Quaternion':
        return Quaternion(x=-self.x, y=-self.y, z=-self.z, w=-self.w)

    @property
    def norm(self) -> float:
        """쿼터니언 크기"""
        return float(np.linalg.norm(self.to_array()))

    @property
    def is_unit(self) -> bool:
        """단위 쿼터니언 여부"""
        return abs(self.norm - 1.0) < 1e-6

    def __mul__(self, other: 'Quaternion') -> 'Quaternion':
        """
        회전 합성 (해밀턴 곱)

        self * other 는 other를 먼저, self를 나중에 적용합니다.
        바디 좌표계의 델타 회전은 q_prev * delta 로 합성합니다.
        """
        return Quaternion.from_rotation(self._rotation() * other._rotation())

    def dot(self, other: 'Quaternion') -> float:
        """내적"""
        return float(np.dot(self.to_array(), other.to_array()))

    def angle_to(self, other: 'Quaternion') -> float:
        """다른 쿼터니언까지의 회전 각도 (도, q와 -q는 같은 회전)"""
        diff = other._rotation() * self._rotation().inv()
        return float(np.rad2deg(diff.magnitude()))

    def rotate(self, v: Vector3) -> Vector3:
        """벡터 회전 (바디 → 월드)"""
        return Vector3.from_array(self._rotation().apply(v.to_array()))

    def __repr__(self) -> str:
        return f"Quaternion(x={self.x:.4f}, y={self.y:.4f}, z={self.z:.4f}, w={self.w:.4f})"

    @classmethod
    def identity(cls) -> 'Quaternion':
        """단위 쿼터니언 (회전 없음)"""
        return cls(x=0.0, y=0.0, z=0.0, w=1.0)

    @classmethod
    def from_axis_angle(cls, axis: Union[np.ndarray, Vector3], angle_deg: float) -> 'Quaternion':
        """축-각도에서 생성"""
        if isinstance(axis, Vector3):
            axis = axis.to_array()
        axis = np.asarray(axis, dtype=np.float64)
        norm = np.linalg.norm(axis)
        if norm < 1e-12:
            return cls.identity()
        return cls.from_rotation(Rotation.from_rotvec(axis / norm * np.deg2rad(angle_deg)))

    @classmethod
    def from_gyro_rate(cls, omega: Vector3, dt: float) -> 'Quaternion':
        """
        각속도와 경과 시간으로부터 미소 회전 쿼터니언 생성

        회전 벡터 ω·dt (axis = ω/|ω|, angle = |ω|·dt) 로 정확한 회전을 구성합니다.

        Args:
            omega: 바디 좌표계 각속도 (rad/s)
            dt: 경과 시간 (초)

        Returns:
            델타 회전 쿼터니언 (|ω|≈0 이면 단위 쿼터니언)
        """
        if omega.norm < MIN_ANGULAR_RATE or dt <= 0:
            return cls.identity()

        return cls.from_rotation(Rotation.from_rotvec(omega.to_array() * dt))

    @staticmethod
    def slerp(q0: 'Quaternion', q1: 'Quaternion', t: float) -> 'Quaternion':
        """
        두 쿼터니언 사이 구면 선형 보간 (SLERP)

        회전 공간에서 보간하므로 q1과 -q1은 같은 결과를 주며
        항상 짧은 호를 따라 보간합니다.

        Args:
            q0: 시작 쿼터니언
            q1: 끝 쿼터니언
            t: 보간 파라미터 [0, 1]

        Returns:
            보간된 단위 쿼터니언
        """
        t = float(np.clip(t, 0.0, 1.0))

        key_times = [0, 1]
        key_rots = Rotation.from_quat([q0.to_array(), q1.to_array()])
        slerp = Slerp(key_times, key_rots)

        return Quaternion.from_array(slerp(t).as_quat()).normalize()


class RotationConverter:
    """
    회전 표현 변환 클래스

    설계 원칙:
    - 내부 연산: 쿼터니언 (수치 안정성)
    - 사용자 출력: 오일러 (직관성)

    Example:
        >>> converter = RotationConverter()
        >>> euler = converter.quaternion_to_euler(q)
        >>> print(f"Azimuth: {euler.azimuth:.2f}")
    """

    GIMBAL_LOCK_THRESHOLD = 85.0  # 도 (±90°에서 ±5° 이내)

    def __init__(self, warn_gimbal_lock: bool = False):
        """
        Args:
            warn_gimbal_lock: 짐벌 락 경고 활성화
        """
        self.warn_gimbal_lock = warn_gimbal_lock

    def quaternion_to_euler(self, quat: Quaternion) -> EulerAngles:
        """쿼터니언에서 오일러 각도로 변환"""
        rot = Rotation.from_quat(quat.to_array())
        yaw, pitch, roll = rot.as_euler(EULER_SEQUENCE, degrees=True)

        self._check_gimbal_lock(pitch)

        return EulerAngles(
            azimuth=normalize_azimuth(yaw),
            pitch=float(pitch),
            roll=float(roll)
        )

    def euler_to_quaternion(self, euler: EulerAngles) -> Quaternion:
        """오일러 각도에서 쿼터니언으로 변환"""
        rot = Rotation.from_euler(
            EULER_SEQUENCE,
            [euler.azimuth, euler.pitch, euler.roll],
            degrees=True
        )
        return Quaternion.from_array(rot.as_quat())

    def rotation_matrix_to_quaternion(self, R: np.ndarray) -> Quaternion:
        """회전 행렬에서 쿼터니언으로 변환"""
        rot = Rotation.from_matrix(R)
        return Quaternion.from_array(rot.as_quat()).normalize()

    def quaternion_to_rotation_matrix(self, quat: Quaternion) -> np.ndarray:
        """쿼터니언에서 회전 행렬로 변환"""
        return Rotation.from_quat(quat.to_array()).as_matrix()

    def from_rotation_basis(
        self,
        x_axis: Vector3,
        y_axis: Vector3,
        z_axis: Vector3
    ) -> Quaternion:
        """
        세 개의 정규직교 기저 벡터로부터 자세 쿼터니언 생성

        각 기저 벡터는 월드 축(북, 동, 아래)을 바디 좌표로 표현한 것입니다.
        이들을 행으로 쌓으면 바디 → 월드 회전 행렬이 됩니다.

        Args:
            x_axis: 월드 x축 (북) 의 바디 좌표
            y_axis: 월드 y축 (동) 의 바디 좌표
            z_axis: 월드 z축 (아래) 의 바디 좌표

        Returns:
            바디 → 월드 쿼터니언
        """
        R = np.vstack([x_axis.to_array(), y_axis.to_array(), z_axis.to_array()])
        return self.rotation_matrix_to_quaternion(R)

    def _check_gimbal_lock(self, pitch: float) -> bool:
        """
        짐벌 락 근접 여부 확인

        Pitch가 ±90°에 근접하면 Azimuth와 Roll의 구분이 불가능해집니다.
        """
        if not self.warn_gimbal_lock:
            return False

        if abs(abs(pitch) - 90) < (90 - self.GIMBAL_LOCK_THRESHOLD):
            logger.warning(f"Approaching gimbal lock (pitch={pitch:.1f})")
            return True

        return False

    @staticmethod
    def compute_rotation_difference(q1: Quaternion, q2: Quaternion) -> float:
        """두 쿼터니언 사이의 회전 각도 (도)"""
        return q1.angle_to(q2)
