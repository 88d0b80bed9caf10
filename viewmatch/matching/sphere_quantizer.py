"""
sphere_quantizer.py - 자세 → 구면 블록 양자화

연속적인 자세를 이산적인 각도 구간("sphere block")으로 변환합니다.
블록은 거친(coarse) 일치 판정과 UI 피드백에 사용됩니다.

모드:
- AZIMUTH: 방위각만 segments개 구간으로 분할
- GRID: 방위각 H개 × 고도(pitch + 90) V개 격자
    라벨 = 방위 문자(A, B, ...) + 고도 번호(1, 2, ...)  예: "C2"
    인덱스 = elevation_index * H + azimuth_index

경계 각도(구간 폭의 정수배)는 floor에 의해 아래쪽 구간에 속합니다.

Version: 1.0
Author: FurSys AI Team
"""

import math
import string
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
import logging

from ..geometry.rotation import EulerAngles, normalize_azimuth

logger = logging.getLogger(__name__)

CARDINAL_DIRECTIONS = ['N', 'NE', 'E', 'SE', 'S', 'SW', 'W', 'NW']


class QuantizerMode(Enum):
    """양자화 모드"""
    AZIMUTH = "azimuth"
    GRID = "grid"


@dataclass(frozen=True)
class SphereBlock:
    """
    구면 블록

    Attributes:
        index: 블록 정수 인덱스
        label: 블록 라벨
        azimuth_index: 방위 구간 인덱스
        elevation_index: 고도 구간 인덱스 (AZIMUTH 모드면 None)
    """
    index: int
    label: str
    azimuth_index: int
    elevation_index: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'index': self.index,
            'label': self.label,
            'azimuth_index': self.azimuth_index,
            'elevation_index': self.elevation_index
        }


def _azimuth_of(orientation: Union[EulerAngles, float]) -> float:
    if isinstance(orientation, EulerAngles):
        return orientation.azimuth
    return float(orientation)


def _bucket(value: float, width: float, count: int) -> int:
    """floor(value / width), [0, count-1]로 제한"""
    index = int(math.floor(value / width))
    return min(max(index, 0), count - 1)


def _column_letter(index: int) -> str:
    """0 → A, 25 → Z, 26 → AA"""
    letters = ''
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = string.ascii_uppercase[remainder] + letters
    return letters


def quantize(orientation: Union[EulerAngles, float], segments: int) -> SphereBlock:
    """
    방위각 전용 양자화

    index = floor(azimuth / (360 / segments)), 범위 [0, segments-1]

    Args:
        orientation: 오일러 각도 또는 방위각 (도)
        segments: 구간 수

    Returns:
        SphereBlock
    """
    if segments <= 0:
        raise ValueError(f"segments must be positive, got {segments}")

    azimuth = normalize_azimuth(_azimuth_of(orientation))
    index = _bucket(azimuth, 360.0 / segments, segments)

    return SphereBlock(index=index, label=str(index), azimuth_index=index)


def quantize_grid(
    orientation: EulerAngles,
    horizontal: int,
    vertical: int
) -> SphereBlock:
    """
    방위각 × 고도 격자 양자화

    Args:
        orientation: 오일러 각도
        horizontal: 방위 구간 수 (H)
        vertical: 고도 구간 수 (V)

    Returns:
        SphereBlock (라벨 예: "C2")
    """
    if horizontal <= 0 or vertical <= 0:
        raise ValueError(f"horizontal/vertical must be positive, got {horizontal}x{vertical}")

    azimuth = normalize_azimuth(orientation.azimuth)
    azimuth_index = _bucket(azimuth, 360.0 / horizontal, horizontal)

    # pitch [-90, 90] → 고도 [0, 180]; 180은 최상단 구간에 포함
    elevation = min(max(orientation.pitch + 90.0, 0.0), 180.0)
    elevation_index = _bucket(elevation, 180.0 / vertical, vertical)

    return SphereBlock(
        index=elevation_index * horizontal + azimuth_index,
        label=f"{_column_letter(azimuth_index)}{elevation_index + 1}",
        azimuth_index=azimuth_index,
        elevation_index=elevation_index
    )


def cardinal_direction(azimuth: float) -> str:
    """8방위 표기 (N, NE, E, ...)"""
    return CARDINAL_DIRECTIONS[int(round(normalize_azimuth(azimuth) / 45.0)) % 8]


class SphereQuantizer:
    """
    설정 기반 양자화기

    Example:
        >>> quantizer = SphereQuantizer(QuantizerMode.AZIMUTH, segments=16)
        >>> block = quantizer.quantize(euler)
    """

    def __init__(
        self,
        mode: Union[QuantizerMode, str] = QuantizerMode.AZIMUTH,
        segments: int = 16,
        horizontal: int = 8,
        vertical: int = 4
    ):
        """
        Args:
            mode: 양자화 모드
            segments: AZIMUTH 모드 구간 수
            horizontal: GRID 모드 방위 구간 수
            vertical: GRID 모드 고도 구간 수
        """
        self.mode = QuantizerMode(mode)
        self.segments = segments
        self.horizontal = horizontal
        self.vertical = vertical

        if self.mode == QuantizerMode.AZIMUTH and segments <= 0:
            raise ValueError(f"segments must be positive, got {segments}")
        if self.mode == QuantizerMode.GRID and (horizontal <= 0 or vertical <= 0):
            raise ValueError(f"horizontal/vertical must be positive, got {horizontal}x{vertical}")

    def quantize(self, orientation: EulerAngles) -> SphereBlock:
        if self.mode == QuantizerMode.GRID:
            return quantize_grid(orientation, self.horizontal, self.vertical)
        return quantize(orientation, self.segments)

    @property
    def block_count(self) -> int:
        if self.mode == QuantizerMode.GRID:
            return self.horizontal * self.vertical
        return self.segments
