"""
system_config.py - 시스템 설정 관리

viewmatch 시스템의 모든 설정을 통합 관리합니다.

Version: 1.0
Author: FurSys AI Team
"""

import yaml
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional
import logging

from ..matching.pose_matcher import ToleranceConfig

logger = logging.getLogger(__name__)


@dataclass
class SensorConfig:
    """센서 설정"""
    # 샘플 전달 주기 (권장 100~500ms)
    update_interval_ms: float = 200.0

    # 자이로 적분 사용 (없으면 가속도계/지자기만 사용)
    use_gyroscope: bool = True


@dataclass
class SignalConfig:
    """원시 신호 필터링 설정"""
    strategy: str = "kalman"  # "kalman", "moving_average", "none"

    # Kalman
    process_noise: float = 1e-3
    measurement_noise: float = 0.1

    # 이동 평균
    window_size: int = 5


@dataclass
class FusionConfig:
    """자세 융합 설정"""
    mode: str = "complementary"  # "complementary" or "window"

    # 상보 필터 계수 (자이로 가중치)
    alpha: float = 0.98

    # window 모드 평균 크기
    window_size: int = 10

    # 0 벡터 정규화 하한
    epsilon: float = 1e-6


@dataclass
class SmoothingConfig:
    """자세 출력 스무딩 설정"""
    # 최근 자세 보관 개수
    window_size: int = 20

    # 커밋 지연 (0이면 즉시 반영)
    settle_delay_ms: float = 0.0


@dataclass
class QuantizerConfig:
    """구면 블록 설정"""
    mode: str = "azimuth"  # "azimuth" or "grid"
    segments: int = 16
    horizontal: int = 8
    vertical: int = 4


@dataclass
class MatchingConfig:
    """일치 판정 설정"""
    policy: str = "angular"  # "angular" or "quaternion_dot"

    # 약 10m
    location_degrees: float = 0.0001
    angle_degrees: float = 15.0

    # 축별 허용치 (None이면 angle_degrees)
    azimuth_degrees: Optional[float] = None
    pitch_degrees: Optional[float] = None
    roll_degrees: Optional[float] = None

    # quaternion_dot 정책 허용치 (None이면 angle_degrees에서 계산)
    dot_threshold: Optional[float] = None

    require_block_match: bool = False

    def to_tolerance(self) -> ToleranceConfig:
        """불변 ToleranceConfig로 변환"""
        return ToleranceConfig(
            location_degrees=self.location_degrees,
            angle_degrees=self.angle_degrees,
            azimuth_degrees=self.azimuth_degrees,
            pitch_degrees=self.pitch_degrees,
            roll_degrees=self.roll_degrees,
            dot_threshold=self.dot_threshold,
            require_block_match=self.require_block_match
        )


@dataclass
class OutputConfig:
    """출력 설정"""
    # 로깅
    log_level: str = "INFO"
    log_format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class SystemConfig:
    """viewmatch 시스템 전체 설정"""
    sensor: SensorConfig = field(default_factory=SensorConfig)
    signal: SignalConfig = field(default_factory=SignalConfig)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    quantizer: QuantizerConfig = field(default_factory=QuantizerConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def save(self, filepath: str):
        """설정을 YAML 파일로 저장"""
        with open(filepath, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

        logger.info(f"Config saved to {filepath}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'SystemConfig':
        """딕셔너리에서 설정 생성"""
        return cls(
            sensor=SensorConfig(**d.get('sensor', {})),
            signal=SignalConfig(**d.get('signal', {})),
            fusion=FusionConfig(**d.get('fusion', {})),
            smoothing=SmoothingConfig(**d.get('smoothing', {})),
            quantizer=QuantizerConfig(**d.get('quantizer', {})),
            matching=MatchingConfig(**d.get('matching', {})),
            output=OutputConfig(**d.get('output', {}))
        )


def load_config(filepath: str) -> SystemConfig:
    """
    YAML 파일에서 설정 로드

    Args:
        filepath: 설정 파일 경로

    Returns:
        SystemConfig: 로드된 설정
    """
    path = Path(filepath)

    if not path.exists():
        logger.warning(f"Config file not found: {filepath}, using defaults")
        return SystemConfig()

    with open(path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if config_dict is None:
        return SystemConfig()

    return SystemConfig.from_dict(config_dict)


def create_default_config(save_path: Optional[str] = None) -> SystemConfig:
    """
    기본 설정 생성

    Args:
        save_path: 저장 경로 (None이면 저장 안함)

    Returns:
        SystemConfig: 기본 설정
    """
    config = SystemConfig()

    if save_path:
        config.save(save_path)

    return config
