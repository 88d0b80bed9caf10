"""
input 모듈 - 센서 입력 처리

센서 샘플/스트림 인터페이스와 기록된 로그 재생을 지원합니다.
"""

from .sensor_stream import (
    SensorKind,
    SensorSample,
    SensorStream,
    ReplaySensorStream,
    Subscription
)
from .data_loader import SensorLogLoader

__all__ = [
    'SensorKind',
    'SensorSample',
    'SensorStream',
    'ReplaySensorStream',
    'Subscription',
    'SensorLogLoader',
]
