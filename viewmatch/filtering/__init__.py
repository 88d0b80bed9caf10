"""
filtering 모듈 - 신호 조절 및 스무딩

- 축별 1-상태 Kalman Filter
- 고정 크기 이동 평균 윈도우 (산술/원형 평균)
- 센서별 신호 조절기
- 키별 지연 커밋 (debounce)
"""

from .axis_kalman import AxisKalmanFilter, Vector3KalmanFilter
from .smoothing_window import (
    SmoothingWindow,
    Vector3Window,
    QuaternionWindow,
    average_quaternions
)
from .signal_conditioner import SignalConditioner, ConditioningStrategy
from .debounce import Debouncer, ManualScheduler

__all__ = [
    'AxisKalmanFilter',
    'Vector3KalmanFilter',
    'SmoothingWindow',
    'Vector3Window',
    'QuaternionWindow',
    'average_quaternions',
    'SignalConditioner',
    'ConditioningStrategy',
    'Debouncer',
    'ManualScheduler',
]
