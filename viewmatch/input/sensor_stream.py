"""
sensor_stream.py - 센서 샘플 및 스트림 인터페이스

가속도계/지자기/자이로 샘플은 센서마다 독립적인 주기로
비동기 도착합니다. 코어는 샘플 값과 타임스탬프만 필요로 하며,
샘플을 어떻게 얻었는지는 알지 못합니다.

Version: 1.0
Author: FurSys AI Team
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional
import logging

from ..geometry.vector import Vector3

logger = logging.getLogger(__name__)


class SensorKind(Enum):
    """센서 종류"""
    ACCELEROMETER = "accelerometer"
    MAGNETOMETER = "magnetometer"
    GYROSCOPE = "gyroscope"


@dataclass(frozen=True)
class SensorSample:
    """
    단일 센서 샘플

    Attributes:
        kind: 센서 종류
        x, y, z: 바디 좌표계 측정값
            (가속도 m/s², 지자기 μT, 각속도 rad/s)
        timestamp_ms: 타임스탬프 (밀리초)
    """
    kind: SensorKind
    x: float
    y: float
    z: float
    timestamp_ms: float

    @property
    def vector(self) -> Vector3:
        return Vector3(self.x, self.y, self.z)

    def with_vector(self, vector: Vector3) -> 'SensorSample':
        """같은 종류/타임스탬프로 값만 교체"""
        return SensorSample(
            kind=self.kind,
            x=vector.x,
            y=vector.y,
            z=vector.z,
            timestamp_ms=self.timestamp_ms
        )


SampleListener = Callable[[SensorSample], None]


class Subscription:
    """리스너 구독 핸들"""

    def __init__(self, stream: 'SensorStream', listener: SampleListener):
        self._stream = stream
        self._listener = listener
        self._active = True

    def remove(self):
        """구독 해제 (여러 번 호출해도 안전)"""
        if self._active:
            self._stream._remove_listener(self._listener)
            self._active = False

    @property
    def active(self) -> bool:
        return self._active


class SensorStream(ABC):
    """
    센서 스트림 인터페이스

    플랫폼 센서 API는 이 인터페이스로 감싸서 사용합니다.
    """

    def __init__(self, kind: SensorKind):
        self.kind = kind
        self._listeners: List[SampleListener] = []
        self.update_interval_ms: Optional[float] = None

    @abstractmethod
    def is_available(self) -> bool:
        """센서 사용 가능 여부 (하드웨어 부재/권한 거부 시 False)"""

    def set_update_interval(self, interval_ms: float):
        """샘플 전달 주기 설정 (권장 100~500ms)"""
        self.update_interval_ms = interval_ms

    def add_listener(self, listener: SampleListener) -> Subscription:
        """리스너 등록"""
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: SampleListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, sample: SensorSample):
        """등록된 리스너에게 샘플 전달"""
        if sample.kind != self.kind:
            raise ValueError(f"Sample kind {sample.kind.value} does not match stream {self.kind.value}")
        for listener in list(self._listeners):
            listener(sample)


class ReplaySensorStream(SensorStream):
    """
    기록된 샘플을 재생하는 스트림

    Example:
        >>> stream = ReplaySensorStream(SensorKind.ACCELEROMETER, samples)
        >>> stream.add_listener(on_sample)
        >>> stream.replay()
    """

    def __init__(
        self,
        kind: SensorKind,
        samples: Optional[Iterable[SensorSample]] = None,
        available: bool = True
    ):
        """
        Args:
            kind: 센서 종류
            samples: 재생할 샘플
            available: 센서 사용 가능 여부
        """
        super().__init__(kind)
        self.samples = list(samples) if samples is not None else []
        self.available = available

    def is_available(self) -> bool:
        return self.available

    def push(self, x: float, y: float, z: float, timestamp_ms: float):
        """샘플 하나를 즉시 전달"""
        self.emit(SensorSample(self.kind, x, y, z, timestamp_ms))

    def replay(self) -> int:
        """
        보관된 샘플을 순서대로 전달

        Returns:
            전달된 샘플 수
        """
        for sample in self.samples:
            self.emit(sample)
        return len(self.samples)
