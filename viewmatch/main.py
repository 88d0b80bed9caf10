"""
main.py - viewmatch 통합 자세 추적 시스템

센서 스트림 → 신호 조절 → 자세 융합 → 스무딩/커밋 → 구면 블록 / 일치 판정
파이프라인을 통합합니다.

파이프라인:
1. 가속도계/지자기 원시값 노이즈 필터링
2. 가속도계 + 지자기 (+ 자이로) 자세 융합
3. 최근 자세 이동 평균 후 지연 커밋
4. 기준 자세 스냅샷 및 현재 자세와의 일치 판정

Version: 1.0
Author: FurSys AI Team
"""

import argparse
import json
import logging
import sys
from functools import partial
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .config.system_config import SystemConfig, load_config
from .geometry.rotation import (
    EulerAngles,
    Quaternion,
    RotationConverter,
    normalize_signed_angle
)
from .filtering.signal_conditioner import SignalConditioner
from .filtering.smoothing_window import SmoothingWindow
from .filtering.debounce import Debouncer, ManualScheduler
from .estimation.orientation_estimator import OrientationEstimator, OrientationState
from .input.sensor_stream import SensorKind, SensorSample, SensorStream
from .input.data_loader import SensorLogLoader
from .matching.sphere_quantizer import SphereBlock, SphereQuantizer, cardinal_direction
from .matching.pose_matcher import Location, MatchResult, Pose, PoseMatcher
from .matching.reference_manager import ReferenceManager

logger = logging.getLogger(__name__)

COMMIT_KEY = 'orientation'
LOCATION_SOURCE = 'location'

LocationLike = Union[Location, Mapping[str, float], tuple]


class OrientationUnavailableError(RuntimeError):
    """자세가 아직 계산되지 않음"""


class LocationUnavailableError(RuntimeError):
    """위치를 얻을 수 없음"""


def to_location(value: LocationLike) -> Location:
    """Location, (lat, lon) 튜플, {'latitude', 'longitude'} 딕셔너리를 Location으로 변환"""
    if isinstance(value, Location):
        return value
    if isinstance(value, Mapping):
        return Location(latitude=float(value['latitude']), longitude=float(value['longitude']))
    latitude, longitude = value
    return Location(latitude=float(latitude), longitude=float(longitude))


class OrientationTrackingSystem:
    """
    viewmatch 통합 자세 추적 시스템

    단일 스레드 이벤트 구동 방식입니다. 센서 콜백은 임의 순서로
    도착하며, 필요한 센서가 모두 한 번 이상 도착한 뒤 자세가 계산됩니다.

    Example:
        >>> system = OrientationTrackingSystem(SystemConfig(), location_provider=gps.read)
        >>> dispose = system.start_tracking({SensorKind.ACCELEROMETER: acc, SensorKind.MAGNETOMETER: mag})
        >>> reference = system.set_reference()
        >>> result = system.evaluate()
        >>> dispose()
    """

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        location_provider: Optional[Callable[[], Optional[LocationLike]]] = None,
        scheduler: Optional[Any] = None,
        on_unavailable: Optional[Callable[[str], None]] = None
    ):
        """
        Args:
            config: 시스템 설정
            location_provider: 호출 시 현재 위치를 반환하는 함수
            scheduler: 커밋 지연용 스케줄러 (call_later 제공, settle_delay_ms > 0 일 때 필요)
            on_unavailable: 센서/위치 사용 불가 알림 콜백 (소스별 1회)
        """
        self.config = config or SystemConfig()
        self.location_provider = location_provider
        self.scheduler = scheduler
        self.on_unavailable = on_unavailable

        self._converter = RotationConverter()
        self._reference_manager = ReferenceManager()
        self._subscriptions = []
        self._reported_unavailable = set()
        self._tracking = False

        self._build_components(self.config)

        logger.info("OrientationTrackingSystem initialized")

    def _build_components(self, config: SystemConfig):
        """설정에서 파이프라인 구성 요소 생성"""
        self._conditioner = SignalConditioner(
            strategy=config.signal.strategy,
            process_noise=config.signal.process_noise,
            measurement_noise=config.signal.measurement_noise,
            window_size=config.signal.window_size
        )
        self._estimator = OrientationEstimator(
            mode=config.fusion.mode,
            alpha=config.fusion.alpha,
            window_size=config.fusion.window_size,
            epsilon=config.fusion.epsilon,
            use_gyroscope=config.sensor.use_gyroscope
        )
        self._quantizer = SphereQuantizer(
            mode=config.quantizer.mode,
            segments=config.quantizer.segments,
            horizontal=config.quantizer.horizontal,
            vertical=config.quantizer.vertical
        )
        self._matcher = PoseMatcher(
            tolerance=config.matching.to_tolerance(),
            policy=config.matching.policy
        )

        window_size = config.smoothing.window_size
        self._azimuth_history = SmoothingWindow(window_size)
        self._pitch_history = SmoothingWindow(window_size)
        self._roll_history = SmoothingWindow(window_size)

        self._debouncer = Debouncer(
            delay=config.smoothing.settle_delay_ms / 1000.0,
            scheduler=self.scheduler
        )

        self._committed: Optional[EulerAngles] = None
        self._committed_quaternion: Optional[Quaternion] = None
        self._committed_timestamp_ms: Optional[float] = None

    # ------------------------------------------------------------------
    # 추적 시작/종료
    # ------------------------------------------------------------------

    def start_tracking(
        self,
        streams: Mapping[Union[SensorKind, str], SensorStream],
        config: Optional[SystemConfig] = None
    ) -> Callable[[], None]:
        """
        센서 스트림 구독 시작

        Args:
            streams: 센서 종류 → 스트림 (gyroscope는 선택)
            config: 새 설정 (None이면 기존 설정 유지)

        Returns:
            구독 해제 함수 (모든 구독 및 대기 중인 커밋 해제)
        """
        if self._tracking:
            self.stop_tracking()

        if config is not None:
            self.config = config
            self._build_components(config)

        by_kind = {SensorKind(kind): stream for kind, stream in streams.items()}
        interval = self.config.sensor.update_interval_ms

        for kind in SensorKind:
            stream = by_kind.get(kind)

            if kind == SensorKind.GYROSCOPE and (stream is None or not self.config.sensor.use_gyroscope):
                logger.info("Gyroscope not in use, fusing accelerometer/magnetometer only")
                self._estimator.disable(kind)
                continue

            if stream is None or not stream.is_available():
                self._report_unavailable(kind.value)
                self._estimator.disable(kind)
                continue

            stream.set_update_interval(interval)
            self._subscriptions.append(stream.add_listener(self._on_sample))

        self._tracking = True
        logger.info(f"Tracking started: {len(self._subscriptions)} sensor stream(s), interval={interval}ms")

        return self.stop_tracking

    def stop_tracking(self):
        """모든 구독 해제 및 대기 중인 커밋 취소"""
        for subscription in self._subscriptions:
            subscription.remove()
        self._subscriptions = []
        self._debouncer.cancel_all()

        if self._tracking:
            logger.info("Tracking stopped")
        self._tracking = False

    def _report_unavailable(self, source: str):
        """사용 불가 알림 (소스별 1회)"""
        if source in self._reported_unavailable:
            return
        self._reported_unavailable.add(source)
        logger.warning(f"{source} unavailable")
        if self.on_unavailable is not None:
            self.on_unavailable(source)

    # ------------------------------------------------------------------
    # 샘플 처리
    # ------------------------------------------------------------------

    def _on_sample(self, sample: SensorSample):
        """센서 콜백"""
        if sample.kind != SensorKind.GYROSCOPE:
            sample = self._conditioner.condition(sample)

        if self._estimator.update(sample) is None:
            return

        euler = self._estimator.euler
        self._azimuth_history.push(euler.azimuth)
        self._pitch_history.push(euler.pitch)
        self._roll_history.push(euler.roll)

        smoothed = EulerAngles(
            azimuth=self._azimuth_history.circular_mean(),
            pitch=self._pitch_history.mean(),
            roll=normalize_signed_angle(self._roll_history.circular_mean())
        )

        self._debouncer.schedule(
            COMMIT_KEY,
            partial(self._commit, smoothed, sample.timestamp_ms)
        )

    def _commit(self, euler: EulerAngles, timestamp_ms: float):
        """스무딩된 자세를 외부 노출 상태로 반영"""
        self._committed = euler
        self._committed_quaternion = self._converter.euler_to_quaternion(euler)
        self._committed_timestamp_ms = timestamp_ms

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_current_orientation(self) -> Optional[EulerAngles]:
        """현재 (스무딩된) 자세 (아직 없으면 None)"""
        return self._committed

    def get_current_sphere_block(self) -> Optional[SphereBlock]:
        """현재 자세의 구면 블록 (매 호출마다 현재 자세에서 계산)"""
        orientation = self.get_current_orientation()
        if orientation is None:
            return None
        return self._quantizer.quantize(orientation)

    def get_orientation_state(self) -> Optional[OrientationState]:
        """스무딩 전 융합 상태"""
        return self._estimator.get_state()

    # ------------------------------------------------------------------
    # 기준 자세 / 일치 판정
    # ------------------------------------------------------------------

    def _resolve_location(self, location: Optional[LocationLike]) -> Location:
        if location is None and self.location_provider is not None:
            location = self.location_provider()

        if location is None:
            self._report_unavailable(LOCATION_SOURCE)
            raise LocationUnavailableError("Current location is unavailable")

        return to_location(location)

    def capture_pose(self, location: Optional[LocationLike] = None) -> Pose:
        """
        현재 자세와 위치의 스냅샷

        Args:
            location: 위치 (None이면 location_provider 사용)

        Returns:
            Pose
        """
        orientation = self.get_current_orientation()
        if orientation is None:
            raise OrientationUnavailableError(
                "Orientation not available yet. Waiting for accelerometer and magnetometer samples."
            )

        return Pose(
            location=self._resolve_location(location),
            orientation=orientation,
            quaternion=self._committed_quaternion,
            sphere_block=self._quantizer.quantize(orientation),
            timestamp_ms=self._committed_timestamp_ms
        )

    def set_reference(self, location: Optional[LocationLike] = None) -> Pose:
        """현재 스냅샷을 기준 자세로 저장 (기존 기준은 덮어씀)"""
        pose = self.capture_pose(location)
        self._reference_manager.set_reference(pose)
        return pose

    def evaluate_against(
        self,
        reference: Pose,
        current_location: Optional[LocationLike] = None
    ) -> MatchResult:
        """
        현재 스냅샷을 주어진 기준 자세와 비교

        Args:
            reference: 기준 자세
            current_location: 현재 위치 (None이면 location_provider 사용)

        Returns:
            MatchResult
        """
        current = self.capture_pose(current_location)
        return self._matcher.matches(current, reference)

    def evaluate(self, current_location: Optional[LocationLike] = None) -> MatchResult:
        """저장된 기준 자세와 비교"""
        if not self._reference_manager.is_set:
            raise RuntimeError("Reference pose not set. Call set_reference() first.")
        return self.evaluate_against(self._reference_manager.get_reference(), current_location)

    def reset(self):
        """시스템 리셋"""
        self.stop_tracking()
        self._build_components(self.config)
        self._reference_manager.reset()
        self._reported_unavailable.clear()

        logger.info("System reset")

    @property
    def reference(self) -> Optional[Pose]:
        return self._reference_manager.get_reference()

    @property
    def is_reference_set(self) -> bool:
        return self._reference_manager.is_set

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def estimator(self) -> OrientationEstimator:
        return self._estimator

    @property
    def debouncer(self) -> Debouncer:
        return self._debouncer

    @classmethod
    def from_config(cls, config: SystemConfig, **kwargs) -> 'OrientationTrackingSystem':
        """설정에서 시스템 생성"""
        return cls(config=config, **kwargs)


def replay_log(
    loader: SensorLogLoader,
    config: Optional[SystemConfig] = None,
    capture_at_ms: Optional[float] = None,
    reference_location: Optional[Location] = None,
    current_location: Optional[Location] = None
) -> Dict[str, Any]:
    """
    기록된 센서 로그 재생

    Args:
        loader: 센서 로그 로더
        config: 시스템 설정
        capture_at_ms: 이 타임스탬프에 도달하면 기준 자세 저장
        reference_location: 기준 자세 위치
        current_location: 재생 종료 후 판정할 현재 위치 (None이면 기준 위치)

    Returns:
        요약 딕셔너리
    """
    config = config or SystemConfig()
    scheduler = ManualScheduler()
    unavailable = []

    system = OrientationTrackingSystem(
        config,
        scheduler=scheduler,
        on_unavailable=unavailable.append
    )
    streams = loader.streams()
    dispose = system.start_tracking(streams)

    reference = None
    for sample in loader.samples():
        scheduler.advance_to(sample.timestamp_ms / 1000.0)

        if (capture_at_ms is not None and reference is None
                and sample.timestamp_ms >= capture_at_ms and reference_location is not None):
            try:
                reference = system.set_reference(reference_location)
            except OrientationUnavailableError as e:
                logger.warning(f"Reference capture skipped at {sample.timestamp_ms}ms: {e}")

        streams[sample.kind].emit(sample)

    # 마지막 지연 커밋 반영
    scheduler.advance(config.smoothing.settle_delay_ms / 1000.0)

    orientation = system.get_current_orientation()
    block = system.get_current_sphere_block()

    summary: Dict[str, Any] = {
        'samples': len(loader),
        'sensors': loader.sensors,
        'unavailable': unavailable,
        'orientation': orientation.to_dict() if orientation else None,
        'direction': cardinal_direction(orientation.azimuth) if orientation else None,
        'sphere_block': block.to_dict() if block else None,
        'reference': reference.to_dict() if reference else None,
        'match': None
    }

    if reference is not None and orientation is not None:
        result = system.evaluate(current_location or reference_location)
        summary['match'] = result.to_dict()

    dispose()
    return summary


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Replay a sensor log through viewmatch')

    parser.add_argument('--log', type=str, required=True, help='센서 로그 CSV 경로')
    parser.add_argument('--config', type=str, default=None, help='설정 파일 경로')
    parser.add_argument('--capture-at', type=float, default=None, help='기준 자세 저장 타임스탬프 (ms)')
    parser.add_argument('--lat', type=float, default=None, help='기준 위도')
    parser.add_argument('--lon', type=float, default=None, help='기준 경도')
    parser.add_argument('--current-lat', type=float, default=None, help='판정 시 현재 위도')
    parser.add_argument('--current-lon', type=float, default=None, help='판정 시 현재 경도')

    args = parser.parse_args(argv)

    config = load_config(args.config) if args.config else SystemConfig()

    logging.basicConfig(
        level=getattr(logging, config.output.log_level.upper(), logging.INFO),
        format=config.output.log_format
    )

    reference_location = None
    if args.lat is not None and args.lon is not None:
        reference_location = Location(args.lat, args.lon)
    elif args.capture_at is not None:
        parser.error('--capture-at requires --lat and --lon')

    current_location = None
    if args.current_lat is not None or args.current_lon is not None:
        if reference_location is None:
            parser.error('--current-lat/--current-lon require --lat and --lon')
        current_location = Location(
            args.current_lat if args.current_lat is not None else reference_location.latitude,
            args.current_lon if args.current_lon is not None else reference_location.longitude
        )

    try:
        loader = SensorLogLoader(args.log)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    summary = replay_log(
        loader,
        config=config,
        capture_at_ms=args.capture_at,
        reference_location=reference_location,
        current_location=current_location
    )

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
