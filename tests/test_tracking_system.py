#!/usr/bin/env python3
"""
test_tracking_system.py - OrientationTrackingSystem 통합 테스트

재생 스트림으로 센서 입력부터 일치 판정까지 전체 파이프라인을 확인합니다.

Author: FurSys AI Team
"""

import json

import pandas as pd
import pytest

from viewmatch.config.system_config import SystemConfig
from viewmatch.filtering.debounce import ManualScheduler
from viewmatch.input.sensor_stream import SensorKind, ReplaySensorStream
from viewmatch.input.data_loader import SensorLogLoader
from viewmatch.matching.pose_matcher import Location, angle_difference
from viewmatch.main import (
    OrientationTrackingSystem,
    OrientationUnavailableError,
    LocationUnavailableError,
    replay_log,
    main
)


@pytest.fixture
def streams():
    return {
        SensorKind.ACCELEROMETER: ReplaySensorStream(SensorKind.ACCELEROMETER),
        SensorKind.MAGNETOMETER: ReplaySensorStream(SensorKind.MAGNETOMETER),
        SensorKind.GYROSCOPE: ReplaySensorStream(SensorKind.GYROSCOPE),
    }


def feed(streams, make_sensor_vectors, azimuth, pitch=0.0, roll=0.0, ts=0.0):
    accel, mag = make_sensor_vectors(azimuth, pitch, roll)
    streams[SensorKind.ACCELEROMETER].push(*accel, ts)
    streams[SensorKind.MAGNETOMETER].push(*mag, ts)


class TestStartTracking:
    """구독 시작/해제 테스트"""

    def test_sets_update_interval(self, streams):
        system = OrientationTrackingSystem()
        system.start_tracking(streams)
        assert streams[SensorKind.ACCELEROMETER].update_interval_ms == 200.0
        assert system.is_tracking

    def test_disposer_removes_listeners(self, streams, make_sensor_vectors):
        system = OrientationTrackingSystem()
        dispose = system.start_tracking(streams)
        assert all(s.listener_count == 1 for s in streams.values())

        dispose()

        assert all(s.listener_count == 0 for s in streams.values())
        assert not system.is_tracking
        feed(streams, make_sensor_vectors, 45.0)
        assert system.get_current_orientation() is None

    def test_disposer_cancels_pending_commit(self, streams, make_sensor_vectors):
        config = SystemConfig()
        config.smoothing.settle_delay_ms = 300
        scheduler = ManualScheduler()
        system = OrientationTrackingSystem(config, scheduler=scheduler)

        dispose = system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 45.0)
        assert system.debouncer.pending_count == 1

        dispose()
        scheduler.advance(1.0)

        assert system.get_current_orientation() is None

    def test_string_keys(self, streams):
        system = OrientationTrackingSystem()
        system.start_tracking({kind.value: stream for kind, stream in streams.items()})
        assert streams[SensorKind.MAGNETOMETER].listener_count == 1

    def test_unavailable_reported_once(self, streams):
        reported = []
        streams[SensorKind.MAGNETOMETER].available = False
        system = OrientationTrackingSystem(on_unavailable=reported.append)

        system.start_tracking(streams)
        system.start_tracking(streams)

        assert reported == ['magnetometer']
        assert not system.estimator.can_estimate
        assert streams[SensorKind.MAGNETOMETER].listener_count == 0

    def test_without_gyroscope(self, streams, make_sensor_vectors):
        reported = []
        del streams[SensorKind.GYROSCOPE]
        system = OrientationTrackingSystem(on_unavailable=reported.append)

        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 130.0)

        assert reported == []
        assert not system.estimator.gyro_enabled
        assert system.get_current_orientation().azimuth == pytest.approx(130.0, abs=1e-6)


class TestOrientationTracking:
    """자세 추적 테스트"""

    def test_no_orientation_before_data(self, streams):
        system = OrientationTrackingSystem()
        system.start_tracking(streams)

        assert system.get_current_orientation() is None
        assert system.get_current_sphere_block() is None
        with pytest.raises(OrientationUnavailableError):
            system.capture_pose(Location(37.0, -122.0))

    def test_tracks_orientation(self, streams, make_sensor_vectors):
        system = OrientationTrackingSystem()
        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 100.0, 10.0, -15.0)

        orientation = system.get_current_orientation()
        assert orientation.azimuth == pytest.approx(100.0, abs=1e-6)
        assert orientation.pitch == pytest.approx(10.0, abs=1e-6)
        assert orientation.roll == pytest.approx(-15.0, abs=1e-6)

    def test_sphere_block_follows_orientation(self, streams, make_sensor_vectors):
        system = OrientationTrackingSystem()
        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 100.0)

        assert system.get_current_sphere_block().index == 4

    def test_smoothing_across_north(self, streams, make_sensor_vectors):
        """북쪽을 가로지르는 방위각도 원형 평균"""
        config = SystemConfig()
        config.signal.strategy = "none"
        system = OrientationTrackingSystem(config)
        system.start_tracking(streams)

        feed(streams, make_sensor_vectors, 350.0, ts=0)
        feed(streams, make_sensor_vectors, 10.0, ts=200)

        # 이력: 350, 350 (가속도계 갱신), 10
        assert angle_difference(system.get_current_orientation().azimuth, 0.0) < 5.0

    def test_settle_delay(self, streams, make_sensor_vectors):
        """새 샘플이 들어오면 커밋이 다시 지연됨"""
        config = SystemConfig()
        config.smoothing.settle_delay_ms = 300
        scheduler = ManualScheduler()
        system = OrientationTrackingSystem(config, scheduler=scheduler)
        system.start_tracking(streams)

        feed(streams, make_sensor_vectors, 60.0)
        scheduler.advance(0.1)
        assert system.get_current_orientation() is None

        streams[SensorKind.MAGNETOMETER].push(*make_sensor_vectors(60.0)[1], 100.0)
        scheduler.advance(0.25)
        assert system.get_current_orientation() is None

        scheduler.advance(0.1)
        assert system.get_current_orientation().azimuth == pytest.approx(60.0, abs=1e-6)
        assert system.debouncer.pending_count == 0


class TestReferenceMatching:
    """기준 자세 저장 및 판정 테스트"""

    def test_capture_requires_location(self, streams, make_sensor_vectors):
        reported = []
        system = OrientationTrackingSystem(on_unavailable=reported.append)
        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 90.0)

        with pytest.raises(LocationUnavailableError):
            system.capture_pose()
        assert reported == ['location']

    def test_location_provider(self, streams, make_sensor_vectors):
        system = OrientationTrackingSystem(location_provider=lambda: (37.0, -122.0))
        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 90.0)

        pose = system.capture_pose()

        assert pose.location == Location(37.0, -122.0)
        assert pose.sphere_block is not None
        assert pose.quaternion.is_unit

    def test_evaluate_requires_reference(self, streams, make_sensor_vectors):
        system = OrientationTrackingSystem()
        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 90.0)

        with pytest.raises(RuntimeError, match="Reference pose not set"):
            system.evaluate(Location(37.0, -122.0))

    def test_evaluate(self, streams, make_sensor_vectors):
        system = OrientationTrackingSystem()
        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 90.0)

        reference = system.set_reference(Location(37.0, -122.0))
        assert system.is_reference_set
        assert system.reference is reference

        assert system.evaluate(Location(37.00005, -122.00003)).ok

        result = system.evaluate({'latitude': 37.001, 'longitude': -122.0})
        assert result.reasons == ['location']

    def test_evaluate_against_after_turning(self, streams, make_sensor_vectors):
        config = SystemConfig()
        config.smoothing.window_size = 1
        system = OrientationTrackingSystem(config)
        system.start_tracking(streams)

        feed(streams, make_sensor_vectors, 90.0, ts=0)
        reference = system.capture_pose(Location(37.0, -122.0))

        feed(streams, make_sensor_vectors, 180.0, ts=200)
        result = system.evaluate_against(reference, Location(37.0, -122.0))

        assert not result.ok
        assert result.reasons == ['orientation']
        assert result.message == "Mismatch in direction. Please adjust and try again."

    def test_reset(self, streams, make_sensor_vectors):
        system = OrientationTrackingSystem()
        system.start_tracking(streams)
        feed(streams, make_sensor_vectors, 90.0)
        system.set_reference(Location(37.0, -122.0))

        system.reset()

        assert not system.is_reference_set
        assert not system.is_tracking
        assert system.get_current_orientation() is None


@pytest.fixture
def session_log(tmp_path, make_sensor_vectors):
    accel, mag = make_sensor_vectors(45.0, 5.0, 0.0)
    rows = []
    for ts in range(0, 1000, 100):
        rows.append({'sensor': 'accelerometer', 'timestamp': ts, 'x': accel[0], 'y': accel[1], 'z': accel[2]})
        rows.append({'sensor': 'magnetometer', 'timestamp': ts + 10, 'x': mag[0], 'y': mag[1], 'z': mag[2]})

    path = tmp_path / "session.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


class TestReplay:
    """로그 재생 테스트"""

    def test_replay_log(self, session_log):
        summary = replay_log(
            SensorLogLoader(str(session_log)),
            capture_at_ms=500,
            reference_location=Location(37.0, -122.0)
        )

        assert summary['samples'] == 20
        assert summary['unavailable'] == ['gyroscope']
        assert summary['orientation']['azimuth'] == pytest.approx(45.0, abs=1e-3)
        assert summary['direction'] == 'NE'
        assert summary['reference'] is not None
        assert summary['match']['ok']

    def test_replay_with_settle_delay(self, session_log):
        config = SystemConfig()
        config.smoothing.settle_delay_ms = 300
        summary = replay_log(SensorLogLoader(str(session_log)), config=config)

        assert summary['orientation']['azimuth'] == pytest.approx(45.0, abs=1e-3)
        assert summary['match'] is None

    def test_cli(self, session_log, capsys):
        code = main([
            '--log', str(session_log),
            '--capture-at', '500',
            '--lat', '37.0', '--lon', '-122.0',
            '--current-lat', '37.001'
        ])

        assert code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary['match']['reasons'] == ['location']

    def test_cli_missing_log(self, tmp_path):
        assert main(['--log', str(tmp_path / "missing.csv")]) == 1
