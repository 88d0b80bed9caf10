#!/usr/bin/env python3
"""
test_signal_conditioner.py - 신호 조절 / 스무딩 / 지연 커밋 테스트

Author: FurSys AI Team
"""

import numpy as np
import pytest

from viewmatch.geometry.rotation import Quaternion
from viewmatch.geometry.vector import Vector3
from viewmatch.filtering.axis_kalman import AxisKalmanFilter, Vector3KalmanFilter
from viewmatch.filtering.smoothing_window import (
    SmoothingWindow,
    QuaternionWindow,
    average_quaternions
)
from viewmatch.filtering.signal_conditioner import SignalConditioner, ConditioningStrategy
from viewmatch.filtering.debounce import Debouncer, ManualScheduler
from viewmatch.input.sensor_stream import SensorKind, SensorSample
from viewmatch.matching.pose_matcher import angle_difference


class TestAxisKalmanFilter:
    """AxisKalmanFilter 테스트"""

    def test_first_update_returns_value(self):
        kf = AxisKalmanFilter()
        assert kf.update(3.5) == 3.5
        assert kf.is_initialized

    def test_converges_to_constant(self):
        """노이즈가 섞인 상수 신호에 수렴"""
        rng = np.random.default_rng(0)
        kf = AxisKalmanFilter(process_noise=1e-3, measurement_noise=0.1)

        for value in 5.0 + rng.normal(0.0, 0.3, 300):
            estimate = kf.update(value)

        assert abs(estimate - 5.0) < 0.2

    def test_output_less_noisy_than_input(self):
        rng = np.random.default_rng(1)
        kf = AxisKalmanFilter()
        raw = 1.0 + rng.normal(0.0, 0.5, 400)
        filtered = np.array([kf.update(v) for v in raw])

        # 초기 과도 구간 제외
        assert np.std(filtered[50:]) < np.std(raw[50:])

    def test_constant_input_is_stable(self):
        kf = AxisKalmanFilter()
        for _ in range(20):
            estimate = kf.update(-9.81)
        assert estimate == pytest.approx(-9.81)

    def test_covariance_stays_bounded(self):
        kf = AxisKalmanFilter(process_noise=1e-3, measurement_noise=0.1)
        for _ in range(500):
            kf.update(0.0)
        assert 0.0 < kf.error_covariance < 0.1
        assert 0.0 < kf.gain < 1.0

    def test_invalid_noise(self):
        with pytest.raises(ValueError):
            AxisKalmanFilter(measurement_noise=0.0)
        with pytest.raises(ValueError):
            AxisKalmanFilter(process_noise=-1.0)

    def test_reset(self):
        kf = AxisKalmanFilter()
        kf.update(1.0)
        kf.reset()
        assert not kf.is_initialized
        assert kf.estimate is None
        assert kf.update(7.0) == 7.0

    def test_vector_filter_axes_independent(self):
        kf = Vector3KalmanFilter()
        kf.update(Vector3(1.0, 2.0, 3.0))
        result = kf.update(Vector3(1.0, 2.0, 3.0))
        assert (result.x, result.y, result.z) == pytest.approx((1.0, 2.0, 3.0))


class TestSmoothingWindow:
    """SmoothingWindow 테스트"""

    def test_fifo_eviction(self):
        """N+5개 입력 후 최근 N개만 남음"""
        window = SmoothingWindow(capacity=5)
        for value in range(1, 11):
            window.push(value)

        assert len(window) == 5
        assert window.values == [6.0, 7.0, 8.0, 9.0, 10.0]
        assert window.mean() == pytest.approx(8.0)
        assert window.is_full

    def test_push_returns_mean(self):
        window = SmoothingWindow(capacity=3)
        assert window.push(2.0) == pytest.approx(2.0)
        assert window.push(4.0) == pytest.approx(3.0)

    def test_empty_mean(self):
        window = SmoothingWindow()
        assert window.mean() is None
        assert window.circular_mean() is None

    def test_circular_mean_wraparound(self):
        window = SmoothingWindow(capacity=4)
        window.extend([350.0, 10.0])
        assert angle_difference(window.circular_mean(), 0.0) < 1e-6

    def test_circular_mean_range(self):
        window = SmoothingWindow(capacity=4)
        window.extend([300.0, 320.0])
        assert window.circular_mean() == pytest.approx(310.0)

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            SmoothingWindow(capacity=0)

    def test_clear(self):
        window = SmoothingWindow(capacity=3)
        window.push(1.0)
        window.clear()
        assert len(window) == 0


class TestQuaternionAveraging:
    """쿼터니언 평균 테스트"""

    def test_sign_alignment(self):
        q = Quaternion.from_axis_angle([0, 0, 1], 40.0)
        avg = average_quaternions([q, -q, q])
        assert avg.angle_to(q) == pytest.approx(0.0, abs=1e-6)

    def test_symmetric_average(self):
        q1 = Quaternion.from_axis_angle([0, 0, 1], 10.0)
        q2 = Quaternion.from_axis_angle([0, 0, 1], 30.0)
        avg = average_quaternions([q1, q2])
        assert avg.angle_to(Quaternion.from_axis_angle([0, 0, 1], 20.0)) == pytest.approx(0.0, abs=1e-4)
        assert avg.is_unit

    def test_empty(self):
        with pytest.raises(ValueError):
            average_quaternions([])

    def test_window_capacity(self):
        window = QuaternionWindow(capacity=2)
        window.push(Quaternion.from_axis_angle([1, 0, 0], 80.0))
        window.push(Quaternion.identity())
        result = window.push(Quaternion.identity())
        assert len(window) == 2
        assert result.angle_to(Quaternion.identity()) == pytest.approx(0.0, abs=1e-6)


class TestSignalConditioner:
    """SignalConditioner 테스트"""

    def _sample(self, kind, value, ts):
        return SensorSample(kind, value, value, value, ts)

    def test_preserves_kind_and_timestamp(self):
        conditioner = SignalConditioner()
        sample = SensorSample(SensorKind.ACCELEROMETER, 0.1, 0.2, -9.8, 42.0)
        result = conditioner.condition(sample)
        assert result.kind == SensorKind.ACCELEROMETER
        assert result.timestamp_ms == 42.0

    def test_channels_independent(self):
        conditioner = SignalConditioner(ConditioningStrategy.MOVING_AVERAGE, window_size=2)
        conditioner.condition(self._sample(SensorKind.ACCELEROMETER, 10.0, 0))
        mag = conditioner.condition(self._sample(SensorKind.MAGNETOMETER, 2.0, 1))
        assert mag.x == pytest.approx(2.0)

    def test_moving_average(self):
        conditioner = SignalConditioner("moving_average", window_size=2)
        conditioner.condition(self._sample(SensorKind.MAGNETOMETER, 2.0, 0))
        result = conditioner.condition(self._sample(SensorKind.MAGNETOMETER, 4.0, 1))
        assert result.x == pytest.approx(3.0)

    def test_none_passes_through(self):
        conditioner = SignalConditioner(ConditioningStrategy.NONE)
        conditioner.condition(self._sample(SensorKind.ACCELEROMETER, 1.0, 0))
        result = conditioner.condition(self._sample(SensorKind.ACCELEROMETER, 9.0, 1))
        assert result.x == 9.0

    def test_kalman_smooths(self):
        conditioner = SignalConditioner(ConditioningStrategy.KALMAN)
        conditioner.condition(self._sample(SensorKind.ACCELEROMETER, 0.0, 0))
        result = conditioner.condition(self._sample(SensorKind.ACCELEROMETER, 10.0, 1))
        assert 0.0 < result.x < 10.0

    def test_reset(self):
        conditioner = SignalConditioner(ConditioningStrategy.KALMAN)
        conditioner.condition(self._sample(SensorKind.ACCELEROMETER, 0.0, 0))
        conditioner.reset()
        result = conditioner.condition(self._sample(SensorKind.ACCELEROMETER, 10.0, 1))
        assert result.x == 10.0

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            SignalConditioner("median")


class TestManualScheduler:
    """ManualScheduler 테스트"""

    def test_fires_in_order(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_later(0.2, lambda: fired.append('b'))
        scheduler.call_later(0.1, lambda: fired.append('a'))

        assert scheduler.advance(0.15) == 1
        assert fired == ['a']
        scheduler.advance(0.1)
        assert fired == ['a', 'b']
        assert scheduler.time() == pytest.approx(0.25)

    def test_cancel(self):
        scheduler = ManualScheduler()
        fired = []
        handle = scheduler.call_later(0.1, lambda: fired.append(1))
        handle.cancel()
        assert scheduler.pending_count == 0
        scheduler.advance(1.0)
        assert fired == []


class TestDebouncer:
    """Debouncer 테스트"""

    def test_zero_delay_commits_immediately(self):
        debouncer = Debouncer(delay=0.0)
        fired = []
        debouncer.schedule('k', lambda: fired.append(1))
        assert fired == [1]
        assert debouncer.pending_count == 0

    def test_requires_scheduler(self):
        with pytest.raises(ValueError):
            Debouncer(delay=0.3)

    def test_latest_supersedes_pending(self):
        """새 예약이 이전 예약을 대체"""
        scheduler = ManualScheduler()
        debouncer = Debouncer(delay=0.3, scheduler=scheduler)
        fired = []

        debouncer.schedule('orientation', lambda: fired.append('first'))
        scheduler.advance(0.2)
        debouncer.schedule('orientation', lambda: fired.append('second'))

        assert debouncer.pending_count == 1
        scheduler.advance(0.2)
        assert fired == []

        scheduler.advance(0.2)
        assert fired == ['second']
        assert not debouncer.is_pending('orientation')

    def test_keys_independent(self):
        scheduler = ManualScheduler()
        debouncer = Debouncer(delay=0.1, scheduler=scheduler)
        fired = []
        debouncer.schedule('a', lambda: fired.append('a'))
        debouncer.schedule('b', lambda: fired.append('b'))
        scheduler.advance(0.1)
        assert sorted(fired) == ['a', 'b']

    def test_cancel_all(self):
        scheduler = ManualScheduler()
        debouncer = Debouncer(delay=0.1, scheduler=scheduler)
        fired = []
        debouncer.schedule('a', lambda: fired.append('a'))
        debouncer.schedule('b', lambda: fired.append('b'))

        debouncer.cancel_all()
        scheduler.advance(1.0)

        assert fired == []
        assert debouncer.pending_count == 0
        assert not debouncer.cancel('a')
