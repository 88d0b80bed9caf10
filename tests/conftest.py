"""
공용 테스트 픽스처

알려진 자세(azimuth, pitch, roll)에 대한 가속도계/지자기 바디 좌표 값을 생성합니다.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parents[1]))

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

GRAVITY = 9.81
FIELD_STRENGTH = 50.0
INCLINATION_DEG = 60.0


def sensor_vectors(azimuth, pitch=0.0, roll=0.0):
    """
    주어진 자세에서 측정될 (accel, mag) 바디 좌표 배열

    가속도계는 정지 상태에서 위쪽(NED -z)을 측정하고,
    자기장은 북쪽 수평 성분과 아래쪽 복각 성분을 가집니다.
    """
    body_to_world = Rotation.from_euler('ZYX', [azimuth, pitch, roll], degrees=True)
    world_to_body = body_to_world.inv()

    inclination = np.deg2rad(INCLINATION_DEG)
    accel_world = np.array([0.0, 0.0, -GRAVITY])
    mag_world = FIELD_STRENGTH * np.array([np.cos(inclination), 0.0, np.sin(inclination)])

    return world_to_body.apply(accel_world), world_to_body.apply(mag_world)


@pytest.fixture
def make_sensor_vectors():
    return sensor_vectors
