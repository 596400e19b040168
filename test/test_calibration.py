import logging

import numpy as np
import pytest

from aruco_ros2.calibration import CalibrationState

K = [800.0, 0.0, 320.0, 0.0, 800.0, 240.0, 0.0, 0.0, 1.0]


@pytest.fixture
def state():
    return CalibrationState(logging.getLogger('aruco_ros2.test.calibration'))


def test_not_ready_until_first_update(state):
    assert not state.is_ready
    assert state.read() is None


def test_update_stores_matrix_and_distortion(state):
    state.update(K, [0.1, -0.2, 0.0, 0.0, 0.05], width=640, height=480)

    calibration = state.read()
    assert state.is_ready
    assert calibration.camera_matrix.shape == (3, 3)
    assert calibration.camera_matrix[0, 2] == 320.0
    assert calibration.camera_matrix[1, 1] == 800.0
    assert np.allclose(calibration.dist_coeffs, [0.1, -0.2, 0.0, 0.0, 0.05])
    assert (calibration.width, calibration.height) == (640, 480)


def test_empty_distortion_means_no_distortion(state):
    calibration = state.update(K, [])
    assert np.array_equal(calibration.dist_coeffs, np.zeros(4))


def test_last_write_wins(state):
    state.update(K, [])
    second = [500.0, 0.0, 100.0, 0.0, 500.0, 100.0, 0.0, 0.0, 1.0]
    state.update(second, [0.0, 0.0, 0.0, 0.0])
    assert state.read().camera_matrix[0, 0] == 500.0


def test_snapshot_is_not_mutated_by_later_updates(state):
    first = state.update(K, [])
    state.update([500.0, 0.0, 100.0, 0.0, 500.0, 100.0, 0.0, 0.0, 1.0], [])
    assert first.camera_matrix[0, 0] == 800.0


@pytest.mark.parametrize('intrinsics, distortion', [
    (K[:8], []),
    (K, [0.1, 0.2, 0.3]),
])
def test_invalid_update_keeps_previous_snapshot(state, intrinsics, distortion):
    state.update(K, [])
    with pytest.raises(ValueError):
        state.update(intrinsics, distortion)
    assert state.read().camera_matrix[0, 0] == 800.0


def test_camera_info_logged_only_once(state, caplog):
    caplog.set_level(logging.INFO, logger='aruco_ros2.test.calibration')
    state.update(K, [])
    state.update(K, [])
    state.update(K, [])
    assert sum('Received camera info' in r.getMessage() for r in caplog.records) == 1
