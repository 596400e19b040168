from dataclasses import dataclass
from typing import List, Optional, Sequence

import cv2
import numpy as np

from aruco_ros2.calibration import Calibration
from aruco_ros2.dictionaries import MarkerDictionary


@dataclass(frozen=True)
class DetectedMarkerCandidate:
    id: int
    corners: np.ndarray  # (4, 2) pixels, detector corner order

    @property
    def first_corner(self):
        return float(self.corners[0][0]), float(self.corners[0][1])


@dataclass(frozen=True)
class CameraRelativePose:
    rvec: np.ndarray  # axis-angle, camera frame
    tvec: np.ndarray  # marker size units

    def is_degenerate(self) -> bool:
        rvec = np.asarray(self.rvec, dtype=float).ravel()
        tvec = np.asarray(self.tvec, dtype=float).ravel()
        return (rvec.size != 3 or tvec.size != 3
                or not np.all(np.isfinite(rvec)) or not np.all(np.isfinite(tvec)))


def marker_object_points(marker_size: float) -> np.ndarray:
    """Corners of a square marker of side ``marker_size`` in its own frame."""
    half = marker_size / 2.0
    return np.array([
        [-half,  half, 0],
        [ half,  half, 0],
        [ half, -half, 0],
        [-half, -half, 0]
    ], dtype=np.float32)


class MarkerDetector:
    """Find markers of one predefined dictionary in BGR or grayscale images."""

    def __init__(self, dictionary: MarkerDictionary):
        self.dictionary = dictionary
        self.parameters = cv2.aruco.DetectorParameters()
        self.detector = cv2.aruco.ArucoDetector(dictionary.get_predefined(), self.parameters)

    def detect(self, image: np.ndarray) -> List[DetectedMarkerCandidate]:
        corners, ids, _ = self.detector.detectMarkers(image)
        if ids is None:
            return []
        return [
            DetectedMarkerCandidate(int(marker_id), np.asarray(marker_corners, dtype=np.float32).reshape(4, 2))
            for marker_corners, marker_id in zip(corners, np.asarray(ids).ravel())
        ]


def estimate_poses(corners: Sequence[np.ndarray], marker_size: float,
                   calibration: Calibration) -> List[Optional[CameraRelativePose]]:
    """Solve the camera-relative pose of every marker in one call.

    The result is index-aligned with ``corners``; entries for which the solver
    fails or returns non-finite values are ``None``.
    """
    obj_points = marker_object_points(marker_size)
    poses: List[Optional[CameraRelativePose]] = []
    for marker_corners in corners:
        img_points = np.asarray(marker_corners, dtype=np.float32).reshape(4, 2)
        success, rvec, tvec = cv2.solvePnP(
            obj_points,
            img_points,
            calibration.camera_matrix,
            calibration.dist_coeffs,
            flags=cv2.SOLVEPNP_IPPE_SQUARE
        )
        if not success:
            poses.append(None)
            continue
        pose = CameraRelativePose(rvec.reshape(3), tvec.reshape(3))
        poses.append(None if pose.is_degenerate() else pose)
    return poses


def draw_axes(image: np.ndarray, calibration: Calibration, pose: CameraRelativePose,
              length: float) -> None:
    """Draw the marker's x/y/z axes onto ``image`` in place."""
    cv2.drawFrameAxes(
        image,
        calibration.camera_matrix,
        calibration.dist_coeffs,
        np.asarray(pose.rvec, dtype=float).reshape(3, 1),
        np.asarray(pose.tvec, dtype=float).reshape(3, 1),
        length
    )
