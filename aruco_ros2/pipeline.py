from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple, Union

import cv2
import numpy as np

from aruco_ros2.calibration import Calibration, CalibrationState
from aruco_ros2.config import DetectorConfig, FailurePolicy, ROOT_FRAME, marker_frame_name
from aruco_ros2.detection import (
    CameraRelativePose,
    DetectedMarkerCandidate,
    MarkerDetector,
    draw_axes,
    estimate_poses,
)
from aruco_ros2.transforms import RigidTransform


@dataclass(frozen=True)
class LookupFailure:
    reason: str


class TransformDirectory(Protocol):
    def broadcast(self, transform: RigidTransform, stamp_ns: int) -> None:
        ...

    def lookup(self, parent_frame: str, child_frame: str) -> Union[RigidTransform, LookupFailure]:
        ...


@dataclass(frozen=True)
class MarkerRecord:
    id: int
    pose: RigidTransform  # ROOT_FRAME -> aruco_marker_<id>
    pixel_x: float
    pixel_y: float
    stamp_ns: int


@dataclass(frozen=True)
class MarkerRecordSet:
    stamp_ns: int
    markers: Tuple[MarkerRecord, ...] = ()
    frame_id: str = ROOT_FRAME

    @property
    def ids(self) -> List[int]:
        return [m.id for m in self.markers]


@dataclass(frozen=True)
class MarkerFailure:
    marker_id: int
    reason: str


@dataclass
class FrameOutcome:
    """Everything one processed frame produced."""

    image: np.ndarray
    records: MarkerRecordSet
    broadcasts: List[RigidTransform] = field(default_factory=list)
    failures: List[MarkerFailure] = field(default_factory=list)


class DetectionPipeline:
    """Turn one image into marker records in the root frame.

    Each detected marker is broadcast as ``camera_frame -> aruco_marker_<id>``
    stamped with ``clock()`` at processing time, then composed with the
    latest ``map -> camera_frame`` transform. Records carry the image stamp.
    """

    def __init__(self, config: DetectorConfig, calibration: CalibrationState,
                 directory: TransformDirectory, clock: Callable[[], int], logger,
                 detector: Optional[MarkerDetector] = None,
                 pose_estimator: Callable = estimate_poses):
        self.config = config
        self.calibration = calibration
        self.directory = directory
        self.clock = clock
        self.logger = logger
        self.detector = detector if detector is not None else MarkerDetector(config.dictionary)
        self.pose_estimator = pose_estimator
        self._waiting_for_calibration = False

    def ready_calibration(self) -> Optional[Calibration]:
        """Current calibration, or ``None`` (logged once per wait) if none arrived yet."""
        calibration = self.calibration.read()
        if calibration is None:
            if not self._waiting_for_calibration:
                self.logger.info('Waiting for camera info.')
                self._waiting_for_calibration = True
            return None
        self._waiting_for_calibration = False
        return calibration

    def process_frame(self, image: np.ndarray, stamp_ns: int) -> Optional[FrameOutcome]:
        """Process one frame; ``None`` means the frame was dropped unpublished."""
        calibration = self.ready_calibration()
        if calibration is None:
            return None

        candidates = self.detector.detect(image)
        records: List[MarkerRecord] = []
        outcome = FrameOutcome(image=image, records=MarkerRecordSet(stamp_ns))
        if not candidates:
            return outcome

        poses = self.pose_estimator(
            [c.corners for c in candidates], self.config.marker_size, calibration)

        for index, candidate in enumerate(candidates):
            pose = poses[index] if index < len(poses) else None
            result = self._process_marker(candidate, pose, calibration, image, stamp_ns, outcome)
            if isinstance(result, MarkerRecord):
                records.append(result)
                continue

            self.logger.warning(f'Marker {result.marker_id}: {result.reason}')
            outcome.failures.append(result)
            if self.config.failure_policy is FailurePolicy.ABORT_FRAME:
                remaining = len(candidates) - index - 1
                if remaining:
                    self.logger.warning(f'Dropping {remaining} remaining marker(s) in this frame')
                break

        outcome.records = MarkerRecordSet(stamp_ns, tuple(records))
        return outcome

    def _process_marker(self, candidate: DetectedMarkerCandidate, pose: Optional[CameraRelativePose],
                        calibration: Calibration, image: np.ndarray, stamp_ns: int,
                        outcome: FrameOutcome) -> Union[MarkerRecord, MarkerFailure]:
        if pose is None or pose.is_degenerate():
            return MarkerFailure(candidate.id, 'pose estimation failed')

        camera_to_marker = RigidTransform.from_rotation_vector(
            self.config.camera_frame, marker_frame_name(candidate.id), pose.rvec, pose.tvec)
        self.directory.broadcast(camera_to_marker, self.clock())
        outcome.broadcasts.append(camera_to_marker)
        self.logger.info(f'Detected marker {candidate.id}')

        root_to_camera = self.directory.lookup(ROOT_FRAME, self.config.camera_frame)
        if isinstance(root_to_camera, LookupFailure):
            return MarkerFailure(
                candidate.id,
                f'no transform {ROOT_FRAME} -> {self.config.camera_frame}: {root_to_camera.reason}')

        pixel_x, pixel_y = candidate.first_corner
        record = MarkerRecord(
            id=candidate.id,
            pose=root_to_camera.compose(camera_to_marker),
            pixel_x=pixel_x,
            pixel_y=pixel_y,
            stamp_ns=stamp_ns,
        )

        if self.config.draw_axes:
            try:
                draw_axes(image, calibration, pose, self.config.axis_length)
            except cv2.error as exc:
                self.logger.warning(f'Failed to draw axes for marker {candidate.id}: {exc}')
        return record
