from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

# Distortion vector lengths accepted by OpenCV's camera model.
VALID_DISTORTION_LENGTHS = (0, 4, 5, 8, 12, 14)


@dataclass(frozen=True)
class Calibration:
    """Immutable snapshot of the camera intrinsics."""

    camera_matrix: np.ndarray
    dist_coeffs: np.ndarray
    width: Optional[int] = None
    height: Optional[int] = None


class CalibrationState:
    """Holds the most recent camera calibration.

    ``update`` replaces the snapshot wholesale, so a reader always sees a
    complete calibration. Frames processed between two camera-info messages
    use the last known intrinsics.
    """

    def __init__(self, logger):
        self.logger = logger
        self._calibration: Optional[Calibration] = None

    @property
    def is_ready(self) -> bool:
        return self._calibration is not None

    def read(self) -> Optional[Calibration]:
        return self._calibration

    def update(self, intrinsics: Sequence[float], distortion: Sequence[float],
               width: Optional[int] = None, height: Optional[int] = None) -> Calibration:
        k_vals = [float(v) for v in np.asarray(intrinsics, dtype=float).ravel()]
        if len(k_vals) != 9:
            raise ValueError('intrinsic matrix must have 9 values (row-major 3x3)')
        d_vals = [float(v) for v in np.asarray(distortion, dtype=float).ravel()]
        if len(d_vals) not in VALID_DISTORTION_LENGTHS:
            raise ValueError(
                f'distortion must have one of {VALID_DISTORTION_LENGTHS} values, got {len(d_vals)}')
        if not d_vals:
            # no distortion
            d_vals = [0.0, 0.0, 0.0, 0.0]

        calibration = Calibration(
            camera_matrix=np.array(k_vals, dtype=float).reshape(3, 3),
            dist_coeffs=np.array(d_vals, dtype=float),
            width=width,
            height=height,
        )
        first = self._calibration is None
        self._calibration = calibration

        if first:
            self.logger.info('Received camera info.')
            self.logger.info(
                f'Camera info: width={width} height={height} '
                f'K={k_vals} D={calibration.dist_coeffs.tolist()}'
            )
        return calibration
