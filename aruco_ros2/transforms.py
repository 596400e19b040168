"""Rigid-body transform helpers for marker poses.

Quaternions use the ROS ordering ``(x, y, z, w)`` throughout, matching
``geometry_msgs/Quaternion`` and ``tf_transformations``.
"""

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np
import tf_transformations


def rotation_matrix_to_quaternion(R: np.ndarray) -> np.ndarray:
    """Convert a 3x3 rotation matrix to quaternion (x, y, z, w)."""
    # tf_transformations expects a 4x4 matrix
    T = np.eye(4, dtype=float)
    T[:3, :3] = R
    q = tf_transformations.quaternion_from_matrix(T)
    return np.asarray(q, dtype=float)


def quaternion_to_rotation_matrix(q) -> np.ndarray:
    return np.asarray(tf_transformations.quaternion_matrix(q), dtype=float)[:3, :3]


def rotation_vector_to_quaternion(rvec) -> np.ndarray:
    """Axis-angle (Rodrigues) vector to quaternion, via the rotation matrix."""
    R, _ = cv2.Rodrigues(np.asarray(rvec, dtype=float).reshape(3, 1))
    return rotation_matrix_to_quaternion(R)


def quaternion_to_rotation_vector(q) -> np.ndarray:
    rvec, _ = cv2.Rodrigues(quaternion_to_rotation_matrix(q))
    return rvec.reshape(3)


def rotation_angle_between(q_a, q_b) -> float:
    """Angle in radians of the rotation taking ``q_a`` to ``q_b``."""
    q_a = np.asarray(q_a, dtype=float) / np.linalg.norm(q_a)
    q_b = np.asarray(q_b, dtype=float) / np.linalg.norm(q_b)
    q_rel = np.asarray(
        tf_transformations.quaternion_multiply(q_b, tf_transformations.quaternion_conjugate(q_a)),
        dtype=float)
    # abs(w): q and -q are the same rotation
    return 2.0 * float(np.arctan2(np.linalg.norm(q_rel[:3]), abs(q_rel[3])))


@dataclass(frozen=True)
class RigidTransform:
    """Transform taking coordinates in ``child_frame`` into ``parent_frame``."""

    parent_frame: str
    child_frame: str
    translation: Tuple[float, float, float]
    rotation: Tuple[float, float, float, float]

    @classmethod
    def from_rotation_vector(cls, parent_frame: str, child_frame: str,
                             rvec, tvec) -> 'RigidTransform':
        qx, qy, qz, qw = rotation_vector_to_quaternion(rvec)
        t = np.asarray(tvec, dtype=float).reshape(3)
        return cls(
            parent_frame,
            child_frame,
            (float(t[0]), float(t[1]), float(t[2])),
            (float(qx), float(qy), float(qz), float(qw)),
        )

    @classmethod
    def from_matrix(cls, parent_frame: str, child_frame: str, T: np.ndarray) -> 'RigidTransform':
        T = np.asarray(T, dtype=float)
        qx, qy, qz, qw = rotation_matrix_to_quaternion(T[:3, :3])
        t = T[:3, 3]
        return cls(
            parent_frame,
            child_frame,
            (float(t[0]), float(t[1]), float(t[2])),
            (float(qx), float(qy), float(qz), float(qw)),
        )

    def as_matrix(self) -> np.ndarray:
        """4x4 homogeneous matrix."""
        T = np.eye(4)
        T[:3, :3] = quaternion_to_rotation_matrix(self.rotation)
        T[:3, 3] = self.translation
        return T

    def compose(self, other: 'RigidTransform') -> 'RigidTransform':
        """Chain ``parent -> child`` with ``child -> other.child``.

        Rotation is the quaternion product, translation is
        ``R_self @ t_other + t_self``.
        """
        if self.child_frame != other.parent_frame:
            raise ValueError(
                f'cannot compose {self.parent_frame}->{self.child_frame} '
                f'with {other.parent_frame}->{other.child_frame}'
            )
        R = quaternion_to_rotation_matrix(self.rotation)
        t = R @ np.asarray(other.translation, dtype=float) + np.asarray(self.translation, dtype=float)
        q = np.asarray(tf_transformations.quaternion_multiply(self.rotation, other.rotation), dtype=float)
        q /= np.linalg.norm(q)
        return RigidTransform(
            self.parent_frame,
            other.child_frame,
            (float(t[0]), float(t[1]), float(t[2])),
            (float(q[0]), float(q[1]), float(q[2]), float(q[3])),
        )

    def inverse(self) -> 'RigidTransform':
        R = quaternion_to_rotation_matrix(self.rotation)
        t = -R.T @ np.asarray(self.translation, dtype=float)
        qx, qy, qz, qw = tf_transformations.quaternion_conjugate(self.rotation)
        return RigidTransform(
            self.child_frame,
            self.parent_frame,
            (float(t[0]), float(t[1]), float(t[2])),
            (float(qx), float(qy), float(qz), float(qw)),
        )
