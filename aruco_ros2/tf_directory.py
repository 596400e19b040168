from typing import Union

from geometry_msgs.msg import TransformStamped
from rclpy.duration import Duration
from rclpy.node import Node
from rclpy.time import Time
import tf2_ros
from tf2_ros import TransformBroadcaster, TransformException

from aruco_ros2.pipeline import LookupFailure
from aruco_ros2.transforms import RigidTransform


def to_transform_msg(transform: RigidTransform, stamp_ns: int) -> TransformStamped:
    t_msg = TransformStamped()
    t_msg.header.stamp = Time(nanoseconds=stamp_ns).to_msg()
    t_msg.header.frame_id = transform.parent_frame
    t_msg.child_frame_id = transform.child_frame

    tx, ty, tz = transform.translation
    qx, qy, qz, qw = transform.rotation
    t_msg.transform.translation.x = float(tx)
    t_msg.transform.translation.y = float(ty)
    t_msg.transform.translation.z = float(tz)
    t_msg.transform.rotation.x = float(qx)
    t_msg.transform.rotation.y = float(qy)
    t_msg.transform.rotation.z = float(qz)
    t_msg.transform.rotation.w = float(qw)
    return t_msg


def from_transform_msg(t_msg: TransformStamped) -> RigidTransform:
    t = t_msg.transform.translation
    q = t_msg.transform.rotation
    return RigidTransform(
        t_msg.header.frame_id,
        t_msg.child_frame_id,
        (t.x, t.y, t.z),
        (q.x, q.y, q.z, q.w),
    )


class TfTransformDirectory:
    """Broadcasts to and looks up from the shared TF tree on behalf of a node."""

    def __init__(self, node: Node, timeout: float = 0.0):
        self.tf_broadcaster = TransformBroadcaster(node)
        self.tf_buffer = tf2_ros.Buffer()
        self.tf_listener = tf2_ros.TransformListener(self.tf_buffer, node)
        self.timeout = Duration(seconds=timeout)

    def broadcast(self, transform: RigidTransform, stamp_ns: int) -> None:
        self.tf_broadcaster.sendTransform(to_transform_msg(transform, stamp_ns))

    def lookup(self, parent_frame: str, child_frame: str) -> Union[RigidTransform, LookupFailure]:
        # Time() asks for the latest transform available
        try:
            t_msg = self.tf_buffer.lookup_transform(
                parent_frame, child_frame, Time(), timeout=self.timeout)
        except TransformException as exc:
            return LookupFailure(str(exc))
        return from_transform_msg(t_msg)
