import rclpy
from aruco_ros2_msgs.msg import Marker, MarkerArray
from cv_bridge import CvBridge, CvBridgeError
from rclpy.node import Node
from rclpy.qos import HistoryPolicy, QoSProfile, ReliabilityPolicy
from rclpy.time import Time
from sensor_msgs.msg import CameraInfo, Image

from aruco_ros2.calibration import CalibrationState
from aruco_ros2.config import DetectorConfig
from aruco_ros2.pipeline import DetectionPipeline, MarkerRecordSet
from aruco_ros2.tf_directory import TfTransformDirectory


def to_marker_array_msg(record_set: MarkerRecordSet) -> MarkerArray:
    marker_array = MarkerArray()
    marker_array.header.stamp = Time(nanoseconds=record_set.stamp_ns).to_msg()
    marker_array.header.frame_id = record_set.frame_id

    for record in record_set.markers:
        marker = Marker()
        marker.header.frame_id = record_set.frame_id
        marker.header.stamp = marker_array.header.stamp
        marker.id = record.id
        tx, ty, tz = record.pose.translation
        qx, qy, qz, qw = record.pose.rotation
        marker.pose.position.x = tx
        marker.pose.position.y = ty
        marker.pose.position.z = tz
        marker.pose.orientation.x = qx
        marker.pose.orientation.y = qy
        marker.pose.orientation.z = qz
        marker.pose.orientation.w = qw
        marker.pixel_x = record.pixel_x
        marker.pixel_y = record.pixel_y
        marker_array.markers.append(marker)
    return marker_array


class ArucoRos2Node(Node):
    """Detect ArUco markers, broadcast them to TF and publish their map poses."""

    def __init__(self):
        super().__init__('aruco_ros2')

        # Parameters
        self.declare_parameter('marker_size', 0.1)  # meters
        self.declare_parameter('camera_frame', 'camera_rgb_optical_frame')
        self.declare_parameter('image_topic', '/camera/color/image_raw')
        self.declare_parameter('camera_info_topic', '/camera/color/camera_info')
        self.declare_parameter('dictionary', 'DICT_4X4_1000')
        self.declare_parameter('failure_policy', 'skip_marker')
        self.declare_parameter('transform_timeout', 0.0)  # seconds
        self.declare_parameter('draw_axes', True)

        # Raises on an unknown dictionary before anything is subscribed
        self.config = DetectorConfig(
            marker_size=float(self.get_parameter('marker_size').value),
            camera_frame=str(self.get_parameter('camera_frame').value),
            image_topic=str(self.get_parameter('image_topic').value),
            camera_info_topic=str(self.get_parameter('camera_info_topic').value),
            dictionary=str(self.get_parameter('dictionary').value),
            failure_policy=str(self.get_parameter('failure_policy').value),
            transform_timeout=float(self.get_parameter('transform_timeout').value),
            draw_axes=bool(self.get_parameter('draw_axes').value),
        )
        self.get_logger().info(f'marker_size: {self.config.marker_size}')
        self.get_logger().info(f'camera_frame: {self.config.camera_frame}')
        self.get_logger().info(f'image_topic: {self.config.image_topic}')
        self.get_logger().info(f'camera_info_topic: {self.config.camera_info_topic}')
        self.get_logger().info(f'dictionary: {self.config.dictionary.value}')
        self.get_logger().info(f'failure_policy: {self.config.failure_policy.value}')

        self.bridge = CvBridge()
        self.calibration = CalibrationState(self.get_logger())
        self.directory = TfTransformDirectory(self, timeout=self.config.transform_timeout)
        self.pipeline = DetectionPipeline(
            self.config,
            self.calibration,
            self.directory,
            clock=lambda: self.get_clock().now().nanoseconds,
            logger=self.get_logger(),
        )

        self.marker_array_pub = self.create_publisher(MarkerArray, '/aruco/markers', 10)
        self.image_pub = self.create_publisher(Image, '/aruco/result', 10)

        qos_profile = QoSProfile(
            history=HistoryPolicy.KEEP_LAST,
            depth=1,
            reliability=ReliabilityPolicy.RELIABLE
        )
        self.camera_info_subscription = self.create_subscription(
            CameraInfo,
            self.config.camera_info_topic,
            self.camera_info_callback,
            10
        )
        self.image_subscription = self.create_subscription(
            Image,
            self.config.image_topic,
            self.image_callback,
            qos_profile
        )
        self.get_logger().info(f'Subscribed to image topic: {self.config.image_topic}')

    def camera_info_callback(self, msg: CameraInfo):
        try:
            self.calibration.update(msg.k, msg.d, width=msg.width, height=msg.height)
        except ValueError as exc:
            self.get_logger().error(f'Ignoring invalid camera info: {exc}')

    def image_callback(self, msg: Image):
        if self.pipeline.ready_calibration() is None:
            return

        try:
            frame = self.bridge.imgmsg_to_cv2(msg, desired_encoding='bgr8')
        except CvBridgeError as exc:
            self.get_logger().warning(f'Failed to convert image: {exc}')
            return

        outcome = self.pipeline.process_frame(frame, Time.from_msg(msg.header.stamp).nanoseconds)
        if outcome is None:
            return

        overlay_msg = self.bridge.cv2_to_imgmsg(outcome.image, encoding='bgr8')
        overlay_msg.header = msg.header
        self.image_pub.publish(overlay_msg)
        self.marker_array_pub.publish(to_marker_array_msg(outcome.records))


def main(args=None):
    rclpy.init(args=args)
    node = ArucoRos2Node()
    try:
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    finally:
        node.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
