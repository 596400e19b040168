"""Launch the ArUco detector with the packaged parameter file.

Override any parameter from the command line, e.g.
  ros2 launch aruco_ros2 aruco_ros2.launch.py dictionary:=DICT_APRILTAG_36h11
"""

import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    params_file = os.path.join(
        get_package_share_directory('aruco_ros2'), 'config', 'aruco_ros2.yaml')

    return LaunchDescription([
        DeclareLaunchArgument(
            'marker_size',
            default_value='0.1',
            description='Physical marker side length in metres'),
        DeclareLaunchArgument(
            'dictionary',
            default_value='DICT_4X4_1000',
            description='Predefined ArUco dictionary name'),
        DeclareLaunchArgument(
            'camera_frame',
            default_value='camera_rgb_optical_frame',
            description='Parent frame of the broadcast marker transforms'),

        Node(
            package='aruco_ros2',
            executable='aruco_ros2',
            name='aruco_ros2',
            output='screen',
            parameters=[params_file, {
                'marker_size': LaunchConfiguration('marker_size'),
                'dictionary': LaunchConfiguration('dictionary'),
                'camera_frame': LaunchConfiguration('camera_frame'),
            }],
        ),
    ])
