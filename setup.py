from glob import glob

from setuptools import find_packages, setup

package_name = 'aruco_ros2'

setup(
    name=package_name,
    version='0.1.0',
    packages=find_packages(exclude=['test']),
    data_files=[
        ('share/ament_index/resource_index/packages',
            ['resource/' + package_name]),
        ('share/' + package_name, ['package.xml']),
        ('share/' + package_name + '/launch', glob('launch/*.launch.py')),
        ('share/' + package_name + '/config', glob('config/*.yaml')),
    ],
    install_requires=[
        'setuptools',
        'numpy',
        'opencv-python-headless>=4.7',
        'tf-transformations',
        'transforms3d',
    ],
    zip_safe=True,
    maintainer='aruco_ros2 maintainers',
    maintainer_email='aruco_ros2@users.noreply.github.com',
    description='ArUco marker detection with TF broadcast and map-frame marker poses',
    license='Apache-2.0',
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'aruco_ros2 = aruco_ros2.aruco_node:main',
        ],
    },
)
