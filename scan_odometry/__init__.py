"""
scan_odometry - Point Cloud 정합 + IMU 자세 융합 오도메트리

주요 특징:
- Open3D GICP / Point-to-Point ICP 기반 스캔 간 정합
- IMU 자세 융합 (Roll/Pitch: IMU, Yaw/Translation: ICP)
- 타임스탬프 기반 IMU 샘플 정렬 및 품질 검사
- 비정상 증분 변환 거부 (MotionGuard)

Version: 1.0
Author: FurSys AI Team
"""

__version__ = "1.0.0"
__author__ = "FurSys AI Team"

from .geometry.transform import (
    RigidTransform,
    rotation_to_rpy,
    rpy_to_rotation,
    quaternion_to_rotation
)

from .config.odometry_config import (
    OdometryConfig,
    ConfigurationError,
    load_config
)

from .inertial.sample_buffer import InertialSample, InertialSampleBuffer

from .odometry.point_cloud_odometry import (
    PointCloudOdometry,
    OdometryResult
)

__all__ = [
    # Geometry
    'RigidTransform',
    'rotation_to_rpy',
    'rpy_to_rotation',
    'quaternion_to_rotation',
    # Config
    'OdometryConfig',
    'ConfigurationError',
    'load_config',
    # Inertial
    'InertialSample',
    'InertialSampleBuffer',
    # Odometry
    'PointCloudOdometry',
    'OdometryResult',
]
