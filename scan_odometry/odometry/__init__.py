"""Pose integration and odometry pipeline module"""
from .motion_guard import MotionGuard, GuardDecision
from .pose_integrator import PoseIntegrator, ScanPair
from .point_cloud_odometry import PointCloudOdometry, OdometryResult

__all__ = [
    'MotionGuard',
    'GuardDecision',
    'PoseIntegrator',
    'ScanPair',
    'PointCloudOdometry',
    'OdometryResult',
]
