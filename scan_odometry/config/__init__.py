"""
config 모듈 - 설정 관리
"""

from .odometry_config import (
    OdometryConfig,
    FrameConfig,
    InitialPoseConfig,
    RegistrationConfig,
    ThresholdingConfig,
    InertialConfig,
    OutputConfig,
    ConfigurationError,
    load_config
)

__all__ = [
    'OdometryConfig',
    'FrameConfig',
    'InitialPoseConfig',
    'RegistrationConfig',
    'ThresholdingConfig',
    'InertialConfig',
    'OutputConfig',
    'ConfigurationError',
    'load_config',
]
