"""Point cloud registration module"""
from .icp_registration import (
    RegistrationAdapter,
    RegistrationResult,
    Open3DRegistration,
    to_open3d
)

__all__ = ['RegistrationAdapter', 'RegistrationResult', 'Open3DRegistration', 'to_open3d']
