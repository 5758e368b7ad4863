"""
geometry 모듈 - 강체 변환 및 회전 표현
"""

from .transform import (
    RigidTransform,
    orthonormalize,
    rotation_to_rpy,
    rpy_to_rotation,
    quaternion_to_rotation,
    as_rotation_matrix,
    relative_rotation,
    angle_between,
    RPY_ORDER
)

__all__ = [
    'RigidTransform',
    'orthonormalize',
    'rotation_to_rpy',
    'rpy_to_rotation',
    'quaternion_to_rotation',
    'as_rotation_matrix',
    'relative_rotation',
    'angle_between',
    'RPY_ORDER',
]
