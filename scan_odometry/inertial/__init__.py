"""IMU attitude buffering and alignment module"""
from .sample_buffer import InertialSample, InertialSampleBuffer
from .attitude_aligner import (
    AttitudeAligner,
    AlignmentResult,
    AttitudeDeltaQueue,
    find_nearest_sample
)

__all__ = [
    'InertialSample',
    'InertialSampleBuffer',
    'AttitudeAligner',
    'AlignmentResult',
    'AttitudeDeltaQueue',
    'find_nearest_sample',
]
