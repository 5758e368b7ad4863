"""
fusion 모듈 - ICP / IMU 회전 융합

주요 기능:
- 사이클 단위 IMU 신뢰도 판정 (타임스탬프 근접성)
- Roll/Pitch는 IMU, Yaw/Translation은 ICP에서 취하는 회전 합성
"""

from .fusion_gate import FusionGate, GateDecision
from .fusion_combiner import FusionCombiner, FusionResult, fuse_rotation

__all__ = [
    'FusionGate',
    'GateDecision',
    'FusionCombiner',
    'FusionResult',
    'fuse_rotation',
]
