"""
fusion_combiner.py - ICP / IMU 회전 융합

융합 규칙:
- Roll, Pitch: IMU 상대 회전 (단기 기울기 정확도가 높음)
- Yaw: ICP 정합 결과 (IMU는 heading이 드리프트함)
- Translation: 항상 ICP 정합 결과

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional
import logging

from ..geometry.transform import (
    RigidTransform,
    rotation_to_rpy,
    rpy_to_rotation,
    as_rotation_matrix,
    angle_between
)
from ..inertial.attitude_aligner import AttitudeDeltaQueue

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FusionResult:
    """
    융합 결과

    Attributes:
        transform: 출력 증분 변환
        fused: IMU 회전이 실제로 반영되었는지 여부
        rpy_registration: ICP 회전의 [roll, pitch, yaw] (radians)
        rpy_inertial: IMU 상대 회전의 [roll, pitch, yaw] (융합하지 않았으면 None)
        correction: 융합 회전과 ICP 회전 사이의 각도 (radians)
    """
    transform: RigidTransform
    fused: bool
    rpy_registration: np.ndarray
    rpy_inertial: Optional[np.ndarray] = None
    correction: float = 0.0


class FusionCombiner:
    """
    ICP 변환과 IMU 상대 회전을 결합

    Example:
        >>> combiner = FusionCombiner(delta_queue)
        >>> result = combiner.combine(icp_transform, active=decision.use_inertial)
        >>> print(result.transform.rpy())
    """

    def __init__(self, delta_queue: AttitudeDeltaQueue):
        """
        Args:
            delta_queue: AttitudeAligner와 공유하는 delta 큐
        """
        self.delta_queue = delta_queue

    def combine(
        self,
        registration: RigidTransform,
        active: bool
    ) -> FusionResult:
        """
        Args:
            registration: ICP 정합 결과 (증분 변환)
            active: 이번 사이클 융합 여부 (FusionGate 판정)

        Returns:
            FusionResult
        """
        rpy_registration = registration.rpy()

        if not active:
            return FusionResult(
                transform=registration,
                fused=False,
                rpy_registration=rpy_registration
            )

        delta = self.delta_queue.pop()
        if delta is None:
            logger.warning("Fusion requested but attitude delta queue is empty, using registration only")
            return FusionResult(
                transform=registration,
                fused=False,
                rpy_registration=rpy_registration
            )

        rpy_inertial = rotation_to_rpy(as_rotation_matrix(delta))

        rotation = fuse_rotation(rpy_registration, rpy_inertial)
        correction = angle_between(rotation, registration.rotation)
        logger.debug(f"Inertial roll/pitch correction: {np.degrees(correction):.3f} deg")

        return FusionResult(
            transform=registration.with_rotation(rotation),
            fused=True,
            rpy_registration=rpy_registration,
            rpy_inertial=rpy_inertial,
            correction=correction
        )


def fuse_rotation(
    rpy_registration: np.ndarray,
    rpy_inertial: np.ndarray
) -> np.ndarray:
    """
    IMU의 roll/pitch + ICP의 yaw 로 회전 행렬 재구성

    Returns:
        정규직교 3x3 회전 행렬
    """
    roll, pitch = float(rpy_inertial[0]), float(rpy_inertial[1])
    yaw = float(rpy_registration[2])
    return rpy_to_rotation(roll, pitch, yaw)
