"""
자세 누적 모듈
증분 변환을 누적 자세에 합성하고 query/reference 스캔 버퍼를 관리
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional
import logging

from ..geometry.transform import RigidTransform

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ScanPair:
    """정합 대상 스캔 쌍"""
    query: Optional[np.ndarray] = None      # 현재 스캔 (N, 3)
    reference: Optional[np.ndarray] = None  # 이전 스캔 (M, 3)

    @property
    def ready(self) -> bool:
        return self.query is not None and self.reference is not None


class PoseIntegrator:
    """
    누적 자세 관리자

    integrated' = integrated ∘ incremental
    """

    def __init__(self, initial_pose: Optional[RigidTransform] = None):
        """
        Args:
            initial_pose: 초기 자세 (None이면 원점/항등 회전)
        """
        self.initial_pose = initial_pose if initial_pose is not None else RigidTransform.identity()
        self.integrated = self.initial_pose
        self.incremental = RigidTransform.identity()
        self.scans = ScanPair()

        self.accepted_count = 0
        self.rejected_count = 0

    def set_query(self, points: np.ndarray):
        """query 스캔 설정 (복사본 저장)"""
        self.scans.query = np.array(points, dtype=np.float64, copy=True)

    def rotate_scans(self, points: np.ndarray):
        """reference ← query, query ← 새 스캔"""
        if self.scans.query is None:
            raise RuntimeError("No query scan stored. Call set_query() first.")

        self.scans.reference = self.scans.query
        self.scans.query = np.array(points, dtype=np.float64, copy=True)

    def integrate(self, increment: RigidTransform, accepted: bool = True) -> RigidTransform:
        """
        증분 변환 반영

        거부된 증분도 incremental에는 기록되지만 누적 자세는 변하지 않습니다.

        Returns:
            갱신된 누적 자세
        """
        self.incremental = increment

        if accepted:
            self.integrated = self.integrated.compose(increment)
            self.accepted_count += 1
        else:
            self.rejected_count += 1

        return self.integrated

    def reset(self):
        """초기 자세로 리셋"""
        self.integrated = self.initial_pose
        self.incremental = RigidTransform.identity()
        self.scans = ScanPair()
        self.accepted_count = 0
        self.rejected_count = 0
        logger.debug("PoseIntegrator reset")
