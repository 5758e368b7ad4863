"""
ICP 정합 모듈
두 Point Cloud 사이의 강체 변환 추정 (Open3D)
"""

import numpy as np
import open3d as o3d
from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

from ..config.odometry_config import RegistrationConfig

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class RegistrationResult:
    """정합 결과"""
    transformation: np.ndarray  # 4x4, query → reference
    fitness: float = 0.0        # 대응점 비율 (0-1)
    inlier_rmse: float = 0.0    # 대응점 RMSE (미터)


class RegistrationAdapter(ABC):
    """
    정합 엔진 인터페이스

    query 점군을 reference 점군에 맞추는 4x4 변환을 반환합니다.
    결과의 수렴 품질은 보장하지 않습니다.
    """

    @abstractmethod
    def register(
        self,
        query_points: np.ndarray,
        reference_points: np.ndarray
    ) -> RegistrationResult:
        """
        Args:
            query_points: 현재 스캔 (N, 3)
            reference_points: 이전 스캔 (M, 3)

        Returns:
            RegistrationResult
        """


def to_open3d(points: np.ndarray) -> o3d.geometry.PointCloud:
    """(N, 3) 배열 → Open3D PointCloud"""
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"Expected (N, 3) points, got {points.shape}")

    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(points)
    return pcd


class Open3DRegistration(RegistrationAdapter):
    """
    Open3D 기반 ICP 정합기

    - gicp: Generalized ICP (기본값)
    - point_to_point: 점-점 ICP

    초기 추정은 항등 변환이며 RANSAC 단계는 사용하지 않습니다.
    """

    def __init__(
        self,
        tf_epsilon: float,
        corr_dist: float,
        iterations: int,
        method: str = "gicp"
    ):
        """
        Args:
            tf_epsilon: 수렴 판정 epsilon
            corr_dist: 최대 대응점 거리 (미터)
            iterations: 최대 반복 횟수
            method: "gicp" 또는 "point_to_point"
        """
        if method not in ("gicp", "point_to_point"):
            raise ValueError(f"Unknown registration method: {method}")

        self.tf_epsilon = tf_epsilon
        self.corr_dist = corr_dist
        self.iterations = iterations
        self.method = method

        logger.debug(
            f"Open3DRegistration initialized: method={method}, "
            f"corr_dist={corr_dist}, iterations={iterations}"
        )

    @classmethod
    def from_config(cls, config: RegistrationConfig) -> 'Open3DRegistration':
        return cls(
            tf_epsilon=config.tf_epsilon,
            corr_dist=config.corr_dist,
            iterations=config.iterations,
            method=config.method
        )

    def _criteria(self) -> o3d.pipelines.registration.ICPConvergenceCriteria:
        return o3d.pipelines.registration.ICPConvergenceCriteria(
            relative_fitness=self.tf_epsilon,
            relative_rmse=self.tf_epsilon,
            max_iteration=self.iterations
        )

    def register(
        self,
        query_points: np.ndarray,
        reference_points: np.ndarray
    ) -> RegistrationResult:
        source = to_open3d(query_points)
        target = to_open3d(reference_points)
        init = np.eye(4)

        if self.method == "gicp":
            result = o3d.pipelines.registration.registration_generalized_icp(
                source, target, self.corr_dist, init,
                o3d.pipelines.registration.TransformationEstimationForGeneralizedICP(),
                self._criteria()
            )
        else:
            result = o3d.pipelines.registration.registration_icp(
                source, target, self.corr_dist, init,
                o3d.pipelines.registration.TransformationEstimationPointToPoint(),
                self._criteria()
            )

        logger.debug(
            f"Registration done: fitness={result.fitness:.3f}, "
            f"rmse={result.inlier_rmse:.4f}, correspondences={len(result.correspondence_set)}"
        )

        return RegistrationResult(
            transformation=np.asarray(result.transformation, dtype=np.float64).copy(),
            fitness=float(result.fitness),
            inlier_rmse=float(result.inlier_rmse)
        )
