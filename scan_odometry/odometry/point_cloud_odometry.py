"""
point_cloud_odometry.py - 스캔 정합 + IMU 자세 융합 오도메트리

연속된 Point Cloud 스캔과 비동기 IMU 자세 스트림을 융합하여
스캔마다 증분 변환과 누적 자세를 추정합니다.

사이클 순서:
1. IMU 버퍼 스냅샷
2. 스캔 시각에 IMU 자세 정렬 → 상대 회전을 delta 큐에 push
3. FusionGate: 이번 사이클 IMU 사용 여부 판정
4. reference ← query, query ← 새 스캔
5. ICP 정합 (query → reference)
6. FusionCombiner: roll/pitch (IMU) + yaw/translation (ICP)
7. MotionGuard: 비정상 증분 거부
8. 누적 자세 갱신

초기화 전(첫 스캔, 또는 IMU 사용 시 IMU 샘플 수신 전)에는
추정값 없이 None을 반환합니다.

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from typing import Dict, Optional, Any
from dataclasses import dataclass
import time
import logging

from ..config.odometry_config import OdometryConfig
from ..data.scan_loader import Scan
from ..fusion.fusion_combiner import FusionCombiner
from ..fusion.fusion_gate import FusionGate
from ..geometry.transform import RigidTransform
from ..inertial.attitude_aligner import AttitudeAligner, AttitudeDeltaQueue
from ..inertial.sample_buffer import InertialSample, InertialSampleBuffer
from ..registration.icp_registration import RegistrationAdapter, Open3DRegistration
from .motion_guard import MotionGuard
from .pose_integrator import PoseIntegrator

logger = logging.getLogger(__name__)


def _to_list(value: Optional[np.ndarray]) -> Optional[list]:
    return value.tolist() if value is not None else None


@dataclass(eq=False)
class OdometryResult:
    """
    스캔 단위 오도메트리 결과

    거부된 증분(accepted=False)도 진단용으로 incremental에 담깁니다.
    """
    # 메타데이터
    stamp: float
    scan_idx: int
    fixed_frame_id: str
    odometry_frame_id: str

    # 자세
    incremental: RigidTransform
    integrated: RigidTransform
    accepted: bool

    # 융합 진단
    fusion_active: bool
    time_gap: Optional[float]              # IMU - 스캔 (초)
    rpy_registration: np.ndarray           # ICP 회전 [roll, pitch, yaw]
    rpy_inertial: Optional[np.ndarray]     # IMU 상대 회전 [roll, pitch, yaw]

    # 정합 진단
    registration_fitness: float
    registration_rmse: float

    # 시각화용 스캔
    query_points: np.ndarray
    reference_points: np.ndarray

    processing_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환 (스캔 점군 제외)"""
        return {
            'meta': {
                'stamp': self.stamp,
                'scan_idx': self.scan_idx,
                'fixed_frame_id': self.fixed_frame_id,
                'odometry_frame_id': self.odometry_frame_id,
                'processing_time_ms': self.processing_time_ms
            },
            'incremental': self.incremental.to_dict(),
            'integrated': self.integrated.to_dict(),
            'accepted': self.accepted,
            'fusion': {
                'active': self.fusion_active,
                'time_gap': self.time_gap,
                'rpy_registration': _to_list(self.rpy_registration),
                'rpy_inertial': _to_list(self.rpy_inertial)
            },
            'registration': {
                'fitness': self.registration_fitness,
                'rmse': self.registration_rmse
            }
        }


class PointCloudOdometry:
    """
    Point Cloud 오도메트리

    IMU 콜백(생산자)은 set_inertial_data()를,
    스캔 처리(소비자)는 update_estimate()를 호출합니다.
    공유 자원은 InertialSampleBuffer 하나뿐이며, 소비자는 항상
    스냅샷만 읽습니다.

    Example:
        >>> config = load_config("config/odometry.yaml")
        >>> odometry = PointCloudOdometry.from_config(config)
        >>> odometry.set_inertial_data(sample)
        >>> result = odometry.update_estimate(scan)
        >>> if result is not None:
        ...     print(result.integrated)
    """

    def __init__(
        self,
        registration: RegistrationAdapter,
        fixed_frame_id: str = "world",
        odometry_frame_id: str = "odometry",
        initial_pose: Optional[RigidTransform] = None,
        use_inertial: bool = False,
        check_inertial: bool = False,
        max_timestamp_gap: float = 0.05,
        buffer_capacity: int = 100,
        transform_thresholding: bool = False,
        max_translation: float = float('inf'),
        max_rotation: float = float('inf')
    ):
        """
        Args:
            registration: 정합 엔진
            fixed_frame_id: 고정 좌표계 ID
            odometry_frame_id: 오도메트리 좌표계 ID
            initial_pose: 초기 자세 (None이면 원점)
            use_inertial: IMU 자세 융합 활성화
            check_inertial: IMU 타임스탬프 품질 검사 활성화
            max_timestamp_gap: 품질 검사 최대 시간 차 (초)
            buffer_capacity: IMU 버퍼 크기
            transform_thresholding: 증분 변환 크기 검사 활성화
            max_translation: 최대 이동량 (미터)
            max_rotation: 최대 회전량 (radians)
        """
        self.registration = registration
        self.fixed_frame_id = fixed_frame_id
        self.odometry_frame_id = odometry_frame_id
        self.use_inertial = use_inertial

        # IMU 경로
        self.sample_buffer = InertialSampleBuffer(capacity=buffer_capacity)
        self._delta_queue = AttitudeDeltaQueue(capacity=buffer_capacity)
        self.aligner = AttitudeAligner(self._delta_queue)

        # 융합
        self.gate = FusionGate(
            use_inertial=use_inertial,
            check_quality=check_inertial,
            max_timestamp_gap=max_timestamp_gap
        )
        self.combiner = FusionCombiner(self._delta_queue)

        # 검사 및 누적
        self.guard = MotionGuard(
            enabled=transform_thresholding,
            max_translation=max_translation,
            max_rotation=max_rotation
        )
        self.integrator = PoseIntegrator(initial_pose)

        self._initialized = False
        self._stamp: Optional[float] = None
        self._cycle_count = 0

        logger.info(
            f"PointCloudOdometry initialized: inertial={'on' if use_inertial else 'off'}, "
            f"check={'on' if check_inertial else 'off'}, "
            f"thresholding={'on' if transform_thresholding else 'off'}"
        )

    @classmethod
    def from_config(
        cls,
        config: OdometryConfig,
        registration: Optional[RegistrationAdapter] = None
    ) -> 'PointCloudOdometry':
        """
        설정에서 생성

        Args:
            config: OdometryConfig
            registration: 정합 엔진 (None이면 Open3DRegistration)
        """
        if registration is None:
            registration = Open3DRegistration.from_config(config.registration)

        initial_pose = RigidTransform.from_position_quaternion(
            np.array(config.initial_pose.position),
            config.initial_pose.orientation
        )

        return cls(
            registration=registration,
            fixed_frame_id=config.frame_id.fixed,
            odometry_frame_id=config.frame_id.odometry,
            initial_pose=initial_pose,
            use_inertial=config.inertial.use_imu_data,
            check_inertial=config.inertial.check_imu_data,
            max_timestamp_gap=config.inertial.max_timestamp_gap,
            buffer_capacity=config.inertial.buffer_capacity,
            transform_thresholding=config.thresholding.enabled,
            max_translation=config.thresholding.max_translation,
            max_rotation=config.thresholding.max_rotation
        )

    def set_inertial_data(self, sample: InertialSample):
        """IMU 자세 샘플 추가 (생산자 경로)"""
        self.sample_buffer.push(sample)

    def update_estimate(self, scan: Scan) -> Optional[OdometryResult]:
        """
        새 스캔으로 자세 추정 갱신 (소비자 경로)

        Args:
            scan: 입력 스캔

        Returns:
            OdometryResult (초기화 전이면 None)
        """
        start_time = time.time()

        # 생산자가 버퍼를 갱신하더라도 이번 사이클은 스냅샷만 사용
        snapshot = self.sample_buffer.snapshot() if self.use_inertial else ()
        self._stamp = scan.timestamp

        if not self._initialized:
            self._initialize(scan)
            return None

        # 1. IMU 자세 정렬
        alignment = None
        if self.use_inertial:
            alignment = self.aligner.align(snapshot, scan.timestamp)

        # 2. 이번 사이클 융합 여부
        decision = self.gate.evaluate(alignment.time_gap if alignment is not None else None)

        # 3. 스캔 버퍼 회전
        self.integrator.rotate_scans(scan.points)
        scans = self.integrator.scans

        # 4. ICP 정합
        registration = self.registration.register(scans.query, scans.reference)
        raw_increment = RigidTransform.from_matrix(registration.transformation)

        # 5. 회전 융합
        fusion = self.combiner.combine(raw_increment, active=decision.use_inertial)
        logger.debug(f"Scan t={scan.timestamp:.6f}: inertial fusion {'ON' if fusion.fused else 'OFF'}")

        # 6. 증분 크기 검사 및 누적
        guard = self.guard.check(fusion.transform)
        integrated = self.integrator.integrate(fusion.transform, accepted=guard.accepted)

        self._cycle_count += 1
        processing_time = (time.time() - start_time) * 1000

        return OdometryResult(
            stamp=scan.timestamp,
            scan_idx=scan.scan_idx,
            fixed_frame_id=self.fixed_frame_id,
            odometry_frame_id=self.odometry_frame_id,
            incremental=fusion.transform,
            integrated=integrated,
            accepted=guard.accepted,
            fusion_active=fusion.fused,
            time_gap=alignment.time_gap if alignment is not None else None,
            rpy_registration=fusion.rpy_registration,
            rpy_inertial=fusion.rpy_inertial,
            registration_fitness=registration.fitness,
            registration_rmse=registration.inlier_rmse,
            query_points=scans.query.copy(),
            reference_points=scans.reference.copy(),
            processing_time_ms=processing_time
        )

    def _initialize(self, scan: Scan):
        """
        초기화 단계

        첫 스캔을 query로 저장합니다. IMU 융합을 사용하면
        IMU 샘플을 한 번이라도 받은 뒤에야 초기화가 완료되며,
        그 전까지는 들어오는 스캔이 query를 덮어씁니다.
        """
        self.integrator.set_query(scan.points)

        if self.use_inertial:
            first_sample = self.sample_buffer.first_sample
            if first_sample is None:
                logger.debug("Waiting for first inertial sample before initializing")
                return
            self.aligner.initialize(first_sample.attitude)

        self._initialized = True
        logger.info(f"PointCloudOdometry initialized with scan t={scan.timestamp:.6f}")

    def get_incremental_estimate(self) -> RigidTransform:
        return self.integrator.incremental

    def get_integrated_estimate(self) -> RigidTransform:
        return self.integrator.integrated

    def get_last_point_cloud(self) -> Optional[np.ndarray]:
        """마지막 query 스캔 (초기화 전이면 None)"""
        if not self._initialized or self.integrator.scans.query is None:
            logger.warning("PointCloudOdometry: Not initialized.")
            return None
        return self.integrator.scans.query.copy()

    def reset(self):
        """오도메트리 리셋 (IMU 버퍼 포함)"""
        self.sample_buffer.clear()
        self.aligner.reset()
        self.integrator.reset()
        self._initialized = False
        self._stamp = None
        self._cycle_count = 0
        logger.info("PointCloudOdometry reset")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def stamp(self) -> Optional[float]:
        """마지막으로 처리한 스캔의 타임스탬프"""
        return self._stamp

    @property
    def cycle_count(self) -> int:
        return self._cycle_count
