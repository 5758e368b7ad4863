"""
fusion_gate.py - IMU 데이터 신뢰도 판정

매 사이클마다 IMU 샘플을 융합에 사용할지 결정합니다.
판정 결과는 해당 사이클에서만 유효하며 다음 사이클에 다시 계산됩니다.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from ..config.odometry_config import InertialConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateDecision:
    """융합 여부 판정"""
    use_inertial: bool
    reason: str
    time_gap: Optional[float] = None


class FusionGate:
    """
    IMU 융합 게이트

    - 융합 비활성화: 항상 사용 안 함
    - 품질 검사 비활성화: 항상 사용
    - 품질 검사 활성화: |time_gap| < max_timestamp_gap 일 때만 사용
    """

    def __init__(
        self,
        use_inertial: bool,
        check_quality: bool,
        max_timestamp_gap: float = 0.05
    ):
        self.use_inertial = use_inertial
        self.check_quality = check_quality
        self.max_timestamp_gap = max_timestamp_gap

    @classmethod
    def from_config(cls, config: InertialConfig) -> 'FusionGate':
        return cls(
            use_inertial=config.use_imu_data,
            check_quality=config.check_imu_data,
            max_timestamp_gap=config.max_timestamp_gap
        )

    def evaluate(self, time_gap: Optional[float]) -> GateDecision:
        """
        이번 사이클의 융합 여부 판정

        Args:
            time_gap: IMU - 스캔 타임스탬프 차이 (초), 정렬을 하지 않았으면 None
        """
        if not self.use_inertial:
            return GateDecision(False, "disabled", time_gap)

        if time_gap is None:
            return GateDecision(False, "no_alignment", None)

        if not self.check_quality:
            return GateDecision(True, "unchecked", time_gap)

        if abs(time_gap) < abs(self.max_timestamp_gap):
            return GateDecision(True, "accepted", time_gap)

        logger.warning(
            f"Inertial sample rejected for this cycle: "
            f"time gap {time_gap:+.4f}s exceeds {self.max_timestamp_gap:.4f}s"
        )
        return GateDecision(False, "stale", time_gap)
