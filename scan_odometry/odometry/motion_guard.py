"""
증분 변환 크기 검사 모듈
비정상적으로 큰 이동/회전을 누적 자세에서 제외
"""

from dataclasses import dataclass
import logging

from ..config.odometry_config import ThresholdingConfig
from ..geometry.transform import RigidTransform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardDecision:
    """검사 결과"""
    accepted: bool
    translation_norm: float
    rotation_norm: float


class MotionGuard:
    """
    증분 변환 임계값 검사기

    |translation| <= max_translation 이고
    |(roll, pitch, yaw)| <= max_rotation 일 때만 허용합니다.
    """

    def __init__(
        self,
        enabled: bool,
        max_translation: float,
        max_rotation: float
    ):
        """
        Args:
            enabled: 임계값 검사 활성화
            max_translation: 최대 이동량 (미터)
            max_rotation: 최대 회전량 (radians)
        """
        self.enabled = enabled
        self.max_translation = max_translation
        self.max_rotation = max_rotation

    @classmethod
    def from_config(cls, config: ThresholdingConfig) -> 'MotionGuard':
        return cls(
            enabled=config.enabled,
            max_translation=config.max_translation,
            max_rotation=config.max_rotation
        )

    def check(self, increment: RigidTransform) -> GuardDecision:
        translation_norm = increment.translation_norm
        rotation_norm = increment.rotation_norm

        accepted = (
            not self.enabled or
            (translation_norm <= self.max_translation and rotation_norm <= self.max_rotation)
        )

        if not accepted:
            logger.warning(
                f"Discarding incremental transformation with norm "
                f"(t: {translation_norm:.4f}, r: {rotation_norm:.4f})"
            )

        return GuardDecision(
            accepted=accepted,
            translation_norm=translation_norm,
            rotation_norm=rotation_norm
        )
