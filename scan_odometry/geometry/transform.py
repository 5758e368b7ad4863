"""
transform.py - 강체 변환 (Rigid Transform)

스캔 간 증분 변환과 누적 자세를 표현하는 4x4 동차 변환 모듈입니다.

회전 표현:
- 내부 저장: 3x3 회전 행렬 (정규직교)
- Roll/Pitch/Yaw: 고정축 X-Y-Z 순서 (R = Rz(yaw) @ Ry(pitch) @ Rx(roll))
- 쿼터니언: (x, y, z, w) - scipy 표준

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
from scipy.spatial.transform import Rotation
from typing import Tuple, Dict, Any, Optional
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)

# Roll/Pitch/Yaw 분해/합성에 공통으로 사용하는 회전 순서
RPY_ORDER = 'xyz'


def orthonormalize(R: np.ndarray) -> np.ndarray:
    """
    3x3 행렬을 가장 가까운 회전 행렬로 투영 (SVD)

    오일러 각도로 재구성하거나 float 연산이 누적된 회전 행렬의
    정규직교성을 복원합니다. det(R) = +1 을 보장합니다.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got {R.shape}")

    U, _, Vt = np.linalg.svd(R)
    R_ortho = U @ Vt

    if np.linalg.det(R_ortho) < 0:
        U[:, -1] *= -1
        R_ortho = U @ Vt

    return R_ortho


def rotation_to_rpy(R: np.ndarray) -> np.ndarray:
    """회전 행렬 → [roll, pitch, yaw] (radians)"""
    return Rotation.from_matrix(R).as_euler(RPY_ORDER)


def rpy_to_rotation(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """[roll, pitch, yaw] (radians) → 정규직교 회전 행렬"""
    R = Rotation.from_euler(RPY_ORDER, [roll, pitch, yaw]).as_matrix()
    return orthonormalize(R)


def quaternion_to_rotation(x: float, y: float, z: float, w: float) -> np.ndarray:
    """
    쿼터니언 (x, y, z, w) → 회전 행렬

    정규화되지 않은 쿼터니언도 허용합니다 (scipy가 정규화).
    """
    quat = np.array([x, y, z, w], dtype=np.float64)
    if np.linalg.norm(quat) < 1e-10:
        raise ValueError("Zero-norm quaternion")
    return Rotation.from_quat(quat).as_matrix()


def as_rotation_matrix(attitude: np.ndarray) -> np.ndarray:
    """3x3 회전 또는 4x4 동차 행렬에서 3x3 회전 블록 추출"""
    attitude = np.asarray(attitude, dtype=np.float64)
    if attitude.shape == (4, 4):
        return attitude[:3, :3].copy()
    if attitude.shape == (3, 3):
        return attitude.copy()
    raise ValueError(f"Expected 3x3 or 4x4 attitude, got {attitude.shape}")


@dataclass(frozen=True, eq=False)
class RigidTransform:
    """
    강체 변환 (SE(3))

    Attributes:
        translation: [x, y, z] 미터
        rotation: 3x3 회전 행렬
    """
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))

    def __post_init__(self):
        translation = np.asarray(self.translation, dtype=np.float64).reshape(3)
        rotation = np.asarray(self.rotation, dtype=np.float64)
        if rotation.shape != (3, 3):
            raise ValueError(f"Expected 3x3 rotation, got {rotation.shape}")

        # frozen dataclass: 내부 배열을 복사본으로 고정
        object.__setattr__(self, 'translation', translation.copy())
        object.__setattr__(self, 'rotation', rotation.copy())

    @classmethod
    def identity(cls) -> 'RigidTransform':
        """항등 변환"""
        return cls()

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> 'RigidTransform':
        """4x4 동차 행렬에서 생성"""
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"Expected 4x4 matrix, got {matrix.shape}")
        return cls(translation=matrix[:3, 3], rotation=matrix[:3, :3])

    @classmethod
    def from_position_quaternion(
        cls,
        position: np.ndarray,
        quaternion: Tuple[float, float, float, float]
    ) -> 'RigidTransform':
        """위치 + 쿼터니언 (x, y, z, w) 에서 생성"""
        return cls(
            translation=position,
            rotation=quaternion_to_rotation(*quaternion)
        )

    def to_matrix(self) -> np.ndarray:
        """4x4 동차 행렬 [R|t; 0 1]"""
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def compose(self, other: 'RigidTransform') -> 'RigidTransform':
        """
        자세 갱신: self ∘ other

        other를 self의 좌표계에서 적용합니다.
            t' = t + R @ Δt
            R' = R @ ΔR
        """
        return RigidTransform(
            translation=self.translation + self.rotation @ other.translation,
            rotation=self.rotation @ other.rotation
        )

    def inverse(self) -> 'RigidTransform':
        """역변환"""
        R_inv = self.rotation.T
        return RigidTransform(
            translation=-R_inv @ self.translation,
            rotation=R_inv
        )

    def with_rotation(self, rotation: np.ndarray) -> 'RigidTransform':
        """이동은 유지하고 회전만 교체"""
        return RigidTransform(translation=self.translation, rotation=rotation)

    def rpy(self) -> np.ndarray:
        """[roll, pitch, yaw] (radians)"""
        return rotation_to_rpy(self.rotation)

    def quaternion(self) -> np.ndarray:
        """[x, y, z, w]"""
        return Rotation.from_matrix(self.rotation).as_quat()

    @property
    def translation_norm(self) -> float:
        return float(np.linalg.norm(self.translation))

    @property
    def rotation_norm(self) -> float:
        """Roll/Pitch/Yaw 벡터의 크기 (radians)"""
        return float(np.linalg.norm(self.rpy()))

    def is_orthonormal(self, atol: float = 1e-6) -> bool:
        """회전 블록의 정규직교성 확인"""
        R = self.rotation
        return (
            np.allclose(R @ R.T, np.eye(3), atol=atol) and
            abs(np.linalg.det(R) - 1.0) < atol
        )

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        quat = self.quaternion()
        roll, pitch, yaw = self.rpy()
        return {
            'translation': self.translation.tolist(),
            'quaternion': {
                'x': float(quat[0]),
                'y': float(quat[1]),
                'z': float(quat[2]),
                'w': float(quat[3])
            },
            'rpy': {
                'roll': float(roll),
                'pitch': float(pitch),
                'yaw': float(yaw)
            }
        }

    def __repr__(self) -> str:
        t = self.translation
        roll, pitch, yaw = np.degrees(self.rpy())
        return (
            f"RigidTransform(t=[{t[0]:.3f}, {t[1]:.3f}, {t[2]:.3f}], "
            f"R={roll:.2f}, P={pitch:.2f}, Y={yaw:.2f})"
        )


def relative_rotation(
    current: np.ndarray,
    previous: np.ndarray
) -> np.ndarray:
    """
    이전 자세에서 현재 자세로의 상대 회전

        delta = current @ previous^(-1)

    순서가 바뀌면 역방향 회전이 되므로 주의.
    """
    current = as_rotation_matrix(current)
    previous = as_rotation_matrix(previous)
    return current @ previous.T


def angle_between(R1: np.ndarray, R2: Optional[np.ndarray] = None) -> float:
    """두 회전 사이의 각도 (radians). R2가 없으면 항등 회전 기준"""
    if R2 is None:
        R2 = np.eye(3)
    diff = Rotation.from_matrix(as_rotation_matrix(R1) @ as_rotation_matrix(R2).T)
    return float(np.linalg.norm(diff.as_rotvec()))
