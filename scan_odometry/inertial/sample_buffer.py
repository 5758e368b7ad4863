"""
관성 샘플 버퍼 모듈
비동기 IMU 자세 샘플을 FIFO로 보관
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple
import logging

import numpy as np

from ..geometry.transform import as_rotation_matrix, quaternion_to_rotation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class InertialSample:
    """IMU 자세 샘플"""
    attitude: np.ndarray  # 3x3 회전 행렬
    timestamp: float      # 초

    def __post_init__(self):
        attitude = as_rotation_matrix(self.attitude)
        attitude.setflags(write=False)
        object.__setattr__(self, 'attitude', attitude)
        object.__setattr__(self, 'timestamp', float(self.timestamp))

    @classmethod
    def from_quaternion(
        cls,
        x: float,
        y: float,
        z: float,
        w: float,
        timestamp: float
    ) -> 'InertialSample':
        """쿼터니언 (x, y, z, w) 에서 생성"""
        return cls(attitude=quaternion_to_rotation(x, y, z, w), timestamp=timestamp)


class InertialSampleBuffer:
    """
    관성 샘플 FIFO 버퍼 (스레드 안전)

    생산자(IMU 콜백)는 push()로 샘플을 추가하고,
    소비자(스캔 처리)는 snapshot()으로 복사본을 받아 사용합니다.
    가득 차면 가장 오래된 샘플이 제거됩니다.
    """

    def __init__(self, capacity: int = 100):
        """
        Args:
            capacity: 최대 샘플 수
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.capacity = capacity
        self._lock = threading.Lock()
        self._samples: Deque[InertialSample] = deque(maxlen=capacity)
        self._first_sample: Optional[InertialSample] = None

    def push(self, sample: InertialSample) -> None:
        """샘플 추가 (가득 차면 가장 오래된 샘플 제거)"""
        with self._lock:
            self._samples.append(sample)
            first = self._first_sample is None
            if first:
                self._first_sample = sample

        if first:
            logger.info(f"First inertial sample received at t={sample.timestamp:.6f}")

    def snapshot(self) -> Tuple[InertialSample, ...]:
        """현재 버퍼 내용의 불변 복사본"""
        with self._lock:
            return tuple(self._samples)

    @property
    def has_received(self) -> bool:
        """샘플을 한 번이라도 받았는지 여부"""
        with self._lock:
            return self._first_sample is not None

    @property
    def first_sample(self) -> Optional[InertialSample]:
        """최초 수신 샘플 (버퍼에서 제거된 후에도 유지)"""
        with self._lock:
            return self._first_sample

    def clear(self):
        """버퍼 초기화"""
        with self._lock:
            self._samples.clear()
            self._first_sample = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
