"""
자세 정렬 모듈
스캔 타임스탬프에 가장 가까운 IMU 샘플 선택 및 상대 회전 계산
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Sequence
import logging

import numpy as np

from .sample_buffer import InertialSample
from ..geometry.transform import as_rotation_matrix, relative_rotation

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class AlignmentResult:
    """정렬 결과"""
    sample: InertialSample      # 선택된 IMU 샘플
    time_gap: float             # sample.timestamp - scan_time (초, 음수 = 과거 샘플)
    delta: np.ndarray           # 이전 정렬 자세 → 현재 자세 상대 회전 (3x3)
    from_past: bool             # 과거(또는 동시각) 샘플에서 선택되었는지 여부

    @property
    def attitude(self) -> np.ndarray:
        return self.sample.attitude


class AttitudeDeltaQueue:
    """
    상대 회전(AttitudeDelta) FIFO 채널

    정렬 단계가 이번 사이클에 push한 delta를 융합 단계가 pop합니다.
    융합이 비활성화된 사이클의 delta는 큐에 남아
    다음 융합 사이클에서 순서대로 소비됩니다.

    따라서 품질 검사로 융합이 한 번 거부되면, 이후 모든 융합 사이클은
    자기 ICP 결과보다 한 사이클 이전의 delta를 적용합니다
    (거부된 사이클 수만큼 지연이 누적되며, 큐가 비워져야 해소됨).
    """

    def __init__(self, capacity: int = 100):
        self.capacity = capacity
        self._queue: Deque[np.ndarray] = deque(maxlen=capacity)

    def push(self, delta: np.ndarray) -> None:
        if len(self._queue) == self.capacity:
            logger.debug("Attitude delta queue full, dropping oldest delta")
        self._queue.append(np.array(delta, dtype=np.float64))

    def pop(self) -> Optional[np.ndarray]:
        """가장 오래된 delta 반환 (비어 있으면 None)"""
        if not self._queue:
            return None
        return self._queue.popleft()

    def clear(self):
        self._queue.clear()

    def __len__(self) -> int:
        return len(self._queue)


def find_nearest_sample(
    snapshot: Sequence[InertialSample],
    scan_time: float
) -> InertialSample:
    """
    스캔 시각에 가장 가까운 IMU 샘플 탐색

    과거(또는 동시각) 샘플(gap <= 0)을 우선하며, 그중 |gap|이 가장 작은
    샘플을 선택합니다. 과거 샘플이 하나도 없으면 가장 가까운 미래 샘플을
    선택합니다. 동률이면 버퍼 순서상 먼저 온 샘플이 선택됩니다.

    Args:
        snapshot: 버퍼 스냅샷
        scan_time: 스캔 타임스탬프 (초)

    Returns:
        선택된 InertialSample

    Raises:
        ValueError: 스냅샷이 비어 있는 경우
    """
    if len(snapshot) == 0:
        raise ValueError("Cannot align attitude: inertial snapshot is empty")

    best_past: Optional[InertialSample] = None
    best_future: Optional[InertialSample] = None

    for sample in snapshot:
        gap = sample.timestamp - scan_time
        if gap <= 0:
            if best_past is None or abs(gap) < abs(best_past.timestamp - scan_time):
                best_past = sample
        else:
            if best_future is None or gap < best_future.timestamp - scan_time:
                best_future = sample

    if best_past is not None:
        return best_past

    logger.debug(
        f"No past inertial sample for scan t={scan_time:.6f}, "
        f"using nearest future sample (gap={best_future.timestamp - scan_time:+.6f}s)"
    )
    return best_future


class AttitudeAligner:
    """
    스캔-IMU 자세 정렬기

    매 스캔마다 가장 가까운 IMU 샘플을 선택하고,
    이전에 정렬된 자세 대비 상대 회전을 계산하여 큐에 넣습니다.

        delta = current @ previous^(-1)
    """

    def __init__(self, delta_queue: Optional[AttitudeDeltaQueue] = None):
        """
        Args:
            delta_queue: 융합 단계와 공유하는 delta 큐
        """
        self.delta_queue = delta_queue if delta_queue is not None else AttitudeDeltaQueue()
        self._previous_attitude: Optional[np.ndarray] = None

    def initialize(self, attitude: np.ndarray):
        """기준(이전) 자세 설정"""
        self._previous_attitude = as_rotation_matrix(attitude)
        logger.debug("AttitudeAligner initialized with first inertial attitude")

    @property
    def is_initialized(self) -> bool:
        return self._previous_attitude is not None

    @property
    def previous_attitude(self) -> Optional[np.ndarray]:
        if self._previous_attitude is None:
            return None
        return self._previous_attitude.copy()

    def align(
        self,
        snapshot: Sequence[InertialSample],
        scan_time: float
    ) -> AlignmentResult:
        """
        스캔 시각에 자세 정렬

        1. 가장 가까운 샘플 선택
        2. delta = current @ previous^(-1) 계산 후 큐에 push
        3. previous ← current

        Args:
            snapshot: 버퍼 스냅샷
            scan_time: 스캔 타임스탬프 (초)

        Returns:
            AlignmentResult
        """
        if self._previous_attitude is None:
            raise RuntimeError("AttitudeAligner not initialized. Call initialize() first.")

        sample = find_nearest_sample(snapshot, scan_time)
        time_gap = sample.timestamp - scan_time

        current = as_rotation_matrix(sample.attitude)
        delta = relative_rotation(current, self._previous_attitude)

        self.delta_queue.push(delta)
        self._previous_attitude = current

        logger.debug(f"Aligned inertial sample t={sample.timestamp:.6f} (gap={time_gap:+.6f}s)")

        return AlignmentResult(
            sample=sample,
            time_gap=time_gap,
            delta=delta,
            from_past=time_gap <= 0
        )

    def reset(self):
        """정렬 상태 리셋"""
        self._previous_attitude = None
        self.delta_queue.clear()
