"""
scan_loader.py - 오프라인 스캔/IMU 데이터 로더

녹화된 Point Cloud 스캔과 IMU 자세 스트림을 로드하고,
두 스트림을 시간 순서대로 병합하여 재생합니다.

폴더 구조:
    data_dir/
    ├── scans/
    │   ├── 000000.pcd (또는 .ply)
    │   ├── ...
    │   └── timestamps.csv   (선택: file,timestamp)
    └── imu_data.csv         (선택: timestamp,qx,qy,qz,qw)

timestamps.csv가 없으면 파일 이름(숫자)을 초 단위 타임스탬프로 사용합니다.

Version: 1.0
Author: FurSys AI Team
"""

import numpy as np
import pandas as pd
import open3d as o3d
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Iterator, Tuple, Union
import logging

from ..inertial.sample_buffer import InertialSample

logger = logging.getLogger(__name__)

SCAN_SUFFIXES = ('.pcd', '.ply')
IMU_COLUMNS = ['timestamp', 'qx', 'qy', 'qz', 'qw']


@dataclass(eq=False)
class Scan:
    """단일 Point Cloud 스캔"""
    points: np.ndarray  # (N, 3)
    timestamp: float    # 초
    scan_idx: int = 0
    path: Optional[str] = None

    def __post_init__(self):
        points = np.asarray(self.points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Expected (N, 3) points, got {points.shape}")
        self.points = points

    @property
    def num_points(self) -> int:
        return len(self.points)


class ScanSequenceLoader:
    """
    스캔 + IMU 시퀀스 로더

    Example:
        >>> loader = ScanSequenceLoader("./run_01")
        >>> for kind, item in loader.iter_events():
        ...     if kind == 'imu':
        ...         odometry.set_inertial_data(item)
        ...     else:
        ...         odometry.update_estimate(item)
    """

    def __init__(self, data_dir: str, max_scans: Optional[int] = None):
        """
        Args:
            data_dir: 데이터 디렉토리 경로
            max_scans: 최대 로드 스캔 수 (None이면 전체)
        """
        self.data_dir = Path(data_dir)

        if not self.data_dir.exists():
            raise FileNotFoundError(f"Data directory not found: {data_dir}")

        self._scan_dir = self.data_dir / 'scans'
        if not self._scan_dir.exists():
            raise FileNotFoundError(f"Scan directory not found: {self._scan_dir}")

        self._load_scan_list(max_scans)
        self._load_imu_data()

        logger.info(
            f"ScanSequenceLoader: {self.num_scans} scans, "
            f"{len(self.imu_df) if self.has_imu else 0} inertial samples"
        )

    def _load_scan_list(self, max_scans: Optional[int]):
        """스캔 파일 목록과 타임스탬프 로드"""
        scan_files = sorted(
            f.name for f in self._scan_dir.iterdir()
            if f.suffix.lower() in SCAN_SUFFIXES
        )

        if len(scan_files) == 0:
            raise ValueError(f"No scans found in {self._scan_dir}")

        timestamps_path = self._scan_dir / 'timestamps.csv'
        if timestamps_path.exists():
            ts_df = pd.read_csv(timestamps_path)
            stamp_by_file = dict(zip(ts_df['file'].astype(str), ts_df['timestamp'].astype(float)))
            missing = [f for f in scan_files if f not in stamp_by_file]
            if missing:
                raise ValueError(f"Missing timestamps for scans: {missing[:5]}")
            timestamps = [stamp_by_file[f] for f in scan_files]
        else:
            try:
                timestamps = [float(Path(f).stem) for f in scan_files]
            except ValueError as e:
                raise ValueError(
                    f"Scan file names must be numeric timestamps when "
                    f"timestamps.csv is absent: {e}"
                ) from e

        # 시간 순 정렬
        order = np.argsort(timestamps, kind='stable')
        self.scan_files: List[str] = [scan_files[i] for i in order]
        self.scan_timestamps: List[float] = [float(timestamps[i]) for i in order]

        if max_scans is not None:
            self.scan_files = self.scan_files[:max_scans]
            self.scan_timestamps = self.scan_timestamps[:max_scans]

        self.num_scans = len(self.scan_files)

    def _load_imu_data(self):
        """IMU 자세 데이터 로드"""
        imu_path = self.data_dir / 'imu_data.csv'

        if not imu_path.exists():
            self.imu_df = None
            self.has_imu = False
            return

        imu_df = pd.read_csv(imu_path)
        missing = [c for c in IMU_COLUMNS if c not in imu_df.columns]
        if missing:
            raise ValueError(f"imu_data.csv is missing columns: {missing}")

        self.imu_df = imu_df[IMU_COLUMNS].sort_values('timestamp', kind='stable').reset_index(drop=True)
        self.has_imu = True

    def __len__(self) -> int:
        return self.num_scans

    def __getitem__(self, idx: int) -> Scan:
        return self.load_scan(idx)

    def __iter__(self) -> Iterator[Scan]:
        for idx in range(self.num_scans):
            yield self.load_scan(idx)

    def load_scan(self, idx: int) -> Scan:
        """스캔 로드"""
        if idx < 0 or idx >= self.num_scans:
            raise IndexError(f"Scan index {idx} out of range")

        scan_path = self._scan_dir / self.scan_files[idx]
        pcd = o3d.io.read_point_cloud(str(scan_path))
        points = np.asarray(pcd.points)

        if len(points) == 0:
            raise IOError(f"Failed to load scan (no points): {scan_path}")

        return Scan(
            points=points,
            timestamp=self.scan_timestamps[idx],
            scan_idx=idx,
            path=str(scan_path)
        )

    def inertial_samples(self) -> List[InertialSample]:
        """전체 IMU 샘플 리스트"""
        if not self.has_imu:
            return []

        return [
            InertialSample.from_quaternion(row.qx, row.qy, row.qz, row.qw, row.timestamp)
            for row in self.imu_df.itertuples(index=False)
        ]

    def iter_events(self) -> Iterator[Tuple[str, Union[InertialSample, Scan]]]:
        """
        IMU 샘플과 스캔을 시간 순서대로 병합하여 재생

        같은 시각이면 IMU 샘플이 먼저 나옵니다.

        Yields:
            ('imu', InertialSample) 또는 ('scan', Scan)
        """
        samples = self.inertial_samples()
        sample_idx = 0

        for scan_idx in range(self.num_scans):
            scan_time = self.scan_timestamps[scan_idx]

            while sample_idx < len(samples) and samples[sample_idx].timestamp <= scan_time:
                yield 'imu', samples[sample_idx]
                sample_idx += 1

            yield 'scan', self.load_scan(scan_idx)

        while sample_idx < len(samples):
            yield 'imu', samples[sample_idx]
            sample_idx += 1

    def get_metadata(self) -> dict:
        """데이터셋 메타데이터"""
        duration = 0.0
        if self.num_scans > 1:
            duration = self.scan_timestamps[-1] - self.scan_timestamps[0]

        return {
            'data_dir': str(self.data_dir),
            'num_scans': self.num_scans,
            'num_inertial_samples': len(self.imu_df) if self.has_imu else 0,
            'duration': duration
        }
