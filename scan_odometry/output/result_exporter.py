"""
result_exporter.py - 오도메트리 결과 내보내기

스캔별 OdometryResult를 모아 CSV / JSON / TUM 궤적 파일로 저장합니다.

TUM 형식 (한 줄에 한 자세):
    timestamp tx ty tz qx qy qz qw

Version: 1.0
Author: FurSys AI Team
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Any, Optional

import numpy as np
import pandas as pd

from ..odometry.point_cloud_odometry import OdometryResult

logger = logging.getLogger(__name__)


class ResultExporter:
    """
    결과 내보내기

    Example:
        >>> exporter = ResultExporter("output")
        >>> exporter.add_result(result)
        >>> exporter.save()
        >>> print(exporter.get_summary())
    """

    def __init__(self, output_dir: str = "output", prefix: str = "odometry"):
        """
        Args:
            output_dir: 출력 디렉토리 (없으면 생성)
            prefix: 출력 파일 이름 접두사
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix

        self.results: List[OdometryResult] = []
        self._start_time = datetime.now()

    def add_result(self, result: OdometryResult):
        self.results.append(result)

    def _rows(self) -> List[Dict[str, Any]]:
        """결과를 평탄화된 행 목록으로 변환"""
        rows = []
        for r in self.results:
            inc = r.incremental
            pose = r.integrated
            inc_rpy = inc.rpy()
            pose_rpy = pose.rpy()
            quat = pose.quaternion()

            row = {
                'stamp': r.stamp,
                'scan_idx': r.scan_idx,
                'accepted': r.accepted,
                'fusion_active': r.fusion_active,
                'time_gap': r.time_gap if r.time_gap is not None else np.nan,
                # 증분 변환
                'inc_x': inc.translation[0],
                'inc_y': inc.translation[1],
                'inc_z': inc.translation[2],
                'inc_roll': inc_rpy[0],
                'inc_pitch': inc_rpy[1],
                'inc_yaw': inc_rpy[2],
                # 누적 자세
                'x': pose.translation[0],
                'y': pose.translation[1],
                'z': pose.translation[2],
                'qx': quat[0],
                'qy': quat[1],
                'qz': quat[2],
                'qw': quat[3],
                'roll': pose_rpy[0],
                'pitch': pose_rpy[1],
                'yaw': pose_rpy[2],
                # 정합 진단
                'fitness': r.registration_fitness,
                'rmse': r.registration_rmse,
                'processing_time_ms': r.processing_time_ms
            }
            rows.append(row)
        return rows

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows())

    def save(self, filename: Optional[str] = None) -> Path:
        """
        CSV로 저장

        Returns:
            저장된 파일 경로
        """
        if filename is None:
            filename = f"{self.prefix}_results.csv"

        filepath = self.output_dir / filename
        df = self.to_dataframe()
        df.to_csv(filepath, index=False)

        logger.info(f"Saved {len(df)} results to {filepath}")
        return filepath

    def export_json(self, filename: Optional[str] = None) -> Path:
        """전체 결과와 요약을 JSON으로 저장"""
        if filename is None:
            filename = f"{self.prefix}_results.json"

        filepath = self.output_dir / filename
        payload = {
            'run_info': {
                'start_time': self._start_time.isoformat(),
                'end_time': datetime.now().isoformat()
            },
            'summary': self.get_summary(),
            'results': [r.to_dict() for r in self.results]
        }

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

        logger.info(f"Saved JSON results to {filepath}")
        return filepath

    def export_tum(self, filename: Optional[str] = None) -> Path:
        """누적 궤적을 TUM 형식으로 저장"""
        if filename is None:
            filename = f"{self.prefix}_trajectory.tum"

        filepath = self.output_dir / filename
        with open(filepath, 'w') as f:
            for r in self.results:
                t = r.integrated.translation
                q = r.integrated.quaternion()
                f.write(
                    f"{r.stamp:.6f} {t[0]:.6f} {t[1]:.6f} {t[2]:.6f} "
                    f"{q[0]:.6f} {q[1]:.6f} {q[2]:.6f} {q[3]:.6f}\n"
                )

        logger.info(f"Saved TUM trajectory ({len(self.results)} poses) to {filepath}")
        return filepath

    def get_summary(self) -> Dict[str, Any]:
        """
        처리 요약

        path_length는 누적 자세에 반영된(accepted) 증분 이동량의 합입니다.
        """
        if not self.results:
            return {
                'cycles': 0,
                'accepted': 0,
                'rejected': 0,
                'fused': 0,
                'path_length': 0.0
            }

        accepted = [r for r in self.results if r.accepted]
        path_length = sum(r.incremental.translation_norm for r in accepted)
        final = self.results[-1].integrated

        return {
            'cycles': len(self.results),
            'accepted': len(accepted),
            'rejected': len(self.results) - len(accepted),
            'fused': sum(1 for r in self.results if r.fusion_active),
            'path_length': float(path_length),
            'final_position': final.translation.tolist(),
            'avg_processing_time_ms': float(np.mean([r.processing_time_ms for r in self.results]))
        }

    def clear(self):
        self.results.clear()
