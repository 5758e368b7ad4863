#!/usr/bin/env python3
"""
test_result_exporter.py - 결과 내보내기 및 CLI 테스트

Author: FurSys AI Team
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parents[1]))

import json
import tempfile

import numpy as np
import open3d as o3d
import pandas as pd
import pytest
import yaml

from scan_odometry.data.scan_loader import Scan
from scan_odometry.geometry.transform import RigidTransform
from scan_odometry.registration.icp_registration import RegistrationAdapter, RegistrationResult
from scan_odometry.odometry.point_cloud_odometry import PointCloudOdometry
from scan_odometry.output.result_exporter import ResultExporter
from scan_odometry import main as cli


class UnitStepRegistration(RegistrationAdapter):
    """x 방향 1m 이동을 반환하는 정합 엔진"""

    def register(self, query_points, reference_points):
        T = np.eye(4)
        T[0, 3] = 1.0
        return RegistrationResult(transformation=T, fitness=1.0, inlier_rmse=0.0)


def collect_results(num_scans=4, **kwargs):
    odometry = PointCloudOdometry(UnitStepRegistration(), **kwargs)
    results = []
    for i in range(num_scans):
        scan = Scan(points=np.zeros((3, 3)), timestamp=0.1 * i, scan_idx=i)
        result = odometry.update_estimate(scan)
        if result is not None:
            results.append(result)
    return results


class TestResultExporter:
    """ResultExporter 테스트"""

    def test_empty_summary(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            summary = ResultExporter(tmpdir).get_summary()

        assert summary['cycles'] == 0
        assert summary['path_length'] == 0.0

    def test_summary(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            exporter = ResultExporter(tmpdir)
            for r in collect_results(4):
                exporter.add_result(r)
            summary = exporter.get_summary()

        assert summary['cycles'] == 3
        assert summary['accepted'] == 3
        assert summary['rejected'] == 0
        assert summary['fused'] == 0
        assert summary['path_length'] == pytest.approx(3.0)
        assert summary['final_position'] == pytest.approx([3.0, 0.0, 0.0])

    def test_rejected_not_counted_in_path(self):
        results = collect_results(
            3, transform_thresholding=True, max_translation=0.5, max_rotation=1.0
        )
        with tempfile.TemporaryDirectory() as tmpdir:
            exporter = ResultExporter(tmpdir)
            for r in results:
                exporter.add_result(r)
            summary = exporter.get_summary()

        assert summary['rejected'] == 2
        assert summary['path_length'] == 0.0

    def test_save_csv(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            exporter = ResultExporter(tmpdir)
            for r in collect_results(3):
                exporter.add_result(r)

            path = exporter.save()
            df = pd.read_csv(path)

        assert len(df) == 2
        assert list(df['x']) == pytest.approx([1.0, 2.0])
        assert 'qw' in df.columns
        assert df['time_gap'].isna().all()

    def test_export_tum(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            exporter = ResultExporter(tmpdir)
            for r in collect_results(3):
                exporter.add_result(r)

            path = exporter.export_tum()
            lines = path.read_text().strip().splitlines()

        assert len(lines) == 2
        values = [float(v) for v in lines[-1].split()]
        assert len(values) == 8
        assert values[0] == pytest.approx(0.2)
        assert values[1:4] == pytest.approx([2.0, 0.0, 0.0])
        assert values[7] == pytest.approx(1.0)

    def test_export_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            exporter = ResultExporter(tmpdir)
            for r in collect_results(3):
                exporter.add_result(r)

            path = exporter.export_json()
            with open(path, 'r', encoding='utf-8') as f:
                payload = json.load(f)

        assert payload['summary']['cycles'] == 2
        assert len(payload['results']) == 2
        assert payload['results'][0]['integrated']['translation'] == [1.0, 0.0, 0.0]


class TestMain:
    """CLI 종단 테스트"""

    def _write_dataset(self, root: Path):
        scan_dir = root / 'scans'
        scan_dir.mkdir()
        rng = np.random.default_rng(1)
        base = rng.uniform(-0.5, 0.5, size=(400, 3))

        for i in range(3):
            pcd = o3d.geometry.PointCloud()
            pcd.points = o3d.utility.Vector3dVector(base - [0.005 * i, 0.0, 0.0])
            o3d.io.write_point_cloud(str(scan_dir / f'{i:06d}.pcd'), pcd)

        pd.DataFrame({
            'file': [f'{i:06d}.pcd' for i in range(3)],
            'timestamp': [0.0, 0.1, 0.2]
        }).to_csv(scan_dir / 'timestamps.csv', index=False)

        pd.DataFrame({
            'timestamp': [0.0, 0.1, 0.2],
            'qx': [0.0] * 3,
            'qy': [0.0] * 3,
            'qz': [0.0] * 3,
            'qw': [1.0] * 3
        }).to_csv(root / 'imu_data.csv', index=False)

    def _write_config(self, path: Path, output_dir: Path):
        config = {
            'frame_id': {'fixed': 'world', 'odometry': 'odometry'},
            'icp': {
                'tf_epsilon': 1e-10,
                'corr_dist': 0.2,
                'iterations': 30,
                'method': 'point_to_point',
                'transform_thresholding': True,
                'max_translation': 1.0,
                'max_rotation': 1.0
            },
            'imu': {'use_imu_data': True, 'check_imu_data': True},
            'output': {'output_dir': str(output_dir)}
        }
        with open(path, 'w') as f:
            yaml.dump(config, f)

    def test_run(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            data_dir = root / 'run'
            data_dir.mkdir()
            output_dir = root / 'output'
            config_path = root / 'odometry.yaml'

            self._write_dataset(data_dir)
            self._write_config(config_path, output_dir)

            code = cli.main(['--data-dir', str(data_dir), '--config', str(config_path)])

            assert code == 0
            df = pd.read_csv(output_dir / 'odometry_results.csv')
            assert len(df) == 2
            assert df['fusion_active'].all()
            assert (output_dir / 'odometry_trajectory.tum').exists()

    def test_invalid_config(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / 'bad.yaml'
            config_path.write_text(yaml.dump({'frame_id': {'fixed': 'world'}}))

            code = cli.main(['--data-dir', tmpdir, '--config', str(config_path)])

        assert code == 1


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
