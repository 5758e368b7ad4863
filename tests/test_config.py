#!/usr/bin/env python3
"""
test_config.py - OdometryConfig 로드/검증 테스트

Author: FurSys AI Team
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parents[1]))

import copy
import logging
import tempfile

import pytest
import yaml

from scan_odometry.config.odometry_config import (
    OdometryConfig,
    ConfigurationError,
    load_config
)


BASE_CONFIG = {
    'frame_id': {'fixed': 'world', 'odometry': 'odometry'},
    'icp': {
        'tf_epsilon': 1e-10,
        'corr_dist': 1.0,
        'iterations': 10,
        'transform_thresholding': True,
        'max_translation': 2.0,
        'max_rotation': 1.0
    },
    'imu': {
        'use_imu_data': True,
        'check_imu_data': False
    },
    'fiducial_calibration': {
        'position': {'x': 1.0, 'y': 2.0, 'z': 3.0},
        'orientation': {'x': 0.0, 'y': 0.0, 'z': 0.0, 'w': 1.0}
    }
}


@pytest.fixture
def config_dict():
    return copy.deepcopy(BASE_CONFIG)


class TestOdometryConfig:
    """딕셔너리 파싱 테스트"""

    def test_from_dict(self, config_dict):
        config = OdometryConfig.from_dict(config_dict)

        assert config.frame_id.fixed == 'world'
        assert config.frame_id.odometry == 'odometry'
        assert config.registration.iterations == 10
        assert config.registration.method == 'gicp'
        assert config.thresholding.enabled is True
        assert config.thresholding.max_translation == 2.0
        assert config.inertial.use_imu_data is True
        assert config.inertial.check_imu_data is False
        assert config.inertial.max_timestamp_gap == pytest.approx(0.05)
        assert config.inertial.buffer_capacity == 100
        assert config.initial_pose.from_fiducial is True
        assert config.initial_pose.position == (1.0, 2.0, 3.0)

    @pytest.mark.parametrize('section,key', [
        ('frame_id', 'fixed'),
        ('icp', 'tf_epsilon'),
        ('icp', 'corr_dist'),
        ('icp', 'max_rotation'),
        ('imu', 'use_imu_data'),
        ('imu', 'check_imu_data'),
    ])
    def test_missing_required_parameter(self, config_dict, section, key):
        del config_dict[section][key]

        with pytest.raises(ConfigurationError, match=f"{section}/{key}"):
            OdometryConfig.from_dict(config_dict)

    def test_missing_section(self, config_dict):
        del config_dict['icp']
        with pytest.raises(ConfigurationError):
            OdometryConfig.from_dict(config_dict)

    def test_missing_fiducial_uses_origin(self, config_dict, caplog):
        del config_dict['fiducial_calibration']

        with caplog.at_level(logging.WARNING):
            config = OdometryConfig.from_dict(config_dict)

        assert config.initial_pose.from_fiducial is False
        assert config.initial_pose.position == (0.0, 0.0, 0.0)
        assert config.initial_pose.orientation == (0.0, 0.0, 0.0, 1.0)
        assert "Can't find fiducials, using origin" in caplog.text

    def test_partial_fiducial_uses_origin(self, config_dict):
        del config_dict['fiducial_calibration']['orientation']['w']

        config = OdometryConfig.from_dict(config_dict)

        assert config.initial_pose.from_fiducial is False

    def test_zero_fiducial_quaternion(self, config_dict):
        config_dict['fiducial_calibration']['orientation']['w'] = 0.0

        with pytest.raises(ConfigurationError, match="fiducial_calibration/orientation"):
            OdometryConfig.from_dict(config_dict)

    def test_non_numeric_fiducial(self, config_dict):
        config_dict['fiducial_calibration']['position']['x'] = 'left'

        with pytest.raises(ConfigurationError, match="fiducial_calibration/position"):
            OdometryConfig.from_dict(config_dict)

    def test_invalid_method(self, config_dict):
        config_dict['icp']['method'] = 'ndt'
        with pytest.raises(ConfigurationError):
            OdometryConfig.from_dict(config_dict)

    def test_invalid_output_section(self, config_dict):
        config_dict['output'] = {'unknown_key': 1}
        with pytest.raises(ConfigurationError):
            OdometryConfig.from_dict(config_dict)

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestLoadConfig:
    """YAML 파일 로드 테스트"""

    def test_load_and_save(self, config_dict):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / 'odometry.yaml'
            with open(path, 'w') as f:
                yaml.dump(config_dict, f)

            config = load_config(str(path))

            saved = Path(tmpdir) / 'saved.yaml'
            config.save(str(saved))
            reloaded = load_config(str(saved))

        assert reloaded.to_dict() == config.to_dict()
        assert reloaded.initial_pose.position == (1.0, 2.0, 3.0)

    def test_missing_file(self):
        with pytest.raises(ConfigurationError):
            load_config('/nonexistent/odometry.yaml')

    def test_empty_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / 'empty.yaml'
            path.write_text('')

            with pytest.raises(ConfigurationError):
                load_config(str(path))

    def test_bundled_config(self):
        """저장소에 포함된 예제 설정 로드"""
        path = Path(__file__).parents[1] / 'config' / 'odometry.yaml'
        config = load_config(str(path))

        assert config.inertial.use_imu_data is True
        assert config.registration.method == 'gicp'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
