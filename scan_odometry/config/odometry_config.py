"""
odometry_config.py - 오도메트리 설정 관리

scan_odometry 파이프라인의 모든 설정을 통합 관리합니다.
YAML 키 구조는 기존 파라미터 네임스페이스를 그대로 따릅니다:

    frame_id/{fixed, odometry}
    fiducial_calibration/{position, orientation}   (선택)
    icp/{tf_epsilon, corr_dist, iterations, ...}
    imu/{use_imu_data, check_imu_data, ...}
    output/{...}                                   (선택)

필수 파라미터가 없으면 ConfigurationError가 발생하며,
이 경우 파이프라인은 시작하지 않습니다.

Version: 1.0
Author: FurSys AI Team
"""

import yaml
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

_MISSING = object()


class ConfigurationError(ValueError):
    """필수 설정 누락 또는 잘못된 설정값"""


def _require(d: Dict[str, Any], section: str, key: str) -> Any:
    """필수 키 조회 (없으면 ConfigurationError)"""
    value = d.get(key, _MISSING) if isinstance(d, dict) else _MISSING
    if value is _MISSING or value is None:
        raise ConfigurationError(f"Missing required parameter: {section}/{key}")
    return value


def _section(d: Dict[str, Any], name: str, required: bool = True) -> Dict[str, Any]:
    """설정 섹션 조회"""
    value = d.get(name)
    if value is None:
        if required:
            raise ConfigurationError(f"Missing required section: {name}")
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping, got {type(value).__name__}")
    return value


@dataclass
class FrameConfig:
    """좌표계 ID"""
    fixed: str
    odometry: str


@dataclass
class InitialPoseConfig:
    """
    초기 자세 (fiducial calibration)

    없으면 원점/항등 회전에서 시작합니다.
    """
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)  # x, y, z, w
    from_fiducial: bool = False


@dataclass
class RegistrationConfig:
    """ICP 정합 설정"""
    tf_epsilon: float
    corr_dist: float
    iterations: int
    method: str = "gicp"  # "gicp" or "point_to_point"

    def __post_init__(self):
        if self.method not in ("gicp", "point_to_point"):
            raise ConfigurationError(f"Unknown registration method: {self.method}")
        if self.corr_dist <= 0:
            raise ConfigurationError(f"icp/corr_dist must be positive, got {self.corr_dist}")
        if self.iterations <= 0:
            raise ConfigurationError(f"icp/iterations must be positive, got {self.iterations}")


@dataclass
class ThresholdingConfig:
    """증분 변환 크기 제한 (MotionGuard)"""
    enabled: bool
    max_translation: float  # 미터
    max_rotation: float     # radians (roll/pitch/yaw 벡터 크기)


@dataclass
class InertialConfig:
    """관성(IMU) 자세 융합 설정"""
    use_imu_data: bool
    check_imu_data: bool
    max_timestamp_gap: float = 0.05  # 초
    buffer_capacity: int = 100

    def __post_init__(self):
        if self.buffer_capacity <= 0:
            raise ConfigurationError(
                f"imu/buffer_capacity must be positive, got {self.buffer_capacity}"
            )


@dataclass
class OutputConfig:
    """출력 설정"""
    output_dir: str = "output"
    save_results: bool = True
    export_tum: bool = True

    # 로깅
    log_level: str = "INFO"


@dataclass
class OdometryConfig:
    """scan_odometry 전체 설정"""
    frame_id: FrameConfig
    registration: RegistrationConfig
    thresholding: ThresholdingConfig
    inertial: InertialConfig
    initial_pose: InitialPoseConfig = field(default_factory=InitialPoseConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_dict(self) -> Dict[str, Any]:
        """YAML 키 구조의 딕셔너리로 변환"""
        config_dict = {
            'frame_id': asdict(self.frame_id),
            'icp': {
                'tf_epsilon': self.registration.tf_epsilon,
                'corr_dist': self.registration.corr_dist,
                'iterations': self.registration.iterations,
                'method': self.registration.method,
                'transform_thresholding': self.thresholding.enabled,
                'max_translation': self.thresholding.max_translation,
                'max_rotation': self.thresholding.max_rotation
            },
            'imu': asdict(self.inertial),
            'output': asdict(self.output)
        }

        if self.initial_pose.from_fiducial:
            px, py, pz = self.initial_pose.position
            qx, qy, qz, qw = self.initial_pose.orientation
            config_dict['fiducial_calibration'] = {
                'position': {'x': px, 'y': py, 'z': pz},
                'orientation': {'x': qx, 'y': qy, 'z': qz, 'w': qw}
            }

        return config_dict

    def save(self, filepath: str):
        """설정을 YAML 파일로 저장"""
        with open(filepath, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

        logger.info(f"Config saved to {filepath}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'OdometryConfig':
        """딕셔너리에서 설정 생성"""
        if not isinstance(d, dict):
            raise ConfigurationError("Configuration must be a mapping")

        frame = _section(d, 'frame_id')
        icp = _section(d, 'icp')
        imu = _section(d, 'imu')
        output = _section(d, 'output', required=False)

        frame_id = FrameConfig(
            fixed=str(_require(frame, 'frame_id', 'fixed')),
            odometry=str(_require(frame, 'frame_id', 'odometry'))
        )

        registration = RegistrationConfig(
            tf_epsilon=float(_require(icp, 'icp', 'tf_epsilon')),
            corr_dist=float(_require(icp, 'icp', 'corr_dist')),
            iterations=int(_require(icp, 'icp', 'iterations')),
            method=str(icp.get('method', 'gicp'))
        )

        thresholding = ThresholdingConfig(
            enabled=bool(_require(icp, 'icp', 'transform_thresholding')),
            max_translation=float(_require(icp, 'icp', 'max_translation')),
            max_rotation=float(_require(icp, 'icp', 'max_rotation'))
        )

        inertial = InertialConfig(
            use_imu_data=bool(_require(imu, 'imu', 'use_imu_data')),
            check_imu_data=bool(_require(imu, 'imu', 'check_imu_data')),
            max_timestamp_gap=float(imu.get('max_timestamp_gap', 0.05)),
            buffer_capacity=int(imu.get('buffer_capacity', 100))
        )

        try:
            output_config = OutputConfig(**output)
        except TypeError as e:
            raise ConfigurationError(f"Invalid output section: {e}") from e

        return cls(
            frame_id=frame_id,
            registration=registration,
            thresholding=thresholding,
            inertial=inertial,
            initial_pose=_parse_initial_pose(d.get('fiducial_calibration')),
            output=output_config
        )


def _parse_initial_pose(fiducial: Optional[Dict[str, Any]]) -> InitialPoseConfig:
    """
    fiducial calibration 파싱

    7개 값 (position x/y/z, orientation x/y/z/w) 중 하나라도 없으면
    원점에서 시작합니다. 값이 숫자가 아니거나 쿼터니언 크기가 0이면
    ConfigurationError가 발생합니다.
    """
    try:
        position = fiducial['position']
        orientation = fiducial['orientation']
        raw_position = (position['x'], position['y'], position['z'])
        raw_orientation = (orientation['x'], orientation['y'], orientation['z'], orientation['w'])
    except (KeyError, TypeError):
        logger.warning("Can't find fiducials, using origin")
        return InitialPoseConfig()

    try:
        position_values = tuple(float(v) for v in raw_position)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid fiducial_calibration/position: {e}") from e

    try:
        orientation_values = tuple(float(v) for v in raw_orientation)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid fiducial_calibration/orientation: {e}") from e

    if sum(v * v for v in orientation_values) < 1e-20:
        raise ConfigurationError("Invalid fiducial_calibration/orientation: zero-norm quaternion")

    return InitialPoseConfig(
        position=position_values,
        orientation=orientation_values,
        from_fiducial=True
    )


def load_config(filepath: str) -> OdometryConfig:
    """
    YAML 파일에서 설정 로드

    Args:
        filepath: 설정 파일 경로

    Returns:
        OdometryConfig: 로드된 설정

    Raises:
        ConfigurationError: 파일이 없거나 필수 파라미터 누락
    """
    path = Path(filepath)

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {filepath}")

    with open(path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if config_dict is None:
        raise ConfigurationError(f"Config file is empty: {filepath}")

    config = OdometryConfig.from_dict(config_dict)
    logger.info(f"Config loaded from {filepath}")

    return config
