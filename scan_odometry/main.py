"""
scan_odometry 메인 실행
녹화된 Point Cloud 스캔 + IMU 자세 스트림을 재생하여 오도메트리를 추정합니다.

사용법:
    scan_odometry --data-dir /path/to/run --config config/odometry.yaml
    scan_odometry --data-dir /path/to/run --config config/odometry.yaml \
        --output-dir output --max-scans 200 --verbose
"""

import argparse
import logging
import sys
from typing import Optional, List

from .config.odometry_config import OdometryConfig, ConfigurationError, load_config
from .data.scan_loader import ScanSequenceLoader
from .odometry.point_cloud_odometry import PointCloudOdometry
from .output.result_exporter import ResultExporter

# 로거 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_sequence(
    loader: ScanSequenceLoader,
    odometry: PointCloudOdometry,
    exporter: ResultExporter,
    log_interval: int = 10
) -> int:
    """
    시퀀스 재생

    IMU 샘플은 set_inertial_data()로, 스캔은 update_estimate()로 전달합니다.

    Returns:
        결과가 나온 사이클 수
    """
    num_results = 0

    for kind, item in loader.iter_events():
        if kind == 'imu':
            odometry.set_inertial_data(item)
            continue

        result = odometry.update_estimate(item)
        if result is None:
            continue

        exporter.add_result(result)
        num_results += 1

        if num_results % log_interval == 0:
            t = result.integrated.translation
            logger.info(
                f"Scan {item.scan_idx}: "
                f"pos=[{t[0]:.3f}, {t[1]:.3f}, {t[2]:.3f}], "
                f"fusion={'ON' if result.fusion_active else 'OFF'}, "
                f"accepted={result.accepted}"
            )

    return num_results


def main(argv: Optional[List[str]] = None) -> int:
    """메인 실행"""
    parser = argparse.ArgumentParser(
        description='scan_odometry: Point Cloud 정합 + IMU 자세 융합 오도메트리'
    )
    parser.add_argument('--data-dir', type=str, required=True,
                        help='데이터 디렉토리 경로 (scans/, imu_data.csv)')
    parser.add_argument('--config', type=str, required=True,
                        help='설정 파일 경로 (YAML)')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='출력 디렉토리 경로 (기본값: 설정 파일의 output/output_dir)')
    parser.add_argument('--max-scans', type=int, default=None,
                        help='최대 처리 스캔 수')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='상세 로그 출력')

    args = parser.parse_args(argv)

    # 설정 로드
    try:
        config: OdometryConfig = load_config(args.config)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    # 로그 레벨 설정
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(config.output.log_level.upper())

    output_dir = args.output_dir or config.output.output_dir

    # 데이터 로더
    logger.info(f"Loading data from {args.data_dir}")
    loader = ScanSequenceLoader(args.data_dir, max_scans=args.max_scans)

    if config.inertial.use_imu_data and not loader.has_imu:
        logger.warning("Inertial fusion enabled but no imu_data.csv found; odometry will not initialize")

    # 오도메트리
    odometry = PointCloudOdometry.from_config(config)
    exporter = ResultExporter(output_dir)

    num_results = run_sequence(loader, odometry, exporter)
    logger.info(f"Processed {len(loader)} scans, {num_results} odometry results")

    # 저장
    if config.output.save_results:
        exporter.save()
        exporter.export_json()
    if config.output.export_tum:
        exporter.export_tum()

    # 요약
    summary = exporter.get_summary()
    logger.info(f"Summary: {summary}")
    logger.info(f"Final pose: {odometry.get_integrated_estimate()}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
