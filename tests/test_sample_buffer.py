#!/usr/bin/env python3
"""
test_sample_buffer.py - InertialSampleBuffer 단위 테스트

Author: FurSys AI Team
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parents[1]))

import threading

import numpy as np
import pytest

from scan_odometry.geometry.transform import rpy_to_rotation
from scan_odometry.inertial.sample_buffer import InertialSample, InertialSampleBuffer


def make_sample(timestamp, yaw=0.0):
    return InertialSample(attitude=rpy_to_rotation(0.0, 0.0, yaw), timestamp=timestamp)


class TestInertialSample:
    """InertialSample 테스트"""

    def test_from_quaternion(self):
        sample = InertialSample.from_quaternion(0, 0, 0, 1, timestamp=1.5)
        np.testing.assert_allclose(sample.attitude, np.eye(3), atol=1e-12)
        assert sample.timestamp == 1.5

    def test_attitude_read_only(self):
        sample = make_sample(0.0)
        with pytest.raises(ValueError):
            sample.attitude[0, 0] = 2.0

    def test_accepts_homogeneous_matrix(self):
        T = np.eye(4)
        T[:3, 3] = [1, 2, 3]
        sample = InertialSample(attitude=T, timestamp=0.0)
        assert sample.attitude.shape == (3, 3)


class TestInertialSampleBuffer:
    """InertialSampleBuffer 테스트"""

    def test_empty(self):
        buffer = InertialSampleBuffer()
        assert len(buffer) == 0
        assert not buffer.has_received
        assert buffer.first_sample is None
        assert buffer.snapshot() == ()

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            InertialSampleBuffer(capacity=0)

    def test_push_order(self):
        buffer = InertialSampleBuffer()
        for t in [0.0, 0.1, 0.2]:
            buffer.push(make_sample(t))

        snapshot = buffer.snapshot()
        assert [s.timestamp for s in snapshot] == [0.0, 0.1, 0.2]
        assert buffer.has_received

    def test_capacity_evicts_oldest(self):
        buffer = InertialSampleBuffer(capacity=3)
        for i in range(5):
            buffer.push(make_sample(float(i)))

        assert len(buffer) == 3
        assert [s.timestamp for s in buffer.snapshot()] == [2.0, 3.0, 4.0]

    def test_default_capacity_is_100(self):
        """기본 크기 100, 초과 시 가장 오래된 샘플 제거"""
        buffer = InertialSampleBuffer()
        for i in range(150):
            buffer.push(make_sample(float(i)))

        snapshot = buffer.snapshot()
        assert buffer.capacity == 100
        assert len(buffer) == 100
        assert snapshot[0].timestamp == 50.0
        assert snapshot[-1].timestamp == 149.0

    def test_first_sample_survives_eviction(self):
        buffer = InertialSampleBuffer(capacity=2)
        first = make_sample(0.0, yaw=0.3)
        buffer.push(first)
        for i in range(1, 5):
            buffer.push(make_sample(float(i)))

        assert buffer.first_sample is first

    def test_snapshot_is_independent(self):
        """스냅샷 이후의 push는 스냅샷에 영향 없음"""
        buffer = InertialSampleBuffer()
        buffer.push(make_sample(0.0))
        snapshot = buffer.snapshot()

        buffer.push(make_sample(0.1))

        assert len(snapshot) == 1
        assert len(buffer) == 2

    def test_clear(self):
        buffer = InertialSampleBuffer()
        buffer.push(make_sample(0.0))
        buffer.clear()

        assert len(buffer) == 0
        assert not buffer.has_received

    def test_concurrent_push(self):
        """여러 생산자 스레드에서 동시 push"""
        buffer = InertialSampleBuffer(capacity=1000)

        def producer(offset):
            for i in range(100):
                buffer.push(make_sample(offset + i * 1e-3))

        threads = [threading.Thread(target=producer, args=(k,)) for k in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(buffer) == 400


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
