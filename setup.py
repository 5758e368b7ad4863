#!/usr/bin/env python3
"""
scan_odometry Setup Script
"""

from setuptools import setup, find_packages

setup(
    name='scan_odometry',
    version='1.0.0',
    description='Point cloud registration odometry with inertial attitude fusion',
    author='FurSys AI Team',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.20.0',
        'scipy>=1.7.0',
        'open3d>=0.15.0',
        'pyyaml>=5.4.0',
        'pandas>=1.3.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0.0',
            'pytest-cov>=2.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'scan_odometry=scan_odometry.main:main',
        ],
    },
)
