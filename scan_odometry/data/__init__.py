"""Scan and inertial stream loading module"""
from .scan_loader import Scan, ScanSequenceLoader

__all__ = ['Scan', 'ScanSequenceLoader']
