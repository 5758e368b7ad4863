"""Result export module"""
from .result_exporter import ResultExporter

__all__ = ['ResultExporter']
