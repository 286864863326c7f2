"""
Services module: monitoring run orchestration and the long-running server
"""

from .liveness_monitor import LivenessMonitor, report_to_dict

__all__ = ['LivenessMonitor', 'report_to_dict']
