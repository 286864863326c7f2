"""
Monitoring module: staleness classification and wake-then-verify
"""

from .durations import Threshold, parse_duration_ms, split_duration_args
from .inclusion import InclusionRules, ScopeRules, evaluate_inclusion, compile_patterns
from .models import (
    InclusionDecision, InclusionReason, StalenessResult, StalenessState,
    WakeState, WakeAttempt, ReconciliationResult, MonitorReport
)
from .staleness import classify_staleness, classify_last_seen, most_recent_update
from .sources import CapabilitySource, MeshSource, create_source
from .transport import detect_transports
from .wake import WakeActuator
from .validation import ValidationScheduler

__all__ = [
    'Threshold', 'parse_duration_ms', 'split_duration_args',
    'InclusionRules', 'ScopeRules', 'evaluate_inclusion', 'compile_patterns',
    'InclusionDecision', 'InclusionReason', 'StalenessResult', 'StalenessState',
    'WakeState', 'WakeAttempt', 'ReconciliationResult', 'MonitorReport',
    'classify_staleness', 'classify_last_seen', 'most_recent_update', 'detect_transports',
    'CapabilitySource', 'MeshSource', 'create_source',
    'WakeActuator', 'ValidationScheduler'
]
