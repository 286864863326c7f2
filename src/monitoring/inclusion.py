"""
Device inclusion rules
Decides whether a device takes part in monitoring at all
"""

import re
import logging
from typing import Dict, Iterable, Optional, Pattern, Tuple, FrozenSet
from dataclasses import dataclass

from devices.models import HubDevice
from .models import InclusionDecision, InclusionReason
from .transport import detect_transports

logger = logging.getLogger(__name__)

def compile_patterns(patterns: Optional[Iterable[str]]) -> Tuple[Pattern, ...]:
    """
    Compile case-insensitive name patterns.
    Blank entries are dropped so they can never match everything; bad regexes are logged and skipped.
    """
    compiled = []
    for pattern in patterns or []:
        text = str(pattern or "").strip()
        if not text:
            continue
        try:
            compiled.append(re.compile(text, re.IGNORECASE))
        except re.error as e:
            logger.warning(f"[CONFIG] Skipping bad name pattern '{text}': {e}")
    return tuple(compiled)

def _lowered(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(str(v).strip().lower() for v in values or [] if str(v).strip())

@dataclass(frozen=True)
class InclusionRules:
    include_transports: FrozenSet[str] = frozenset()
    include_classes: FrozenSet[str] = frozenset()
    exclude_classes: FrozenSet[str] = frozenset()
    include_names: Tuple[Pattern, ...] = ()
    exclude_names: Tuple[Pattern, ...] = ()
    treat_virtual_class_as_class: bool = True
    always_apply_class_exclusions: bool = True

    @classmethod
    def from_config(cls, filters: Dict) -> "InclusionRules":
        return cls(
            include_transports=_lowered(filters.get('include_transports')),
            include_classes=_lowered(filters.get('include_classes')),
            exclude_classes=_lowered(filters.get('exclude_classes')),
            include_names=compile_patterns(filters.get('include_name_patterns')),
            exclude_names=compile_patterns(filters.get('exclude_name_patterns')),
            treat_virtual_class_as_class=bool(filters.get('treat_virtual_class_as_class', True)),
            always_apply_class_exclusions=bool(filters.get('always_apply_class_exclusions', True))
        )

def name_matches_any(name: str, patterns: Tuple[Pattern, ...]) -> bool:
    return any(p.search(name) for p in patterns)

def class_matches(device: HubDevice, classes: FrozenSet[str], treat_virtual: bool = True) -> bool:
    if device.device_class and device.device_class.lower() in classes:
        return True
    return bool(treat_virtual and device.virtual_class and device.virtual_class.lower() in classes)

def evaluate_inclusion(device: HubDevice, rules: InclusionRules) -> InclusionDecision:
    """Apply the rules in order; the first rule that rejects decides the reason"""
    name = device.name or ""

    if rules.include_transports and not (detect_transports(device) & rules.include_transports):
        return InclusionDecision(False, InclusionReason.TRANSPORT_REJECTED)

    by_class = class_matches(device, rules.include_classes, rules.treat_virtual_class_as_class)
    by_name = bool(rules.include_names) and name_matches_any(name, rules.include_names)
    if not (by_class or by_name):
        return InclusionDecision(False, InclusionReason.NOT_INCLUDED)

    if name_matches_any(name, rules.exclude_names):
        return InclusionDecision(False, InclusionReason.NAME_EXCLUDED)

    # Real class only; a virtual class never shields a device from exclusion
    if rules.always_apply_class_exclusions and (device.device_class or "").lower() in rules.exclude_classes:
        return InclusionDecision(False, InclusionReason.CLASS_EXCLUDED)

    return InclusionDecision(True, InclusionReason.INCLUDED)

@dataclass(frozen=True)
class ScopeRules:
    """Zone, driver and technology-flag exclusions applied before the inclusion rules"""
    excluded_zones: FrozenSet[str] = frozenset()
    excluded_drivers: Tuple[Pattern, ...] = ()
    excluded_flags: FrozenSet[str] = frozenset()
    exclude_empty_flags: bool = False

    @classmethod
    def from_config(cls, filters: Dict) -> "ScopeRules":
        return cls(
            excluded_zones=_lowered(filters.get('excluded_zones')),
            excluded_drivers=compile_patterns(filters.get('excluded_driver_patterns')),
            excluded_flags=_lowered(filters.get('excluded_flags')),
            exclude_empty_flags=bool(filters.get('exclude_empty_flags', False))
        )

def out_of_scope_reason(device: HubDevice, zone_map: Dict[str, str], rules: ScopeRules) -> Optional[str]:
    """Return why a device is out of scope, or None when it is in scope"""
    if device.driver_uri and name_matches_any(device.driver_uri, rules.excluded_drivers):
        return "driver-excluded"
    if not device.flags:
        if rules.exclude_empty_flags:
            return "no-flags"
    elif any(str(f).lower() in rules.excluded_flags for f in device.flags):
        return "flag-excluded"
    zone_name = zone_map.get(device.zone) if device.zone else None
    if zone_name and zone_name.lower() in rules.excluded_zones:
        return "zone-excluded"
    return None
