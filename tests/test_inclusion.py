"""Tests for inclusion rules and the zone/driver scope filter."""

from monitoring.inclusion import (
    InclusionRules, ScopeRules, compile_patterns, evaluate_inclusion, out_of_scope_reason
)
from monitoring.models import InclusionReason
from support import make_device


def rules(**filters):
    base = {
        "include_transports": [],
        "include_classes": ["light"],
        "exclude_classes": [],
        "include_name_patterns": [],
        "exclude_name_patterns": [],
    }
    base.update(filters)
    return InclusionRules.from_config(base)


def test_included_light():
    decision = evaluate_inclusion(make_device("a"), rules())
    assert decision.included
    assert decision.reason is InclusionReason.INCLUDED


def test_transport_rejected_first():
    device = make_device("a", flags=["zwave"], name="Christmas tree")
    decision = evaluate_inclusion(device, rules(include_transports=["zigbee"], exclude_name_patterns=["christ"]))
    assert not decision.included
    assert decision.reason is InclusionReason.TRANSPORT_REJECTED


def test_empty_include_name_list_never_includes_by_name():
    device = make_device("pc", name="Office PC", device_class="other")
    decision = evaluate_inclusion(device, rules(include_name_patterns=[]))
    assert decision.reason is InclusionReason.NOT_INCLUDED


def test_blank_include_patterns_do_not_match_everything():
    device = make_device("pc", name="Office PC", device_class="other")
    decision = evaluate_inclusion(device, rules(include_name_patterns=["", "   "]))
    assert decision.reason is InclusionReason.NOT_INCLUDED


def test_include_by_name_is_case_insensitive():
    device = make_device("pc", name="Office PC", device_class="other")
    decision = evaluate_inclusion(device, rules(include_name_patterns=["^office pc"]))
    assert decision.included


def test_exclude_name_wins_over_every_include_rule():
    device = make_device("a", name="Group Kitchen", device_class="light")
    decision = evaluate_inclusion(device, rules(include_name_patterns=["kitchen"], exclude_name_patterns=["GROUP"]))
    assert not decision.included
    assert decision.reason is InclusionReason.NAME_EXCLUDED


def test_virtual_class_counts_when_enabled():
    device = make_device("s", device_class="socket", virtual_class="light")
    assert evaluate_inclusion(device, rules()).included
    off = rules(treat_virtual_class_as_class=False)
    assert evaluate_inclusion(device, off).reason is InclusionReason.NOT_INCLUDED


def test_class_exclusion_uses_real_class_even_with_virtual_light():
    device = make_device("s", device_class="socket", virtual_class="light")
    decision = evaluate_inclusion(device, rules(exclude_classes=["socket"]))
    assert decision.reason is InclusionReason.CLASS_EXCLUDED


def test_class_exclusion_can_be_disabled():
    device = make_device("s", device_class="socket", virtual_class="light")
    decision = evaluate_inclusion(device, rules(exclude_classes=["socket"], always_apply_class_exclusions=False))
    assert decision.included


def test_bad_patterns_are_skipped(caplog):
    patterns = compile_patterns(["(unclosed", "ok"])
    assert len(patterns) == 1
    assert patterns[0].search("OK lamp")
    assert "bad name pattern" in caplog.text


def test_rules_with_bad_pattern_still_evaluate():
    device = make_device("a", name="Lamp")
    decision = evaluate_inclusion(device, rules(exclude_name_patterns=["[bad"]))
    assert decision.included


def test_scope_excludes_zone_case_insensitively():
    scope = ScopeRules.from_config({"excluded_zones": ["Garage"]})
    device = make_device("a", zone="z1")
    assert out_of_scope_reason(device, {"z1": "garage"}, scope) == "zone-excluded"
    assert out_of_scope_reason(device, {"z1": "Garage door"}, scope) is None


def test_scope_excludes_driver_pattern():
    scope = ScopeRules.from_config({"excluded_driver_patterns": [r"com\.swttt\.devicegroups"]})
    device = make_device("a", driver_uri="homey:app:com.swttt.devicegroups:light")
    assert out_of_scope_reason(device, {}, scope) == "driver-excluded"
    assert out_of_scope_reason(make_device("b"), {}, scope) is None


def test_scope_excludes_listed_technology_flags():
    scope = ScopeRules.from_config({"excluded_flags": ["ZWave"]})
    assert out_of_scope_reason(make_device("a", flags=["zwave"]), {}, scope) == "flag-excluded"
    assert out_of_scope_reason(make_device("b", flags=["zigbee"]), {}, scope) is None


def test_scope_empty_flags_only_excluded_when_asked():
    device = make_device("a", flags=[])
    assert out_of_scope_reason(device, {}, ScopeRules.from_config({})) is None
    strict = ScopeRules.from_config({"exclude_empty_flags": True})
    assert out_of_scope_reason(device, {}, strict) == "no-flags"


def test_blank_flag_entries_exclude_nothing():
    scope = ScopeRules.from_config({"excluded_flags": [""]})
    assert out_of_scope_reason(make_device("a", flags=["zigbee"]), {}, scope) is None
