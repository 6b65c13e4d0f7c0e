"""Tests for the per-service method tables."""

import pytest

from syncsphere.domain.methods import (
    ERASE_CHUNKS_PER_PASS,
    MAX_TOTAL_STEPS,
    SERVICE_PROFILES,
    get_service_profile,
    resolve_total_steps,
)
from syncsphere.domain.sessions import ServiceType


def test_every_service_type_has_a_profile() -> None:
    assert set(SERVICE_PROFILES) == set(ServiceType)
    for service_type, profile in SERVICE_PROFILES.items():
        assert profile.service_type == service_type
        assert profile.methods


def test_get_service_profile_unknown_name() -> None:
    assert get_service_profile("teleport") is None
    assert get_service_profile("frp_bypass") is SERVICE_PROFILES[ServiceType.FRP_BYPASS]


def test_platform_requirements() -> None:
    assert get_service_profile("frp_bypass").required_platform == "android"
    assert get_service_profile("icloud_bypass").required_platform == "ios"
    assert get_service_profile("system_repair").required_platform is None


def test_adb_frp_bypass_phases_follow_steps() -> None:
    method = get_service_profile("frp_bypass").get_method("adb_frp_bypass")

    assert method.total_steps == 4
    assert [method.phase_for(i) for i in range(4)] == [
        "adb_detection",
        "usb_debugging",
        "bypass_execution",
        "verification",
    ]


def test_phase_for_spreads_phases_across_many_steps() -> None:
    method = get_service_profile("data_eraser").get_method("secure_erase")

    assert method.total_steps == 3 * ERASE_CHUNKS_PER_PASS
    assert method.phase_for(0) == "random_pattern"
    assert method.phase_for(99) == "random_pattern"
    assert method.phase_for(100) == "complement_pattern"
    assert method.phase_for(299) == "verification"


def test_phase_for_with_more_phases_than_steps() -> None:
    method = get_service_profile("frp_bypass").get_method("lg_frp_bypass")

    phases = [method.phase_for(i) for i in range(method.total_steps)]

    assert phases[0] == "device_detection"
    assert phases[-1] == "cleanup"


def test_repair_delays_depend_on_phase() -> None:
    method = get_service_profile("system_repair").get_method("ios_system_repair")

    assert method.delay_ms("downloading_firmware") == 5000
    assert method.delay_ms("finalizing") == 1000
    assert method.failure_probability == pytest.approx(0.05)


def test_resolve_total_steps_defaults() -> None:
    method = get_service_profile("screen_unlock").get_method("pin_bruteforce")

    assert resolve_total_steps(method, {}) == 10_000


def test_resolve_total_steps_pin_length() -> None:
    method = get_service_profile("screen_unlock").get_method("pin_bruteforce")

    assert resolve_total_steps(method, {"pinLength": 3}) == 1000


def test_resolve_total_steps_direct_count() -> None:
    method = get_service_profile("screen_unlock").get_method("pattern_analysis")

    assert resolve_total_steps(method, {"maxPatterns": 25}) == 25


@pytest.mark.parametrize("value", [0, -1, "4", True, 2.5])
def test_resolve_total_steps_rejects_bad_values(value: object) -> None:
    method = get_service_profile("screen_unlock").get_method("pattern_analysis")

    with pytest.raises(ValueError, match="maxPatterns"):
        resolve_total_steps(method, {"maxPatterns": value})


def test_resolve_total_steps_rejects_huge_totals() -> None:
    method = get_service_profile("screen_unlock").get_method("pin_bruteforce")

    with pytest.raises(ValueError, match="too large"):
        resolve_total_steps(method, {"pinLength": 7})
    assert 10**6 == MAX_TOTAL_STEPS
    assert resolve_total_steps(method, {"pinLength": 6}) == MAX_TOTAL_STEPS


def test_methods_without_step_option_ignore_options() -> None:
    method = get_service_profile("frp_bypass").get_method("samsung_frp_bypass")

    assert resolve_total_steps(method, {"pinLength": 3}) == 8


def test_resolve_total_steps_rejects_huge_exponent_without_computing_it() -> None:
    method = get_service_profile("screen_unlock").get_method("pin_bruteforce")

    with pytest.raises(ValueError, match="too large"):
        resolve_total_steps(method, {"pinLength": 50_000_000})
