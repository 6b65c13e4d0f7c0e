"""Per-service method tables driving the progress simulation."""

from dataclasses import dataclass, field
from types import MappingProxyType

from syncsphere.domain.sessions import ServiceType

MAX_TOTAL_STEPS = 1_000_000


@dataclass(frozen=True)
class MethodProfile:
    """Step count, phases, timing and outcome odds for one method."""

    total_steps: int
    phases: tuple[str, ...]
    default_delay_ms: int = 2000
    phase_delays_ms: MappingProxyType = field(
        default_factory=lambda: MappingProxyType({})
    )
    delay_jitter_ms: int = 0
    failure_probability: float = 0.0
    early_success_probability: float = 0.0
    step_option: str | None = None
    step_option_base: int | None = None

    def phase_for(self, step_index: int, total_steps: int | None = None) -> str:
        """Return the phase label for a 0-based step index."""
        total = total_steps or self.total_steps
        index = min(step_index * len(self.phases) // total, len(self.phases) - 1)
        return self.phases[max(index, 0)]

    def delay_ms(self, phase: str) -> int:
        return self.phase_delays_ms.get(phase, self.default_delay_ms)


@dataclass(frozen=True)
class ServiceProfile:
    """Allow-list of methods and service-wide rules."""

    service_type: ServiceType
    methods: MappingProxyType
    failure_message: str = "Failed at step: {phase}"
    required_platform: str | None = None

    def get_method(self, method: str) -> MethodProfile | None:
        return self.methods.get(method)


def _table(**methods: MethodProfile) -> MappingProxyType:
    return MappingProxyType(methods)


def _delays(**delays: int) -> MappingProxyType:
    return MappingProxyType(delays)


_BYPASS_COMMON = (
    "device_detection",
    "preparation",
    "bypass_execution",
    "verification",
    "cleanup",
)

_REPAIR_DELAYS = _delays(
    initializing=2000,
    downloading_firmware=5000,
    creating_backup=3000,
    entering_recovery=2000,
    flashing_firmware=4000,
    verifying_system=3000,
    restoring_data=4000,
    unlocking_bootloader=3000,
    flashing_recovery=3000,
    repairing_system=4000,
    verifying_boot=2000,
    diagnosing=2000,
    fixing_bootloader=3000,
    performing_reset=2000,
    finalizing=1000,
    processing=2000,
)

ERASE_CHUNKS_PER_PASS = 100


def _erase(*phases: str) -> MethodProfile:
    return MethodProfile(
        total_steps=len(phases) * ERASE_CHUNKS_PER_PASS,
        phases=phases,
        default_delay_ms=50,
        failure_probability=0.001,
    )


def _repair(*phases: str) -> MethodProfile:
    return MethodProfile(
        total_steps=len(phases),
        phases=phases,
        phase_delays_ms=_REPAIR_DELAYS,
        failure_probability=0.05,
    )


def _frp(total_steps: int, phases: tuple[str, ...] = _BYPASS_COMMON) -> MethodProfile:
    return MethodProfile(
        total_steps=total_steps,
        phases=phases,
        default_delay_ms=3000,
        delay_jitter_ms=3000,
    )


def _icloud(
    total_steps: int, phases: tuple[str, ...] = _BYPASS_COMMON
) -> MethodProfile:
    return MethodProfile(
        total_steps=total_steps,
        phases=phases,
        default_delay_ms=5000,
        delay_jitter_ms=5000,
    )


def _unlock(
    total_steps: int,
    phase: str,
    step_option: str | None = None,
    step_option_base: int | None = None,
) -> MethodProfile:
    return MethodProfile(
        total_steps=total_steps,
        phases=(phase,),
        default_delay_ms=100,
        early_success_probability=0.001,
        step_option=step_option,
        step_option_base=step_option_base,
    )


SERVICE_PROFILES: MappingProxyType = MappingProxyType(
    {
        ServiceType.SCREEN_UNLOCK: ServiceProfile(
            service_type=ServiceType.SCREEN_UNLOCK,
            methods=_table(
                pin_bruteforce=_unlock(
                    10_000, "pin_attempts", step_option="pinLength", step_option_base=10
                ),
                pattern_analysis=_unlock(
                    1000, "pattern_analysis", step_option="maxPatterns"
                ),
                password_dictionary=_unlock(
                    10_000, "dictionary_attack", step_option="dictionarySize"
                ),
                biometric_bypass=_unlock(1, "biometric_bypass"),
            ),
        ),
        ServiceType.SYSTEM_REPAIR: ServiceProfile(
            service_type=ServiceType.SYSTEM_REPAIR,
            methods=_table(
                ios_system_repair=_repair(
                    "initializing",
                    "downloading_firmware",
                    "creating_backup",
                    "entering_recovery",
                    "flashing_firmware",
                    "verifying_system",
                    "restoring_data",
                    "finalizing",
                ),
                android_system_repair=_repair(
                    "initializing",
                    "unlocking_bootloader",
                    "flashing_recovery",
                    "repairing_system",
                    "verifying_boot",
                    "finalizing",
                ),
                bootloop_fix=_repair(
                    "diagnosing", "fixing_bootloader", "verifying_boot", "finalizing"
                ),
                firmware_restore=_repair(
                    "downloading_firmware",
                    "creating_backup",
                    "flashing_firmware",
                    "verifying_system",
                    "finalizing",
                ),
                factory_reset=_repair(
                    "creating_backup", "performing_reset", "finalizing"
                ),
            ),
        ),
        ServiceType.DATA_ERASER: ServiceProfile(
            service_type=ServiceType.DATA_ERASER,
            failure_message="Hardware error during erasure",
            methods=_table(
                quick_erase=_erase("zeroing_data"),
                secure_erase=_erase(
                    "random_pattern", "complement_pattern", "verification"
                ),
                military_grade=_erase(
                    "random_pattern_1",
                    "random_pattern_2",
                    "zeros",
                    "ones",
                    "random_pattern_3",
                    "complement",
                    "verification",
                ),
                custom_pattern=_erase(
                    "custom_pattern_1",
                    "custom_pattern_2",
                    "random_overwrite",
                    "verification",
                    "final_verification",
                ),
            ),
        ),
        ServiceType.FRP_BYPASS: ServiceProfile(
            service_type=ServiceType.FRP_BYPASS,
            required_platform="android",
            methods=_table(
                samsung_frp_bypass=_frp(
                    8,
                    (
                        "device_detection",
                        "download_tools",
                        "adb_connection",
                        "odin_preparation",
                        "bypass_execution",
                        "account_removal",
                        "verification",
                        "cleanup",
                    ),
                ),
                lg_frp_bypass=_frp(6),
                huawei_frp_bypass=_frp(6),
                xiaomi_frp_bypass=_frp(6),
                oppo_frp_bypass=_frp(5),
                vivo_frp_bypass=_frp(5),
                oneplus_frp_bypass=_frp(5),
                generic_android_frp=_frp(7),
                adb_frp_bypass=_frp(
                    4,
                    (
                        "adb_detection",
                        "usb_debugging",
                        "bypass_execution",
                        "verification",
                    ),
                ),
                fastboot_frp_bypass=_frp(5),
                odin_frp_bypass=_frp(6),
            ),
        ),
        ServiceType.ICLOUD_BYPASS: ServiceProfile(
            service_type=ServiceType.ICLOUD_BYPASS,
            required_platform="ios",
            methods=_table(
                checkra1n_bypass=_icloud(
                    10,
                    (
                        "device_detection",
                        "vulnerability_check",
                        "dfu_mode",
                        "exploit_execution",
                        "jailbreak_installation",
                        "bypass_tools",
                        "activation_bypass",
                        "icloud_removal",
                        "verification",
                        "cleanup",
                    ),
                ),
                unc0ver_bypass=_icloud(8),
                palera1n_bypass=_icloud(8),
                icloud_dns_bypass=_icloud(
                    5,
                    (
                        "dns_setup",
                        "network_config",
                        "dns_redirect",
                        "bypass_execution",
                        "verification",
                    ),
                ),
                activation_lock_bypass=_icloud(7),
                generic_ios_bypass=_icloud(6),
            ),
        ),
    }
)


def get_service_profile(service_type: str) -> ServiceProfile | None:
    """Return the profile for a service type name, if known."""
    try:
        return SERVICE_PROFILES.get(ServiceType(service_type))
    except ValueError:
        return None


def resolve_total_steps(profile: MethodProfile, options: dict[str, object]) -> int:
    """Return total steps for a method, honoring its step option override.

    Raises ValueError when the option is present but unusable.
    """
    if profile.step_option is None or profile.step_option not in options:
        return profile.total_steps
    raw = options[profile.step_option]
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise ValueError(f"{profile.step_option} must be a positive integer")
    total = raw
    if profile.step_option_base:
        # never builds a power past the cap
        total = 1
        for _ in range(raw):
            total *= profile.step_option_base
            if total > MAX_TOTAL_STEPS:
                break
    if total > MAX_TOTAL_STEPS:
        raise ValueError(f"{profile.step_option} is too large")
    return total
