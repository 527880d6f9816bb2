"""Capability evaluator: can this host run VM-based containers?

One evaluation is a single stateless pass:

1. Parse the CPU description. Failure here is fatal (CapabilityCheckError):
   without the CPU identity nothing else can be judged.
2. Check required CPU flags and attributes.
3. Check required kernel modules in listed order. A module's parameters
   are only read when the module is loaded. A parameter mismatch is handed
   to the policy's parameter handler, which may downgrade it to a warning.
4. Probe the hypervisor device, if one is configured.

Every requirement is checked even after a failure, so the verdict lists
all unmet requirements at once.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from sandbox_preflight import constants
from sandbox_preflight._logging import get_logger
from sandbox_preflight.config import CheckConfig
from sandbox_preflight.cpuinfo import parse_cpu_info, read_cpu_info
from sandbox_preflight.device_probe import device_usable
from sandbox_preflight.exceptions import (
    CapabilityCheckError,
    DeviceProbeError,
    HostNotCapableError,
    ModuleInspectionError,
    ParseError,
)
from sandbox_preflight.kernel_modules import KernelModuleInspector
from sandbox_preflight.models import CapabilityVerdict, CPUDetails, ModuleRequirement
from sandbox_preflight.policy import get_policy

if TYPE_CHECKING:
    from sandbox_preflight.policy import RequirementPolicy

logger = get_logger(__name__)


def running_on_vmm(cpu: CPUDetails) -> bool:
    """Check whether the CPU description says we are a hypervisor guest."""
    return constants.HYPERVISOR_CPU_FLAG in cpu.flags


def _describe(kind: str, name: str, description: str) -> str:
    suffix = f" ({description})" if description else ""
    return f"{kind} {name!r} not found{suffix}"


def _load_cpu(policy: RequirementPolicy, cpu_info_source: Path | str | TextIO) -> CPUDetails:
    try:
        if isinstance(cpu_info_source, str | os.PathLike):
            return read_cpu_info(
                Path(cpu_info_source),
                policy.cpu_vendor_field,
                policy.cpu_model_field,
                policy.cpu_flags_label,
            )
        return parse_cpu_info(
            cpu_info_source,
            policy.cpu_vendor_field,
            policy.cpu_model_field,
            policy.cpu_flags_label,
        )
    except ParseError as e:
        raise CapabilityCheckError(
            f"Cannot determine CPU details: {e.message}",
            context=dict(e.context),
        ) from e


class _Checklist:
    """Accumulates failures and downgraded warnings for one evaluation."""

    __slots__ = ("failures", "warnings")

    def __init__(self) -> None:
        self.failures: list[str] = []
        self.warnings: list[str] = []

    def fail(self, message: str, context: dict[str, Any]) -> None:
        logger.info("Requirement not met: %s", message, extra={"requirement": context})
        self.failures.append(message)

    def warn(self, message: str, context: dict[str, Any]) -> None:
        logger.info("Ignoring requirement: %s", message, extra={"requirement": context})
        self.warnings.append(message)


def _check_module(
    requirement: ModuleRequirement,
    policy: RequirementPolicy,
    inspector: KernelModuleInspector,
    on_vmm: bool,
    checklist: _Checklist,
) -> None:
    name = requirement.name
    try:
        loaded = inspector.module_loaded(name)
    except ModuleInspectionError as e:
        checklist.fail(e.message, e.context)
        return

    if not loaded:
        suffix = f" ({requirement.description})" if requirement.description else ""
        checklist.fail(f"kernel module {name!r} not loaded{suffix}", {"module": name})
        return

    logger.debug("Kernel module %r loaded", name, extra={"kernel_module": name})

    for parameter in requirement.parameters:
        try:
            value, found = inspector.module_parameter(name, parameter.name)
        except ModuleInspectionError as e:
            checklist.fail(e.message, e.context)
            continue

        if found and value == parameter.required_value:
            continue

        actual = value if found else "<missing>"
        message = (
            f"kernel module {name!r} parameter {parameter.name!r} has value {actual!r} "
            f"(expected {parameter.required_value!r})"
        )
        fields = {
            "type": "module",
            "module": name,
            constants.PARAM_FIELD: parameter.name,
            "expected": parameter.required_value,
            "actual": value if found else None,
        }
        if policy.parameter_handler(on_vmm, fields, message):
            checklist.warn(message, {**fields, "on_vmm": on_vmm})
        else:
            checklist.fail(message, fields)


def host_is_vm_container_capable(
    policy: RequirementPolicy,
    cpu_info_source: Path | str | TextIO,
    module_inspector: KernelModuleInspector,
    device_path: Path | str | None = None,
    *,
    on_vmm: bool | None = None,
) -> CapabilityVerdict:
    """Evaluate a host against a requirement policy.

    Args:
        policy: Requirements for the host's architecture
        cpu_info_source: Path to a CPU description, or an open text stream
        module_inspector: Kernel module registry to consult
        device_path: Hypervisor device to probe, None to skip the probe
        on_vmm: Override hypervisor-guest detection

    Returns:
        CapabilityVerdict listing every unmet requirement

    Raises:
        CapabilityCheckError: CPU description unreadable or unparsable
    """
    cpu = _load_cpu(policy, cpu_info_source)
    if on_vmm is None:
        on_vmm = running_on_vmm(cpu)

    logger.debug(
        "Evaluating VM container capability",
        extra={
            "arch": None if policy.arch is None else policy.arch.value,
            "vendor_id": cpu.vendor_id,
            "model": cpu.model,
            "on_vmm": on_vmm,
        },
    )

    checklist = _Checklist()

    for flag, description in policy.required_flags.items():
        if flag in cpu.flags:
            logger.debug("CPU flag %r found", flag, extra={"flag": flag})
        else:
            checklist.fail(_describe("CPU flag", flag, description), {"flag": flag})

    for attribute, description in policy.required_attributes.items():
        if attribute in cpu.attributes:
            logger.debug("CPU attribute %r found", attribute, extra={"attribute": attribute})
        else:
            checklist.fail(_describe("CPU attribute", attribute, description), {"attribute": attribute})

    for requirement in policy.required_modules:
        _check_module(requirement, policy, module_inspector, on_vmm, checklist)

    if device_path is not None:
        try:
            device_usable(device_path)
        except DeviceProbeError as e:
            checklist.fail(f"hypervisor device not usable: {e.message}", e.context)

    verdict = CapabilityVerdict(
        failures=tuple(checklist.failures),
        warnings=tuple(checklist.warnings),
        cpu=cpu,
        on_vmm=on_vmm,
    )
    logger.debug(
        "Capability evaluation complete",
        extra={"capable": verdict.capable, "failures": len(verdict.failures)},
    )
    return verdict


class CapabilityEvaluator:
    """Evaluates one policy against the host paths of a CheckConfig.

    Holds no mutable state; one instance can be evaluated repeatedly and
    from several threads.
    """

    __slots__ = ("config", "inspector", "policy")

    def __init__(self, policy: RequirementPolicy, config: CheckConfig | None = None) -> None:
        self.policy = policy
        self.config = config or CheckConfig()
        self.inspector = KernelModuleInspector(self.config.module_root)

    @classmethod
    def for_host(cls, config: CheckConfig | None = None) -> CapabilityEvaluator:
        """Build an evaluator using the policy for config.arch (or the host's arch).

        Raises:
            UnsupportedArchitectureError: No policy for the architecture
        """
        config = config or CheckConfig()
        return cls(get_policy(config.arch), config)

    def evaluate(self) -> CapabilityVerdict:
        """Run the full checklist.

        Raises:
            CapabilityCheckError: CPU description unreadable or unparsable
        """
        return host_is_vm_container_capable(
            self.policy,
            self.config.cpuinfo_path,
            self.inspector,
            self.config.device_path,
            on_vmm=self.config.on_vmm,
        )


def require_vm_capable_host(
    config: CheckConfig | None = None,
    policy: RequirementPolicy | None = None,
) -> CapabilityVerdict:
    """Preflight gate for launching a VM sandbox.

    Args:
        config: Host paths (defaults to the real host)
        policy: Requirements (defaults to the policy for config.arch / host arch)

    Returns:
        The passing verdict, whose warnings may still be worth surfacing

    Raises:
        HostNotCapableError: One or more requirements are not met
        CapabilityCheckError: No verdict could be produced
    """
    config = config or CheckConfig()
    evaluator = CapabilityEvaluator(policy, config) if policy is not None else CapabilityEvaluator.for_host(config)
    verdict = evaluator.evaluate()
    if not verdict.capable:
        raise HostNotCapableError(
            f"Host cannot run VM-based containers: {len(verdict.failures)} requirement(s) not met",
            verdict,
        )
    return verdict
