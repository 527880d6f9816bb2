"""Per-architecture requirement policies.

A RequirementPolicy bundles everything the evaluator needs to know about an
architecture: which cpuinfo labels carry the vendor, model and flags, which
CPU flags and attributes must be present, which kernel modules (and module
parameter values) are required, and a parameter handler deciding when a
parameter mismatch can be downgraded to a warning.

Policies live in a single table keyed by HostArch; adding an architecture
means adding a table entry, never touching the evaluator.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from sandbox_preflight import constants
from sandbox_preflight.exceptions import UnsupportedArchitectureError
from sandbox_preflight.models import ModuleParameter, ModuleRequirement
from sandbox_preflight.platform_utils import HostArch, detect_host_arch

ParameterHandler = Callable[[bool, Mapping[str, Any], str], bool]
"""handler(on_vmm, fields, message) -> True to ignore the mismatch."""


def nested_virt_param_handler(on_vmm: bool, fields: Mapping[str, Any], message: str) -> bool:
    """Decide whether a module parameter mismatch can be ignored.

    Inside a VM, ``unrestricted_guest`` and ``nested`` are the outer
    hypervisor's business: the capability is provided (or not) one level
    up, so a mismatch here is not a blocker. On bare metal every
    requirement is load-bearing.

    Pure function: no I/O, no logging. ``message`` is accepted for
    handlers that want to classify by it; this one does not.

    Args:
        on_vmm: Host is running under a hypervisor
        fields: Mismatch details; ``fields["parameter"]`` names the parameter
        message: Human-readable description of the mismatch

    Returns:
        True to downgrade the mismatch to a warning, False to keep it fatal
    """
    parameter = fields.get(constants.PARAM_FIELD)
    if not isinstance(parameter, str):
        return False
    if not on_vmm:
        return False
    return parameter in (constants.PARAM_UNRESTRICTED_GUEST, constants.PARAM_NESTED)


def strict_param_handler(on_vmm: bool, fields: Mapping[str, Any], message: str) -> bool:  # noqa: ARG001
    """Never ignore a parameter mismatch."""
    return False


def _frozen_map(values: Mapping[str, str] | None = None) -> Mapping[str, str]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True, slots=True)
class RequirementPolicy:
    """Everything required of a host of one architecture.

    Attributes:
        arch: Architecture this policy applies to
        cpu_vendor_field: cpuinfo label of the vendor
        cpu_model_field: cpuinfo label (or key=value key) of the model
        cpu_flags_label: cpuinfo label of the flags line, None if the arch has none
        required_flags: CPU flag -> description
        required_attributes: CPU attribute -> description
        required_modules: Kernel modules, checked in order
        parameter_handler: Downgrade policy for module parameter mismatches
    """

    arch: HostArch | None
    cpu_vendor_field: str
    cpu_model_field: str
    cpu_flags_label: str | None = None
    required_flags: Mapping[str, str] = field(default_factory=_frozen_map)
    required_attributes: Mapping[str, str] = field(default_factory=_frozen_map)
    required_modules: tuple[ModuleRequirement, ...] = ()
    parameter_handler: ParameterHandler = strict_param_handler

    def __post_init__(self) -> None:
        # Frozen dataclass: bypass __setattr__ to store read-only views
        object.__setattr__(self, "required_flags", _frozen_map(self.required_flags))
        object.__setattr__(self, "required_attributes", _frozen_map(self.required_attributes))
        object.__setattr__(self, "required_modules", tuple(self.required_modules))


_KVM = ModuleRequirement(name="kvm", description="Kernel-based Virtual Machine")
_VHOST = ModuleRequirement(name="vhost", description="Host kernel accelerator for virtio")
_VHOST_NET = ModuleRequirement(name="vhost_net", description="Host kernel accelerator for virtio network")

ARCH_POLICIES: Mapping[HostArch, RequirementPolicy] = MappingProxyType(
    {
        HostArch.X86_64: RequirementPolicy(
            arch=HostArch.X86_64,
            cpu_vendor_field="vendor_id",
            cpu_model_field="model name",
            cpu_flags_label="flags",
            required_flags={
                "vmx": "Virtualization support",
                "lm": "64Bit CPU",
                "sse4_1": "SSE4.1",
            },
            required_attributes={"GenuineIntel": "Intel Architecture CPU"},
            required_modules=(
                _KVM,
                ModuleRequirement(
                    name="kvm_intel",
                    description="Intel KVM",
                    parameters=(
                        ModuleParameter(name=constants.PARAM_NESTED, required_value="Y"),
                        # Only required when running on Intel hardware directly
                        ModuleParameter(name=constants.PARAM_UNRESTRICTED_GUEST, required_value="Y"),
                    ),
                ),
                _VHOST,
                _VHOST_NET,
            ),
            parameter_handler=nested_virt_param_handler,
        ),
        HostArch.AARCH64: RequirementPolicy(
            arch=HostArch.AARCH64,
            cpu_vendor_field="CPU implementer",
            cpu_model_field="CPU architecture",
            cpu_flags_label="Features",
            required_modules=(_KVM, _VHOST, _VHOST_NET),
            parameter_handler=nested_virt_param_handler,
        ),
        HostArch.S390X: RequirementPolicy(
            arch=HostArch.S390X,
            cpu_vendor_field="vendor_id",
            cpu_model_field="machine",
            cpu_flags_label="features",
            required_attributes={"sie": "Start Interpretive Execution (virtualization support)"},
            required_modules=(_KVM, _VHOST, _VHOST_NET),
            parameter_handler=nested_virt_param_handler,
        ),
        HostArch.PPC64LE: RequirementPolicy(
            arch=HostArch.PPC64LE,
            cpu_vendor_field="cpu",
            cpu_model_field="machine",
            required_modules=(
                _KVM,
                ModuleRequirement(name="kvm_hv", description="KVM for POWER hypervisor mode"),
                _VHOST,
                _VHOST_NET,
            ),
            parameter_handler=strict_param_handler,
        ),
    }
)


def get_policy(arch: HostArch | None = None) -> RequirementPolicy:
    """Look up the requirement policy for an architecture.

    Args:
        arch: Target architecture. None detects the host's.

    Raises:
        UnsupportedArchitectureError: No policy for the architecture
    """
    if arch is None:
        arch = detect_host_arch()
    if arch is None or arch not in ARCH_POLICIES:
        name = "unknown" if arch is None else arch.value
        raise UnsupportedArchitectureError(
            f"No VM capability requirements defined for architecture {name}",
            context={"arch": name},
        )
    return ARCH_POLICIES[arch]
