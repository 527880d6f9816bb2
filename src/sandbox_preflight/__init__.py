"""sandbox-preflight: Can this host run VM-based containers?

Inspects CPU identity and feature flags, required kernel modules and their
parameters, and the hypervisor device, then returns one capability verdict
listing every unmet requirement.

Quick Start:
    ```python
    from sandbox_preflight import CapabilityEvaluator

    verdict = CapabilityEvaluator.for_host().evaluate()
    if not verdict.capable:
        for failure in verdict.failures:
            print(failure)
    ```

Preflight gate (before launching a VM sandbox):
    ```python
    from sandbox_preflight import HostNotCapableError, require_vm_capable_host

    try:
        require_vm_capable_host()
    except HostNotCapableError as e:
        fall_back_to_containers(e.verdict.failures)
    ```

With Configuration:
    ```python
    from pathlib import Path

    from sandbox_preflight import CapabilityEvaluator, CheckConfig, HostArch

    config = CheckConfig(
        cpuinfo_path=Path("fixtures/cpuinfo"),
        module_root=Path("fixtures/sys/module"),
        device_path=None,  # Skip the /dev/kvm probe
        arch=HostArch.S390X,
    )
    verdict = CapabilityEvaluator.for_host(config).evaluate()
    ```

Requirements:
    - Linux host (/proc/cpuinfo, /sys/module, /dev/kvm)
    - Python 3.12+
"""

from sandbox_preflight.config import CheckConfig
from sandbox_preflight.cpuinfo import parse_cpu_info, read_cpu_info
from sandbox_preflight.device_probe import device_usable, probe_device
from sandbox_preflight.evaluator import (
    CapabilityEvaluator,
    host_is_vm_container_capable,
    require_vm_capable_host,
    running_on_vmm,
)
from sandbox_preflight.exceptions import (
    CapabilityCheckError,
    DeviceError,
    DeviceNotFound,
    DeviceNotPermitted,
    DeviceProbeError,
    HostNotCapableError,
    ModuleInspectionError,
    ParseError,
    PreflightError,
    UnsupportedArchitectureError,
)
from sandbox_preflight.kernel_modules import KernelModuleInspector
from sandbox_preflight.models import CapabilityVerdict, CPUDetails, ModuleParameter, ModuleRequirement, ProbeResult
from sandbox_preflight.platform_utils import HostArch
from sandbox_preflight.policy import (
    ARCH_POLICIES,
    RequirementPolicy,
    get_policy,
    nested_virt_param_handler,
    strict_param_handler,
)

__all__ = [
    "ARCH_POLICIES",
    "CPUDetails",
    "CapabilityCheckError",
    "CapabilityEvaluator",
    "CapabilityVerdict",
    "CheckConfig",
    "DeviceError",
    "DeviceNotFound",
    "DeviceNotPermitted",
    "DeviceProbeError",
    "HostArch",
    "HostNotCapableError",
    "KernelModuleInspector",
    "ModuleInspectionError",
    "ModuleParameter",
    "ModuleRequirement",
    "ParseError",
    "PreflightError",
    "ProbeResult",
    "RequirementPolicy",
    "UnsupportedArchitectureError",
    "device_usable",
    "get_policy",
    "host_is_vm_container_capable",
    "nested_virt_param_handler",
    "parse_cpu_info",
    "probe_device",
    "read_cpu_info",
    "require_vm_capable_host",
    "running_on_vmm",
    "strict_param_handler",
]

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sandbox-preflight")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
