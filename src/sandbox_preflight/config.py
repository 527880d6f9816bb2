"""Check configuration for sandbox-preflight.

CheckConfig carries every host path the evaluator touches, so tests and
concurrent callers pass their own paths instead of patching module globals.

Example:
    ```python
    from pathlib import Path

    from sandbox_preflight import CheckConfig, CapabilityEvaluator, get_policy

    config = CheckConfig(module_root=Path("/tmp/fake/sys/module"), device_path=None)
    verdict = CapabilityEvaluator(get_policy(), config).evaluate()
    for failure in verdict.failures:
        print(failure)
    ```
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from sandbox_preflight import constants
from sandbox_preflight.platform_utils import HostArch


class CheckConfig(BaseModel):
    """Configuration for one capability evaluation.

    Attributes:
        cpuinfo_path: CPU description file. Default: /proc/cpuinfo.
        module_root: Kernel module registry root. Default: /sys/module.
        device_path: Hypervisor device to probe. None skips the device probe.
            Default: /dev/kvm.
        arch: Architecture whose policy applies. None detects the host's.
        on_vmm: Whether the host runs under a hypervisor. None detects it
            from the "hypervisor" CPU flag.
    """

    model_config = ConfigDict(
        frozen=True,  # Immutable after creation
        extra="forbid",  # Reject unknown fields
    )

    cpuinfo_path: Path = Field(
        default=constants.PROC_CPUINFO,
        description="CPU description file",
    )
    module_root: Path = Field(
        default=constants.SYS_MODULE_DIR,
        description="Kernel module registry root",
    )
    device_path: Path | None = Field(
        default=constants.KVM_DEVICE,
        description="Hypervisor device (None skips the device probe)",
    )
    arch: HostArch | None = Field(
        default=None,
        description="Target architecture (auto-detect if None)",
    )
    on_vmm: bool | None = Field(
        default=None,
        description="Running under a hypervisor (auto-detect from CPU flags if None)",
    )
