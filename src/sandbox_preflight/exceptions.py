"""Exception hierarchy for sandbox-preflight.

All exceptions inherit from PreflightError.

Hierarchy:
    PreflightError (base)
    ├── ParseError                    ← CPU description malformed/incomplete
    ├── ModuleInspectionError         ← module registry unreadable (not "absent")
    ├── DeviceProbeError              ← hypervisor device not usable
    │   ├── DeviceNotFound            ← path does not exist
    │   ├── DeviceNotPermitted        ← open denied by access control
    │   └── DeviceError               ← busy, not a char device, other errno
    ├── CapabilityCheckError          ← no verdict could be produced
    │   └── UnsupportedArchitectureError
    └── HostNotCapableError           ← preflight gate refused the host

Only ParseError (wrapped in CapabilityCheckError) and CapabilityCheckError
abort an evaluation.  Module and device errors are folded into the verdict
as failure lines.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sandbox_preflight.models import ProbeResult

if TYPE_CHECKING:
    from sandbox_preflight.models import CapabilityVerdict


class PreflightError(Exception):
    """Base exception for all preflight errors with structured context.

    Attributes:
        message: Human-readable error message
        context: Dictionary of structured error context for logging/debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ParseError(PreflightError):
    """CPU description could not be parsed.

    Raised when the source is empty or lacks the vendor or model field.
    Both fields are mandatory for a usable CPUDetails.
    """


class ModuleInspectionError(PreflightError):
    """Kernel module registry could not be read.

    Distinct from "module not loaded": raised for I/O failures such as
    permission denied, so callers never mistake an unreadable registry
    for an absent module.
    """


# =============================================================================
# Device Probe Errors
# =============================================================================


class DeviceProbeError(PreflightError):
    """Hypervisor device is not usable.

    Attributes:
        path: Device node that was probed
        result: ProbeResult classification of the failure
    """

    result: ProbeResult = ProbeResult.UNUSABLE

    def __init__(self, message: str, path: str, context: dict[str, Any] | None = None):
        ctx = context or {}
        ctx.update({"path": path, "result": self.result.value})
        super().__init__(message, ctx)
        self.path = path


class DeviceNotFound(DeviceProbeError):  # noqa: N818
    """Device node does not exist."""

    result = ProbeResult.NOT_PRESENT


class DeviceNotPermitted(DeviceProbeError):  # noqa: N818
    """Opening the device was denied by access control."""

    result = ProbeResult.PERMISSION_DENIED


class DeviceError(DeviceProbeError):
    """Any other open failure, or the node lacks device semantics.

    Attributes:
        errno: OS error number when the failure came from open(), else None
    """

    def __init__(
        self,
        message: str,
        path: str,
        context: dict[str, Any] | None = None,
        *,
        errno: int | None = None,
        result: ProbeResult = ProbeResult.UNUSABLE,
    ):
        self.result = result
        super().__init__(message, path, context)
        self.errno = errno


# =============================================================================
# Evaluation Errors
# =============================================================================


class CapabilityCheckError(PreflightError):
    """Infrastructure failure that prevents any verdict.

    Raised when the CPU description cannot be read or parsed, or when no
    requirement policy exists for the host. The underlying ParseError or
    OSError is chained as __cause__.
    """


class UnsupportedArchitectureError(CapabilityCheckError):
    """No requirement policy is defined for the requested architecture."""


class HostNotCapableError(PreflightError):
    """Host failed the VM capability preflight.

    Raised by the preflight gate so a runtime can refuse to launch a VM
    sandbox. The full verdict is attached so every unmet requirement can
    be reported at once.

    Attributes:
        verdict: The CapabilityVerdict that failed
    """

    def __init__(self, message: str, verdict: CapabilityVerdict):
        super().__init__(message, context={"failures": list(verdict.failures)})
        self.verdict = verdict
