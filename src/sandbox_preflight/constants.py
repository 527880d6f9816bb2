"""Constants for sandbox-preflight: host paths and CPU description labels."""

from pathlib import Path
from typing import Final

# ============================================================================
# Host Paths
# ============================================================================

PROC_CPUINFO: Final[Path] = Path("/proc/cpuinfo")
"""CPU description pseudo-file."""

SYS_MODULE_DIR: Final[Path] = Path("/sys/module")
"""Kernel module registry root: one directory per loaded module."""

MODULE_PARAMETERS_DIR: Final[str] = "parameters"
"""Subdirectory of a module entry holding one file per parameter."""

KVM_DEVICE: Final[Path] = Path("/dev/kvm")
"""Hypervisor character device."""

# ============================================================================
# CPU Description
# ============================================================================

CPUINFO_SEPARATOR: Final[str] = ":"
"""Separates a label from its value on a cpuinfo line."""

CPUINFO_FIELD_SEPARATOR: Final[str] = ","
"""Separates key=value pairs within a cpuinfo value (s390x convention)."""

CPUINFO_PAIR_SEPARATOR: Final[str] = "="
"""Separates key from value within a key=value pair."""

HYPERVISOR_CPU_FLAG: Final[str] = "hypervisor"
"""CPU flag set by hypervisors for their guests."""

# ============================================================================
# Parameter Handler Fields
# ============================================================================

PARAM_FIELD: Final[str] = "parameter"
"""Key in the handler's fields mapping naming the mismatched parameter."""

PARAM_NESTED: Final[str] = "nested"
"""Module parameter enabling nested virtualization."""

PARAM_UNRESTRICTED_GUEST: Final[str] = "unrestricted_guest"
"""kvm_intel parameter enabling unrestricted guest mode."""
