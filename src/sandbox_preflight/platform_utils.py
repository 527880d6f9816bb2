"""Host OS and architecture detection.

Uses psutil's built-in OS detection constants for platform identification
and platform.machine() for the CPU architecture.
"""

import platform
from enum import Enum, auto
from functools import cache

import psutil


class HostOS(Enum):
    """Supported host operating systems."""

    LINUX = auto()
    """Linux (KVM, /proc/cpuinfo, /sys/module)."""

    MACOS = auto()
    """macOS (no KVM; always reported as not capable)."""

    UNKNOWN = auto()
    """Unsupported or unrecognized OS."""


class HostArch(str, Enum):
    """CPU architectures with a requirement policy.

    Values are the names `uname -m` reports.
    """

    X86_64 = "x86_64"
    AARCH64 = "aarch64"
    S390X = "s390x"
    PPC64LE = "ppc64le"


# uname -m spellings and Go/Debian style names for the same architectures
_ARCH_ALIASES: dict[str, HostArch] = {
    "x86_64": HostArch.X86_64,
    "amd64": HostArch.X86_64,
    "aarch64": HostArch.AARCH64,
    "arm64": HostArch.AARCH64,
    "s390x": HostArch.S390X,
    "ppc64le": HostArch.PPC64LE,
}


def parse_arch(name: str) -> HostArch | None:
    """Map an architecture name (e.g. "amd64", "arm64") to HostArch.

    Returns:
        HostArch, or None when the name is not a supported architecture
    """
    return _ARCH_ALIASES.get(name.strip().lower())


@cache
def detect_host_os() -> HostOS:
    """Detect current host operating system using psutil constants."""
    if psutil.LINUX:
        return HostOS.LINUX
    if psutil.MACOS:
        return HostOS.MACOS
    return HostOS.UNKNOWN


@cache
def detect_host_arch() -> HostArch | None:
    """Detect current host CPU architecture.

    Returns:
        HostArch for supported architectures, None otherwise
    """
    return parse_arch(platform.machine())
