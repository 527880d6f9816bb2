"""Shared pytest fixtures for sandbox-preflight tests."""

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from sandbox_preflight.config import CheckConfig
from sandbox_preflight.platform_utils import HostArch, HostOS, detect_host_arch, detect_host_os

# ============================================================================
# Shared Skip Markers
# ============================================================================

# Skip marker for Linux-only tests (/proc, /sys/module, /dev nodes)
skip_unless_linux = pytest.mark.skipif(
    detect_host_os() != HostOS.LINUX,
    reason="This test requires Linux (/proc, /sys/module, character devices)",
)

# Skip marker for x86_64-only tests
skip_unless_x86_64 = pytest.mark.skipif(
    detect_host_arch() != HostArch.X86_64,
    reason="This test requires x86_64 architecture",
)

# Skip marker for tests that rely on file permissions being enforced
skip_if_root = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="root bypasses file permission checks",
)


# ============================================================================
# Fake Host Fixtures
# ============================================================================


@pytest.fixture
def module_root(tmp_path: Path) -> Path:
    """Empty fake /sys/module registry."""
    root = tmp_path / "sys" / "module"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def make_module(module_root: Path) -> Callable[..., Path]:
    """Factory creating a fake kernel module entry with parameters.

    Usage:
        def test_something(make_module):
            make_module("kvm_intel", nested="Y", unrestricted_guest="Y")
    """

    def _make(name: str, **parameters: str) -> Path:
        path = module_root / name
        path.mkdir(exist_ok=True)
        if parameters:
            params_dir = path / "parameters"
            params_dir.mkdir(exist_ok=True)
            for param, value in parameters.items():
                # sysfs values end with a newline
                (params_dir / param).write_text(f"{value}\n")
        return path

    return _make


@pytest.fixture
def make_cpuinfo(tmp_path: Path) -> Callable[[str], Path]:
    """Factory writing a fake /proc/cpuinfo and returning its path."""

    def _make(contents: str) -> Path:
        path = tmp_path / "cpuinfo"
        path.write_text(contents)
        return path

    return _make


@pytest.fixture
def check_config(tmp_path: Path, module_root: Path) -> Callable[..., CheckConfig]:
    """Factory for a CheckConfig pointing at the fake host (device probe off)."""

    def _make(**overrides: object) -> CheckConfig:
        values: dict[str, object] = {
            "cpuinfo_path": tmp_path / "cpuinfo",
            "module_root": module_root,
            "device_path": None,
        }
        values.update(overrides)
        return CheckConfig(**values)  # type: ignore[arg-type]

    return _make


# ============================================================================
# Test Utilities
# ============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment() -> Iterator[None]:
    """Keep SANDBOX_PREFLIGHT_* variables from the outer shell out of tests."""
    saved = {key: value for key, value in os.environ.items() if key.startswith("SANDBOX_PREFLIGHT_")}
    for key in saved:
        del os.environ[key]
    yield
    for key in [key for key in os.environ if key.startswith("SANDBOX_PREFLIGHT_")]:
        del os.environ[key]
    os.environ.update(saved)
