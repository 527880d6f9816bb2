"""Tests for host OS / architecture detection."""

import pytest

from sandbox_preflight.platform_utils import HostArch, HostOS, detect_host_arch, detect_host_os, parse_arch
from tests.conftest import skip_unless_linux, skip_unless_x86_64


class TestParseArch:
    """Tests for parse_arch()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("x86_64", HostArch.X86_64),
            ("amd64", HostArch.X86_64),
            ("aarch64", HostArch.AARCH64),
            ("arm64", HostArch.AARCH64),
            ("s390x", HostArch.S390X),
            ("ppc64le", HostArch.PPC64LE),
            (" AMD64 ", HostArch.X86_64),
            ("i686", None),
            ("riscv64", None),
            ("", None),
        ],
    )
    def test_names(self, name: str, expected: HostArch | None) -> None:
        assert parse_arch(name) is expected


class TestDetectHost:
    """Tests for detect_host_os() / detect_host_arch()."""

    def test_os_is_enum(self) -> None:
        assert isinstance(detect_host_os(), HostOS)

    def test_cached(self) -> None:
        assert detect_host_arch() is detect_host_arch()

    @skip_unless_linux
    def test_linux(self) -> None:
        assert detect_host_os() is HostOS.LINUX

    @skip_unless_x86_64
    def test_x86_64(self) -> None:
        assert detect_host_arch() is HostArch.X86_64
