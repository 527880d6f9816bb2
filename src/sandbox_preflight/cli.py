"""Command-line interface for sandbox-preflight.

Usage:
    sbx-check                          # Check this host
    sbx-check --json | jq .capable     # Machine-readable verdict
    sbx-check --arch s390x --cpuinfo fixtures/cpuinfo --module-root fixtures/sys/module --no-device-check
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError

from sandbox_preflight import (
    CapabilityCheckError,
    CapabilityEvaluator,
    CapabilityVerdict,
    CheckConfig,
    __version__,
)
from sandbox_preflight._logging import configure_logging
from sandbox_preflight.platform_utils import parse_arch
from sandbox_preflight.settings import Settings

# Exit codes following Unix conventions
EXIT_CAPABLE = 0
EXIT_NOT_CAPABLE = 1
EXIT_CLI_ERROR = 2
EXIT_CHECK_ERROR = 125

ARCH_CHOICES = ["x86_64", "amd64", "aarch64", "arm64", "s390x", "ppc64le"]


def format_error(title: str, message: str, suggestions: list[str] | None = None) -> str:
    """Format an error message following What → Why → Fix pattern.

    Args:
        title: Short error title
        message: Detailed explanation
        suggestions: Optional list of suggestions to fix the issue

    Returns:
        Formatted error string
    """
    lines = [
        click.style(f"Error: {title}", fg="red", bold=True),
        "",
        f"  {message}",
    ]

    if suggestions:
        lines.extend(["", "  Suggestions:"])
        lines.extend(f"    • {suggestion}" for suggestion in suggestions)

    return "\n".join(lines)


def format_verdict_json(verdict: CapabilityVerdict) -> str:
    """Format a capability verdict as JSON."""
    output: dict[str, object] = {
        "capable": verdict.capable,
        "failures": list(verdict.failures),
        "warnings": list(verdict.warnings),
        "on_vmm": verdict.on_vmm,
    }
    if verdict.cpu is not None:
        output["cpu"] = {
            "vendor_id": verdict.cpu.vendor_id,
            "model": verdict.cpu.model,
            "flags": sorted(verdict.cpu.flags),
        }
    return json.dumps(output, indent=2)


def format_verdict_text(verdict: CapabilityVerdict, *, quiet: bool = False) -> list[str]:
    """Format a capability verdict as styled lines for a terminal."""
    lines = [click.style(f"✗ {failure}", fg="red") for failure in verdict.failures]
    if not quiet:
        lines.extend(click.style(f"! {warning}", fg="yellow") for warning in verdict.warnings)
        if verdict.cpu is not None:
            lines.insert(0, click.style(f"CPU: {verdict.cpu.vendor_id} / {verdict.cpu.model}", dim=True))
        if verdict.capable:
            lines.append(click.style("✓ System is capable of running VM-based containers", fg="green"))
        else:
            lines.append(
                click.style(
                    f"System is not capable of running VM-based containers ({len(verdict.failures)} problem(s))",
                    fg="red",
                    bold=True,
                )
            )
    return lines


def build_config(
    settings: Settings,
    arch: str | None,
    cpuinfo: Path | None,
    module_root: Path | None,
    device: Path | None,
    no_device_check: bool,
) -> CheckConfig:
    """Merge command-line overrides on top of environment settings."""
    base = settings.to_check_config()
    overrides: dict[str, object] = {}
    if arch is not None:
        overrides["arch"] = parse_arch(arch)
    if cpuinfo is not None:
        overrides["cpuinfo_path"] = cpuinfo
    if module_root is not None:
        overrides["module_root"] = module_root
    if device is not None:
        overrides["device_path"] = device
    if no_device_check:
        overrides["device_path"] = None
    return base.model_copy(update=overrides)


def run_check(config: CheckConfig, json_output: bool, quiet: bool) -> int:
    """Evaluate the host and print the verdict.

    Returns:
        Exit code to return from CLI
    """
    try:
        verdict = CapabilityEvaluator.for_host(config).evaluate()
    except CapabilityCheckError as e:
        error_msg = format_error(
            "Capability check failed",
            e.message,
            [
                "Check that the CPU description is readable (--cpuinfo)",
                "Pass --arch if running on an unrecognised architecture",
            ],
        )
        click.echo(error_msg, err=True)
        return EXIT_CHECK_ERROR

    if json_output:
        click.echo(format_verdict_json(verdict))
    else:
        for line in format_verdict_text(verdict, quiet=quiet):
            click.echo(line, err=not verdict.capable)

    return EXIT_CAPABLE if verdict.capable else EXIT_NOT_CAPABLE


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--arch",
    type=click.Choice(ARCH_CHOICES, case_sensitive=False),
    help="Architecture whose requirements apply (auto-detected)",
)
@click.option("--cpuinfo", type=click.Path(path_type=Path), help="CPU description file [default: /proc/cpuinfo]")
@click.option("--module-root", type=click.Path(path_type=Path), help="Kernel module registry [default: /sys/module]")
@click.option("--device", type=click.Path(path_type=Path), help="Hypervisor device [default: /dev/kvm]")
@click.option("--no-device-check", is_flag=True, help="Skip the hypervisor device probe")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Log every check")
@click.option("-q", "--quiet", is_flag=True, help="Only print failures")
@click.version_option(__version__, "-V", "--version", prog_name="sandbox-preflight")
def main(
    arch: str | None,
    cpuinfo: Path | None,
    module_root: Path | None,
    device: Path | None,
    no_device_check: bool,
    json_output: bool,
    verbose: bool,
    quiet: bool,
) -> NoReturn:
    """Check whether this host can run VM-based containers.

    Inspects CPU flags and attributes, required kernel modules and their
    parameters, and the hypervisor device. Every unmet requirement is
    listed so all of them can be fixed in one go.

    Exit status is 0 when the host is capable, 1 when it is not, and
    125 when the check itself could not run.

    Defaults can also be set with SANDBOX_PREFLIGHT_* environment
    variables (e.g. SANDBOX_PREFLIGHT_MODULE_ROOT).
    """
    configure_logging(level=logging.DEBUG if verbose else logging.WARNING, quiet=quiet)

    try:
        settings = Settings()
        config = build_config(settings, arch, cpuinfo, module_root, device, no_device_check)
    except ValidationError as exc:
        raise click.UsageError(f"Invalid configuration: {exc}") from exc

    sys.exit(run_check(config, json_output=json_output, quiet=quiet))


if __name__ == "__main__":
    main()
