"""CPU description parser.

Turns /proc/cpuinfo style text into CPUDetails. Lines look like
``<label> : <value>``; anything else is ignored.

The model field is found either as a label of its own (x86_64:
``model name : Intel(R) Xeon(R) ...``) or as one of several comma separated
``key = value`` pairs inside another line's value (s390x:
``processor 0: version = 00,  identification = XXXXX, machine = 2964``).
"""

import io
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from sandbox_preflight import constants
from sandbox_preflight.exceptions import CapabilityCheckError, ParseError
from sandbox_preflight.models import CPUDetails

logger = logging.getLogger(__name__)


def _split_line(line: str) -> tuple[str, str] | None:
    """Split a cpuinfo line into (label, value), or None if it has no label."""
    label, sep, value = line.partition(constants.CPUINFO_SEPARATOR)
    if not sep:
        return None
    label = label.strip()
    if not label:
        return None
    return label, value.strip()


def _find_pair(value: str, key: str) -> str | None:
    """Find ``key = value`` among the comma separated pairs of a cpuinfo value."""
    for pair in value.split(constants.CPUINFO_FIELD_SEPARATOR):
        name, sep, field_value = pair.partition(constants.CPUINFO_PAIR_SEPARATOR)
        if sep and name.strip() == key:
            return field_value.strip()
    return None


def _tokens(value: str) -> set[str]:
    return {token.rstrip(constants.CPUINFO_FIELD_SEPARATOR) for token in value.split()} - {""}


def parse_cpu_info(
    source: TextIO | str | Iterable[str],
    vendor_field: str,
    model_field: str,
    flags_label: str | None = None,
) -> CPUDetails:
    """Parse a CPU description into CPUDetails.

    Args:
        source: Text stream, string, or iterable of lines
        vendor_field: Label of the vendor line (e.g. "vendor_id")
        model_field: Label or key=value key of the model (e.g. "model name", "machine")
        flags_label: Label of the flags line (e.g. "flags", "features"), None for no flags

    Returns:
        CPUDetails with the first vendor, model and flags found

    Raises:
        ParseError: Source is empty, or vendor or model is missing or empty
    """
    lines = io.StringIO(source) if isinstance(source, str) else source

    vendor: str | None = None
    model: str | None = None
    flags: set[str] | None = None
    attributes: set[str] = set()
    seen_any = False

    for raw_line in lines:
        seen_any = seen_any or bool(raw_line.strip())
        parsed = _split_line(raw_line)
        if parsed is None:
            continue
        label, value = parsed
        attributes |= _tokens(value)

        if vendor is None and label == vendor_field and value:
            vendor = value

        if model is None:
            if label == model_field and value:
                model = value
            else:
                model = _find_pair(value, model_field) or None

        if flags is None and flags_label is not None and label == flags_label:
            flags = set(value.split())

    if not seen_any:
        raise ParseError("CPU description is empty")
    if vendor is None:
        raise ParseError(
            f"CPU vendor field {vendor_field!r} not found",
            context={"vendor_field": vendor_field},
        )
    if model is None:
        raise ParseError(
            f"CPU model field {model_field!r} not found",
            context={"model_field": model_field},
        )

    return CPUDetails(
        vendor_id=vendor,
        model=model,
        flags=frozenset(flags or ()),
        attributes=frozenset(attributes),
    )


def read_cpu_info(
    path: Path,
    vendor_field: str,
    model_field: str,
    flags_label: str | None = None,
) -> CPUDetails:
    """Read and parse a CPU description file.

    Raises:
        CapabilityCheckError: File cannot be opened or read
        ParseError: Contents are not a usable CPU description
    """
    try:
        with path.open(encoding="utf-8", errors="replace") as f:
            contents = f.read()
    except OSError as e:
        raise CapabilityCheckError(
            f"Cannot read CPU description {path}: {e.strerror or e}",
            context={"path": str(path)},
        ) from e

    logger.debug("Read CPU description", extra={"path": str(path), "size": len(contents)})
    return parse_cpu_info(contents, vendor_field, model_field, flags_label)
