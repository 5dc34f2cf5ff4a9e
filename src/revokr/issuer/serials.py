"""Serial number parsing and deduplication."""

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from ..core.diagnostics import Diagnostics
from ..core.errors import InputFileError, InvalidSerialError
from ..core.files import read_file

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^[0-9a-f]+$")

# Widest serial cryptography will write into a CRL entry
MAX_SERIAL_BITS = 159


def canonical_serial(value: str | int) -> str:
    """Convert a serial number to canonical lowercase hex.

    Strings are trimmed and lower-cased, and an optional ``0x`` prefix is
    removed. Leading zeros are dropped.

    Args:
        value: Hex string or non-negative integer

    Returns:
        Canonical hex string without prefix

    Raises:
        InvalidSerialError: If the value is not a valid serial
    """
    if isinstance(value, int):
        if value < 0:
            raise InvalidSerialError(f"serial number must not be negative: {value}")
        return format(value, "x")

    text = value.strip().lower()
    text = text.removeprefix("0x")
    if not _HEX_RE.match(text):
        raise InvalidSerialError(f"invalid serial number format: {value!r}")
    return format(int(text, 16), "x")


def is_writable_serial(value: str | int) -> bool:
    """Whether a serial can be written as a CRL entry.

    Only positive serials of at most MAX_SERIAL_BITS bits can be encoded.
    """
    number = int(canonical_serial(value), 16)
    return 0 < number and number.bit_length() <= MAX_SERIAL_BITS


def accept_writable(
    value: str | int, diagnostics: Diagnostics, **context
) -> bool:
    """Check a serial is writable, recording a warning if it is not.

    Returns:
        True if the serial can be written, False otherwise
    """
    if is_writable_serial(value):
        return True
    diagnostics.warning(
        "serial number cannot be written to a CRL, skipping",
        serial=canonical_serial(value),
        **context,
    )
    return False


def parse_serials(
    lines: Iterable[str], diagnostics: Optional[Diagnostics] = None
) -> list[str]:
    """Parse serial numbers, one per line.

    Blank lines are skipped. Malformed lines, and serials that cannot be
    written to a CRL, are reported as warnings and skipped. The result keeps first-seen order without duplicates.

    Args:
        lines: Text lines holding hex serial numbers
        diagnostics: Sink for warnings about skipped lines

    Returns:
        Canonical serial numbers
    """
    diagnostics = diagnostics or Diagnostics(logger)
    policy = DedupPolicy()
    serials = []

    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            serial = canonical_serial(line)
        except InvalidSerialError:
            diagnostics.warning(
                "invalid serial number format, skipping",
                serial=line.strip(),
                line=lineno,
            )
            continue
        if not accept_writable(serial, diagnostics, line=lineno):
            continue
        if policy.consider(serial):
            serials.append(serial)

    return serials


def read_serials_file(
    path: Optional[str | Path], diagnostics: Optional[Diagnostics] = None
) -> list[str]:
    """Read serial numbers from a newline-delimited file.

    Args:
        path: File path; None or empty gives an empty list
        diagnostics: Sink for warnings about skipped lines

    Raises:
        InputFileError: If the file cannot be read
    """
    if not path:
        return []

    data = read_file(path)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InputFileError(f"failed to read serial numbers file {path}: {e}")

    return parse_serials(text.splitlines(), diagnostics)


class DedupPolicy:
    """Decides which serial numbers may still be added to a list.

    A serial is accepted once, unless it is ignored. Ignored serials are
    never accepted.
    """

    def __init__(self, ignore: Iterable[str | int] = ()):
        """Initialize policy.

        Args:
            ignore: Serials that must never be accepted
        """
        self._ignored: set[str] = {canonical_serial(s) for s in ignore}
        self._seen: set[str] = set()

    def consider(self, serial: str | int) -> bool:
        """Accept a serial if it is neither ignored nor already seen.

        Accepted serials are marked as seen.

        Returns:
            True if the serial was accepted
        """
        serial = canonical_serial(serial)
        if serial in self._ignored or serial in self._seen:
            return False
        self._seen.add(serial)
        return True

    def is_ignored(self, serial: str | int) -> bool:
        return canonical_serial(serial) in self._ignored

    def __contains__(self, serial: str | int) -> bool:
        serial = canonical_serial(serial)
        return serial in self._ignored or serial in self._seen

    @property
    def seen(self) -> int:
        """Number of accepted serials."""
        return len(self._seen)
