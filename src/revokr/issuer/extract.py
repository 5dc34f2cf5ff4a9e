"""Recovery of revocation entries from prior CRLs."""

import logging
from pathlib import Path
from typing import Iterable, Optional

from cryptography import x509

from ..core.diagnostics import Diagnostics
from ..core.errors import CRLParseError
from ..core.files import CRL_DECODE_ERRORS, load_crl
from ..core.models import ExtractionResult, RevocationEntry
from .serials import DedupPolicy, accept_writable

logger = logging.getLogger(__name__)


def _crl_number(crl: x509.CertificateRevocationList) -> Optional[int]:
    try:
        return crl.extensions.get_extension_for_class(x509.CRLNumber).value.crl_number
    except x509.ExtensionNotFound:
        return None


def _reason(revoked: x509.RevokedCertificate) -> Optional[str]:
    try:
        ext = revoked.extensions.get_extension_for_class(x509.CRLReason)
    except x509.ExtensionNotFound:
        return None
    return ext.value.reason.value


def read_crl_entries(path: str | Path) -> tuple[Optional[int], list[RevocationEntry]]:
    """Load one CRL and return its number and entries.

    Raises:
        CRLParseError: If the file cannot be read or any part fails to decode
    """
    crl = load_crl(path)
    # cryptography decodes lazily, so decode errors can surface here
    try:
        number = _crl_number(crl)
        entries = [
            RevocationEntry(
                serial_number=revoked.serial_number,
                revocation_date=revoked.revocation_date_utc,
                reason=_reason(revoked),
            )
            for revoked in crl
        ]
    except CRL_DECODE_ERRORS as e:
        raise CRLParseError(f"failed to decode revocation list: {e}")
    return number, entries


def extract_revocation_entries(
    ignore: Iterable[str | int],
    sources: Iterable[str | Path],
    diagnostics: Optional[Diagnostics] = None,
) -> ExtractionResult:
    """Merge revocation entries from prior CRLs.

    Sources that cannot be read or parsed are skipped with a warning.
    Entries whose serial is ignored, was already taken from an earlier
    source, or cannot be written to a new CRL are dropped.

    Args:
        ignore: Serial numbers to leave out
        sources: Paths of prior CRLs, PEM or DER
        diagnostics: Sink for warnings about skipped sources

    Returns:
        ExtractionResult with the highest CRL number and merged entries
    """
    diagnostics = diagnostics or Diagnostics(logger)
    policy = DedupPolicy(ignore)
    result = ExtractionResult()

    for source in sources:
        try:
            number, entries = read_crl_entries(source)
        except CRLParseError as e:
            diagnostics.warning(
                "failed to load revocation list, skipping",
                path=str(source),
                error=str(e),
            )
            result.sources_skipped.append(str(source))
            continue

        result.sources_read += 1

        if number is None:
            diagnostics.debug("revocation list has no CRL number", path=str(source))
        elif result.crl_number is None or number > result.crl_number:
            result.crl_number = number

        accepted = 0
        for entry in entries:
            if not accept_writable(
                entry.serial_number, diagnostics, path=str(source)
            ):
                continue
            if policy.consider(entry.serial_number):
                result.entries.append(entry)
                accepted += 1

        diagnostics.debug(
            "merged revocation entries",
            path=str(source),
            accepted=accepted,
            total=len(entries),
        )

    return result
