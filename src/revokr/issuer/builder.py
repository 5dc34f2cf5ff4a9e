"""Revocation list builder for offline Certificate Authorities."""

import logging
import re
from datetime import datetime
from typing import Iterable, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from ..core.crypto import (
    SigningKey,
    generate_placeholder_key,
    key_family,
    signature_scheme_for,
    signing_hash_for,
    verify_key_match,
)
from ..core.diagnostics import Diagnostics
from ..core.errors import (
    InvalidCRLNumberError,
    PreconditionError,
    SeparationOfDutiesError,
    UnsupportedAlgorithmError,
)
from ..core.models import BuildMode, CRLArtifact, RevocationEntry
from ..core.times import as_utc, parse_time
from .serials import DedupPolicy, accept_writable, canonical_serial

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"^[0-9]+$")


def resolve_crl_number(
    resolved: Optional[int], explicit: Optional[str | int] = None
) -> int:
    """Choose the CRL number for a new list.

    An explicit number always wins. Otherwise the highest number found in
    prior CRLs is incremented, or 1 is used when there was none.

    Raises:
        InvalidCRLNumberError: If the explicit number is not a non-negative
            decimal integer
    """
    if isinstance(explicit, int):
        if explicit < 0:
            raise InvalidCRLNumberError(f"CRL number must not be negative: {explicit}")
        return explicit

    if explicit is not None and explicit.strip():
        text = explicit.strip()
        if not _DECIMAL_RE.match(text):
            raise InvalidCRLNumberError(
                f"invalid CRL number {explicit!r}, must be a valid decimal number"
            )
        return int(text)

    if resolved is None:
        return 1
    return resolved + 1


def merge_entries(
    merged_entries: Iterable[RevocationEntry],
    include_serials: Iterable[str | int],
    ignore_serials: Iterable[str | int],
    revocation_date: datetime,
    diagnostics: Optional[Diagnostics] = None,
) -> list[RevocationEntry]:
    """Combine recovered entries with newly revoked serials.

    Recovered entries come first. Each include serial that is not already
    listed and not ignored is added with ``revocation_date``. Serials that
    cannot be written to a CRL are skipped with a warning.
    """
    diagnostics = diagnostics or Diagnostics(logger)
    policy = DedupPolicy(ignore_serials)
    entries = [
        e
        for e in merged_entries
        if accept_writable(e.serial_number, diagnostics)
        and policy.consider(e.serial_number)
    ]

    for serial in include_serials:
        if accept_writable(serial, diagnostics) and policy.consider(serial):
            entries.append(
                RevocationEntry(
                    serial_number=int(canonical_serial(serial), 16),
                    revocation_date=revocation_date,
                )
            )

    return entries


def _as_datetime(value: Optional[str | datetime]) -> Optional[datetime]:
    if isinstance(value, datetime):
        return as_utc(value)
    parsed = parse_time(value)
    return as_utc(parsed) if parsed is not None else None


class CRLBuilder:
    """Builds signed CRLs, or TBS bodies for external signing."""

    def __init__(
        self,
        issuer: x509.Certificate,
        signer: Optional[SigningKey] = None,
        mode: BuildMode = BuildMode.SIGNED,
        diagnostics: Optional[Diagnostics] = None,
    ):
        """Initialize builder.

        Args:
            issuer: Issuer (CA) certificate
            signer: Issuer private key, required in signed mode and
                forbidden in TBS mode
            mode: BuildMode.SIGNED or BuildMode.TBS
            diagnostics: Sink for warnings

        Raises:
            PreconditionError: If the issuer, or the signer in signed mode,
                is missing
            SeparationOfDutiesError: If a signer is given in TBS mode
            KeyMismatchError: If the signer does not match the issuer
        """
        if issuer is None:
            raise PreconditionError("issuer certificate must be provided")

        self.issuer = issuer
        self.mode = BuildMode(mode)
        self.diagnostics = diagnostics or Diagnostics(logger)

        if self.mode == BuildMode.SIGNED:
            if signer is None:
                raise PreconditionError(
                    "issuer private key must be provided to sign a CRL"
                )
            verify_key_match(issuer, signer)
        elif signer is not None:
            raise SeparationOfDutiesError(
                "issuer private key must not be supplied when creating a TBS CRL"
            )

        self.signer = signer
        self._check_key_usage()

    def _check_key_usage(self):
        try:
            usage = self.issuer.extensions.get_extension_for_class(x509.KeyUsage).value
        except x509.ExtensionNotFound:
            return
        if not usage.crl_sign:
            self.diagnostics.warning(
                "issuer certificate key usage does not include cRLSign",
                subject=self.issuer.subject.rfc4514_string(),
            )

    def _authority_key_identifier(self) -> x509.AuthorityKeyIdentifier:
        try:
            ski = self.issuer.extensions.get_extension_for_class(
                x509.SubjectKeyIdentifier
            ).value
        except x509.ExtensionNotFound:
            return x509.AuthorityKeyIdentifier.from_issuer_public_key(
                self.issuer.public_key()
            )
        return x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski)

    def _template(
        self,
        entries: list[RevocationEntry],
        crl_number: int,
        this_update: datetime,
        next_update: datetime,
    ) -> x509.CertificateRevocationListBuilder:
        try:
            builder = (
                x509.CertificateRevocationListBuilder()
                .issuer_name(self.issuer.subject)
                .last_update(this_update)
                .next_update(next_update)
            )
        except ValueError as e:
            raise PreconditionError(f"invalid CRL validity period: {e}")

        builder = builder.add_extension(x509.CRLNumber(crl_number), critical=False)
        builder = builder.add_extension(self._authority_key_identifier(), critical=False)

        for entry in entries:
            try:
                revoked = (
                    x509.RevokedCertificateBuilder()
                    .serial_number(entry.serial_number)
                    .revocation_date(entry.revocation_date)
                )
            except ValueError as e:
                raise PreconditionError(
                    f"revocation date of serial {entry.serial} cannot be written: {e}"
                )
            if entry.reason:
                revoked = revoked.add_extension(
                    x509.CRLReason(x509.ReasonFlags(entry.reason)), critical=False
                )
            builder = builder.add_revoked_certificate(revoked.build())

        return builder

    def build(
        self,
        include_serials: Iterable[str | int] = (),
        ignore_serials: Iterable[str | int] = (),
        merged_entries: Iterable[RevocationEntry] = (),
        resolved_number: Optional[int] = None,
        explicit_number: Optional[str | int] = None,
        this_update: Optional[str | datetime] = None,
        next_update: Optional[str | datetime] = None,
    ) -> CRLArtifact:
        """Build the revocation list.

        Args:
            include_serials: Serials to newly revoke
            ignore_serials: Serials that must not appear in the list
            merged_entries: Entries recovered from prior CRLs
            resolved_number: Highest CRL number found in prior CRLs
            explicit_number: CRL number overriding automatic numbering
            this_update: ThisUpdate (default: issuer NotBefore)
            next_update: NextUpdate (default: issuer NotAfter)

        Returns:
            CRLArtifact holding the signed CRL, or the TBS body and digest

        Raises:
            InvalidTimeFormatError: If a time string cannot be parsed
            InvalidCRLNumberError: If the explicit number is invalid
            UnsupportedAlgorithmError: If the issuer's signature algorithm
                cannot be used
        """
        this_update = _as_datetime(this_update) or self.issuer.not_valid_before_utc
        next_update = _as_datetime(next_update) or self.issuer.not_valid_after_utc

        crl_number = resolve_crl_number(resolved_number, explicit_number)
        entries = merge_entries(
            merged_entries,
            include_serials,
            ignore_serials,
            this_update,
            self.diagnostics,
        )
        builder = self._template(entries, crl_number, this_update, next_update)

        if self.mode == BuildMode.SIGNED:
            algorithm = signing_hash_for(
                self.issuer, key_family(self.signer.public_key())
            )
            crl = builder.sign(self.signer, algorithm)
            der = crl.public_bytes(serialization.Encoding.DER)
            digest = None
        else:
            scheme = signature_scheme_for(self.issuer)
            issuer_family = key_family(self.issuer.public_key())
            if scheme.family != issuer_family:
                raise UnsupportedAlgorithmError(
                    f"issuer signature algorithm {scheme.name} does not match "
                    f"issuer {issuer_family.value} key"
                )
            placeholder = generate_placeholder_key(self.issuer.public_key())
            crl = builder.sign(placeholder, scheme.new_hash())
            der = crl.tbs_certlist_bytes
            digest = scheme.digest(der)

        artifact = CRLArtifact(
            mode=self.mode,
            der=der,
            digest=digest,
            crl_number=crl_number,
            this_update=this_update,
            next_update=next_update,
            entries=entries,
        )
        self.diagnostics.info("built revocation list", **artifact.summary())
        return artifact


def build_crl(
    issuer: x509.Certificate,
    signer: Optional[SigningKey],
    include_serials: Iterable[str | int],
    ignore_serials: Iterable[str | int],
    merged_entries: Iterable[RevocationEntry],
    resolved_number: Optional[int],
    explicit_number: Optional[str | int] = None,
    this_update: Optional[str | datetime] = None,
    next_update: Optional[str | datetime] = None,
    mode: BuildMode = BuildMode.SIGNED,
    diagnostics: Optional[Diagnostics] = None,
) -> CRLArtifact:
    """Build a CRL in one call. See CRLBuilder.build."""
    builder = CRLBuilder(issuer, signer=signer, mode=mode, diagnostics=diagnostics)
    return builder.build(
        include_serials=include_serials,
        ignore_serials=ignore_serials,
        merged_entries=merged_entries,
        resolved_number=resolved_number,
        explicit_number=explicit_number,
        this_update=this_update,
        next_update=next_update,
    )
