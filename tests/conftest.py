"""Shared fixtures: throwaway CAs and prior CRLs."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import NamedTuple, Optional

import pytest
from asn1crypto import core
from asn1crypto import crl as asn1_crl
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.x509.oid import NameOID

NOT_BEFORE = datetime(2024, 1, 1, tzinfo=timezone.utc)
NOT_AFTER = datetime(2034, 1, 1, tzinfo=timezone.utc)
REVOKED_AT = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class CA(NamedTuple):
    cert: x509.Certificate
    key: object


def make_ca(key, name: str = "Test CA", algorithm=hashes.SHA256()) -> CA:
    """Create a self-signed CA certificate for ``key``."""
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, name)])
    if isinstance(key, ed25519.Ed25519PrivateKey):
        algorithm = None
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(1000)
        .not_valid_before(NOT_BEFORE)
        .not_valid_after(NOT_AFTER)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False
        )
        .sign(key, algorithm)
    )
    return CA(cert=cert, key=key)


def make_crl(
    ca: CA,
    serials: list[str],
    number: Optional[int] = None,
    revoked_at: datetime = REVOKED_AT,
    reasons: Optional[dict[str, x509.ReasonFlags]] = None,
) -> bytes:
    """Create a DER encoded CRL revoking hex ``serials``."""
    reasons = reasons or {}
    builder = (
        x509.CertificateRevocationListBuilder()
        .issuer_name(ca.cert.subject)
        .last_update(NOT_BEFORE)
        .next_update(NOT_AFTER)
    )
    if number is not None:
        builder = builder.add_extension(x509.CRLNumber(number), critical=False)
    for serial in serials:
        revoked = (
            x509.RevokedCertificateBuilder()
            .serial_number(int(serial, 16))
            .revocation_date(revoked_at)
        )
        if serial in reasons:
            revoked = revoked.add_extension(x509.CRLReason(reasons[serial]), critical=False)
        builder = builder.add_revoked_certificate(revoked.build())
    crl = builder.sign(ca.key, hashes.SHA256())
    return crl.public_bytes(serialization.Encoding.DER)


def write_crl(directory: Path, name: str, der: bytes, pem: bool = False) -> Path:
    path = directory / name
    if pem:
        crl = x509.load_der_x509_crl(der)
        path.write_bytes(crl.public_bytes(serialization.Encoding.PEM))
    else:
        path.write_bytes(der)
    return path


_TBS_FIELDS = (
    "version",
    "signature",
    "issuer",
    "this_update",
    "next_update",
    "revoked_certificates",
    "crl_extensions",
)


def rebuild_crl(der: bytes, **fields) -> bytes:
    """Re-encode a CRL with some tbsCertList fields replaced.

    Used for lists cryptography refuses to build. The original signature
    is kept, so the result no longer verifies.
    """
    original = asn1_crl.CertificateList.load(der)
    tbs = original["tbs_cert_list"]
    values = {
        name: tbs[name]
        for name in _TBS_FIELDS
        if not isinstance(tbs[name], core.Void)
    }
    values.update(fields)
    return asn1_crl.CertificateList(
        {
            "tbs_cert_list": asn1_crl.TbsCertList(values),
            "signature_algorithm": original["signature_algorithm"],
            "signature": original["signature"],
        }
    ).dump()


@pytest.fixture(scope="session")
def rsa_ca() -> CA:
    return make_ca(rsa.generate_private_key(public_exponent=65537, key_size=2048), "RSA CA")


@pytest.fixture(scope="session")
def ec_ca() -> CA:
    return make_ca(ec.generate_private_key(ec.SECP256R1()), "EC CA")


@pytest.fixture(scope="session")
def ec384_ca() -> CA:
    return make_ca(ec.generate_private_key(ec.SECP384R1()), "EC384 CA", hashes.SHA384())


@pytest.fixture(scope="session")
def ed25519_ca() -> CA:
    return make_ca(ed25519.Ed25519PrivateKey.generate(), "Ed25519 CA")


@pytest.fixture
def ca_files(tmp_path, rsa_ca):
    """RSA CA certificate and key written as PEM files."""
    crt_path = tmp_path / "ca.crt"
    key_path = tmp_path / "ca.key"
    crt_path.write_bytes(rsa_ca.cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(
        rsa_ca.key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return crt_path, key_path
