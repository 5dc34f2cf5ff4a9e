#!/usr/bin/env python3
"""Split signing example - build a TBS CRL, sign it elsewhere, assemble it."""

from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from cryptography.x509.oid import NameOID

from revokr import BuildMode, CRLBuilder, Diagnostics, assemble_crl, parse_serials
from revokr.issuer import verify_crl_signature


def make_offline_ca():
    """Create a throwaway offline CA standing in for the real one."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Offline Root CA")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=3650))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False
        )
        .sign(key, hashes.SHA256())
    )
    return cert, key


def main():
    print("=== Split Signing Example ===\n")

    cert, offline_key = make_offline_ca()
    diagnostics = Diagnostics()

    # Online side: only the certificate is available
    print("1. Building TBS CRL without the private key...")
    serials = parse_serials(["0A01", "beef", "0xBEEF", "not-hex"], diagnostics)
    builder = CRLBuilder(cert, mode=BuildMode.TBS, diagnostics=diagnostics)
    artifact = builder.build(
        include_serials=serials,
        explicit_number="7",
    )
    print(f"   ✓ CRL Number: {artifact.crl_number}")
    print(f"   ✓ Entries: {', '.join(artifact.serials)}")
    print(f"   ✓ Digest: {artifact.digest.hex()}")
    for warning in diagnostics.warnings:
        print(f"   ! {warning}")
    print()

    # Offline side: sign the digest, the TBS body never leaves the online host
    print("2. Signing digest on the offline host...")
    signature = offline_key.sign(artifact.digest, ec.ECDSA(Prehashed(hashes.SHA256())))
    print(f"   ✓ Signature: {len(signature)} bytes\n")

    # Online side again
    print("3. Assembling final CRL...")
    crl_der = assemble_crl(cert, artifact.der, signature)
    print(f"   ✓ CRL size: {len(crl_der)} bytes")
    print(f"   ✓ Signature valid: {verify_crl_signature(crl_der, cert)}")


if __name__ == "__main__":
    main()
