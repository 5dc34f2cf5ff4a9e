"""Tests for split-signature assembly."""

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from revokr.core.errors import AssemblyError, UnsupportedAlgorithmError
from revokr.core.models import BuildMode
from revokr.issuer.assemble import assemble_crl, verify_crl_signature
from revokr.issuer.builder import build_crl


def test_assemble_equals_direct_signing(rsa_ca, ec_ca):
    """Test assembling a signed CRL's own TBS and signature reproduces it."""
    for ca in (rsa_ca, ec_ca):
        artifact = build_crl(ca.cert, ca.key, ["11", "22"], [], [], 3)
        crl = x509.load_der_x509_crl(artifact.der)

        assembled = assemble_crl(ca.cert, crl.tbs_certlist_bytes, crl.signature)

        assert assembled == artifact.der


def test_split_signing_rsa_is_byte_identical(rsa_ca):
    """Test TBS build, external signature and assembly match direct signing."""
    kwargs = dict(
        include_serials=["aa", "bb"],
        ignore_serials=["cc"],
        merged_entries=[],
        resolved_number=8,
    )
    direct = build_crl(rsa_ca.cert, rsa_ca.key, **kwargs)
    tbs = build_crl(rsa_ca.cert, None, mode=BuildMode.TBS, **kwargs)

    signature = rsa_ca.key.sign(tbs.der, padding.PKCS1v15(), hashes.SHA256())
    assembled = assemble_crl(rsa_ca.cert, tbs.der, signature)

    assert assembled == direct.der


def test_split_signing_from_digest(rsa_ca):
    """Test signing the emitted digest gives the same signature as signing the TBS."""
    tbs = build_crl(rsa_ca.cert, None, ["aa"], [], [], None, mode=BuildMode.TBS)

    from_digest = rsa_ca.key.sign(
        tbs.digest, padding.PKCS1v15(), Prehashed(hashes.SHA256())
    )
    from_tbs = rsa_ca.key.sign(tbs.der, padding.PKCS1v15(), hashes.SHA256())

    assert from_digest == from_tbs
    assert verify_crl_signature(assemble_crl(rsa_ca.cert, tbs.der, from_digest), rsa_ca.cert)


def test_split_signing_ec(ec_ca, ec384_ca):
    """Test an externally made ECDSA signature assembles into a valid CRL."""
    for ca, algorithm in ((ec_ca, hashes.SHA256()), (ec384_ca, hashes.SHA384())):
        tbs = build_crl(ca.cert, None, ["abc"], [], [], None, mode=BuildMode.TBS)
        signature = ca.key.sign(tbs.der, ec.ECDSA(algorithm))

        der = assemble_crl(ca.cert, tbs.der, signature)
        crl = x509.load_der_x509_crl(der)

        assert crl.tbs_certlist_bytes == tbs.der
        assert crl.is_signature_valid(ca.cert.public_key())


def test_assemble_wrong_signature_does_not_verify(rsa_ca):
    """Test a bogus signature assembles but fails verification."""
    tbs = build_crl(rsa_ca.cert, None, [], [], [], None, mode=BuildMode.TBS)

    der = assemble_crl(rsa_ca.cert, tbs.der, b"\x01" * 256)

    assert verify_crl_signature(der, rsa_ca.cert) is False


def test_assemble_requires_tbs_and_signature(rsa_ca):
    """Test empty inputs are fatal."""
    with pytest.raises(AssemblyError):
        assemble_crl(rsa_ca.cert, b"", b"sig")
    with pytest.raises(AssemblyError):
        assemble_crl(rsa_ca.cert, b"\x30\x00", b"")


def test_assemble_rejects_garbage_tbs(rsa_ca):
    """Test undecodable TBS data is fatal."""
    with pytest.raises(AssemblyError):
        assemble_crl(rsa_ca.cert, b"not a tbs", b"sig")


def test_assemble_rejects_algorithm_mismatch(rsa_ca, ec_ca):
    """Test a TBS naming another signature algorithm is refused."""
    tbs = build_crl(ec_ca.cert, None, [], [], [], None, mode=BuildMode.TBS)

    with pytest.raises(AssemblyError):
        assemble_crl(rsa_ca.cert, tbs.der, b"sig")


def test_assemble_unsupported_algorithm(ed25519_ca):
    """Test issuers outside the algorithm table are refused."""
    with pytest.raises(UnsupportedAlgorithmError):
        assemble_crl(ed25519_ca.cert, b"\x30\x00", b"sig")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
