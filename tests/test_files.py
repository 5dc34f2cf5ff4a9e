"""Tests for PEM/DER input loading and output writing."""

import base64
import io

import pytest
from cryptography.hazmat.primitives import serialization

from revokr.core.diagnostics import Diagnostics
from revokr.core.errors import (
    CertificateParseError,
    KeyParseError,
    OutputError,
)
from revokr.core.files import (
    decode_pem_or_der,
    encode_output,
    load_certificate,
    load_private_key,
    read_signature,
    read_tbs,
    write_digest,
    write_output,
)


def _write_key(tmp_path, key, encoding, fmt, password=None, name="ca.key"):
    encryption = (
        serialization.BestAvailableEncryption(password)
        if password
        else serialization.NoEncryption()
    )
    path = tmp_path / name
    path.write_bytes(key.private_bytes(encoding, fmt, encryption))
    return path


def test_load_certificate_pem_and_der(tmp_path, rsa_ca):
    """Test certificates load from PEM and raw DER."""
    pem_path = tmp_path / "ca.pem"
    der_path = tmp_path / "ca.der"
    pem_path.write_bytes(rsa_ca.cert.public_bytes(serialization.Encoding.PEM))
    der_path.write_bytes(rsa_ca.cert.public_bytes(serialization.Encoding.DER))

    assert load_certificate(pem_path) == rsa_ca.cert
    assert load_certificate(der_path) == rsa_ca.cert


def test_load_certificate_errors(tmp_path):
    """Test missing and invalid certificate files are fatal."""
    garbage = tmp_path / "garbage.crt"
    garbage.write_bytes(b"definitely not a certificate")

    with pytest.raises(CertificateParseError):
        load_certificate(garbage)
    with pytest.raises(CertificateParseError):
        load_certificate(tmp_path / "missing.crt")


@pytest.mark.parametrize(
    "encoding,fmt",
    [
        (serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8),
        (serialization.Encoding.DER, serialization.PrivateFormat.PKCS8),
        (serialization.Encoding.PEM, serialization.PrivateFormat.TraditionalOpenSSL),
        (serialization.Encoding.DER, serialization.PrivateFormat.TraditionalOpenSSL),
    ],
)
def test_load_unencrypted_keys(tmp_path, rsa_ca, ec_ca, encoding, fmt):
    """Test PKCS#8, PKCS#1 and SEC1 keys load in PEM and DER."""
    for ca in (rsa_ca, ec_ca):
        path = _write_key(tmp_path, ca.key, encoding, fmt)

        key = load_private_key(path)

        assert key.private_numbers() == ca.key.private_numbers()


def test_load_unencrypted_key_ignores_password(tmp_path, rsa_ca):
    """Test a password given for an unencrypted key is ignored."""
    path = _write_key(
        tmp_path, rsa_ca.key, serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8
    )

    key = load_private_key(path, password="unused")

    assert key.private_numbers() == rsa_ca.key.private_numbers()


def test_load_encrypted_pkcs8(tmp_path, ec_ca):
    """Test encrypted PKCS#8 keys need the right password."""
    for encoding in (serialization.Encoding.PEM, serialization.Encoding.DER):
        path = _write_key(
            tmp_path, ec_ca.key, encoding, serialization.PrivateFormat.PKCS8, b"secret"
        )

        assert load_private_key(path, "secret").private_numbers() == ec_ca.key.private_numbers()
        with pytest.raises(KeyParseError):
            load_private_key(path)
        with pytest.raises(KeyParseError):
            load_private_key(path, "wrong")


def test_load_legacy_encrypted_pem(tmp_path, rsa_ca):
    """Test legacy PEM encryption loads with a warning."""
    path = _write_key(
        tmp_path,
        rsa_ca.key,
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        b"secret",
    )
    diagnostics = Diagnostics()

    key = load_private_key(path, "secret", diagnostics)

    assert key.private_numbers() == rsa_ca.key.private_numbers()
    assert len(diagnostics.warnings) == 1
    assert "legacy" in diagnostics.warnings[0].message

    with pytest.raises(KeyParseError):
        load_private_key(path)


def test_load_private_key_garbage(tmp_path):
    """Test unparseable key files are fatal."""
    path = tmp_path / "bad.key"
    path.write_bytes(b"\x00\x01\x02")

    with pytest.raises(KeyParseError):
        load_private_key(path)
    with pytest.raises(KeyParseError):
        load_private_key(tmp_path / "missing.key")


def test_load_ed25519_key(tmp_path, ed25519_ca):
    """Test Ed25519 keys load from PKCS#8."""
    path = _write_key(
        tmp_path, ed25519_ca.key, serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8
    )

    key = load_private_key(path)

    assert key.public_key().public_bytes_raw() == ed25519_ca.key.public_key().public_bytes_raw()


def test_decode_pem_or_der():
    """Test PEM blocks are unwrapped and DER passes through."""
    armored = encode_output(b"\x30\x00", True, "X509 CRL TBS")

    assert armored.startswith(b"-----BEGIN X509 CRL TBS-----")
    assert decode_pem_or_der(armored) == ("X509 CRL TBS", {}, b"\x30\x00")
    assert decode_pem_or_der(b"\x30\x00") == (None, {}, b"\x30\x00")


def test_read_tbs(tmp_path):
    """Test TBS files load from PEM and DER."""
    pem_path = tmp_path / "tbs.pem"
    pem_path.write_bytes(encode_output(b"\x30\x01\x05", True, "X509 CRL TBS"))
    der_path = tmp_path / "tbs.der"
    der_path.write_bytes(b"\x30\x01\x05")

    assert read_tbs(pem_path) == b"\x30\x01\x05"
    assert read_tbs(der_path) == b"\x30\x01\x05"


def test_read_signature_raw_and_base64(tmp_path):
    """Test signature files are decoded from base64 when possible."""
    signature = bytes(range(256))
    raw = tmp_path / "sig.bin"
    raw.write_bytes(signature)
    b64 = tmp_path / "sig.b64"
    b64.write_bytes(base64.encodebytes(signature))
    armored = tmp_path / "sig.pem"
    armored.write_bytes(encode_output(signature, True, "SIGNATURE"))

    assert read_signature(raw) == signature
    assert read_signature(b64) == signature
    assert read_signature(armored) == signature


def test_write_output_der_requires_path():
    """Test DER output without a path is refused."""
    with pytest.raises(OutputError):
        write_output(b"\x30\x00", None, as_pem=False)


def test_write_output_pem_to_stream():
    """Test PEM output without a path goes to the stream."""
    stream = io.StringIO()

    write_output(b"\x30\x00", None, as_pem=True, stream=stream)

    assert stream.getvalue().startswith("-----BEGIN X509 CRL-----")


def test_write_output_file(tmp_path):
    """Test DER and PEM files are written."""
    der_path = tmp_path / "out.crl"
    pem_path = tmp_path / "out.pem"

    write_output(b"\x30\x00", der_path)
    write_output(b"\x30\x00", pem_path, as_pem=True)

    assert der_path.read_bytes() == b"\x30\x00"
    assert pem_path.read_bytes().startswith(b"-----BEGIN X509 CRL-----")


def test_write_digest(tmp_path):
    """Test the digest needs a path and uses its own PEM label."""
    path = tmp_path / "digest.pem"

    write_digest(b"\x01" * 32, path, as_pem=True)

    assert path.read_bytes().startswith(b"-----BEGIN X509 CRL DIGEST-----")
    with pytest.raises(OutputError):
        write_digest(b"\x01" * 32, None)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
