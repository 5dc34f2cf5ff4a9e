"""Reading and writing of PEM or DER encoded inputs and outputs."""

import base64
import binascii
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from asn1crypto import pem
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from .crypto import SigningKey
from .diagnostics import Diagnostics
from .errors import (
    CertificateParseError,
    CRLParseError,
    InputFileError,
    KeyParseError,
    OutputError,
    UnsupportedAlgorithmError,
)

logger = logging.getLogger(__name__)

CRL_PEM_LABEL = "X509 CRL"
TBS_PEM_LABEL = "X509 CRL TBS"
DIGEST_PEM_LABEL = "X509 CRL DIGEST"

# cryptography decodes CRLs lazily and reports some malformed extensions
# with its own exception types
CRL_DECODE_ERRORS = (
    ValueError,
    x509.DuplicateExtension,
    x509.UnsupportedGeneralNameType,
)


def read_file(path: str | Path) -> bytes:
    """Read a whole file into memory.

    Raises:
        InputFileError: If the file cannot be read
    """
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise InputFileError(f"failed to read file {path}: {e}")


def decode_pem_or_der(data: bytes) -> tuple[Optional[str], dict, bytes]:
    """Unwrap a PEM block, or pass DER data through unchanged.

    Returns:
        Tuple of (pem_label, pem_headers, der_bytes). The label is None
        when the data was not PEM encoded.
    """
    if pem.detect(data):
        try:
            label, headers, der = pem.unarmor(data)
            return label, dict(headers), der
        except ValueError:
            logger.debug("data looks like PEM but does not unarmor, using raw bytes")
    return None, {}, data


def read_pem_or_der(path: str | Path) -> bytes:
    """Read a PEM or DER file and return the DER bytes."""
    _, _, der = decode_pem_or_der(read_file(path))
    return der


def load_certificate(path: str | Path) -> x509.Certificate:
    """Load a single X.509 certificate from a PEM or DER file.

    Raises:
        CertificateParseError: If the file cannot be read or parsed
    """
    try:
        der = read_pem_or_der(path)
    except InputFileError as e:
        raise CertificateParseError(f"failed to read issuer certificate: {e}")
    try:
        return x509.load_der_x509_certificate(der)
    except ValueError as e:
        raise CertificateParseError(f"failed to parse issuer certificate: {e}")


def load_crl(path: str | Path) -> x509.CertificateRevocationList:
    """Load a revocation list from a PEM or DER file.

    Raises:
        CRLParseError: If the file cannot be read or parsed
    """
    try:
        der = read_pem_or_der(path)
    except InputFileError as e:
        raise CRLParseError(f"failed to read CRL file: {e}")
    try:
        return x509.load_der_x509_crl(der)
    except CRL_DECODE_ERRORS as e:
        raise CRLParseError(f"failed to parse revocation list: {e}")


def _decode_key(
    loader: Callable[..., object], blob: bytes, password: Optional[bytes]
) -> object:
    try:
        return loader(blob, password)
    except TypeError as e:
        if password is not None:
            # password given for a key that is not encrypted
            return _decode_key(loader, blob, None)
        raise KeyParseError(
            "issuer private key is encrypted but no password was provided"
        ) from e
    except UnsupportedAlgorithm as e:
        raise UnsupportedAlgorithmError(f"unsupported private key: {e}") from e
    except ValueError as e:
        raise KeyParseError(f"failed to parse issuer private key: {e}") from e


def load_private_key(
    path: str | Path,
    password: Optional[str] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> SigningKey:
    """Load the issuer private key from a PEM or DER file.

    Formats are tried in order: unencrypted PKCS#8, encrypted PKCS#8,
    legacy encrypted PEM, PKCS#1 RSA and SEC1 EC. Legacy PEM encryption
    works but is reported as a warning.

    Args:
        path: Key file path
        password: Password for encrypted keys
        diagnostics: Sink for warnings

    Returns:
        RSA, ECDSA or Ed25519 private key

    Raises:
        KeyParseError: If the key cannot be read, decrypted or parsed
        UnsupportedAlgorithmError: If the key type is not supported
    """
    diagnostics = diagnostics or Diagnostics(logger)
    try:
        data = read_file(path)
    except InputFileError as e:
        raise KeyParseError(f"failed to read issuer private key: {e}")

    secret = password.encode("utf-8") if password else None
    label, headers, der = decode_pem_or_der(data)

    if "ENCRYPTED" in headers.get("Proc-Type", ""):
        diagnostics.warning(
            "legacy PEM encryption detected; consider using PKCS#8 format",
            path=str(path),
        )
        if secret is None:
            raise KeyParseError(
                "issuer private key is encrypted but no password was provided"
            )
        key = _decode_key(serialization.load_pem_private_key, data, secret)
    elif label is not None and "ENCRYPTED" in label:
        if secret is None:
            raise KeyParseError(
                "issuer private key is encrypted but no password was provided"
            )
        key = _decode_key(serialization.load_der_private_key, der, secret)
    else:
        key = _decode_key(serialization.load_der_private_key, der, secret)

    if not isinstance(
        key,
        (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey),
    ):
        raise UnsupportedAlgorithmError(
            f"unsupported private key type: {type(key).__name__}"
        )
    return key


def read_tbs(path: str | Path) -> bytes:
    """Read a to-be-signed CRL body from a PEM or DER file."""
    return read_pem_or_der(path)


def read_signature(
    path: str | Path, diagnostics: Optional[Diagnostics] = None
) -> bytes:
    """Read a signature file holding raw or base64 encoded bytes.

    A PEM wrapper is removed first. If what remains is valid base64 it is
    decoded, otherwise the bytes are returned as-is.
    """
    diagnostics = diagnostics or Diagnostics(logger)
    _, _, body = decode_pem_or_der(read_file(path))

    compact = b"".join(body.split())
    try:
        decoded = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        decoded = b""

    if decoded:
        diagnostics.debug("decoded base64 signature data", path=str(path))
        return decoded

    diagnostics.debug("read raw signature data", path=str(path))
    return body


def encode_output(data: bytes, as_pem: bool, label: str = CRL_PEM_LABEL) -> bytes:
    """Wrap DER data in a PEM block if requested."""
    if as_pem:
        return pem.armor(label, data)
    return data


def write_output(
    data: bytes,
    path: Optional[str | Path] = None,
    as_pem: bool = False,
    label: str = CRL_PEM_LABEL,
    stream: Optional[TextIO] = None,
) -> None:
    """Write a DER artifact to a file, or PEM to standard output.

    Args:
        data: DER bytes to write
        path: Destination file; None writes PEM to ``stream``
        as_pem: Wrap the data in a PEM block
        label: PEM block label
        stream: Text stream used when no path is given (default: stdout)

    Raises:
        OutputError: If DER output has no path, or the file cannot be written
    """
    out = encode_output(data, as_pem, label)

    if not path:
        if not as_pem:
            raise OutputError(
                "output path must be specified when outputting DER format"
            )
        (stream or sys.stdout).write(out.decode("ascii"))
        return

    try:
        Path(path).write_bytes(out)
    except OSError as e:
        raise OutputError(f"failed to write {path}: {e}")
    logger.info("wrote %s (%d bytes)", path, len(out))


def write_digest(
    digest: bytes, path: Optional[str | Path], as_pem: bool = False
) -> None:
    """Write the TBS digest to its required target file.

    Raises:
        OutputError: If no path is given or the file cannot be written
    """
    if not path:
        raise OutputError("target digest path must be specified")
    write_output(digest, path, as_pem=as_pem, label=DIGEST_PEM_LABEL)
