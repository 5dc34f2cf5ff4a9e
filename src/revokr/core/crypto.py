"""Key families, key/certificate matching and the signature algorithm table."""

from enum import Enum
from typing import Optional, Union

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.x509.oid import SignatureAlgorithmOID
from pydantic import BaseModel, Field

from .errors import KeyMismatchError, PreconditionError, UnsupportedAlgorithmError

SigningKey = Union[
    rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey
]


class KeyFamily(str, Enum):
    """Supported public key families."""

    RSA = "rsa"
    ECDSA = "ecdsa"
    ED25519 = "ed25519"


# Curves accepted for ECDSA keys
_EC_CURVES: dict[str, type[ec.EllipticCurve]] = {
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
}


class RSAKeyFields(BaseModel):
    """Public fields of an RSA key."""

    family: KeyFamily = KeyFamily.RSA
    modulus: int
    exponent: int

    model_config = {"frozen": True}

    @property
    def key_size(self) -> int:
        # Rounded up to whole bytes
        return (self.modulus.bit_length() + 7) // 8 * 8


class ECKeyFields(BaseModel):
    """Public fields of an ECDSA key."""

    family: KeyFamily = KeyFamily.ECDSA
    curve: str
    x: int
    y: int

    model_config = {"frozen": True}


class Ed25519KeyFields(BaseModel):
    """Public fields of an Ed25519 key."""

    family: KeyFamily = KeyFamily.ED25519
    raw: bytes

    model_config = {"frozen": True}


PublicKeyFields = Union[RSAKeyFields, ECKeyFields, Ed25519KeyFields]


def public_key_fields(public_key) -> PublicKeyFields:
    """Extract the algorithm-specific fields of a public key.

    Args:
        public_key: cryptography public key object

    Returns:
        One of RSAKeyFields, ECKeyFields or Ed25519KeyFields

    Raises:
        UnsupportedAlgorithmError: If the key type or curve is not supported
    """
    if isinstance(public_key, rsa.RSAPublicKey):
        numbers = public_key.public_numbers()
        return RSAKeyFields(modulus=numbers.n, exponent=numbers.e)
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        if public_key.curve.name not in _EC_CURVES:
            raise UnsupportedAlgorithmError(
                f"unsupported elliptic curve: {public_key.curve.name}"
            )
        numbers = public_key.public_numbers()
        return ECKeyFields(curve=public_key.curve.name, x=numbers.x, y=numbers.y)
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return Ed25519KeyFields(raw=public_key.public_bytes_raw())
    raise UnsupportedAlgorithmError(
        f"unsupported public key type: {type(public_key).__name__}"
    )


def key_family(public_key) -> KeyFamily:
    """Get the family of a public key."""
    return public_key_fields(public_key).family


def verify_key_match(certificate: Optional[x509.Certificate], private_key) -> None:
    """Check that a private key belongs to a certificate.

    Args:
        certificate: Issuer certificate
        private_key: Private key expected to match the certificate

    Raises:
        PreconditionError: If either argument is missing
        KeyMismatchError: If the public keys differ
        UnsupportedAlgorithmError: If the key type is not supported
    """
    if certificate is None:
        raise PreconditionError("certificate is missing")
    if private_key is None:
        raise PreconditionError("private key is missing")

    key_fields = public_key_fields(private_key.public_key())
    cert_fields = public_key_fields(certificate.public_key())

    if key_fields.family != cert_fields.family:
        raise KeyMismatchError(
            f"certificate public key is {cert_fields.family.value}, "
            f"private key is {key_fields.family.value}"
        )

    if isinstance(key_fields, RSAKeyFields):
        if (key_fields.modulus, key_fields.exponent) != (
            cert_fields.modulus,
            cert_fields.exponent,
        ):
            raise KeyMismatchError(
                "RSA public key in certificate does not match private key"
            )
    elif isinstance(key_fields, ECKeyFields):
        if (key_fields.curve, key_fields.x, key_fields.y) != (
            cert_fields.curve,
            cert_fields.x,
            cert_fields.y,
        ):
            raise KeyMismatchError(
                "ECDSA public key in certificate does not match private key"
            )
    elif isinstance(key_fields, Ed25519KeyFields):
        if key_fields.raw != cert_fields.raw:
            raise KeyMismatchError(
                "Ed25519 public key in certificate does not match private key"
            )


def generate_placeholder_key(public_key) -> SigningKey:
    """Generate a throwaway private key shaped like the given public key.

    The key has the same family and size (or curve) as ``public_key``. It
    only drives the CRL encoder; its signature is discarded.
    """
    fields = public_key_fields(public_key)
    if isinstance(fields, RSAKeyFields):
        return rsa.generate_private_key(
            public_exponent=65537, key_size=fields.key_size
        )
    if isinstance(fields, ECKeyFields):
        return ec.generate_private_key(_EC_CURVES[fields.curve]())
    return ed25519.Ed25519PrivateKey.generate()


class SignatureScheme(BaseModel):
    """Entry of the fixed signature algorithm table."""

    name: str = Field(description="Algorithm name, e.g. sha256_rsa")
    oid: str = Field(description="Dotted signature algorithm OID")
    family: KeyFamily = Field(description="Key family producing the signature")
    hash_algorithm: type[hashes.HashAlgorithm]
    null_parameters: bool = Field(
        default=False, description="AlgorithmIdentifier carries explicit NULL"
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def new_hash(self) -> hashes.HashAlgorithm:
        return self.hash_algorithm()

    def digest(self, data: bytes) -> bytes:
        """Hash data with this scheme's hash function."""
        h = hashes.Hash(self.new_hash())
        h.update(data)
        return h.finalize()


SIGNATURE_SCHEMES: dict[x509.ObjectIdentifier, SignatureScheme] = {
    SignatureAlgorithmOID.RSA_WITH_SHA256: SignatureScheme(
        name="sha256_rsa",
        oid="1.2.840.113549.1.1.11",
        family=KeyFamily.RSA,
        hash_algorithm=hashes.SHA256,
        null_parameters=True,
    ),
    SignatureAlgorithmOID.RSA_WITH_SHA384: SignatureScheme(
        name="sha384_rsa",
        oid="1.2.840.113549.1.1.12",
        family=KeyFamily.RSA,
        hash_algorithm=hashes.SHA384,
        null_parameters=True,
    ),
    SignatureAlgorithmOID.RSA_WITH_SHA512: SignatureScheme(
        name="sha512_rsa",
        oid="1.2.840.113549.1.1.13",
        family=KeyFamily.RSA,
        hash_algorithm=hashes.SHA512,
        null_parameters=True,
    ),
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: SignatureScheme(
        name="sha256_ecdsa",
        oid="1.2.840.10045.4.3.2",
        family=KeyFamily.ECDSA,
        hash_algorithm=hashes.SHA256,
    ),
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: SignatureScheme(
        name="sha384_ecdsa",
        oid="1.2.840.10045.4.3.3",
        family=KeyFamily.ECDSA,
        hash_algorithm=hashes.SHA384,
    ),
    SignatureAlgorithmOID.ECDSA_WITH_SHA512: SignatureScheme(
        name="sha512_ecdsa",
        oid="1.2.840.10045.4.3.4",
        family=KeyFamily.ECDSA,
        hash_algorithm=hashes.SHA512,
    ),
}


def signature_scheme_for(certificate: x509.Certificate) -> SignatureScheme:
    """Look up the certificate's declared signature algorithm.

    Raises:
        UnsupportedAlgorithmError: If the algorithm is not in the table
    """
    oid = certificate.signature_algorithm_oid
    scheme = SIGNATURE_SCHEMES.get(oid)
    if scheme is None:
        raise UnsupportedAlgorithmError(
            f"unsupported signature algorithm: {oid.dotted_string}"
        )
    return scheme


def signing_hash_for(
    certificate: x509.Certificate, family: KeyFamily
) -> Optional[hashes.HashAlgorithm]:
    """Get the hash used when signing directly with a key of ``family``.

    Ed25519 signs without a separate hash. Other families use the hash of
    the certificate's declared signature algorithm.

    Raises:
        UnsupportedAlgorithmError: If the declared algorithm has no usable hash
    """
    if family == KeyFamily.ED25519:
        return None
    try:
        algorithm = certificate.signature_hash_algorithm
    except UnsupportedAlgorithm as e:
        raise UnsupportedAlgorithmError(f"unsupported signature algorithm: {e}")
    if algorithm is None:
        raise UnsupportedAlgorithmError(
            "issuer signature algorithm has no hash usable with a "
            f"{family.value} key: {certificate.signature_algorithm_oid.dotted_string}"
        )
    return algorithm
