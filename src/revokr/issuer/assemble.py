"""Assembly of signed CRLs from a TBS body and an external signature."""

import logging
from typing import Optional

from asn1crypto import algos, core
from asn1crypto import crl as asn1_crl
from cryptography import x509

from ..core.crypto import SignatureScheme, signature_scheme_for
from ..core.diagnostics import Diagnostics
from ..core.errors import AssemblyError

logger = logging.getLogger(__name__)


def signature_algorithm_identifier(scheme: SignatureScheme) -> algos.SignedDigestAlgorithm:
    """Build the AlgorithmIdentifier for a signature scheme.

    RSA schemes carry an explicit NULL parameter, ECDSA schemes none.
    """
    if scheme.null_parameters:
        return algos.SignedDigestAlgorithm(
            {"algorithm": scheme.oid, "parameters": core.Null()}
        )
    return algos.SignedDigestAlgorithm({"algorithm": scheme.oid})


def _load_tbs(tbs: bytes) -> tuple[asn1_crl.TbsCertList, str]:
    try:
        tbs_list = asn1_crl.TbsCertList.load(tbs, strict=True)
        # force a parse so malformed bodies fail here
        inner_algorithm = tbs_list["signature"]["algorithm"].dotted
    except (ValueError, TypeError) as e:
        raise AssemblyError(f"failed to decode TBS CRL data: {e}")
    return tbs_list, inner_algorithm


def assemble_crl(
    issuer: x509.Certificate,
    tbs: bytes,
    signature: bytes,
    diagnostics: Optional[Diagnostics] = None,
) -> bytes:
    """Combine a TBS body and its signature into a signed CRL.

    The TBS bytes are kept verbatim. The signature algorithm is taken
    from the issuer certificate's declared signature algorithm.

    Args:
        issuer: Issuer (CA) certificate
        tbs: DER encoded tbsCertList
        signature: Signature over ``tbs`` made with the issuer key

    Returns:
        DER encoded signed CRL

    Raises:
        AssemblyError: If TBS or signature is empty, the TBS cannot be
            decoded, or it names a different signature algorithm
        UnsupportedAlgorithmError: If the issuer's algorithm is not supported
    """
    diagnostics = diagnostics or Diagnostics(logger)

    if not tbs:
        raise AssemblyError("TBS data must be provided")
    if not signature:
        raise AssemblyError("signature data must be provided")

    scheme = signature_scheme_for(issuer)
    tbs_list, inner_algorithm = _load_tbs(tbs)

    if inner_algorithm != scheme.oid:
        raise AssemblyError(
            f"TBS signature algorithm {inner_algorithm} does not match "
            f"issuer signature algorithm {scheme.oid}"
        )

    signed = asn1_crl.CertificateList(
        {
            "tbs_cert_list": tbs_list,
            "signature_algorithm": signature_algorithm_identifier(scheme),
            "signature": signature,
        }
    )
    der = signed.dump()
    diagnostics.debug(
        "assembled revocation list", algorithm=scheme.name, size=len(der)
    )
    return der


def verify_crl_signature(crl_der: bytes, issuer: x509.Certificate) -> bool:
    """Check a DER encoded CRL's signature against the issuer public key.

    Returns:
        True if the signature is valid, False otherwise
    """
    try:
        crl = x509.load_der_x509_crl(crl_der)
        return crl.is_signature_valid(issuer.public_key())
    except ValueError:
        return False
