"""revokr - CRL reconciliation and split signing for offline Certificate Authorities."""

from .core import (
    BuildMode,
    CRLArtifact,
    Diagnostics,
    ExtractionResult,
    RevocationEntry,
    RevokrError,
)
from .issuer import (
    CRLBuilder,
    DedupPolicy,
    assemble_crl,
    build_crl,
    extract_revocation_entries,
    parse_serials,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "BuildMode",
    "CRLArtifact",
    "Diagnostics",
    "ExtractionResult",
    "RevocationEntry",
    "RevokrError",
    # Issuer
    "CRLBuilder",
    "DedupPolicy",
    "assemble_crl",
    "build_crl",
    "extract_revocation_entries",
    "parse_serials",
]
