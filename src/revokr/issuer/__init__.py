"""CRL reconciliation, building and split-signature assembly."""

from .assemble import assemble_crl, verify_crl_signature
from .builder import CRLBuilder, build_crl, merge_entries, resolve_crl_number
from .extract import extract_revocation_entries
from .serials import (
    DedupPolicy,
    canonical_serial,
    is_writable_serial,
    parse_serials,
    read_serials_file,
)

__all__ = [
    "CRLBuilder",
    "DedupPolicy",
    "assemble_crl",
    "build_crl",
    "canonical_serial",
    "extract_revocation_entries",
    "is_writable_serial",
    "merge_entries",
    "parse_serials",
    "read_serials_file",
    "resolve_crl_number",
    "verify_crl_signature",
]
