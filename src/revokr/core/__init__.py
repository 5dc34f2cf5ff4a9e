"""Core functionality for revokr."""

from .crypto import (
    KeyFamily,
    SignatureScheme,
    generate_placeholder_key,
    key_family,
    public_key_fields,
    signature_scheme_for,
    verify_key_match,
)
from .diagnostics import Diagnostic, Diagnostics
from .errors import (
    RevokrError,
    ConfigurationError,
    PreconditionError,
    SeparationOfDutiesError,
    InvalidCRLNumberError,
    InvalidTimeFormatError,
    OutputError,
    ConfigFileError,
    InputFileError,
    CertificateParseError,
    KeyParseError,
    CRLParseError,
    KeyMismatchError,
    UnsupportedAlgorithmError,
    AssemblyError,
    InvalidSerialError,
)
from .models import BuildMode, CRLArtifact, ExtractionResult, RevocationEntry
from .times import parse_time

__all__ = [
    # Crypto
    "KeyFamily",
    "SignatureScheme",
    "generate_placeholder_key",
    "key_family",
    "public_key_fields",
    "signature_scheme_for",
    "verify_key_match",
    # Diagnostics
    "Diagnostic",
    "Diagnostics",
    # Errors
    "RevokrError",
    "ConfigurationError",
    "PreconditionError",
    "SeparationOfDutiesError",
    "InvalidCRLNumberError",
    "InvalidTimeFormatError",
    "OutputError",
    "ConfigFileError",
    "InputFileError",
    "CertificateParseError",
    "KeyParseError",
    "CRLParseError",
    "KeyMismatchError",
    "UnsupportedAlgorithmError",
    "AssemblyError",
    "InvalidSerialError",
    # Models
    "BuildMode",
    "CRLArtifact",
    "ExtractionResult",
    "RevocationEntry",
    # Times
    "parse_time",
]
