"""Exception hierarchy for revokr."""


class RevokrError(Exception):
    """Base exception for all revokr errors."""

    pass


# Configuration errors
class ConfigurationError(RevokrError):
    """Base exception for invalid or missing configuration."""

    pass


class PreconditionError(ConfigurationError):
    """A required input for the requested operation is missing."""

    pass


class SeparationOfDutiesError(PreconditionError):
    """Signing material was supplied to the to-be-signed side."""

    pass


class InvalidCRLNumberError(ConfigurationError):
    """Explicit CRL number is not a non-negative decimal integer."""

    pass


class InvalidTimeFormatError(ConfigurationError):
    """Time value does not match any accepted format."""

    pass


class OutputError(ConfigurationError):
    """Output cannot be written to the requested destination."""

    pass


class ConfigFileError(ConfigurationError):
    """Configuration file cannot be loaded or parsed."""

    pass


# Input errors
class InputFileError(RevokrError):
    """Base exception for unreadable required input files."""

    pass


class CertificateParseError(InputFileError):
    """Failed to parse the issuer certificate."""

    pass


class KeyParseError(InputFileError):
    """Failed to parse or decrypt the issuer private key."""

    pass


class CRLParseError(InputFileError):
    """Failed to parse a certificate revocation list."""

    pass


# Crypto errors
class KeyMismatchError(RevokrError):
    """Private key does not belong to the issuer certificate."""

    pass


class UnsupportedAlgorithmError(RevokrError):
    """Signature algorithm or key type is not supported."""

    pass


class AssemblyError(RevokrError):
    """Signed CRL cannot be assembled from the given parts."""

    pass


# Serial errors
class InvalidSerialError(RevokrError):
    """Serial number is not valid hexadecimal."""

    pass
