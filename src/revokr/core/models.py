"""Core data models for revokr."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class BuildMode(str, Enum):
    """How the revocation list builder finishes its output."""

    SIGNED = "signed"
    TBS = "tbs"


class RevocationEntry(BaseModel):
    """A revoked serial number and the time it was revoked."""

    serial_number: int = Field(ge=0, description="Revoked certificate serial number")
    revocation_date: datetime = Field(description="When the serial was revoked (UTC)")
    reason: Optional[str] = Field(
        default=None, description="CRL reason code carried over from a prior CRL"
    )

    model_config = {"frozen": True}

    @field_validator("revocation_date")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Treat naive datetimes as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def serial(self) -> str:
        """Canonical lowercase hexadecimal serial."""
        return format(self.serial_number, "x")


class ExtractionResult(BaseModel):
    """Entries and highest CRL number recovered from prior CRLs."""

    crl_number: Optional[int] = Field(
        default=None, description="Highest CRL number seen, None if no source had one"
    )
    entries: list[RevocationEntry] = Field(default_factory=list)
    sources_read: int = Field(default=0, description="Sources parsed successfully")
    sources_skipped: list[str] = Field(
        default_factory=list, description="Sources that failed to load or parse"
    )

    @property
    def serials(self) -> list[str]:
        return [entry.serial for entry in self.entries]


class CRLArtifact(BaseModel):
    """Result of building a revocation list.

    In signed mode ``der`` is the complete DER encoded CRL. In TBS mode it
    holds only the to-be-signed portion and ``digest`` carries its hash.
    """

    mode: BuildMode = Field(description="Build mode that produced the artifact")
    der: bytes = Field(description="Signed CRL or TBS bytes, DER encoded")
    digest: Optional[bytes] = Field(default=None, description="Digest of the TBS bytes")
    crl_number: int = Field(description="CRL number written into the list")
    this_update: datetime
    next_update: datetime
    entries: list[RevocationEntry] = Field(default_factory=list)

    @property
    def is_signed(self) -> bool:
        return self.mode == BuildMode.SIGNED

    @property
    def serials(self) -> list[str]:
        return [entry.serial for entry in self.entries]

    def summary(self) -> dict[str, Any]:
        """Short description for log output."""
        return {
            "mode": self.mode.value,
            "crl_number": self.crl_number,
            "entries": len(self.entries),
            "this_update": self.this_update.isoformat(),
            "next_update": self.next_update.isoformat(),
        }
