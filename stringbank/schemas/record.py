"""AnalysisRecord Pydantic models.

A record is the stored result of analyzing one string. Records are frozen:
once inserted, neither the value nor its derived properties change.
"""

from datetime import datetime, timezone
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StringProperties(BaseModel):
    """Properties derived from a string value.

    All fields are a pure function of the value; see
    ``stringbank.analysis.analyzer.analyze``.
    """
    model_config = ConfigDict(frozen=True)

    length: int = Field(..., ge=0)
    is_palindrome: bool
    unique_characters: int = Field(..., ge=0)
    word_count: int = Field(..., ge=0)
    sha256_hash: str = Field(..., min_length=64, max_length=64)
    character_frequency_map: Dict[str, int] = Field(default_factory=dict)


class AnalysisRecord(BaseModel):
    """A stored string with its content address and analysis."""
    model_config = ConfigDict(frozen=True)

    id: str  # SHA-256 hex digest of the value bytes
    value: str
    properties: StringProperties
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode='after')
    def validate_content_address(self):
        """The id must be the content address computed by the analyzer."""
        if self.id != self.properties.sha256_hash:
            raise ValueError(
                f"Record id {self.id!r} does not match sha256_hash "
                f"{self.properties.sha256_hash!r}"
            )
        return self
