"""
Pydantic models for keyword insights.

Field aliases keep the camelCase document shape used by the stored
insight records (jdCount, resumeCount, matchType, ...).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MatchType(str, Enum):
    EXACT = "Exact"
    PARTIAL = "Partial"
    MISSING = "Missing"


class Strength(str, Enum):
    STRONG = "Strong"
    WEAK = "Weak"
    MISSING = "Missing"


class Coverage(str, Enum):
    FULL = "Full"
    PARTIAL = "Partial"
    NONE = "None"


class KeywordFrequency(BaseModel):
    """Keyword occurrence counts in the job description and resume."""

    model_config = ConfigDict(populate_by_name=True)

    word: str
    jd_count: int = Field(default=0, ge=0, alias="jdCount")
    resume_count: int = Field(default=0, ge=0, alias="resumeCount")
    match_type: MatchType = Field(default=MatchType.MISSING, alias="matchType")


class RatedKeyword(KeywordFrequency):
    """Keyword frequency with a strength label."""

    strength: Strength = Strength.MISSING


class ScoredKeyword(RatedKeyword):
    """Fully annotated keyword as stored in an insight."""

    cluster: str


class ClusterResult(BaseModel):
    """Output of the clustering stage."""

    keywords: list[ScoredKeyword] = Field(default_factory=list)
    clusters: list[str] = Field(default_factory=list)
    coverage: dict[str, Coverage] = Field(default_factory=dict)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _check_single_owner(owner_id: Optional[str], session_id: Optional[str]) -> None:
    if bool(owner_id) == bool(session_id):
        raise ValueError("Exactly one of owner_id or session_id must be set")


class AnalysisMetadata(BaseModel):
    """Identifiers for the resume/job pair being analyzed and its owner."""

    model_config = ConfigDict(populate_by_name=True)

    resume_id: str = Field(..., min_length=1, alias="resumeId")
    job_id: str = Field(..., min_length=1, alias="jobId")
    owner_id: Optional[str] = Field(default=None, alias="ownerId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    @model_validator(mode="after")
    def _validate_owner(self) -> "AnalysisMetadata":
        _check_single_owner(self.owner_id, self.session_id)
        return self


class KeywordInsight(BaseModel):
    """Persisted keyword analysis for one resume/job pair."""

    model_config = ConfigDict(populate_by_name=True)

    resume_id: str = Field(..., min_length=1, alias="resumeId")
    job_id: str = Field(..., min_length=1, alias="jobId")
    owner_id: Optional[str] = Field(default=None, alias="ownerId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    keywords: list[ScoredKeyword] = Field(default_factory=list)
    clusters: list[str] = Field(default_factory=list)
    coverage: dict[str, Coverage] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=_utc_now, alias="updatedAt")

    @model_validator(mode="after")
    def _validate_owner(self) -> "KeywordInsight":
        _check_single_owner(self.owner_id, self.session_id)
        return self

    @property
    def key(self) -> tuple[str, str]:
        return self.resume_id, self.job_id
