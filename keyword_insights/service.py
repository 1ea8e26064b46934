"""
Keyword Insight Service.

Entry point used by callers: validates input, reuses a stored analysis
unless a refresh is requested, and exposes stored insights.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from keyword_insights.models import AnalysisMetadata, KeywordInsight
from keyword_insights.pipeline import KeywordPipeline
from keyword_insights.store import InsightStore, count_for_owner

logger = logging.getLogger("keyword_insights.service")


class InvalidAnalysisInput(ValueError):
    """Raised when an analysis request is rejected before the pipeline runs."""


class InsightNotFound(LookupError):
    """Raised when no insight exists for a resume/job pair."""


class KeywordInsightService:
    """Service for running and retrieving keyword analyses."""

    def __init__(self, pipeline: Optional[KeywordPipeline], store: InsightStore):
        self.pipeline = pipeline
        self.store = store

    @staticmethod
    def build_metadata(
        resume_id: Optional[str],
        job_id: Optional[str],
        owner_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> AnalysisMetadata:
        """
        Validate request identifiers.

        Raises:
            InvalidAnalysisInput: If ids are missing or not exactly one of
                owner_id/session_id is given.
        """
        if not resume_id or not job_id:
            raise InvalidAnalysisInput("Resume ID and Job ID are required")
        try:
            return AnalysisMetadata(
                resume_id=resume_id,
                job_id=job_id,
                owner_id=owner_id or None,
                session_id=session_id or None,
            )
        except ValidationError as e:
            raise InvalidAnalysisInput(str(e)) from e

    def analyze(
        self,
        resume_text: str,
        jd_text: str,
        metadata: AnalysisMetadata,
        refresh: bool = False,
    ) -> KeywordInsight:
        """
        Return the keyword insight for a resume/job pair.

        Args:
            resume_text: Raw resume text.
            jd_text: Raw job description text.
            metadata: Resume/job ids and owner.
            refresh: Re-run the pipeline even if an insight is stored.

        Returns:
            Stored or freshly computed KeywordInsight.

        Raises:
            InvalidAnalysisInput: If either text is blank.
            KeywordPipelineError: If the pipeline fails.
        """
        if not resume_text or not resume_text.strip():
            raise InvalidAnalysisInput("Resume text is empty")
        if not jd_text or not jd_text.strip():
            raise InvalidAnalysisInput("Job description text is empty")

        if not refresh:
            existing = self.store.get(metadata.resume_id, metadata.job_id)
            if existing is not None:
                logger.info(
                    "Reusing stored keyword analysis resume=%s job=%s",
                    metadata.resume_id,
                    metadata.job_id,
                )
                return existing

        if self.pipeline is None:
            raise RuntimeError("No pipeline configured for this service")
        return self.pipeline.analyze(resume_text, jd_text, metadata)

    def history(self, resume_id: str, job_id: str) -> KeywordInsight:
        insight = self.store.get(resume_id, job_id)
        if insight is None:
            raise InsightNotFound(
                f"No keyword analysis found for resume={resume_id} job={job_id}"
            )
        return insight

    def count_analyses(self, owner_id: Optional[str] = None, session_id: Optional[str] = None) -> int:
        return count_for_owner(self.store, owner_id=owner_id, session_id=session_id)
