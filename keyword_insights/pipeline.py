"""
Keyword Analysis Pipeline.

Runs the keyword stages in order and assembles the result:
1. Candidate extraction (deterministic)
2. LLM refinement (fails open to the candidates)
3. Frequency counting (deterministic)
4. LLM strength rating (repaired against frequency)
5. LLM clustering (repaired to cover every keyword)
6. Insight assembly and upsert
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional, TypeVar

from keyword_insights.clustering import KeywordClusterer
from keyword_insights.config import Settings
from keyword_insights.frequency import count_keyword_frequencies
from keyword_insights.keyword_engine import KeywordExtractor
from keyword_insights.llm_client import CompletionClient
from keyword_insights.models import AnalysisMetadata, ClusterResult, KeywordInsight
from keyword_insights.refiner import KeywordRefiner
from keyword_insights.store import InsightStore
from keyword_insights.strength import StrengthRater

logger = logging.getLogger("keyword_insights.pipeline")

T = TypeVar("T")


class PipelineStage(str, Enum):
    EXTRACT = "extract"
    REFINE = "refine"
    COUNT = "count"
    RATE = "rate"
    CLUSTER = "cluster"
    PERSIST = "persist"


class KeywordPipelineError(RuntimeError):
    """Unrecoverable failure inside one pipeline stage."""

    def __init__(self, stage: PipelineStage, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Keyword analysis failed at stage '{stage.value}': {cause}")


def assemble_insight(metadata: AnalysisMetadata, result: ClusterResult) -> KeywordInsight:
    """Combine stage output and request metadata into a KeywordInsight."""
    return KeywordInsight(
        resume_id=metadata.resume_id,
        job_id=metadata.job_id,
        owner_id=metadata.owner_id,
        session_id=metadata.session_id,
        keywords=result.keywords,
        clusters=result.clusters,
        coverage=result.coverage,
    )


class KeywordPipeline:
    """
    Keyword analysis pipeline for one resume/job pair at a time.

    Holds only configuration and the injected completion client, so a
    single instance can serve concurrent analyses of different pairs.
    """

    def __init__(
        self,
        client: CompletionClient,
        store: InsightStore,
        extractor: Optional[KeywordExtractor] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            client: Completion client used by the LLM-backed stages.
            store: Insight store receiving the upsert.
            extractor: Candidate extractor (built from settings if None).
            settings: Pipeline settings (defaults if None).
        """
        settings = settings or Settings()
        self.store = store
        self.extractor = extractor or KeywordExtractor(
            max_candidates=settings.max_candidates,
            model_name=settings.spacy_model,
        )
        self.refiner = KeywordRefiner(client, max_keywords=settings.max_candidates)
        self.rater = StrengthRater(client, char_limit=settings.prompt_char_limit)
        self.clusterer = KeywordClusterer(client)

    def run(self, resume_text: str, jd_text: str) -> ClusterResult:
        """
        Run stages 1-5 without persisting.

        Args:
            resume_text: Raw resume text.
            jd_text: Raw job description text.

        Returns:
            Clustered, rated keywords with coverage.

        Raises:
            KeywordPipelineError: If a stage fails unrecoverably.
        """
        candidates = self._stage(PipelineStage.EXTRACT, self.extractor.extract, jd_text)
        refined = self._stage(PipelineStage.REFINE, self.refiner.refine, candidates)
        frequencies = self._stage(
            PipelineStage.COUNT, count_keyword_frequencies, resume_text, jd_text, refined
        )
        rated = self._stage(PipelineStage.RATE, self.rater.rate, resume_text, jd_text, frequencies)
        return self._stage(PipelineStage.CLUSTER, self.clusterer.cluster, rated)

    def analyze(self, resume_text: str, jd_text: str, metadata: AnalysisMetadata) -> KeywordInsight:
        """
        Analyze a resume/job pair and upsert the resulting insight.

        Args:
            resume_text: Raw resume text.
            jd_text: Raw job description text.
            metadata: Resume/job ids and owner.

        Returns:
            The stored KeywordInsight.

        Raises:
            KeywordPipelineError: If a stage fails unrecoverably. Nothing
                is persisted in that case.
        """
        start = time.perf_counter()
        logger.info(
            "Keyword analysis start resume=%s job=%s resume_chars=%d job_chars=%d",
            metadata.resume_id,
            metadata.job_id,
            len(resume_text),
            len(jd_text),
        )

        result = self.run(resume_text, jd_text)
        insight = assemble_insight(metadata, result)
        stored = self._stage(PipelineStage.PERSIST, self.store.upsert, insight)

        logger.info(
            "Keyword analysis complete resume=%s job=%s keywords=%d clusters=%d duration=%.3fs",
            metadata.resume_id,
            metadata.job_id,
            len(stored.keywords),
            len(stored.clusters),
            time.perf_counter() - start,
        )
        return stored

    @staticmethod
    def _stage(stage: PipelineStage, func: Callable[..., T], *args) -> T:
        stage_start = time.perf_counter()
        try:
            output = func(*args)
        except KeywordPipelineError:
            raise
        except Exception as e:
            logger.error("Keyword pipeline stage %s failed: %s", stage.value, e, exc_info=True)
            raise KeywordPipelineError(stage, e) from e
        logger.debug("Stage %s finished in %.3fs", stage.value, time.perf_counter() - stage_start)
        return output
