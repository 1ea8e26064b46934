"""
Keyword Clustering Module.

Groups rated keywords into a fixed vocabulary of skill clusters with an
LLM and computes per-cluster resume coverage. The LLM assignment is
validated so every keyword ends up in exactly one cluster.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter

from keyword_insights.llm_client import CompletionClient, LLMCallError, parse_json_reply
from keyword_insights.models import ClusterResult, Coverage, RatedKeyword, ScoredKeyword, Strength

logger = logging.getLogger("keyword_insights.clustering")

FALLBACK_CLUSTER = "Software Engineering"
UNCLAIMED_CLUSTER = "Other"
FAILURE_CLUSTER = "General"
FULL_COVERAGE_RATIO = 0.7

CLUSTER_VOCABULARY = (
    "Frontend Development",
    "Backend Development",
    "Software Engineering",
    "Cloud & DevOps",
    "Data & Analytics",
    "Machine Learning & AI",
    "Databases",
    "Mobile Development",
    "Security",
    "Testing & Quality",
    "Project Management",
    "Soft Skills",
    "Domain Knowledge",
)

CLUSTER_PROMPT = """You are an expert in job skills categorization. You will receive a list of keywords from a job description.

Group these keywords into skill clusters. Use ONLY these cluster names:
{vocabulary}

Rules:
- Every keyword must be assigned to exactly one cluster
- Do not invent keywords and do not rename them
- Omit clusters that receive no keywords

Keywords: {keywords}

Return ONLY a JSON object, with no explanations, in this format:
{{"clusters": {{"Frontend Development": ["React", "CSS"], "Backend Development": ["Node.js", "Express"]}}}}"""


class ClusterAssignment(BaseModel):
    """LLM output for keyword clustering."""

    clusters: dict[str, list[Any]]


_ASSIGNMENT = TypeAdapter(ClusterAssignment)


def coverage_for_ratio(ratio: float) -> Coverage:
    """Bucket a covered-keyword ratio into Full, Partial or None."""
    if ratio >= FULL_COVERAGE_RATIO:
        return Coverage.FULL
    if ratio > 0:
        return Coverage.PARTIAL
    return Coverage.NONE


def compute_coverage(keywords: list[ScoredKeyword], clusters: list[str]) -> dict[str, Coverage]:
    """
    Compute coverage per cluster from keyword strengths.

    Args:
        keywords: Keywords annotated with their cluster.
        clusters: Cluster names to report on.

    Returns:
        Mapping of cluster name to Coverage. Empty clusters are None.
    """
    coverage = {}
    for cluster in clusters:
        members = [kw for kw in keywords if kw.cluster == cluster]
        if not members:
            coverage[cluster] = Coverage.NONE
            continue
        covered = sum(1 for kw in members if kw.strength != Strength.MISSING)
        coverage[cluster] = coverage_for_ratio(covered / len(members))
    return coverage


class KeywordClusterer:
    """Clusters rated keywords through a completion client."""

    def __init__(
        self,
        client: CompletionClient,
        vocabulary: tuple[str, ...] = CLUSTER_VOCABULARY,
        fallback_cluster: str = FALLBACK_CLUSTER,
    ):
        if fallback_cluster not in vocabulary:
            raise ValueError(f"Fallback cluster {fallback_cluster!r} is not in the vocabulary")
        self.client = client
        self.vocabulary = vocabulary
        self.fallback_cluster = fallback_cluster
        self._vocabulary_lookup = {name.lower(): name for name in vocabulary}

    def build_prompt(self, words: list[str]) -> str:
        return CLUSTER_PROMPT.format(
            vocabulary="\n".join(f"- {name}" for name in self.vocabulary),
            keywords=", ".join(words),
        )

    def cluster(self, keywords: list[RatedKeyword]) -> ClusterResult:
        """
        Cluster keywords and compute coverage.

        Args:
            keywords: Strength-rated keywords.

        Returns:
            ClusterResult covering every input keyword exactly once.
        """
        if not keywords:
            return ClusterResult()

        words = [kw.word for kw in keywords]
        try:
            reply = self.client.complete(self.build_prompt(words))
            assignment = parse_json_reply(reply, _ASSIGNMENT, expect="object")
        except LLMCallError as e:
            logger.warning("Keyword clustering failed, using single cluster: %s", e)
            return self.failure_result(keywords)
        except Exception as e:
            logger.warning("Keyword clustering errored, using single cluster: %s", e, exc_info=True)
            return self.failure_result(keywords)

        resolved = self.validate(words, assignment.clusters)
        return self.build_result(keywords, resolved)

    def validate(self, words: list[str], raw_clusters: dict[str, list[Any]]) -> dict[str, str]:
        """
        Resolve the LLM assignment into a keyword -> cluster mapping.

        Unknown cluster names, unknown keywords and non-string members are
        ignored. A keyword claimed twice keeps its first cluster. Keywords
        left unassigned go to the fallback cluster.

        Args:
            words: Input keywords.
            raw_clusters: Cluster name -> keywords as returned by the LLM.

        Returns:
            Mapping from each input keyword to exactly one cluster.
        """
        by_lower = {}
        for word in words:
            by_lower.setdefault(word.lower(), word)

        assigned: dict[str, str] = {}
        for raw_name, members in raw_clusters.items():
            name = self._vocabulary_lookup.get(raw_name.strip().lower())
            if name is None:
                logger.warning(
                    "Ignoring cluster outside vocabulary: %r (%d keywords)", raw_name, len(members)
                )
                continue
            for member in members:
                if not isinstance(member, str):
                    logger.debug("Ignoring non-string member %r in cluster %s", member, name)
                    continue
                word = by_lower.get(member.strip().lower())
                if word is None:
                    logger.debug("Ignoring unknown keyword %r in cluster %s", member, name)
                    continue
                if word in assigned:
                    if assigned[word] != name:
                        logger.warning(
                            "Keyword %r assigned to both %s and %s, keeping %s",
                            word,
                            assigned[word],
                            name,
                            assigned[word],
                        )
                    continue
                assigned[word] = name

        unassigned = [word for word in by_lower.values() if word not in assigned]
        if unassigned:
            logger.warning(
                "Assigning %d unclustered keywords to %s: %s",
                len(unassigned),
                self.fallback_cluster,
                ", ".join(unassigned),
            )
            for word in unassigned:
                assigned[word] = self.fallback_cluster

        return assigned

    def build_result(self, keywords: list[RatedKeyword], assigned: dict[str, str]) -> ClusterResult:
        scored = []
        clusters: list[str] = []

        for keyword in keywords:
            cluster = self._resolve(keyword.word, assigned)
            if cluster not in clusters:
                clusters.append(cluster)
            scored.append(ScoredKeyword(**keyword.model_dump(), cluster=cluster))

        return ClusterResult(
            keywords=scored,
            clusters=clusters,
            coverage=compute_coverage(scored, clusters),
        )

    def failure_result(self, keywords: list[RatedKeyword]) -> ClusterResult:
        return ClusterResult(
            keywords=[
                ScoredKeyword(**keyword.model_dump(), cluster=FAILURE_CLUSTER) for keyword in keywords
            ],
            clusters=[FAILURE_CLUSTER],
            coverage={FAILURE_CLUSTER: Coverage.PARTIAL},
        )

    @staticmethod
    def _resolve(word: str, assigned: dict[str, str]) -> str:
        cluster: Optional[str] = assigned.get(word)
        if cluster is None:
            cluster = next(
                (name for key, name in assigned.items() if key.lower() == word.lower()),
                UNCLAIMED_CLUSTER,
            )
        return cluster
