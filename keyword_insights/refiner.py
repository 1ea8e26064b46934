"""
LLM Keyword Refinement Module.

Deduplicates and normalizes extracted candidates with an LLM. The LLM
is only allowed to filter and normalize: any returned term that does
not correspond to a source candidate is dropped. Any failure falls
back to the unrefined candidate list.
"""

from __future__ import annotations

import logging
import re

from pydantic import TypeAdapter

from keyword_insights.config import DEFAULT_MAX_CANDIDATES
from keyword_insights.llm_client import CompletionClient, LLMCallError, parse_json_reply

logger = logging.getLogger("keyword_insights.refiner")

_KEYWORD_LIST = TypeAdapter(list[str])
_NON_ALNUM_RE = re.compile(r"[^a-z0-9+#]")
MIN_OVERLAP_LENGTH = 3

REFINE_PROMPT = """You are an expert ATS (Applicant Tracking System) consultant who specializes in identifying important keywords
for job applications. You will receive a list of potential keywords extracted from a job description.

Analyze these keywords and:
1. Remove duplicates and near-duplicates (e.g., "React" and "React.js")
2. Normalize variations (choose the most common professional form)
3. Remove generic terms that aren't specific skills or qualifications
4. NEVER add a keyword that is not derived from the list below

Raw keyword list: {keywords}

Respond ONLY with a JSON array of strings, like this:
["Keyword1", "Keyword2", "Keyword3"]"""


def compact_key(term: str) -> str:
    """Lowercase and strip everything except letters, digits, + and #."""
    return _NON_ALNUM_RE.sub("", term.lower())


def corresponds_to_source(term: str, source_keys: set[str]) -> bool:
    """
    Check whether a refined term plausibly derives from a source candidate.

    A term matches when its compact key equals a candidate's, or is a
    shortening contained in one ("Postgres" from "PostgreSQL"). Terms
    that only contain a candidate ("React Native" from "React") are new.
    """
    key = compact_key(term)
    if not key:
        return False
    if key in source_keys:
        return True
    if len(key) < MIN_OVERLAP_LENGTH:
        return False
    return any(key in source for source in source_keys)


class KeywordRefiner:
    """Refines candidate keywords through a completion client."""

    def __init__(self, client: CompletionClient, max_keywords: int = DEFAULT_MAX_CANDIDATES):
        self.client = client
        self.max_keywords = max_keywords

    def build_prompt(self, candidates: list[str]) -> str:
        return REFINE_PROMPT.format(keywords=", ".join(candidates))

    def refine(self, candidates: list[str]) -> list[str]:
        """
        Refine candidates, failing open to the input list.

        Args:
            candidates: Candidate keywords from the extractor.

        Returns:
            Refined keywords, each traceable to a candidate.
        """
        if not candidates:
            return []

        try:
            reply = self.client.complete(self.build_prompt(candidates))
            refined = parse_json_reply(reply, _KEYWORD_LIST, expect="array")
        except LLMCallError as e:
            logger.warning("Keyword refinement failed, using raw candidates: %s", e)
            return list(candidates)
        except Exception as e:
            logger.warning("Keyword refinement errored, using raw candidates: %s", e, exc_info=True)
            return list(candidates)

        validated = self.validate(candidates, refined)
        if not validated:
            logger.warning(
                "Refinement returned no usable keywords (%d returned), using raw candidates",
                len(refined),
            )
            return list(candidates)

        logger.info("Refined %d candidates to %d keywords", len(candidates), len(validated))
        return validated

    def validate(self, candidates: list[str], refined: list[str]) -> list[str]:
        """Drop hallucinated and duplicate terms from the LLM output."""
        source_keys = {compact_key(candidate) for candidate in candidates}
        seen: set[str] = set()
        result: list[str] = []

        for term in refined:
            cleaned = " ".join(term.split())
            if not cleaned:
                continue
            if not corresponds_to_source(cleaned, source_keys):
                logger.warning("Dropping refined keyword with no source candidate: %r", cleaned)
                continue
            key = cleaned.lower()
            if key in seen:
                continue
            seen.add(key)
            result.append(cleaned)
            if len(result) >= self.max_keywords:
                break

        return result
