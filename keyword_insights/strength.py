"""
Keyword Strength Rating Module.

Asks an LLM how strongly each keyword is represented in the resume,
then repairs the labels against the frequency counts. The LLM is not
trusted for numeric consistency, so the repair pass always runs.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import TypeAdapter

from keyword_insights.config import DEFAULT_PROMPT_CHAR_LIMIT
from keyword_insights.llm_client import CompletionClient, LLMCallError, parse_json_reply
from keyword_insights.models import KeywordFrequency, RatedKeyword, Strength

logger = logging.getLogger("keyword_insights.strength")

_RATINGS = TypeAdapter(dict[str, Any])
_LABELS = {strength.value.lower(): strength for strength in Strength}

STRONG_MIN_COUNT = 2

RATE_PROMPT = """You are an expert ATS (Applicant Tracking System) consultant who evaluates resumes against job descriptions.
You will receive a resume, a job description, and a list of important keywords with how often each
appears in the resume and in the job description.

Rate how strongly each keyword is represented in the resume:
- "Strong": The resume demonstrates significant expertise or experience with this keyword
- "Weak": The keyword is mentioned but with limited context or experience
- "Missing": The keyword is not present in the resume

Hard rules:
- A keyword with resume count 0 MUST be "Missing"
- A keyword with resume count above 0 MUST NOT be "Missing"

Resume Text:
{resume_text}

Job Description Text:
{jd_text}

Keywords (resume count / job description count):
{keyword_lines}

Return ONLY a JSON object mapping each keyword to its rating, like this:
{{"Keyword1": "Strong", "Keyword2": "Weak", "Keyword3": "Missing"}}"""


def strength_from_frequency(resume_count: int) -> Strength:
    """Derive a strength label from the resume count alone."""
    if resume_count <= 0:
        return Strength.MISSING
    return Strength.STRONG if resume_count >= STRONG_MIN_COUNT else Strength.WEAK


def parse_strength_label(label: object) -> Optional[Strength]:
    if not isinstance(label, str):
        return None
    return _LABELS.get(label.strip().lower())


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... (truncated)"


def repair_strengths(keywords: list[RatedKeyword]) -> list[RatedKeyword]:
    """
    Force strength labels to agree with resume counts.

    A zero resume count is always Missing. A positive count is never
    Missing: it becomes Strong at two or more mentions, otherwise Weak.

    Args:
        keywords: Rated keywords (not modified).

    Returns:
        New list with corrected labels.
    """
    repaired = []
    corrections = 0

    for keyword in keywords:
        strength = keyword.strength
        if keyword.resume_count == 0 and strength != Strength.MISSING:
            strength = Strength.MISSING
        elif keyword.resume_count > 0 and strength == Strength.MISSING:
            strength = strength_from_frequency(keyword.resume_count)

        if strength != keyword.strength:
            corrections += 1
            logger.warning(
                "Corrected strength for %r: %s -> %s (resume_count=%d)",
                keyword.word,
                keyword.strength.value,
                strength.value,
                keyword.resume_count,
            )
            keyword = keyword.model_copy(update={"strength": strength})
        repaired.append(keyword)

    if corrections:
        logger.info("Strength repair corrected %d of %d keywords", corrections, len(keywords))
    return repaired


class StrengthRater:
    """Rates keyword strength through a completion client."""

    def __init__(self, client: CompletionClient, char_limit: int = DEFAULT_PROMPT_CHAR_LIMIT):
        self.client = client
        self.char_limit = char_limit

    def build_prompt(self, resume_text: str, jd_text: str, keywords: list[KeywordFrequency]) -> str:
        keyword_lines = "\n".join(
            f"- {kw.word} ({kw.resume_count} / {kw.jd_count})" for kw in keywords
        )
        return RATE_PROMPT.format(
            resume_text=_truncate(resume_text, self.char_limit),
            jd_text=_truncate(jd_text, self.char_limit),
            keyword_lines=keyword_lines,
        )

    def rate(
        self,
        resume_text: str,
        jd_text: str,
        keywords: list[KeywordFrequency],
    ) -> list[RatedKeyword]:
        """
        Rate keywords, falling back to frequency-derived labels.

        Args:
            resume_text: Raw resume text.
            jd_text: Raw job description text.
            keywords: Frequency-annotated keywords.

        Returns:
            Rated keywords satisfying the count/strength invariant.
        """
        if not keywords:
            return []

        ratings: dict[str, Any] = {}
        try:
            reply = self.client.complete(self.build_prompt(resume_text, jd_text, keywords))
            ratings = parse_json_reply(reply, _RATINGS, expect="object")
        except LLMCallError as e:
            logger.warning("Strength rating failed, deriving from frequency: %s", e)
        except Exception as e:
            logger.warning("Strength rating errored, deriving from frequency: %s", e, exc_info=True)

        return repair_strengths(self.merge(keywords, ratings))

    def merge(self, keywords: list[KeywordFrequency], ratings: dict[str, Any]) -> list[RatedKeyword]:
        """
        Attach LLM labels to keywords, matching words case-insensitively.

        A missing or unrecognized label (null, a number, an unknown word)
        falls back to the frequency-derived label for that keyword only.
        """
        by_word = {word.strip().lower(): label for word, label in ratings.items()}
        rated = []
        unlabeled = 0

        for keyword in keywords:
            strength = parse_strength_label(by_word.get(keyword.word.lower()))
            if strength is None:
                unlabeled += 1
                strength = strength_from_frequency(keyword.resume_count)
            rated.append(RatedKeyword(**keyword.model_dump(), strength=strength))

        if ratings and unlabeled:
            logger.warning("LLM left %d of %d keywords unrated", unlabeled, len(keywords))
        return rated
