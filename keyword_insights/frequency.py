"""
Keyword Frequency Counter.

Counts keyword occurrences in resume and job description text and
derives a coarse match type. Pure functions, no I/O.
"""

from __future__ import annotations

import re

from keyword_insights.models import KeywordFrequency, MatchType


def keyword_pattern(keyword: str) -> re.Pattern[str] | None:
    """
    Build a case-insensitive pattern for a keyword.

    The keyword must start at a word boundary and may be followed by
    trailing word characters, so "develop" also matches "developer" and
    "developed". Internal whitespace matches any whitespace run.

    Args:
        keyword: Keyword text (regex metacharacters are escaped).

    Returns:
        Compiled pattern, or None for a blank keyword.
    """
    parts = keyword.split()
    if not parts:
        return None
    body = r"\s+".join(re.escape(part) for part in parts)
    return re.compile(rf"(?<!\w){body}\w*", re.IGNORECASE)


def count_occurrences(keyword: str, text: str) -> int:
    pattern = keyword_pattern(keyword)
    if pattern is None or not text:
        return 0
    return len(pattern.findall(text))


def derive_match_type(resume_count: int, jd_count: int) -> MatchType:
    if resume_count == 0:
        return MatchType.MISSING
    return MatchType.EXACT if resume_count >= jd_count else MatchType.PARTIAL


def count_keyword_frequencies(
    resume_text: str,
    jd_text: str,
    keywords: list[str],
) -> list[KeywordFrequency]:
    """
    Count each keyword in both texts independently.

    Args:
        resume_text: Raw resume text.
        jd_text: Raw job description text.
        keywords: Refined keywords.

    Returns:
        One KeywordFrequency per keyword, in input order.
    """
    result = []
    for keyword in keywords:
        resume_count = count_occurrences(keyword, resume_text)
        jd_count = count_occurrences(keyword, jd_text)
        result.append(KeywordFrequency(
            word=keyword,
            jd_count=jd_count,
            resume_count=resume_count,
            match_type=derive_match_type(resume_count, jd_count),
        ))
    return result
