"""Shared fixtures: stub completion clients and a model-free extractor."""

from __future__ import annotations

import json
import re

import pytest
import spacy

from keyword_insights.keyword_engine import KeywordExtractor
from keyword_insights.models import KeywordFrequency, MatchType, RatedKeyword, Strength

EXAMPLE_JD = "Experience with React.js and Node.js required. React strongly preferred."
EXAMPLE_RESUME = "Built apps using React."


class ScriptedClient:
    """Returns queued replies in order; queued exceptions are raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FailingClient:
    """Every call fails, as if the LLM were unreachable."""

    def __init__(self):
        self.calls = 0

    def complete(self, prompt: str) -> str:
        self.calls += 1
        raise RuntimeError("LLM unavailable")


class EchoClient:
    """
    Deterministic client that answers each stage from the prompt itself.

    Refinement echoes the raw list, rating claims every keyword is Strong,
    clustering puts the first keyword in Frontend Development and leaves
    the rest unassigned.
    """

    def __init__(self):
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if "Raw keyword list:" in prompt:
            line = prompt.split("Raw keyword list:", 1)[1].splitlines()[0]
            return json.dumps([kw.strip() for kw in line.split(",") if kw.strip()])
        if "Rate how strongly" in prompt:
            words = re.findall(r"^- (.+) \(\d+ / \d+\)$", prompt, re.MULTILINE)
            return json.dumps({word: "Strong" for word in words})
        if "skill clusters" in prompt:
            line = prompt.split("Keywords:", 1)[1].splitlines()[0]
            words = [kw.strip() for kw in line.split(",") if kw.strip()]
            return json.dumps({"clusters": {"Frontend Development": words[:1]}})
        raise AssertionError(f"Unexpected prompt: {prompt[:80]}")


def make_rated(word: str, resume_count: int, strength: Strength, jd_count: int = 1) -> RatedKeyword:
    match_type = MatchType.MISSING
    if resume_count:
        match_type = MatchType.EXACT if resume_count >= jd_count else MatchType.PARTIAL
    return RatedKeyword(
        word=word,
        jd_count=jd_count,
        resume_count=resume_count,
        match_type=match_type,
        strength=strength,
    )


def make_frequency(word: str, resume_count: int, jd_count: int = 1) -> KeywordFrequency:
    rated = make_rated(word, resume_count, Strength.MISSING, jd_count=jd_count)
    return KeywordFrequency(**rated.model_dump(exclude={"strength"}))


@pytest.fixture(scope="session")
def blank_nlp():
    return spacy.blank("en")


@pytest.fixture
def extractor(blank_nlp):
    return KeywordExtractor(nlp=blank_nlp)


@pytest.fixture
def failing_client():
    return FailingClient()


@pytest.fixture
def echo_client():
    return EchoClient()
