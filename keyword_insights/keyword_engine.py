"""
Candidate Keyword Extraction Engine.

Deterministic linguistic pass over job description text. Produces a
bounded, priority-ordered list of candidate keywords for the LLM
refinement stage. Never calls external services.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import spacy
from spacy.lang.en.stop_words import STOP_WORDS
from spacy.language import Language

from keyword_insights.config import DEFAULT_MAX_CANDIDATES, DEFAULT_SPACY_MODEL

logger = logging.getLogger("keyword_insights.keyword_engine")

MIN_KEYWORD_LENGTH = 3

BASIC_STOP_WORDS = {"the", "a", "an", "and", "or", "but", "is", "are", "was", "were", "be", "been"}
STOP_WORD_SET = frozenset(STOP_WORDS | BASIC_STOP_WORDS)

# * Job-posting filler that never makes a useful keyword on its own
GENERIC_TERMS = frozenset({
    "ability", "abilities", "applicant", "applicants", "benefits", "bonus",
    "candidate", "candidates", "company", "companies", "description", "duties",
    "e.g", "etc", "excellent", "experience", "expertise", "familiarity",
    "good", "great", "i.e", "ideal", "and/or", "job", "join", "knowledge",
    "looking", "must", "nice", "opportunity", "plus", "position", "positions",
    "preferred", "proficiency", "proficient", "qualification", "qualifications",
    "required", "requirement", "requirements", "responsibilities",
    "responsibility", "role", "roles", "skill", "skilled", "skills", "strong",
    "team", "teams", "understanding", "work", "working", "year", "years",
})

_TOKEN_RE = re.compile(r"\S+")
_LEFT_STRIP = "\"'([{<*•·-–—|"
_RIGHT_STRIP = "\"')]}>.,;:!?*|"
_SENTENCE_END = (".", "!", "?", ":", ";")
_SYMBOLIC_RE = re.compile(r"^(?:\.(?=[A-Za-z]))?[A-Za-z0-9][A-Za-z0-9.+#/-]*$")
_CAPITALIZED_RE = re.compile(r"^[A-Z][A-Za-z-]*[A-Za-z]$")

_INDICATOR = (
    r"(?:experience|knowledge|proficiency|proficient|expertise|skilled|skills?)"
    r"\s+(?:with|in|of)\s+"
)
# * The phrase runs to the end of its clause so lists can be split
SKILL_INDICATOR_RE = re.compile(
    rf"\b{_INDICATOR}(?P<phrase>.+?)(?=[;:!?()\n]|\.(?:\s|$)|$)",
    re.IGNORECASE,
)
_INDICATOR_PREFIX_RE = re.compile(rf"^{_INDICATOR}", re.IGNORECASE)
_PHRASE_SPLIT_RE = re.compile(r"\s*,\s*|\s+(?:and|or|&)\s+", re.IGNORECASE)
MAX_INDICATOR_WORDS = 3


def load_nlp(model_name: str = DEFAULT_SPACY_MODEL) -> Language:
    """
    Load a spaCy pipeline, falling back to a blank English tokenizer.

    Args:
        model_name: Installed spaCy model package name.

    Returns:
        spaCy Language pipeline.
    """
    try:
        return spacy.load(model_name)
    except OSError:
        logger.warning(
            "spaCy model %s not found, using blank English pipeline. "
            "Run: python -m spacy download %s",
            model_name,
            model_name,
        )
        return spacy.blank("en")


def _clean_token(token: str) -> str:
    return token.lstrip(_LEFT_STRIP).rstrip(_RIGHT_STRIP)


def _is_technical_token(token: str) -> bool:
    """Acronyms and symbol-bearing terms such as AWS, C++, Node.js, CI/CD, S3."""
    if not _SYMBOLIC_RE.match(token) or not any(ch.isalpha() for ch in token):
        return False
    if any(ch in token for ch in ".+#/") or any(ch.isdigit() for ch in token):
        return True
    letters = [ch for ch in token if ch.isalpha()]
    return len(letters) >= 2 and token.isupper()


def _trim_phrase(part: str) -> list[str]:
    """Split a phrase into words, dropping leading stop words and trailing filler."""
    words = [_clean_token(word) for word in part.split()]
    words = [word for word in words if word]
    while words and words[0].lower() in STOP_WORD_SET:
        words.pop(0)
    while words and (
        words[-1].lower() in STOP_WORD_SET or words[-1].lower() in GENERIC_TERMS
    ):
        words.pop()
    return words


def _is_noise(candidate: str) -> bool:
    words = candidate.lower().split()
    if not words:
        return True
    if all(word in STOP_WORD_SET or word in GENERIC_TERMS for word in words):
        return True
    return all(word.isdigit() for word in words)


class KeywordExtractor:
    """
    Extracts candidate keywords from job description text.

    Candidate categories, in priority order:
    1. Technical terms (acronyms, symbol-bearing tokens, mid-sentence
       capitalized words, spaCy proper nouns)
    2. Phrases following skill indicators ("experience with", ...)
    3. Multi-word noun phrases
    4. Single nouns

    Part-of-speech categories need a tagged spaCy pipeline. With a blank
    pipeline, non-stop alphabetic tokens stand in for nouns and personal
    names cannot be excluded.
    """

    def __init__(
        self,
        nlp: Optional[Language] = None,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
        model_name: str = DEFAULT_SPACY_MODEL,
    ):
        self.nlp = nlp if nlp is not None else load_nlp(model_name)
        self.max_candidates = max_candidates

    def extract(self, jd_text: str) -> list[str]:
        """
        Extract candidate keywords from a job description.

        Args:
            jd_text: Raw job description text.

        Returns:
            Deduplicated candidates, at most max_candidates long.
        """
        if not jd_text or not jd_text.strip():
            return []

        technical = self._technical_terms(jd_text)
        indicators = self._skill_indicator_phrases(jd_text)
        proper_nouns, noun_phrases, nouns, persons = self._pos_candidates(jd_text)

        ordered = technical + proper_nouns + indicators + noun_phrases + nouns

        seen: set[str] = set()
        result: list[str] = []
        for raw in ordered:
            candidate = " ".join(_clean_token(raw).split())
            if len(candidate) < MIN_KEYWORD_LENGTH or _is_noise(candidate):
                continue
            if persons and all(word in persons for word in candidate.lower().split()):
                continue
            key = candidate.lower()
            if key in seen:
                continue
            seen.add(key)
            result.append(candidate)
            if len(result) >= self.max_candidates:
                break

        logger.debug(
            "Extracted %d candidates (technical=%d indicators=%d phrases=%d nouns=%d)",
            len(result),
            len(technical) + len(proper_nouns),
            len(indicators),
            len(noun_phrases),
            len(nouns),
        )
        return result

    def _technical_terms(self, text: str) -> list[str]:
        terms = []
        sentence_start = True

        for match in _TOKEN_RE.finditer(text):
            raw = match.group(0)
            token = _clean_token(raw)
            preceded_by_newline = "\n" in text[max(0, match.start() - 2):match.start()]
            is_initial = sentence_start or preceded_by_newline

            if token:
                lowered = token.lower()
                if _is_technical_token(token):
                    terms.append(token)
                elif (
                    not is_initial
                    and _CAPITALIZED_RE.match(token)
                    and lowered not in STOP_WORD_SET
                    and lowered not in GENERIC_TERMS
                ):
                    terms.append(token)
                sentence_start = raw.endswith(_SENTENCE_END)
            # * Bare bullets keep the sentence-start state

        return terms

    def _skill_indicator_phrases(self, text: str) -> list[str]:
        phrases = []
        for match in SKILL_INDICATOR_RE.finditer(text):
            for part in _PHRASE_SPLIT_RE.split(match.group("phrase")):
                words = _trim_phrase(part)
                # * "..., and proficiency in Kubernetes" restarts the phrase
                nested = _INDICATOR_PREFIX_RE.match(" ".join(words))
                if nested:
                    words = _trim_phrase(" ".join(words)[nested.end():])
                if words:
                    phrases.append(" ".join(words[:MAX_INDICATOR_WORDS]))
        return phrases

    def _pos_candidates(self, text: str) -> tuple[list[str], list[str], list[str], set[str]]:
        """Return (proper_nouns, noun_phrases, nouns, person_words) from spaCy."""
        doc = self.nlp(text[: self.nlp.max_length])

        if not doc.has_annotation("POS"):
            nouns = [token.text for token in doc if token.is_alpha and not token.is_stop]
            return [], [], nouns, set()

        persons: set[str] = set()
        if doc.has_annotation("ENT_IOB"):
            persons = {
                token.lower_
                for ent in doc.ents
                if ent.label_ == "PERSON"
                for token in ent
            }

        proper_nouns = [
            token.text for token in doc
            if token.pos_ == "PROPN" and token.lower_ not in persons
        ]
        nouns = [token.text for token in doc if token.pos_ in ("NOUN", "PROPN")]

        # * Runs of two or more consecutive nouns
        noun_phrases = []
        run_start: Optional[int] = None
        for token in list(doc) + [None]:
            is_noun = token is not None and token.pos_ in ("NOUN", "PROPN")
            if is_noun and run_start is None:
                run_start = token.i
            elif not is_noun and run_start is not None:
                end = token.i if token is not None else len(doc)
                if end - run_start >= 2:
                    noun_phrases.append(doc[run_start:end].text)
                run_start = None

        return proper_nouns, noun_phrases, nouns, persons
