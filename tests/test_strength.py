import json

import pytest

from keyword_insights.models import Strength
from keyword_insights.strength import (
    StrengthRater,
    parse_strength_label,
    repair_strengths,
    strength_from_frequency,
)

from .conftest import FailingClient, ScriptedClient, make_frequency, make_rated


def test_repair_forces_zero_count_to_missing():
    repaired = repair_strengths([make_rated("Node.js", 0, Strength.STRONG)])

    assert repaired[0].strength == Strength.MISSING


@pytest.mark.parametrize("resume_count, expected", [(1, Strength.WEAK), (2, Strength.STRONG), (5, Strength.STRONG)])
def test_repair_never_leaves_present_keyword_missing(resume_count, expected):
    repaired = repair_strengths([make_rated("Python", resume_count, Strength.MISSING)])

    assert repaired[0].strength == expected


def test_repair_keeps_consistent_labels():
    keywords = [
        make_rated("React", 1, Strength.STRONG),
        make_rated("SQL", 4, Strength.WEAK),
        make_rated("Go", 0, Strength.MISSING),
    ]

    assert repair_strengths(keywords) == keywords


def test_repair_does_not_mutate_input():
    keyword = make_rated("Node.js", 0, Strength.WEAK)

    repair_strengths([keyword])

    assert keyword.strength == Strength.WEAK


def test_strength_from_frequency():
    assert strength_from_frequency(0) == Strength.MISSING
    assert strength_from_frequency(1) == Strength.WEAK
    assert strength_from_frequency(2) == Strength.STRONG


def test_parse_strength_label():
    assert parse_strength_label(" strong ") == Strength.STRONG
    assert parse_strength_label("WEAK") == Strength.WEAK
    assert parse_strength_label("Excellent") is None
    assert parse_strength_label(None) is None


def test_rate_example_repairs_llm_labels():
    client = ScriptedClient(json.dumps({"React": "Missing", "Node.js": "Strong"}))
    keywords = [make_frequency("React", 1, jd_count=2), make_frequency("Node.js", 0)]

    rated = StrengthRater(client).rate("resume", "jd", keywords)

    assert [(kw.word, kw.strength) for kw in rated] == [
        ("React", Strength.WEAK),
        ("Node.js", Strength.MISSING),
    ]


def test_rate_matches_words_case_insensitively():
    client = ScriptedClient('{"python": "strong", "KUBERNETES": "Weak"}')
    keywords = [make_frequency("Python", 1), make_frequency("Kubernetes", 3)]

    rated = StrengthRater(client).rate("resume", "jd", keywords)

    assert [kw.strength for kw in rated] == [Strength.STRONG, Strength.WEAK]


def test_unrated_keywords_get_frequency_labels():
    client = ScriptedClient('{"Python": "Weak", "Rust": "Superb"}')
    keywords = [make_frequency("Python", 3), make_frequency("Rust", 2), make_frequency("Go", 0)]

    rated = StrengthRater(client).rate("resume", "jd", keywords)

    assert [kw.strength for kw in rated] == [Strength.WEAK, Strength.STRONG, Strength.MISSING]


def test_bad_label_only_affects_its_own_keyword():
    client = ScriptedClient('{"Python": "Weak", "SQL": null, "Go": 3}')
    keywords = [make_frequency("Python", 5), make_frequency("SQL", 1), make_frequency("Go", 2)]

    rated = StrengthRater(client).rate("resume", "jd", keywords)

    assert [(kw.word, kw.strength) for kw in rated] == [
        ("Python", Strength.WEAK),
        ("SQL", Strength.WEAK),
        ("Go", Strength.STRONG),
    ]


def test_rate_falls_back_to_frequency_on_failure():
    keywords = [make_frequency("Go", 0), make_frequency("SQL", 1), make_frequency("Python", 2)]

    rated = StrengthRater(FailingClient()).rate("resume", "jd", keywords)

    assert [kw.strength for kw in rated] == [Strength.MISSING, Strength.WEAK, Strength.STRONG]


def test_rate_falls_back_on_unparsable_reply():
    client = ScriptedClient("They all look strong to me.")

    rated = StrengthRater(client).rate("resume", "jd", [make_frequency("SQL", 1)])

    assert rated[0].strength == Strength.WEAK


def test_rate_preserves_counts_and_order():
    keywords = [make_frequency("B", 1, jd_count=3), make_frequency("A", 0, jd_count=2)]

    rated = StrengthRater(FailingClient()).rate("resume", "jd", keywords)

    assert [(kw.word, kw.resume_count, kw.jd_count, kw.match_type) for kw in rated] == [
        (kw.word, kw.resume_count, kw.jd_count, kw.match_type) for kw in keywords
    ]


def test_empty_keywords_skip_llm():
    client = ScriptedClient()

    assert StrengthRater(client).rate("resume", "jd", []) == []
    assert client.prompts == []


def test_prompt_truncates_long_texts():
    rater = StrengthRater(ScriptedClient(), char_limit=100)

    prompt = rater.build_prompt("x" * 5000, "y" * 50, [make_frequency("SQL", 1, jd_count=2)])

    assert "x" * 100 + "... (truncated)" in prompt
    assert "x" * 101 not in prompt
    assert "y" * 50 in prompt
    assert "- SQL (1 / 2)" in prompt
