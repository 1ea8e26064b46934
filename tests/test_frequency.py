import pytest

from keyword_insights.frequency import (
    count_keyword_frequencies,
    count_occurrences,
    derive_match_type,
    keyword_pattern,
)
from keyword_insights.models import MatchType

from .conftest import EXAMPLE_JD, EXAMPLE_RESUME


def test_example_pair_counts():
    result = count_keyword_frequencies(EXAMPLE_RESUME, EXAMPLE_JD, ["React", "Node.js"])

    react, node = result
    assert (react.word, react.jd_count, react.resume_count) == ("React", 2, 1)
    assert react.match_type == MatchType.PARTIAL
    assert (node.word, node.jd_count, node.resume_count) == ("Node.js", 1, 0)
    assert node.match_type == MatchType.MISSING


def test_counts_are_case_insensitive_and_stem_tolerant():
    text = "I develop tools. A developer who Developed APIs."

    assert count_occurrences("develop", text) == 3


def test_match_must_start_at_word_boundary():
    assert count_occurrences("script", "JavaScript and TypeScript") == 0
    assert count_occurrences("Java", "Java and JavaScript") == 2


def test_regex_metacharacters_are_literal():
    assert count_occurrences("C++", "C++ and C++17 but not C") == 2
    assert count_occurrences(".NET", "ASP.NET and .NET Core") == 1
    assert count_occurrences("C#", "C# developer, c# tooling") == 2
    assert count_occurrences("(unclosed", "text with (unclosed paren") == 1


def test_multiword_keyword_matches_any_whitespace():
    assert count_occurrences("machine learning", "Machine\nLearning and machine  learning") == 2


def test_blank_keyword_never_matches():
    assert keyword_pattern("   ") is None
    assert count_occurrences("", "anything at all") == 0


def test_empty_text_counts_zero():
    assert count_occurrences("Python", "") == 0


@pytest.mark.parametrize(
    "resume_count, jd_count, expected",
    [
        (0, 0, MatchType.MISSING),
        (0, 3, MatchType.MISSING),
        (2, 2, MatchType.EXACT),
        (3, 1, MatchType.EXACT),
        (1, 2, MatchType.PARTIAL),
    ],
)
def test_derive_match_type(resume_count, jd_count, expected):
    assert derive_match_type(resume_count, jd_count) == expected


def test_counts_are_independent_per_keyword():
    result = count_keyword_frequencies(
        "Python and SQL, more Python",
        "Python required",
        ["Python", "SQL", "Rust"],
    )

    assert [(kw.word, kw.resume_count, kw.jd_count) for kw in result] == [
        ("Python", 2, 1),
        ("SQL", 1, 0),
        ("Rust", 0, 0),
    ]
    assert result[1].match_type == MatchType.EXACT
