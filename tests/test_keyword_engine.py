from spacy.tokens import Doc

from keyword_insights.keyword_engine import (
    STOP_WORD_SET,
    KeywordExtractor,
    _is_technical_token,
)

from .conftest import EXAMPLE_JD


def test_extracts_symbol_bearing_terms_first(extractor):
    candidates = extractor.extract(EXAMPLE_JD)

    assert candidates[:2] == ["React.js", "Node.js"]
    assert "React" in candidates


def test_extraction_is_deterministic(extractor):
    assert extractor.extract(EXAMPLE_JD) == extractor.extract(EXAMPLE_JD)


def test_empty_text_gives_no_candidates(extractor):
    assert extractor.extract("") == []
    assert extractor.extract("   \n\t") == []


def test_candidates_are_capped(blank_nlp):
    extractor = KeywordExtractor(nlp=blank_nlp, max_candidates=50)
    text = " ".join(f"Tool{i}X" for i in range(80))

    candidates = extractor.extract(text)

    assert len(candidates) == 50
    assert candidates[0] == "Tool0X"


def test_custom_cap(blank_nlp):
    extractor = KeywordExtractor(nlp=blank_nlp, max_candidates=3)

    assert len(extractor.extract("AWS GCP Azure Docker Kubernetes Terraform")) == 3


def test_short_and_stop_word_candidates_dropped(extractor):
    candidates = extractor.extract("Use Go and R with AWS and the other tools.")

    assert "AWS" in candidates
    assert all(len(candidate) >= 3 for candidate in candidates)
    assert not any(candidate.lower() in STOP_WORD_SET for candidate in candidates)


def test_case_insensitive_deduplication(extractor):
    candidates = extractor.extract("Docker experience. We love docker and DOCKER.")

    assert [c.lower() for c in candidates].count("docker") == 1


def test_skill_indicator_phrases(extractor):
    text = "Candidates should have knowledge of distributed systems, and proficiency in Kubernetes."

    candidates = extractor.extract(text)

    assert "distributed systems" in candidates
    assert "Kubernetes" in candidates


def test_mid_sentence_capitalized_word_is_technical(extractor):
    candidates = extractor.extract("We deploy services on Kubernetes daily.")

    assert candidates[0] == "Kubernetes"


def test_generic_filler_is_not_a_candidate(extractor):
    candidates = extractor.extract("Strong skills required. Excellent experience preferred.")

    assert candidates == []


def test_technical_token_rules():
    assert _is_technical_token("AWS")
    assert _is_technical_token("C++")
    assert _is_technical_token("CI/CD")
    assert _is_technical_token("S3")
    assert _is_technical_token("Node.js")
    assert not _is_technical_token("Python")
    assert not _is_technical_token("2024")
    assert not _is_technical_token("A")


def test_skill_indicator_lists_are_split(extractor):
    text = (
        "Experience with Python, Django, and PostgreSQL; "
        "knowledge of distributed systems, and proficiency in Kubernetes."
    )

    phrases = extractor._skill_indicator_phrases(text)

    assert phrases == ["Python", "Django", "PostgreSQL", "distributed systems", "Kubernetes"]


def test_leading_dot_terms_are_technical(extractor):
    assert _is_technical_token(".NET")
    assert not _is_technical_token(".5")
    assert not _is_technical_token("...")

    assert ".NET" in extractor.extract("Experience with C# and .NET Core.")


class TaggedPipeline:
    """Callable stand-in for a tagged spaCy pipeline that returns a fixed Doc."""

    max_length = 1_000_000

    def __init__(self, doc):
        self.doc = doc

    def __call__(self, text):
        return self.doc


def test_tagged_pipeline_excludes_personal_names(blank_nlp):
    words = ["John", "Smith", "uses", "Kafka", "for", "data", "pipeline", "design", "."]
    doc = Doc(
        blank_nlp.vocab,
        words=words,
        spaces=[True] * 7 + [False, False],
        pos=["PROPN", "PROPN", "VERB", "PROPN", "ADP", "NOUN", "NOUN", "NOUN", "PUNCT"],
        ents=["B-PERSON", "I-PERSON", "O", "O", "O", "O", "O", "O", "O"],
    )
    extractor = KeywordExtractor(nlp=TaggedPipeline(doc))

    candidates = extractor.extract(doc.text)

    assert candidates == ["Kafka", "data pipeline design", "data", "pipeline", "design"]
    assert not any("John" in c or "Smith" in c for c in candidates)
