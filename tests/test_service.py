import pytest

from keyword_insights.pipeline import KeywordPipeline
from keyword_insights.service import InsightNotFound, InvalidAnalysisInput, KeywordInsightService
from keyword_insights.store import InMemoryInsightStore

from .conftest import EXAMPLE_JD, EXAMPLE_RESUME


@pytest.fixture
def store():
    return InMemoryInsightStore()


@pytest.fixture
def service(echo_client, store, extractor):
    return KeywordInsightService(KeywordPipeline(echo_client, store, extractor=extractor), store)


def _metadata(**kwargs):
    kwargs.setdefault("session_id", "guest-1")
    return KeywordInsightService.build_metadata("resume-1", "job-1", **kwargs)


def test_analyze_stores_insight(service, store):
    insight = service.analyze(EXAMPLE_RESUME, EXAMPLE_JD, _metadata())

    assert store.get("resume-1", "job-1") == insight
    assert insight.keywords


def test_analyze_reuses_stored_insight(service, echo_client):
    first = service.analyze(EXAMPLE_RESUME, EXAMPLE_JD, _metadata())
    calls = len(echo_client.prompts)

    second = service.analyze("A different resume mentioning Node.js", EXAMPLE_JD, _metadata())

    assert second == first
    assert len(echo_client.prompts) == calls


def test_refresh_reruns_pipeline(service, echo_client, store):
    service.analyze(EXAMPLE_RESUME, EXAMPLE_JD, _metadata())
    calls = len(echo_client.prompts)

    refreshed = service.analyze("Node.js daily", EXAMPLE_JD, _metadata(), refresh=True)

    assert len(echo_client.prompts) > calls
    node = next(kw for kw in refreshed.keywords if kw.word == "Node.js")
    assert node.resume_count == 1
    assert len(store.list_insights()) == 1


@pytest.mark.parametrize("resume_text, jd_text", [("", EXAMPLE_JD), ("   ", EXAMPLE_JD), (EXAMPLE_RESUME, "\n")])
def test_blank_texts_are_rejected(service, store, resume_text, jd_text):
    with pytest.raises(InvalidAnalysisInput):
        service.analyze(resume_text, jd_text, _metadata())

    assert store.list_insights() == []


def test_build_metadata_requires_ids():
    with pytest.raises(InvalidAnalysisInput):
        KeywordInsightService.build_metadata("", "job-1", session_id="guest")
    with pytest.raises(InvalidAnalysisInput):
        KeywordInsightService.build_metadata("resume-1", None, owner_id="user")


def test_build_metadata_requires_exactly_one_owner():
    with pytest.raises(InvalidAnalysisInput):
        KeywordInsightService.build_metadata("resume-1", "job-1")
    with pytest.raises(InvalidAnalysisInput):
        KeywordInsightService.build_metadata("resume-1", "job-1", owner_id="user", session_id="guest")

    metadata = KeywordInsightService.build_metadata("resume-1", "job-1", owner_id="user", session_id="")
    assert metadata.owner_id == "user"
    assert metadata.session_id is None


def test_history(service):
    stored = service.analyze(EXAMPLE_RESUME, EXAMPLE_JD, _metadata())

    assert service.history("resume-1", "job-1") == stored
    with pytest.raises(InsightNotFound):
        service.history("resume-1", "job-2")


def test_history_works_without_pipeline(store):
    service = KeywordInsightService(pipeline=None, store=store)

    with pytest.raises(InsightNotFound):
        service.history("resume-1", "job-1")


def test_count_analyses(service):
    service.analyze(EXAMPLE_RESUME, EXAMPLE_JD, _metadata(session_id="guest-1"))
    other = KeywordInsightService.build_metadata("resume-1", "job-2", owner_id="user-1")
    service.analyze(EXAMPLE_RESUME, EXAMPLE_JD, other)

    assert service.count_analyses(session_id="guest-1") == 1
    assert service.count_analyses(owner_id="user-1") == 1
