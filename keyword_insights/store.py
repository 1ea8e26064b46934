"""
Keyword Insight Stores.

Persistence contract for keyword insights: at most one insight per
(resume_id, job_id) pair, written with last-writer-wins upserts that
are atomic per key.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol

from keyword_insights.models import KeywordInsight

logger = logging.getLogger("keyword_insights.store")


class InsightStore(Protocol):
    """Storage for keyword insights keyed by (resume_id, job_id)."""

    def upsert(self, insight: KeywordInsight) -> KeywordInsight:
        ...

    def get(self, resume_id: str, job_id: str) -> Optional[KeywordInsight]:
        ...

    def list_insights(self) -> list[KeywordInsight]:
        ...


def count_for_owner(
    store: InsightStore,
    owner_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> int:
    """Count stored insights belonging to a user or a guest session."""
    if bool(owner_id) == bool(session_id):
        raise ValueError("Exactly one of owner_id or session_id must be given")
    return sum(
        1
        for insight in store.list_insights()
        if (owner_id and insight.owner_id == owner_id)
        or (session_id and insight.session_id == session_id)
    )


class InMemoryInsightStore:
    """Process-local insight store."""

    def __init__(self) -> None:
        self._insights: dict[tuple[str, str], KeywordInsight] = {}
        self._lock = threading.Lock()

    def upsert(self, insight: KeywordInsight) -> KeywordInsight:
        with self._lock:
            replaced = insight.key in self._insights
            self._insights[insight.key] = insight.model_copy(deep=True)
        logger.info(
            "Insight %s resume=%s job=%s keywords=%d",
            "replaced" if replaced else "created",
            insight.resume_id,
            insight.job_id,
            len(insight.keywords),
        )
        return insight

    def get(self, resume_id: str, job_id: str) -> Optional[KeywordInsight]:
        with self._lock:
            insight = self._insights.get((resume_id, job_id))
        return insight.model_copy(deep=True) if insight is not None else None

    def list_insights(self) -> list[KeywordInsight]:
        with self._lock:
            return [insight.model_copy(deep=True) for insight in self._insights.values()]


class JsonFileInsightStore:
    """
    Insight store backed by one JSON file per resume/job pair.

    Files are written to a temporary file in the same directory and
    moved into place with os.replace, so readers never see a partial
    document.
    """

    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)
        self._lock = threading.Lock()

    def path_for(self, resume_id: str, job_id: str) -> Path:
        safe_resume = re.sub(r"[^\w\-]", "_", resume_id)[:40]
        safe_job = re.sub(r"[^\w\-]", "_", job_id)[:40]
        digest = hashlib.sha1(f"{resume_id}\x00{job_id}".encode("utf-8")).hexdigest()[:10]
        return self.root_dir / f"{safe_resume}__{safe_job}_{digest}.json"

    def upsert(self, insight: KeywordInsight) -> KeywordInsight:
        path = self.path_for(insight.resume_id, insight.job_id)
        payload = insight.model_dump(mode="json", by_alias=True)

        with self._lock:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            replaced = path.exists()
            fd, tmp_name = tempfile.mkstemp(dir=self.root_dir, prefix=".insight-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        logger.info(
            "Insight %s resume=%s job=%s path=%s",
            "replaced" if replaced else "created",
            insight.resume_id,
            insight.job_id,
            path,
        )
        return insight

    def get(self, resume_id: str, job_id: str) -> Optional[KeywordInsight]:
        path = self.path_for(resume_id, job_id)
        if not path.exists():
            return None
        return self._load(path)

    def list_insights(self) -> list[KeywordInsight]:
        if not self.root_dir.exists():
            return []

        insights = []
        for path in sorted(self.root_dir.glob("*.json")):
            try:
                insights.append(self._load(path))
            except (OSError, ValueError) as e:
                logger.warning("Could not read insight file=%s error=%s", path, e)
        return insights

    @staticmethod
    def _load(path: Path) -> KeywordInsight:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        return KeywordInsight.model_validate(payload)
