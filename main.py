#!/usr/bin/env python3
"""
Keyword Insights CLI.

Analyzes how well a resume covers the keywords of a job description:
candidate extraction, LLM refinement, frequency counting, strength
rating and skill clustering with coverage.

Usage:
    python main.py extract JOB_FILE                    # Show keyword candidates
    python main.py analyze -r RESUME -j JOB -s SESSION # Analyze one pair
    python main.py batch -r RESUME -d JOBS_DIR -s SESSION
    python main.py history --resume-id R --job-id J    # Show a stored analysis
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from tqdm import tqdm

from keyword_insights import __version__
from keyword_insights.config import Settings
from keyword_insights.logging_config import configure_logging


def _load_settings() -> Settings:
    return Settings.from_env()


def _build_client(settings: Settings, offline: bool):
    from keyword_insights.llm_client import LLMClient, OfflineCompletionClient

    if offline:
        return OfflineCompletionClient()

    if not settings.openai_api_key:
        click.echo("Error: OPENAI_API_KEY not set.", err=True)
        click.echo("Set it via: export OPENAI_API_KEY='sk-...' or run with --offline")
        sys.exit(1)

    return LLMClient.from_settings(settings)


def _build_service(settings: Settings, store_dir: Optional[str], offline: bool):
    from keyword_insights.keyword_engine import KeywordExtractor
    from keyword_insights.pipeline import KeywordPipeline
    from keyword_insights.service import KeywordInsightService
    from keyword_insights.store import JsonFileInsightStore

    store = JsonFileInsightStore(store_dir or settings.store_dir)
    client = _build_client(settings, offline)
    extractor = KeywordExtractor(
        max_candidates=settings.max_candidates,
        model_name=settings.spacy_model,
    )
    pipeline = KeywordPipeline(client, store, extractor=extractor, settings=settings)
    return KeywordInsightService(pipeline, store)


def _read_text(path: str) -> str:
    from keyword_insights.data_extraction import load_text

    try:
        return load_text(path)
    except (OSError, ValueError) as e:
        click.echo(f"Error reading {path}: {e}", err=True)
        sys.exit(1)


def _echo_insight(insight, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(insight.model_dump(mode="json", by_alias=True), indent=2))
        return

    click.echo("═" * 70)
    click.echo(f"  Resume: {insight.resume_id}    Job: {insight.job_id}")
    click.echo("═" * 70)

    if not insight.keywords:
        click.echo("No keywords found in the job description.")
        return

    click.echo(f"{'Keyword':28} {'JD':>4} {'CV':>4}  {'Match':8} {'Strength':9} Cluster")
    click.echo("-" * 70)
    for kw in insight.keywords:
        click.echo(
            f"{kw.word[:28]:28} {kw.jd_count:>4} {kw.resume_count:>4}  "
            f"{kw.match_type.value:8} {kw.strength.value:9} {kw.cluster}"
        )

    click.echo()
    click.echo("Cluster Coverage:")
    click.echo("-" * 70)
    for cluster in insight.clusters:
        members = [kw for kw in insight.keywords if kw.cluster == cluster]
        covered = sum(1 for kw in members if kw.strength.value != "Missing")
        coverage = insight.coverage.get(cluster)
        label = coverage.value if coverage is not None else "None"
        click.echo(f"  {cluster:28} {label:8} ({covered}/{len(members)} covered)")


@click.group()
@click.version_option(version=__version__, prog_name="Keyword Insights")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool):
    """
    Keyword Insights - Measure resume coverage of job description keywords.
    """
    configure_logging(verbose=verbose)


@cli.command()
@click.argument("job_file", type=click.Path(exists=True), required=False)
@click.option(
    "--text",
    "-t",
    type=str,
    default=None,
    help="Job description text (alternative to file)",
)
def extract(job_file: Optional[str], text: Optional[str]):
    """
    Show candidate keywords extracted from a job description.

    Runs only the deterministic extraction stage, no LLM calls.

    Example:
        python main.py extract jobs/backend.txt
        python main.py extract --text "Experience with React.js and Node.js..."
    """
    from keyword_insights.keyword_engine import KeywordExtractor

    if job_file:
        job_text = _read_text(job_file)
    elif text:
        job_text = text
    else:
        click.echo("Error: Provide either JOB_FILE or --text", err=True)
        sys.exit(1)

    settings = _load_settings()
    extractor = KeywordExtractor(
        max_candidates=settings.max_candidates,
        model_name=settings.spacy_model,
    )
    candidates = extractor.extract(job_text)

    if not candidates:
        click.echo("No keyword candidates found.")
        return

    click.echo(f"{len(candidates)} candidate keywords:")
    for i, candidate in enumerate(candidates, 1):
        click.echo(f"  {i:2}. {candidate}")


@cli.command()
@click.option("--resume", "-r", type=click.Path(exists=True), required=True, help="Resume file (.txt/.md/.pdf)")
@click.option("--job", "-j", type=click.Path(exists=True), required=True, help="Job description file")
@click.option("--resume-id", type=str, default=None, help="Resume identifier (default: file name)")
@click.option("--job-id", type=str, default=None, help="Job identifier (default: file name)")
@click.option("--owner-id", "-u", type=str, default=None, help="Authenticated user id")
@click.option("--session-id", "-s", type=str, default=None, help="Guest session id")
@click.option("--store", type=click.Path(), default=None, help="Insight store directory")
@click.option("--refresh/--no-refresh", default=False, help="Re-run even if an analysis is stored")
@click.option("--offline", is_flag=True, default=False, help="Skip LLM calls and use local fallbacks")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the insight as JSON")
def analyze(
    resume: str,
    job: str,
    resume_id: Optional[str],
    job_id: Optional[str],
    owner_id: Optional[str],
    session_id: Optional[str],
    store: Optional[str],
    refresh: bool,
    offline: bool,
    as_json: bool,
):
    """
    Analyze keyword coverage of a resume against one job description.

    Example:
        python main.py analyze -r resume.pdf -j jobs/backend.txt -s guest-1
    """
    from keyword_insights.pipeline import KeywordPipelineError
    from keyword_insights.service import InvalidAnalysisInput, KeywordInsightService

    try:
        metadata = KeywordInsightService.build_metadata(
            resume_id or Path(resume).stem,
            job_id or Path(job).stem,
            owner_id=owner_id,
            session_id=session_id,
        )
    except InvalidAnalysisInput as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    resume_text = _read_text(resume)
    job_text = _read_text(job)
    service = _build_service(_load_settings(), store, offline)

    try:
        insight = service.analyze(resume_text, job_text, metadata, refresh=refresh)
    except InvalidAnalysisInput as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    except KeywordPipelineError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    _echo_insight(insight, as_json)


@cli.command()
@click.option("--resume", "-r", type=click.Path(exists=True), required=True, help="Resume file (.txt/.md/.pdf)")
@click.option("--jobs", "-d", type=click.Path(exists=True, file_okay=False), required=True, help="Directory of job descriptions")
@click.option("--resume-id", type=str, default=None, help="Resume identifier (default: file name)")
@click.option("--owner-id", "-u", type=str, default=None, help="Authenticated user id")
@click.option("--session-id", "-s", type=str, default=None, help="Guest session id")
@click.option("--store", type=click.Path(), default=None, help="Insight store directory")
@click.option("--refresh/--no-refresh", default=False, help="Re-run even if an analysis is stored")
@click.option("--offline", is_flag=True, default=False, help="Skip LLM calls and use local fallbacks")
def batch(
    resume: str,
    jobs: str,
    resume_id: Optional[str],
    owner_id: Optional[str],
    session_id: Optional[str],
    store: Optional[str],
    refresh: bool,
    offline: bool,
):
    """
    Analyze one resume against every job description in a directory.

    Example:
        python main.py batch -r resume.pdf -d jobs/ -u user-42
    """
    from keyword_insights.data_extraction import load_job_files
    from keyword_insights.pipeline import KeywordPipelineError
    from keyword_insights.service import InvalidAnalysisInput, KeywordInsightService

    resume_id = resume_id or Path(resume).stem
    if bool(owner_id) == bool(session_id):
        click.echo("Error: Provide exactly one of --owner-id or --session-id", err=True)
        sys.exit(2)

    job_texts = load_job_files(jobs)
    if not job_texts:
        click.echo("No job description files found.")
        return

    resume_text = _read_text(resume)
    service = _build_service(_load_settings(), store, offline)

    rows = []
    failures = 0
    for job_id, job_text in tqdm(job_texts.items(), desc="Analyzing"):
        metadata = KeywordInsightService.build_metadata(
            resume_id, job_id, owner_id=owner_id, session_id=session_id
        )
        try:
            insight = service.analyze(resume_text, job_text, metadata, refresh=refresh)
        except (InvalidAnalysisInput, KeywordPipelineError) as e:
            failures += 1
            rows.append((job_id, None, f"failed: {e}"))
            continue
        present = sum(1 for kw in insight.keywords if kw.strength.value != "Missing")
        rows.append((job_id, insight, f"{present}/{len(insight.keywords)} keywords present"))

    click.echo()
    click.echo(f"{'Job':30} Result")
    click.echo("-" * 70)
    for job_id, insight, summary in rows:
        click.echo(f"{job_id[:30]:30} {summary}")
        if insight is not None:
            coverage = ", ".join(
                f"{cluster}={insight.coverage[cluster].value}"
                for cluster in insight.clusters
                if cluster in insight.coverage
            )
            if coverage:
                click.echo(f"{'':30} {coverage}")

    click.echo()
    click.echo(f"✓ Analyzed {len(rows) - failures}/{len(rows)} job descriptions")
    if failures:
        sys.exit(1)


@cli.command()
@click.option("--resume-id", type=str, required=True, help="Resume identifier")
@click.option("--job-id", type=str, required=True, help="Job identifier")
@click.option("--store", type=click.Path(), default=None, help="Insight store directory")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the insight as JSON")
def history(resume_id: str, job_id: str, store: Optional[str], as_json: bool):
    """
    Show the stored keyword analysis for a resume/job pair.
    """
    from keyword_insights.service import InsightNotFound, KeywordInsightService
    from keyword_insights.store import JsonFileInsightStore

    settings = _load_settings()
    insight_store = JsonFileInsightStore(store or settings.store_dir)
    service = KeywordInsightService(pipeline=None, store=insight_store)

    try:
        insight = service.history(resume_id, job_id)
    except InsightNotFound as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    _echo_insight(insight, as_json)


if __name__ == "__main__":
    cli()
