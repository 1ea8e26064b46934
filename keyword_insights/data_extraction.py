"""
Text Loading Module.

Reads resume and job description text from local .txt/.md or .pdf files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pdfplumber

logger = logging.getLogger("keyword_insights.data_extraction")

TEXT_SUFFIXES = {".txt", ".md"}


def extract_text_from_pdf(pdf_path: str | Path) -> str:
    """
    Extract text content from a PDF file.

    Args:
        pdf_path: Path to the PDF file.

    Returns:
        Extracted text content as a single string.

    Raises:
        FileNotFoundError: If the PDF file does not exist.
        ValueError: If the file is not a PDF.
    """
    pdf_path = Path(pdf_path)

    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    if pdf_path.suffix.lower() != ".pdf":
        raise ValueError(f"File is not a PDF: {pdf_path}")

    text_content = []

    with pdfplumber.open(pdf_path) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_content.append(page_text)

    return "\n\n".join(text_content)


def load_text(path: str | Path) -> str:
    """
    Load plain text from a text or PDF file.

    Args:
        path: Path to a .txt, .md or .pdf file.

    Returns:
        File text.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file type is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return extract_text_from_pdf(path)
    if suffix in TEXT_SUFFIXES:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    raise ValueError(f"Unsupported file type: {path.suffix}")


def load_job_files(jobs_dir: str | Path) -> dict[str, str]:
    """
    Load all job description files from a directory.

    Args:
        jobs_dir: Directory containing .txt/.md/.pdf job descriptions.

    Returns:
        Dictionary mapping file stem to non-empty file content.
    """
    jobs_dir = Path(jobs_dir)

    if not jobs_dir.exists():
        raise FileNotFoundError(f"Jobs directory not found: {jobs_dir}")

    jobs = {}

    for file_path in sorted(jobs_dir.iterdir()):
        if file_path.suffix.lower() not in TEXT_SUFFIXES | {".pdf"}:
            continue
        try:
            content = load_text(file_path).strip()
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Could not read job file=%s error=%s", file_path, e)
            continue
        if content:
            jobs[file_path.stem] = content

    return jobs
