"""
Runtime configuration.

Settings are read from environment variables (optionally via a local
.env file) into a validated pydantic model.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# * Defaults
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_CANDIDATES = 50
DEFAULT_PROMPT_CHAR_LIMIT = 2000
DEFAULT_STORE_DIR = Path("output/insights")
DEFAULT_SPACY_MODEL = "en_core_web_sm"


class Settings(BaseModel):
    """Keyword pipeline settings."""

    openai_api_key: Optional[str] = Field(default=None, repr=False)
    model: str = DEFAULT_MODEL
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    max_candidates: int = Field(default=DEFAULT_MAX_CANDIDATES, gt=0)
    prompt_char_limit: int = Field(default=DEFAULT_PROMPT_CHAR_LIMIT, gt=0)
    store_dir: Path = DEFAULT_STORE_DIR
    spacy_model: str = DEFAULT_SPACY_MODEL

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        """
        Build settings from the process environment.

        Args:
            load_dotenv_file: Load a .env file into the environment first.

        Returns:
            Validated Settings instance.
        """
        if load_dotenv_file:
            load_dotenv()

        values: dict[str, object] = {"openai_api_key": os.getenv("OPENAI_API_KEY")}
        env_map = {
            "KEYWORD_LLM_MODEL": "model",
            "KEYWORD_LLM_TEMPERATURE": "temperature",
            "KEYWORD_LLM_TIMEOUT": "timeout",
            "KEYWORD_MAX_CANDIDATES": "max_candidates",
            "KEYWORD_PROMPT_CHAR_LIMIT": "prompt_char_limit",
            "KEYWORD_STORE_DIR": "store_dir",
            "KEYWORD_SPACY_MODEL": "spacy_model",
        }
        for env_name, field_name in env_map.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()

        return cls.model_validate(values)
