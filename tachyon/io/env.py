"""
Helpers for loading the tachyon environment file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tachyon.io.settings import TACHYON_ENV_FILENAME, TachyonSettings


def default_env_path() -> Path:
    return Path.cwd() / TACHYON_ENV_FILENAME


def load_env(path: Optional[Path] = None) -> bool:
    """
    Load ``tachyon.env`` into the process environment.

    Variables already present in the environment win over the file.
    Returns True when a file was found and read.
    """

    return load_dotenv(path or default_env_path(), override=False)


def load_settings(path: Optional[Path] = None) -> TachyonSettings:
    load_env(path)
    return TachyonSettings()
