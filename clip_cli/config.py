"""Runtime settings gathered from the environment."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_MODEL = "gpt-4o"
DEFAULT_HOME = Path.home() / ".clipai"

_TRUTHY = {"1", "true", "yes", "on"}
_ZSHRC_KEY = re.compile(r"(?:export\s+)?OPENAI_API_KEY\s*=\s*['\"]?([^'\"\n]+)['\"]?")


def _find_api_key(zshrc: Path) -> Optional[str]:
    """Look for an ``OPENAI_API_KEY`` assignment in *zshrc* (convenience for macOS users)."""
    if not zshrc.exists():
        return None
    try:
        match = _ZSHRC_KEY.search(zshrc.read_text())
    except OSError:
        return None
    return match.group(1).strip() if match else None


@dataclass
class Settings:
    data_dir: Path = DEFAULT_HOME
    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    web_search: bool = False
    stream: bool = True
    resume_session: bool = False

    @classmethod
    def from_env(cls, environ=None, zshrc: Optional[Path] = None) -> "Settings":
        env = os.environ if environ is None else environ
        api_key = env.get("OPENAI_API_KEY") or _find_api_key(zshrc or Path.home() / ".zshrc")
        data_dir = env.get("CLIP_HOME")
        return cls(
            data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_HOME,
            model=env.get("OPENAI_DEFAULT_MODEL") or DEFAULT_MODEL,
            api_key=api_key,
            base_url=env.get("OPENAI_BASE_URL") or None,
            web_search=env.get("CLIP_WEB_SEARCH", "").lower() in _TRUTHY,
        )

    def client_kwargs(self) -> dict:
        # OpenAIClientWrapper does its own backoff.
        kwargs = {"api_key": self.api_key, "max_retries": 0}
        if self.base_url:
            kwargs["base_url"] = self.base_url
        return kwargs
