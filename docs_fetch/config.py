"""Runtime settings, read from the environment (and an optional .env file)."""

import os
from dataclasses import dataclass, replace

from dotenv import find_dotenv, load_dotenv

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

# Lower bounds for numeric settings, whether they come from the environment or the CLI
MINIMUMS = {"timeout": 0.1, "workers": 1, "min_text_length": 0}


@dataclass(frozen=True)
class Settings:
    timeout: float = 20.0
    workers: int = 4
    user_agent: str = DEFAULT_USER_AGENT
    min_text_length: int = 80

    def __post_init__(self):
        for name, minimum in MINIMUMS.items():
            value = getattr(self, name)
            if value < minimum:
                raise ValueError(f"{name} must be >= {minimum}, got {value}")

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


def _env_number(name: str, cast, default, minimum):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def load_settings(env_file: str | None = None) -> Settings:
    """Build Settings from DOCS_FETCH_* environment variables.

    Values already present in the environment win over those in the .env file.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))
    defaults = Settings()
    return Settings(
        timeout=_env_number("DOCS_FETCH_TIMEOUT", float, defaults.timeout, MINIMUMS["timeout"]),
        workers=_env_number("DOCS_FETCH_WORKERS", int, defaults.workers, MINIMUMS["workers"]),
        user_agent=os.getenv("DOCS_FETCH_USER_AGENT") or defaults.user_agent,
        min_text_length=_env_number(
            "DOCS_FETCH_MIN_TEXT_LENGTH", int, defaults.min_text_length, MINIMUMS["min_text_length"]
        ),
    )
