"""Static configuration for the outreach workflow.

Defaults live here. A handful of them can be overridden from the environment
(or a ``.env`` file next to the script) when the operator starts a run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from waiting import RetrySpec

load_dotenv()

ENV_PREFIX = "STATE_OUTREACH_"

# You can modify which states to target.
DEFAULT_TARGETS: Tuple[str, ...] = (
    "Pennsylvania",
    "Georgia",
    "Arizona",
    "Michigan",
    "Nevada",
    "North Carolina",
    "Wisconsin",
)

DEFAULT_HOME_URL = "https://www.facebook.com"
DEFAULT_PROFILE_DIR = Path("profiles") / "facebook"
DEFAULT_CAPTURE_DIR = Path("outreach_runs")

TRUE_WORDS = {"1", "true", "yes", "on"}
FALSE_WORDS = {"0", "false", "no", "off"}


def message_template(target: str) -> str:
    return (
        f"Hi! Are you living in {target}? I'm reaching out to friends who live there "
        "to promote voter participation this November. Are you registered to vote?"
    )


@dataclass(frozen=True)
class Selectors:
    search_input: str = 'input[aria-label="Search Facebook"]'
    people_filter: str = 'a:has(span:text-is("People"))'
    friends_filter: str = 'input[aria-label="Friends"]'
    my_friends_filter: str = 'li[id="My Friends"] > div'
    results_container: str = 'div[aria-label="Search results"]'
    results_feed: str = 'div[role="feed"]'
    message_button: str = 'div[aria-label="Message"][role="button"]'
    composer: str = 'div[contenteditable="true"][aria-placeholder="Aa"]'
    chat_overlay: str = 'div[data-pagelet="MWChatTabHeader"]'
    home_link: str = 'a[aria-label="Facebook"]'


@dataclass
class OutreachConfig:
    targets: Tuple[str, ...] = DEFAULT_TARGETS
    home_url: str = DEFAULT_HOME_URL
    profile_dir: Path = DEFAULT_PROFILE_DIR
    capture_dir: Path = DEFAULT_CAPTURE_DIR
    headless: bool = False
    manual_search: bool = False
    selectors: Selectors = field(default_factory=Selectors)
    lookup_retry: RetrySpec = field(default_factory=RetrySpec)
    # settle delays, in ms
    search_settle_ms: int = 1000
    results_settle_ms: int = 3000
    composer_settle_ms: int = 2000
    gate_poll_ms: int = 500
    chat_poll_ms: int = 500
    search_poll_ms: int = 250
    # None means wait until the operator acts
    gate_max_polls: Optional[int] = None
    chat_max_polls: Optional[int] = None
    search_max_polls: Optional[int] = None

    def __post_init__(self) -> None:
        self.targets = tuple(target.strip() for target in self.targets if target and target.strip())
        if not self.targets:
            raise ValueError("At least one target state is required.")


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env(environ, name)
    if raw is None:
        return default
    normalized = raw.lower()
    if normalized in TRUE_WORDS:
        return True
    if normalized in FALSE_WORDS:
        return False
    print(f"  • Unrecognized {ENV_PREFIX}{name} value '{raw}', keeping default ({default}).")
    return default


def _env_int(environ: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = _env(environ, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got '{raw}'.") from None
    if value < 0:
        raise ValueError(f"{ENV_PREFIX}{name} must not be negative, got {value}.")
    return value


def parse_targets(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_TARGETS
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_config(environ: Optional[Mapping[str, str]] = None) -> OutreachConfig:
    """Build the run configuration from defaults plus ``STATE_OUTREACH_*`` overrides."""
    env = os.environ if environ is None else environ

    base_retry = RetrySpec()
    lookup_retry = RetrySpec(
        retries=_env_int(env, "RETRIES", base_retry.retries),
        interval_ms=_env_int(env, "RETRY_INTERVAL_MS", base_retry.interval_ms),
    )

    profile_dir = _env(env, "PROFILE_DIR")
    capture_dir = _env(env, "CAPTURE_DIR")

    return OutreachConfig(
        targets=parse_targets(_env(env, "TARGETS")),
        home_url=_env(env, "HOME_URL") or DEFAULT_HOME_URL,
        profile_dir=Path(profile_dir).expanduser() if profile_dir else DEFAULT_PROFILE_DIR,
        capture_dir=Path(capture_dir).expanduser() if capture_dir else DEFAULT_CAPTURE_DIR,
        headless=_env_bool(env, "HEADLESS", False),
        manual_search=_env_bool(env, "MANUAL_SEARCH", False),
        lookup_retry=lookup_retry,
        gate_max_polls=_env_int(env, "GATE_MAX_POLLS", None),
        chat_max_polls=_env_int(env, "CHAT_MAX_POLLS", None),
        search_max_polls=_env_int(env, "SEARCH_MAX_POLLS", None),
    )
