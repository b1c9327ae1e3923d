"""Configuration for gh-feedback.

Loads ``.gh-feedback.toml`` from the project root (walking up to ``.git``),
validates with Pydantic, and provides defaults so zero-config still works.
The loaded :class:`Config` is handed down the call chain explicitly.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ghfeedback.errors import InvalidInputError
from ghfeedback.reactions import Classifier, normalize_classifier

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".gh-feedback.toml"


class LocatorConfig(BaseModel):
    """Bounds for the item locator's review search."""

    model_config = ConfigDict(extra="ignore")

    review_search_limit: int = Field(
        default=20,
        ge=1,
        le=100,
        description="How many recently updated PRs to search for a review not on the current branch's PR",
    )
    review_comment_limit: int = Field(
        default=100,
        ge=1,
        le=100,
        description="How many comments of a review to inspect when collecting its threads",
    )


class WorkflowConfig(BaseModel):
    """Settings for composite workflow actions."""

    model_config = ConfigDict(extra="ignore")

    hide_reason: Classifier = Field(
        default=Classifier.RESOLVED,
        description="Classifier used when hiding comments and reviews to mark them done",
    )

    @field_validator("hide_reason", mode="before")
    @classmethod
    def _normalize_hide_reason(cls, value: Any) -> Classifier:
        if isinstance(value, Classifier):
            return value
        if not isinstance(value, str):
            msg = f"hide_reason must be a string, got {type(value).__name__}"
            raise ValueError(msg)  # noqa: TRY004
        try:
            return normalize_classifier(value)
        except InvalidInputError as exc:
            raise ValueError(str(exc)) from exc


class SummaryConfig(BaseModel):
    """Filters applied when listing a PR's feedback."""

    model_config = ConfigDict(extra="ignore")

    ignored_authors: list[str] = Field(
        default_factory=lambda: ["vercel"],
        description="Logins whose comments and reviews are left out of summaries (deploy bots and the like)",
    )


class DiagnosticsConfig(BaseModel):
    """Configuration for diagnostic and debugging features."""

    model_config = ConfigDict(extra="ignore")

    call_log: bool = Field(default=False, description="Record every gh invocation to ~/.gh-feedback/gh_calls.jsonl")


class Config(BaseModel):
    """Top-level gh-feedback configuration."""

    model_config = ConfigDict(extra="ignore")

    transport: Literal["gh", "http"] = Field(
        default="gh",
        description="'gh' drives the GitHub CLI, 'http' talks to the API directly with a token",
    )
    locator: LocatorConfig = Field(default_factory=LocatorConfig, description="Item locator settings")
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig, description="Workflow action settings")
    summary: SummaryConfig = Field(default_factory=SummaryConfig, description="PR summary settings")
    diagnostics: DiagnosticsConfig = Field(
        default_factory=DiagnosticsConfig,
        description="Diagnostic and debugging settings",
    )


def _collect_unknown_keys(
    data: dict[str, Any],
    model_cls: type[BaseModel],
    prefix: str = "",
) -> list[str]:
    """Dotted paths (``locator.max_prs``) of every key in *data* with no matching model field."""
    known = set(model_cls.model_fields)
    unknown: list[str] = []

    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if key not in known:
            unknown.append(dotted)
            continue
        annotation = model_cls.model_fields[key].annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel) and isinstance(value, dict):
            unknown.extend(_collect_unknown_keys(value, annotation, prefix=f"{dotted}."))

    return unknown


def _find_config_file(start: Path) -> Path | None:
    """Nearest ``.gh-feedback.toml`` at or above *start*, no higher than the repository root."""
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        # .git marks the repository root
        if (current / ".git").exists():
            return None
        current = current.parent


def load_config(cwd: str | Path | None = None) -> tuple[Config, Path | None]:
    """Read the nearest config file above *cwd* (default: the working directory).

    Missing files are not an error: defaults are returned with a path of None.
    Unknown keys are logged and otherwise ignored.

    Raises:
        ValueError: The file is not valid TOML or fails validation.
    """
    start = Path(cwd) if cwd else Path.cwd()
    config_path = _find_config_file(start)

    if config_path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILENAME)
        return Config(), None

    logger.debug("Loading config from %s", config_path)
    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {config_path}: {exc}"
        raise ValueError(msg) from exc

    try:
        config = Config.model_validate(data)
    except Exception as exc:
        msg = f"Invalid config in {config_path}: {exc}"
        raise ValueError(msg) from exc

    for key in _collect_unknown_keys(data, Config):
        logger.warning("Unknown config key '%s' in %s", key, config_path)

    return config, config_path


DEFAULT_CONFIG_TEMPLATE = """\
# .gh-feedback.toml: configuration for gh-feedback
# All settings are optional. Omitted values use the defaults shown here.
# Place this file in your project root (next to .git/).

transport = "gh"                  # "gh" (GitHub CLI) or "http" (GH_TOKEN / GITHUB_TOKEN)

[locator]
review_search_limit = 20          # Recently updated PRs searched for a review id (1-100)
review_comment_limit = 100        # Review comments inspected when collecting threads (1-100)

[workflow]
hide_reason = "resolved"          # spam, abuse, off-topic, outdated, duplicate, resolved

[summary]
ignored_authors = ["vercel"]      # Logins left out of `gh-feedback summary`

[diagnostics]
call_log = false                  # Append every gh call to ~/.gh-feedback/gh_calls.jsonl
"""


def init_config(cwd: Path | None = None) -> Path:
    """Write the commented template to *cwd* and return its path.

    An existing file is left alone and the process exits with status 1.
    """
    target = (cwd or Path.cwd()) / CONFIG_FILENAME
    if target.exists():
        print(f"Error: {CONFIG_FILENAME} already exists in {target.parent}")  # noqa: T201
        raise SystemExit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    print(f"Created {target}")  # noqa: T201
    return target
