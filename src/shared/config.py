"""Reporter configuration.

All recognized options are enumerated on ReporterConfig and resolved once,
at startup, from environment variables, a YAML file and/or explicit
keyword options. Nothing downstream reads the environment directly.

Usage:
    config = ReporterConfig.from_env().merged(project_name='shop-e2e')
    reporter = TestRunReporter(config)
"""

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from src.shared.constants import FORMATTING
from src.shared.delivery import sanitize_webhook_url
from src.shared.exceptions import ConfigurationError


__all__ = [
    'ENV_VARS',
    'ReporterConfig',
    'parse_bool',
    'resolve_ci_url',
]


# Config field -> environment variable
ENV_VARS: Dict[str, str] = {
    'slack_webhook_url': 'SLACK_WEBHOOK_URL',
    'teams_webhook_url': 'TEAMS_WEBHOOK_URL',
    'environment': 'TEST_ENVIRONMENT',
    'project_name': 'PROJECT_NAME',
    'only_on_failure': 'NOTIFY_ONLY_ON_FAILURE',
    'include_screenshots': 'NOTIFY_INCLUDE_SCREENSHOTS',
    'max_failures_to_show': 'MAX_FAILURES_TO_SHOW',
    'ci_url': 'CI_URL',
}

# camelCase spellings accepted in YAML/JSON config files
_KEY_ALIASES: Dict[str, str] = {
    'slackWebhookUrl': 'slack_webhook_url',
    'teamsWebhookUrl': 'teams_webhook_url',
    'projectName': 'project_name',
    'onlyOnFailure': 'only_on_failure',
    'includeScreenshots': 'include_screenshots',
    'maxFailuresToShow': 'max_failures_to_show',
    'ciUrl': 'ci_url',
}

_TRUE_VALUES = frozenset({'1', 'true', 'yes', 'on'})
_FALSE_VALUES = frozenset({'0', 'false', 'no', 'off', ''})


def parse_bool(value: Any, key: str = 'value') -> bool:
    """Parse a boolean option from a string or bool.

    Raises:
        ConfigurationError: If the value is not a recognized boolean
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: {value!r}")


def _parse_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid integer for {key}: {value!r}")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"Invalid integer for {key}: {value!r}") from None
    if number < 0:
        raise ConfigurationError(f"{key} must be >= 0, got {number}")
    return number


def resolve_ci_url(explicit: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Resolve the link to the CI run.

    Precedence: explicit value, then CI_URL, then a GitHub Actions run URL
    composed from GITHUB_SERVER_URL, GITHUB_REPOSITORY and GITHUB_RUN_ID
    (only when all three are set).
    """
    if explicit:
        return explicit
    environ = os.environ if environ is None else environ
    if environ.get('CI_URL'):
        return environ['CI_URL']

    server = environ.get('GITHUB_SERVER_URL')
    repository = environ.get('GITHUB_REPOSITORY')
    run_id = environ.get('GITHUB_RUN_ID')
    if server and repository and run_id:
        return f"{server.rstrip('/')}/{repository}/actions/runs/{run_id}"
    return None


@dataclass(frozen=True)
class ReporterConfig:
    """Options for the notification reporter.

    Attributes:
        slack_webhook_url: Slack incoming webhook (Slack delivery skipped if None)
        teams_webhook_url: Teams incoming webhook (Teams delivery skipped if None)
        environment: Free-text environment label
        project_name: Free-text project label
        only_on_failure: Only notify when at least one test failed
        include_screenshots: Annotate failures that have a screenshot
        max_failures_to_show: Failure entries kept in the summary
        ci_url: Link appended to full messages
    """
    slack_webhook_url: Optional[str] = None
    teams_webhook_url: Optional[str] = None
    environment: Optional[str] = None
    project_name: Optional[str] = None
    only_on_failure: bool = False
    include_screenshots: bool = True
    max_failures_to_show: int = FORMATTING.MAX_FAILURES_TO_SHOW
    ci_url: Optional[str] = None

    def __post_init__(self):
        if self.max_failures_to_show < 0:
            raise ConfigurationError(
                f"max_failures_to_show must be >= 0, got {self.max_failures_to_show}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'ReporterConfig':
        """Build a config from a mapping of option names to raw values.

        Accepts snake_case or camelCase keys. Unknown keys are rejected.
        None values fall back to defaults.

        Raises:
            ConfigurationError: On unknown keys or unparseable values
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for raw_key, raw_value in data.items():
            key = _KEY_ALIASES.get(raw_key, raw_key)
            if key not in known:
                raise ConfigurationError(f"Unknown reporter option: {raw_key}")
            if raw_value is None:
                continue
            values[key] = _coerce(key, raw_value)
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ReporterConfig':
        """Build a config from environment variables (see ENV_VARS).

        Empty variables are treated as unset. The CI URL falls back to the
        GitHub Actions run URL when running under Actions.
        """
        environ = os.environ if environ is None else environ
        data = {}
        for key, var in ENV_VARS.items():
            value = environ.get(var)
            if value is not None and value.strip() != '':
                data[key] = value.strip()
        config = cls.from_mapping(data)
        ci_url = resolve_ci_url(config.ci_url, environ)
        if ci_url != config.ci_url:
            config = replace(config, ci_url=ci_url)
        return config

    @classmethod
    def from_yaml(cls, path) -> 'ReporterConfig':
        """Load a config from the `notifications:` mapping of a YAML file.

        A file without a `notifications` key is read as a flat mapping.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}") from None
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if document is None:
            return cls()
        if not isinstance(document, dict):
            raise ConfigurationError(f"Expected a mapping in {path}, got {type(document).__name__}")

        section = document.get('notifications', document)
        if not isinstance(section, dict):
            raise ConfigurationError(f"'notifications' in {path} must be a mapping")
        return cls.from_mapping(section)

    def merged(self, **overrides: Any) -> 'ReporterConfig':
        """Return a copy with explicit options layered on top.

        None means "not given" and keeps the current value.
        """
        given = {k: v for k, v in overrides.items() if v is not None}
        if not given:
            return self
        merged_values = asdict(self)
        merged_values.update(given)
        return ReporterConfig.from_mapping(merged_values)

    def redacted(self) -> Dict[str, Any]:
        """Config as a dict with webhook URLs sanitized for display."""
        data = asdict(self)
        for key in ('slack_webhook_url', 'teams_webhook_url'):
            if data[key]:
                data[key] = sanitize_webhook_url(data[key])
        return data


def _coerce(key: str, value: Any) -> Any:
    if key in ('only_on_failure', 'include_screenshots'):
        return parse_bool(value, key)
    if key == 'max_failures_to_show':
        return _parse_int(value, key)
    return str(value)
