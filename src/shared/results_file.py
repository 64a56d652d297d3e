"""Load test outcomes from a JSON results file.

Runners in another process can hand their results to the notifier as a
JSON document, either a bare list of outcome objects or:

    {
        "startTime": "2026-01-01T10:00:00Z",
        "endTime": "2026-01-01T10:05:00Z",
        "tests": [
            {"title": "...", "suite": "...", "file": "...", "status": "failed",
             "duration": 1234, "retry": 0, "error": "...",
             "attachments": [{"name": "screenshot", "path": "..."}]}
        ]
    }
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.shared.models import Attachment, TestOutcome


__all__ = [
    'RunResults',
    'load_results',
    'outcome_from_dict',
    'parse_timestamp',
]


@dataclass
class RunResults:
    """Outcomes plus the run's timestamps, when the file records them."""
    outcomes: List[TestOutcome]
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 string or epoch milliseconds into an aware datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid timestamp: {value!r}") from None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def outcome_from_dict(data: Dict[str, Any]) -> TestOutcome:
    """Build a TestOutcome from one JSON record.

    Raises:
        ValueError: On a missing title, unknown status or invalid numbers
    """
    if not isinstance(data, dict):
        raise ValueError(f"Test record must be an object, got {type(data).__name__}")
    title = data.get('title')
    if not title:
        raise ValueError(f"Test record without a title: {data!r}")

    attachments = tuple(
        Attachment(
            name=str(item.get('name', '')),
            path=item.get('path'),
            content_type=item.get('contentType') or item.get('content_type'),
        )
        for item in data.get('attachments') or ()
        if isinstance(item, dict)
    )

    error = data.get('error')
    if isinstance(error, dict):
        error = error.get('message')

    return TestOutcome(
        title=str(title),
        parent_title=str(data.get('suite') or data.get('parent') or data.get('parentTitle') or ''),
        file=str(data.get('file') or ''),
        status=data.get('status', ''),
        duration_ms=float(data.get('duration') or 0),
        retry=int(data.get('retry') or 0),
        error=str(error) if error else None,
        attachments=attachments,
    )


def load_results(path) -> RunResults:
    """Read a results file.

    Raises:
        ValueError: If the document is not a list or an object with "tests"
        OSError: If the file cannot be read
    """
    with open(Path(path), 'r', encoding='utf-8') as f:
        document = json.load(f)

    if isinstance(document, list):
        return RunResults(outcomes=[outcome_from_dict(item) for item in document])

    if not isinstance(document, dict) or not isinstance(document.get('tests'), list):
        raise ValueError(f"{path}: expected a list of tests or an object with a 'tests' list")

    return RunResults(
        outcomes=[outcome_from_dict(item) for item in document['tests']],
        start_time=parse_timestamp(document.get('startTime')),
        end_time=parse_timestamp(document.get('endTime')),
    )
