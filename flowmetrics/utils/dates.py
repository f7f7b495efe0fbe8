import re
from datetime import datetime

from flowmetrics.core.constants import TIMESTAMP_FORMAT
from flowmetrics.core.exceptions.domain import MalformedHistoryEntry

# Jira returns offsets as +0000; fromisoformat wants +00:00
_BASIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_jira_datetime(value: str | None) -> datetime:
    """Parse a Jira timestamp such as ``2024-01-02T09:00:00.000+0000``.

    Raises:
        MalformedHistoryEntry: If the value is empty, not an ISO datetime or has no offset.
    """
    if not value or not isinstance(value, str):
        raise MalformedHistoryEntry(f"Missing timestamp: {value!r}")
    text = _BASIC_OFFSET.sub(r"\1:\2", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedHistoryEntry(f"Unparsable timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        raise MalformedHistoryEntry(f"Timestamp has no UTC offset: {value!r}")
    return parsed


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime(TIMESTAMP_FORMAT)
