from collections.abc import Iterable, Mapping

from flowmetrics.core.exceptions.domain import ConfigurationError
from flowmetrics.schemas.jira.user import JiraUser
from flowmetrics.schemas.workflow import SquadMapping


class UsernameDirectory:
    """Normalizes Jira display names and emails to canonical team member names."""

    def __init__(self, dictionary: Mapping[str, str]):
        self._names = {k.strip().lower(): v for k, v in dictionary.items() if k}

    def resolve(self, name: str | None) -> str | None:
        if not name:
            return None
        return self._names.get(name.strip().lower())

    def canonical_name(self, user: JiraUser | None) -> str | None:
        """Resolve by display name, then email; unknown users keep their display name marked with ``*``."""
        if user is None:
            return None
        resolved = self.resolve(user.displayName) or self.resolve(user.emailAddress)
        if resolved:
            return resolved
        if user.displayName:
            return f"{user.displayName}*"
        return None


class SquadDirectory:
    """Project key → squad lookup."""

    def __init__(self, mappings: Iterable[SquadMapping]):
        self._squads = {m.project_key: m.squad for m in mappings}

    def squad_for(self, project_key: str | None) -> str | None:
        """Raises ConfigurationError when no squad mapping was configured at all."""
        if not self._squads:
            raise ConfigurationError("Jira squad mapping is empty")
        if not project_key:
            return None
        return self._squads.get(project_key)


class RateTable:
    """Hourly rate per person, derived from their income weight."""

    def __init__(self, income_weights: Mapping[str, float], divisor: float = 200.0):
        self._weights = {k.strip().lower(): float(v) for k, v in income_weights.items()}
        self._divisor = divisor

    def hourly_rate(self, person: str | None) -> float:
        if not person:
            return 0.0
        weight = self._weights.get(person.strip().lower(), 0.0)
        return weight / self._divisor
