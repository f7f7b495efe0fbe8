import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowmetrics.core.exceptions.domain import ConfigurationError


class StatusMapEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    status_id: str
    name: str | None = None
    category: str | None = None


class SquadMapping(BaseModel):
    model_config = ConfigDict(extra="ignore")

    project_key: str
    squad: str


class WorkflowConfig(BaseModel):
    """Tabular workflow configuration: JQL, status map, squads, people and rates."""

    model_config = ConfigDict(extra="ignore")

    jql: str = Field(min_length=1)
    status_map: list[StatusMapEntry] = []
    squads: list[SquadMapping] = []
    user_dictionary: dict[str, str] = {}
    income_weights: dict[str, float] = {}
    level_aliases: dict[str, str] = {}
    item_type_aliases: dict[str, str] = {}

    @classmethod
    def from_file(cls, path: str | Path) -> "WorkflowConfig":
        """Load and validate a JSON workflow configuration file.

        Raises:
            ConfigurationError: If the file is missing or invalid.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(f"Workflow configuration not found: {path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Workflow configuration is not valid JSON: {e}") from e

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid workflow configuration: {e}") from e
