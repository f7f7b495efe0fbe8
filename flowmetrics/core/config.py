from functools import lru_cache
from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from flowmetrics.core.constants import CheckpointBackend


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Jira
    jira_url: str = Field(default="", description="Jira Cloud base URL, e.g. https://acme.atlassian.net")
    jira_email: str = Field(default="", description="Email of the Jira API user")
    jira_api_token: str = Field(default="", description="Jira API token")
    jira_api_version: str = Field(default="3")

    # Custom field ids
    story_points_field: str = Field(default="customfield_10004")
    tester_field: str = Field(default="customfield_10200")
    designer_field: str = Field(default="customfield_11523")

    # Ingestion
    page_size: int = Field(default=100, gt=0, description="Issues requested per search page")
    batch_budget: int = Field(default=5000, gt=0, description="Max issues fetched per invocation")
    write_batch_size: int = Field(default=2500, gt=0, description="Rows written per invocation")
    checkpoint_key: str = Field(default="jira_ingestion")
    checkpoint_backend: CheckpointBackend = Field(default=CheckpointBackend.DATABASE)

    # Cost attribution
    hourly_rate_divisor: float = Field(default=200.0, gt=0)

    # Workflow configuration (JQL, status map, squads, users, income weights)
    workflow_config_path: str = Field(default="./workflow.json")

    # Redis
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0)
    redis_user: str = Field(default="default")
    redis_pass: str = Field(default="")

    # Network
    proxy_url: str | None = Field(
        default=None,
        description="HTTP/HTTPS proxy URL (e.g., http://proxy.example.com:8080)",
    )

    # Database
    db_path: str = Field(default="./data/flowmetrics.db", description="Path to SQLite database file")

    # App
    log_file: str = Field(default="logs/flowmetrics.log")
    debug: bool = Field(default=False)

    @computed_field
    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_user}:{self.redis_pass}@{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @computed_field
    @property
    def db_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.db_path}"

    @computed_field
    @property
    def db_directory(self) -> Path:
        return Path(self.db_path).parent


@lru_cache
def get_settings() -> Settings:
    return Settings()
