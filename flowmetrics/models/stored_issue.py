from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from flowmetrics.core.constants import FieldSizes
from flowmetrics.models.base import Base


class StoredIssue(Base):
    """One normalized issue record; ``id`` order is ingestion order."""

    issue_key: Mapped[str] = mapped_column(
        String(FieldSizes.SHORT), unique=True, nullable=False, index=True
    )
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
