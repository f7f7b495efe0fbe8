from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from flowmetrics.core.constants import FieldSizes
from flowmetrics.models.base import Base


class JobState(Base):
    key: Mapped[str] = mapped_column(
        String(FieldSizes.MEDIUM), unique=True, nullable=False, index=True
    )
    value: Mapped[str] = mapped_column(Text, nullable=False)
