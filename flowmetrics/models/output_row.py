from sqlalchemy import JSON, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from flowmetrics.core.constants import FieldSizes
from flowmetrics.models.base import Base


class OutputRow(Base):
    """A row of one of the output tables (working set, changelog, op cost)."""

    __table_args__ = (UniqueConstraint("table_name", "row_index"),)

    table_name: Mapped[str] = mapped_column(String(FieldSizes.TINY), nullable=False, index=True)
    row_index: Mapped[int] = mapped_column(Integer, nullable=False)
    cells: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
