from pathlib import Path

import pandas as pd

from flowmetrics.core.constants import OUTPUT_COLUMNS, OutputTable
from flowmetrics.core.interfaces import RowSink


def rows_to_frame(table: OutputTable, rows: list[list]) -> pd.DataFrame:
    """Build a DataFrame with the table's column layout; short rows are padded."""
    columns = list(OUTPUT_COLUMNS[table])
    padded = [list(r) + [""] * (len(columns) - len(r)) for r in rows]
    return pd.DataFrame(padded, columns=columns)


async def export_table(table: OutputTable, sink: RowSink, path: str | Path) -> int:
    """Write an output table to CSV. Returns the number of data rows."""
    df = rows_to_frame(table, await sink.read_all())
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return len(df)
