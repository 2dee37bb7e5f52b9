"""
CSV fixture loading.

Reads rows used to seed test tables from a comma separated file whose first
line is the header.
"""

import csv
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .interfaces import DBExecutor


class CSVDataLoader:
    """Load fixture rows from a CSV file into dictionaries keyed by header."""

    def __init__(self, file_path: Union[str, Path]) -> None:
        self.file_path = Path(file_path)

    def load_data(self) -> List[Dict[str, str]]:
        """Return one dict per data line.

        Header names and values are stripped of surrounding whitespace. Lines
        shorter than the header get "" for the missing columns; extra values
        beyond the header are ignored. An empty file yields an empty list.
        """
        data: List[Dict[str, str]] = []
        with self.file_path.open("r", encoding="utf-8", newline="") as handle:
            reader = csv.reader(handle)
            header = next(reader, None)
            if header is None:
                return data
            headers = [h.strip() for h in header]
            for values in reader:
                if not values:
                    continue
                row: Dict[str, str] = {}
                for i, name in enumerate(headers):
                    row[name] = values[i].strip() if i < len(values) else ""
                data.append(row)
        return data

    def insert_into(self, db: DBExecutor, table_name: str, columns: Optional[Sequence[str]] = None) -> int:
        """Insert every loaded row into ``table_name`` and return the rows written.

        Values are bound as text; the database converts them to the column types.
        ``columns`` defaults to the CSV header.
        """
        rows = self.load_data()
        if not rows:
            return 0
        names = list(columns) if columns else list(rows[0].keys())
        sql = f"INSERT INTO {table_name} ({', '.join(names)}) VALUES ({', '.join('?' for _ in names)})"
        return sum(db.execute_update(sql, *(row.get(name, "") for name in names)) for row in rows)
