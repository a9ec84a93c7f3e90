from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

import pandas as pd


@dataclass
class ColumnDefinition:
    """Form field descriptor served to clients by the schema endpoint."""

    field: str
    label: str
    kind: str = "text"  # text | number | select | date
    default: Any = ""
    options: List[str] | None = None
    min_value: float | None = None
    step: float | None = None
    format: str | None = None
    help: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "label": self.label,
            "kind": self.kind,
            "default": self.default,
            "options": list(self.options or []),
            "min": self.min_value,
            "step": self.step,
            "format": self.format,
            "help": self.help,
        }


@dataclass
class TableModel:
    """A record form: its columns plus example rows."""

    name: str
    columns: List[ColumnDefinition]
    default_rows: List[dict[str, Any]] = field(default_factory=list)

    @property
    def fields(self) -> List[str]:
        return [col.field for col in self.columns]

    def blank_row(self) -> dict[str, Any]:
        return {col.field: col.default for col in self.columns}

    def create_default_df(self) -> pd.DataFrame:
        """Example rows in column order; fields a row leaves out take the column default."""
        rows = [{**self.blank_row(), **row} for row in self.default_rows] or [self.blank_row()]
        return pd.DataFrame(rows, columns=self.fields)

    def payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": [col.to_dict() for col in self.columns],
            "defaults": self.create_default_df().to_dict("records"),
        }
