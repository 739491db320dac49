from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import pandas as pd
from ..sheets.range_builder import OutputPlan, prepare_output

logger = logging.getLogger(__name__)

@dataclass
class Query:
    """A query result snapshot: ordered columns plus one mapping per row."""
    columns: List[str]
    results: List[Dict[str, Any]] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)  # column -> display name
    options: Dict[str, Any] = field(default_factory=dict)

    def header(self, column: str) -> str:
        """Display name of a column, the column itself if none was set."""
        return self.headers.get(column, column)

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)

    def plan(self, strict: bool = False) -> OutputPlan:
        """Shape the results into a grid with its write ranges."""
        display_names = {column: self.header(column) for column in self.columns}
        return prepare_output(self.columns, self.results, display_names=display_names, strict=strict)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, headers: Optional[Dict[str, str]] = None,
                       options: Optional[Dict[str, Any]] = None) -> 'Query':
        """Build a query from a DataFrame, turning NaN/NaT cells into None."""
        df = df.rename(columns=str)
        frame = df.astype(object).where(pd.notna(df), None)
        return cls(
            columns=list(frame.columns),
            results=frame.to_dict(orient='records'),
            headers=dict(headers or {}),
            options=dict(options or {}),
        )

    @classmethod
    def from_csv(cls, path: str, headers: Optional[Dict[str, str]] = None,
                 options: Optional[Dict[str, Any]] = None, **read_kwargs) -> 'Query':
        """Load query results from a CSV file."""
        logger.debug(f"Reading results from CSV file {path}")
        return cls.from_dataframe(pd.read_csv(path, **read_kwargs), headers=headers, options=options)

    @classmethod
    def from_sql(cls, connection, sql: str, headers: Optional[Dict[str, str]] = None,
                 options: Optional[Dict[str, Any]] = None, **read_kwargs) -> 'Query':
        """Run a SQL query over a DB-API connection and keep its results."""
        logger.debug(f"Running query: {sql}")
        df = pd.read_sql_query(sql, connection, **read_kwargs)
        return cls.from_dataframe(df, headers=headers, options=options)
