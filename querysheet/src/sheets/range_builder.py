from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple
import logging
from ..utils.sheet_index import SheetIndex
from ..utils.errors import InvalidColumnCount, MalformedRow

logger = logging.getLogger(__name__)

Grid = List[List[Any]]

ORIGIN = 'A1'

def build_grid(column_headers: Sequence[str], rows: Sequence[Mapping[str, Any]],
               display_names: Optional[Mapping[str, str]] = None,
               strict: bool = False) -> Grid:
    """Lay out query results as a header row followed by one row per result.

    Values are taken from each row mapping in header order. A column missing
    from a row becomes a None cell so every row keeps the header's width;
    with strict=True it raises MalformedRow instead.
    """
    display_names = display_names or {}
    grid = [[display_names.get(column, column) for column in column_headers]]

    for row_number, row in enumerate(rows, start=1):
        missing = [column for column in column_headers if column not in row]
        if missing:
            if strict:
                raise MalformedRow(row_number, missing)
            logger.debug(f"Row {row_number} has no value for {missing}, leaving cells empty")
        grid.append([row.get(column) for column in column_headers])

    return grid

def _bounds(grid: Grid) -> Tuple[str, int]:
    """Return the last column name and the row count of a grid."""
    width = len(grid[0]) if grid else 0
    column = SheetIndex.column_name(width)
    if column is None:
        raise InvalidColumnCount("Cannot compute a range for a result with no columns")
    return column, len(grid)

def compute_range(grid: Grid) -> str:
    """Range covering the whole grid, header row included (A1:B3)."""
    column, height = _bounds(grid)
    return f"{ORIGIN}:{column}{height}"

def compute_header_range(grid: Grid) -> str:
    """Range covering only the header row (A1:B1)."""
    column, _ = _bounds(grid)
    return f"{ORIGIN}:{column}1"

@dataclass(frozen=True)
class OutputPlan:
    """Everything a sink needs to write one result set."""
    grid: Tuple[Tuple[Any, ...], ...]
    range: str
    header_range: str

    @property
    def width(self) -> int:
        return len(self.grid[0])

    @property
    def height(self) -> int:
        return len(self.grid)

    @property
    def data_rows(self) -> int:
        return self.height - 1

    def values(self) -> Grid:
        """Grid as a list of lists, the shape spreadsheet APIs expect."""
        return [list(row) for row in self.grid]

def prepare_output(column_headers: Sequence[str], rows: Sequence[Mapping[str, Any]],
                   display_names: Optional[Mapping[str, str]] = None,
                   strict: bool = False) -> OutputPlan:
    """Shape a result set and compute its ranges before anything is written."""
    if not column_headers:
        raise InvalidColumnCount("Query selected no columns, nothing to output")

    grid = build_grid(column_headers, rows, display_names=display_names, strict=strict)
    plan = OutputPlan(
        grid=tuple(tuple(row) for row in grid),
        range=compute_range(grid),
        header_range=compute_header_range(grid),
    )
    logger.debug(f"Prepared {plan.data_rows} rows x {plan.width} columns for range {plan.range}")
    return plan
