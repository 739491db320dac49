import pytest
from ..src.sheets.range_builder import (
    build_grid, compute_range, compute_header_range, prepare_output, OutputPlan
)
from ..src.utils.errors import InvalidColumnCount, MalformedRow, QuerySheetError
from ..src.utils.sheet_index import SheetIndex

HEADERS = ["id", "measurement"]
ROWS = [{"id": 1, "measurement": "x"}, {"id": 2, "measurement": "y"}]

def test_build_grid_and_ranges():
    grid = build_grid(HEADERS, ROWS)
    assert grid == [["id", "measurement"], [1, "x"], [2, "y"]]
    assert compute_range(grid) == "A1:B3"
    assert compute_header_range(grid) == "A1:B1"

def test_build_grid_without_rows_covers_header_only():
    grid = build_grid(HEADERS, [])
    assert grid == [["id", "measurement"]]
    assert compute_range(grid) == "A1:B1"
    assert compute_header_range(grid) == "A1:B1"

def test_build_grid_keeps_header_order_not_row_order():
    grid = build_grid(["b", "a"], [{"a": 1, "b": 2, "c": 3}])
    assert grid == [["b", "a"], [2, 1]]

def test_missing_values_become_empty_cells():
    grid = build_grid(HEADERS, [{"id": 1}, {"measurement": "y"}])
    assert grid == [["id", "measurement"], [1, None], [None, "y"]]
    assert all(len(row) == len(HEADERS) for row in grid)

def test_strict_mode_raises_malformed_row():
    with pytest.raises(MalformedRow) as excinfo:
        build_grid(HEADERS, [{"id": 1, "measurement": "x"}, {"id": 2}], strict=True)
    assert excinfo.value.row_number == 2
    assert excinfo.value.missing == ["measurement"]

def test_display_names_replace_header_labels():
    grid = build_grid(HEADERS, ROWS, display_names={"id": "Detector"})
    assert grid[0] == ["Detector", "measurement"]
    assert grid[1:] == [[1, "x"], [2, "y"]]

@pytest.mark.parametrize("width", [1, 26, 27, 53, 703])
@pytest.mark.parametrize("row_count", [0, 1, 9, 100])
def test_compute_range_bounds(width, row_count):
    headers = [f"c{i}" for i in range(width)]
    rows = [{header: i for header in headers} for i in range(row_count)]
    grid = build_grid(headers, rows)
    assert compute_range(grid) == f"A1:{SheetIndex.column_name(width)}{row_count + 1}"
    assert compute_header_range(grid) == f"A1:{SheetIndex.column_name(width)}1"

def test_empty_headers_are_rejected():
    grid = build_grid([], [{"id": 1}])
    with pytest.raises(InvalidColumnCount):
        compute_range(grid)
    with pytest.raises(InvalidColumnCount):
        compute_header_range(grid)
    with pytest.raises(InvalidColumnCount):
        compute_range([])

def test_invalid_column_count_is_a_value_error():
    with pytest.raises(ValueError):
        prepare_output([], [])
    assert issubclass(InvalidColumnCount, QuerySheetError)

def test_prepare_output():
    plan = prepare_output(HEADERS, ROWS)
    assert isinstance(plan, OutputPlan)
    assert plan.range == "A1:B3"
    assert plan.header_range == "A1:B1"
    assert (plan.width, plan.height, plan.data_rows) == (2, 3, 2)
    assert plan.values() == [["id", "measurement"], [1, "x"], [2, "y"]]

def test_outputs_are_repeatable():
    first = prepare_output(HEADERS, ROWS)
    second = prepare_output(HEADERS, ROWS)
    assert first == second
    assert build_grid(HEADERS, ROWS) == build_grid(HEADERS, ROWS)

def test_plan_is_not_affected_by_later_changes_to_input():
    rows = [dict(row) for row in ROWS]
    plan = prepare_output(HEADERS, rows)
    rows[0]["measurement"] = "changed"
    assert plan.grid[1] == (1, "x")
