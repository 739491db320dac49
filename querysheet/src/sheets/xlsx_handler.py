from typing import Optional, Tuple
import logging
import os
import openpyxl
from openpyxl.styles import Font
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet.worksheet import Worksheet
from ..output.base import SpreadsheetOutput, OutputTarget, PostProcessingContext, WriteResult
from ..query.query import Query
from ..sheets.range_builder import OutputPlan
from ..utils.sheet_index import SheetIndex
from ..utils.errors import SinkUnavailable, SinkWriteFailure

logger = logging.getLogger(__name__)

DEFAULT_PATH = 'querysheet.xlsx'
MAX_COLUMN_WIDTH = 80

class XlsxHandler(SpreadsheetOutput):
    """Writes query results into an Excel workbook file.

    target_container is the workbook path. An existing workbook is opened and
    kept; otherwise a new one is created and saved there.
    """
    type_tag = 'xlsx'

    def _open_workbook(self, path: str):
        if not os.path.exists(path):
            logger.debug(f"Creating new workbook {path}")
            return openpyxl.Workbook()
        try:
            return openpyxl.load_workbook(path)
        except Exception as e:
            logger.error(f"Failed to open workbook {path}: {str(e)}")
            raise SinkUnavailable(f"Failed to open workbook {path}: {e}") from e

    def _select_sheet(self, workbook, path: str, sheet_name: Optional[str]) -> Worksheet:
        if sheet_name is None:
            return workbook.worksheets[0]
        if sheet_name in workbook.sheetnames:
            return workbook[sheet_name]
        if not self.create_missing_sheet:
            raise SinkWriteFailure(f"Sheet {sheet_name} not found in workbook {path}")

        logger.info(f"Adding sheet `{sheet_name}` to workbook {path}")
        return workbook.create_sheet(title=sheet_name)

    @staticmethod
    def _autofit(sheet: Worksheet, plan: OutputPlan) -> None:
        """Size each column to its longest value."""
        for col_idx in range(plan.width):
            lengths = [len(str(row[col_idx])) for row in plan.grid if row[col_idx] is not None]
            width = min(max(lengths, default=0) + 2, MAX_COLUMN_WIDTH)
            sheet.column_dimensions[SheetIndex.column_name(col_idx + 1)].width = width

    def _write_cells(self, sheet: Worksheet, plan: OutputPlan, path: str) -> None:
        try:
            # None clears whatever an existing sheet held in the range
            for row_offset, row in enumerate(plan.grid):
                for col_offset, value in enumerate(row):
                    sheet.cell(row=1 + row_offset, column=1 + col_offset).value = value
        except (IllegalCharacterError, TypeError, ValueError) as e:
            logger.error(f"Failed to write range {plan.range} in workbook {path}: {str(e)}")
            raise SinkWriteFailure(f"Failed to write range {plan.range} in workbook {path}: {e}") from e

    def _write_plan(self, query: Query, plan: OutputPlan,
                    target: OutputTarget) -> Tuple[WriteResult, Optional[PostProcessingContext]]:
        path = target.container or DEFAULT_PATH
        if self.dry_run:
            logger.info(f"[DRY RUN] Would write {plan.data_rows} rows to {path} range {plan.range}")
            result = WriteResult(container=path, sheet=target.sheet or '<first sheet>',
                                 range=plan.range, rows_written=plan.data_rows, dry_run=True)
            return result, None

        workbook = self._open_workbook(path)
        sheet = self._select_sheet(workbook, path, target.sheet)
        self._write_cells(sheet, plan, path)

        for cell in sheet[plan.header_range][0]:
            cell.font = Font(bold=True)
        self._autofit(sheet, plan)

        try:
            workbook.save(path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save workbook {path}: {str(e)}")
            raise SinkWriteFailure(f"Failed to save workbook {path}: {e}") from e

        result = WriteResult(container=path, sheet=sheet.title,
                             range=plan.range, rows_written=plan.data_rows)
        context = PostProcessingContext(query=query, application=openpyxl,
                                        container=workbook, sheet=sheet)
        return result, context
