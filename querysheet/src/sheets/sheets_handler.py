from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, Any, Optional, List, Tuple
import logging
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from ..output.base import SpreadsheetOutput, OutputTarget, PostProcessingContext, WriteResult
from ..query.query import Query
from ..sheets.range_builder import OutputPlan
from ..utils.sheet_index import SheetIndex
from ..utils.auth import get_credentials
from ..utils.errors import SinkUnavailable, SinkWriteFailure, QuerySheetError

logger = logging.getLogger(__name__)

DEFAULT_TITLE = 'QuerySheet results'

def to_cell_value(value: Any) -> Any:
    """Convert a result value into something the Sheets API accepts as JSON."""
    if value is None:
        return ''
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value

def grid_range(sheet_id: int, address: str) -> Dict[str, int]:
    """Convert an A1 range such as "A1:C1" into a Sheets API GridRange."""
    start, _, end = address.partition(':')
    start_col, start_row = SheetIndex.parse_cell_reference(start)
    end_col, end_row = SheetIndex.parse_cell_reference(end or start)
    return {
        'sheetId': sheet_id,
        'startRowIndex': start_row - 1,
        'endRowIndex': end_row,
        'startColumnIndex': SheetIndex.from_column_letter(start_col) - 1,
        'endColumnIndex': SheetIndex.from_column_letter(end_col),
    }

class SheetsHandler(SpreadsheetOutput):
    """Writes query results into a Google Sheets spreadsheet.

    target_container is a spreadsheet id; without one a new spreadsheet is
    created. The header row is made bold and its columns auto-sized.
    """
    type_tag = 'sheets'

    def __init__(self, config: Optional[Dict[str, Any]] = None, credentials: Credentials = None,
                 service=None, value_input_option: str = 'USER_ENTERED',
                 title: str = DEFAULT_TITLE, **options):
        super().__init__(**options)
        self.config = config or {}
        self.credentials = credentials
        self.service = service
        self.value_input_option = value_input_option
        self.title = title

    def _initialize_service(self) -> None:
        """Initialize the Google Sheets service."""
        if self.service is not None:
            return
        try:
            if self.credentials is None:
                self.credentials = get_credentials(self.config)

            self.service = build('sheets', 'v4', credentials=self.credentials)
            logger.debug("Successfully initialized Google Sheets service")
        except QuerySheetError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialize Google Sheets service: {str(e)}")
            raise SinkUnavailable(f"Failed to initialize Google Sheets service: {e}") from e

    def _execute(self, request, action: str) -> Dict[str, Any]:
        try:
            return request.execute()
        except Exception as e:
            logger.error(f"Failed to {action}: {str(e)}")
            raise SinkWriteFailure(f"Failed to {action}: {e}") from e

    def _open_spreadsheet(self, container: Optional[str]) -> Dict[str, Any]:
        """Open the target spreadsheet, or create a new one."""
        spreadsheets = self.service.spreadsheets()
        if container:
            return self._execute(
                spreadsheets.get(spreadsheetId=container),
                f"open spreadsheet {container}")

        spreadsheet = self._execute(
            spreadsheets.create(body={'properties': {'title': self.title}}),
            "create spreadsheet")
        logger.info(f"Created spreadsheet {spreadsheet.get('spreadsheetId')}")
        return spreadsheet

    def _add_sheet(self, spreadsheet_id: str, title: str) -> Dict[str, Any]:
        body = {'requests': [{'addSheet': {'properties': {'title': title}}}]}
        response = self._execute(
            self.service.spreadsheets().batchUpdate(spreadsheetId=spreadsheet_id, body=body),
            f"add sheet {title}")
        logger.info(f"Added sheet `{title}` to spreadsheet {spreadsheet_id}")
        return response['replies'][0]['addSheet']['properties']

    def _select_sheet(self, spreadsheet: Dict[str, Any], sheet_name: Optional[str]) -> Dict[str, Any]:
        """Properties of the target sheet, or of the first sheet when none is named."""
        sheets: List[Dict[str, Any]] = [sheet['properties'] for sheet in spreadsheet.get('sheets', [])]
        spreadsheet_id = spreadsheet['spreadsheetId']

        if sheet_name is None:
            if sheets:
                return sheets[0]
            return self._add_sheet(spreadsheet_id, 'Sheet1')

        for properties in sheets:
            if properties['title'] == sheet_name:
                return properties

        if not self.create_missing_sheet:
            raise SinkWriteFailure(f"Sheet {sheet_name} not found in spreadsheet {spreadsheet_id}")
        return self._add_sheet(spreadsheet_id, sheet_name)

    def _format_requests(self, sheet_id: int, plan: OutputPlan) -> List[Dict[str, Any]]:
        header = grid_range(sheet_id, plan.header_range)
        return [
            {
                'repeatCell': {
                    'range': header,
                    'cell': {'userEnteredFormat': {'textFormat': {'bold': True}}},
                    'fields': 'userEnteredFormat.textFormat.bold',
                }
            },
            {
                'autoResizeDimensions': {
                    'dimensions': {
                        'sheetId': sheet_id,
                        'dimension': 'COLUMNS',
                        'startIndex': header['startColumnIndex'],
                        'endIndex': header['endColumnIndex'],
                    }
                }
            },
        ]

    def _write_plan(self, query: Query, plan: OutputPlan,
                    target: OutputTarget) -> Tuple[WriteResult, Optional[PostProcessingContext]]:
        if self.dry_run:
            logger.info(f"[DRY RUN] Would write {plan.data_rows} rows to range {plan.range}")
            result = WriteResult(
                container=target.container or '<new spreadsheet>',
                sheet=target.sheet or '<first sheet>',
                range=plan.range,
                rows_written=plan.data_rows,
                dry_run=True,
            )
            return result, None

        self._initialize_service()
        spreadsheet = self._open_spreadsheet(target.container)
        spreadsheet_id = spreadsheet['spreadsheetId']
        sheet = self._select_sheet(spreadsheet, target.sheet)

        values = [[to_cell_value(value) for value in row] for row in plan.grid]
        target_range = SheetIndex.qualify_range(sheet['title'], plan.range)
        self._execute(
            self.service.spreadsheets().values().update(
                spreadsheetId=spreadsheet_id,
                range=target_range,
                valueInputOption=self.value_input_option,
                body={'values': values}
            ),
            f"write range {target_range}")

        self._execute(
            self.service.spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={'requests': self._format_requests(sheet['sheetId'], plan)}
            ),
            f"format header range {plan.header_range}")

        result = WriteResult(
            container=spreadsheet_id,
            sheet=sheet['title'],
            range=plan.range,
            rows_written=plan.data_rows,
        )
        context = PostProcessingContext(query=query, application=self.service,
                                        container=spreadsheet, sheet=sheet)
        return result, context
