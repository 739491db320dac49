class QuerySheetError(Exception):
    """Base class for errors raised by querysheet."""


class InvalidColumnCount(QuerySheetError, ValueError):
    """A result set with no columns cannot be laid out as a range."""


class MalformedRow(QuerySheetError, ValueError):
    """A row is missing a value for one of the declared columns."""

    def __init__(self, row_number: int, missing):
        self.row_number = row_number
        self.missing = list(missing)
        super().__init__(f"Row {row_number} has no value for column(s): {', '.join(self.missing)}")


class SinkError(QuerySheetError):
    """Failure inside an output sink."""


class SinkUnavailable(SinkError):
    """The spreadsheet application or service could not be reached."""


class SinkWriteFailure(SinkError):
    """The container or sheet could not be opened, created or written."""


class PostProcessingHookError(QuerySheetError):
    """The post-processing hook could not be resolved or failed while running."""
