import re
from typing import Optional, Tuple

_CELL_REFERENCE = re.compile(r'^([A-Z]+)(\d+)$')
_COLUMN_LABEL = re.compile(r'^[A-Z]+$')

class SheetIndex:
    """Helper class to handle sheet indexing consistently."""

    @staticmethod
    def column_name(n: int) -> Optional[str]:
        """Convert column number to column name, spreadsheet style.

            1 -> A
           26 -> Z
           27 -> AA
         2600 -> CUZ

        Column names are bijective base-26 numerals: the digits run 1..26 and
        there is no zero, so a remainder of 0 stands for Z and is subtracted
        before dividing. Returns None when n is not a positive number.
        """
        if n < 1:
            return None

        letters = []
        while n:
            digit = n % 26 or 26
            letters.append(chr(ord('A') + digit - 1))
            n = (n - digit) // 26
        return ''.join(reversed(letters))

    @staticmethod
    def from_column_letter(col: str) -> int:
        """Convert column letter to number (A = 1, AA = 27)."""
        if not isinstance(col, str) or not _COLUMN_LABEL.match(col):
            raise ValueError(f"Invalid column letter: {col!r}")
        result = 0
        for char in col:
            result = result * 26 + (ord(char) - ord('A') + 1)
        return result

    @staticmethod
    def cell_reference(column: int, row: int) -> str:
        """Get A1 notation for a 1-based column and row."""
        if row < 1:
            raise ValueError(f"Invalid row number: {row}")
        name = SheetIndex.column_name(column)
        if name is None:
            raise ValueError(f"Invalid column number: {column}")
        return f"{name}{row}"

    @staticmethod
    def parse_cell_reference(cell_ref: str) -> Tuple[str, int]:
        """Parse A1 notation into column letter and row number."""
        match = _CELL_REFERENCE.match(cell_ref)
        if not match or int(match.group(2)) < 1:
            raise ValueError(f"Invalid cell reference: {cell_ref}")
        col, row = match.groups()
        return col, int(row)

    @staticmethod
    def qualify_range(sheet_name: str, address: str) -> str:
        """Prefix a range with its sheet name ('My Sheet'!A1:B3)."""
        escaped = sheet_name.replace("'", "''")
        return f"'{escaped}'!{address}"
