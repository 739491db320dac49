from functools import partial
from typing import Any, Callable, Dict, List, Optional
import logging
from .base import SpreadsheetOutput
from ..sheets.sheets_handler import SheetsHandler
from ..sheets.xlsx_handler import XlsxHandler

logger = logging.getLogger(__name__)

OutputFactory = Callable[..., SpreadsheetOutput]

class OutputRegistry:
    """Maps an output type tag (e.g. "sheets") to the factory producing its handler."""

    def __init__(self):
        self._factories: Dict[str, OutputFactory] = {}

    def register(self, type_tag: str, factory: OutputFactory, replace: bool = False) -> None:
        if type_tag in self._factories and not replace:
            raise ValueError(f"Output type '{type_tag}' is already registered")
        self._factories[type_tag] = factory
        logger.debug(f"Registered output type '{type_tag}'")

    def create(self, type_tag: str, **options: Any) -> SpreadsheetOutput:
        """Build the handler registered for type_tag with the given output options."""
        try:
            factory = self._factories[type_tag]
        except KeyError:
            raise KeyError(f"Unknown output type '{type_tag}', expected one of: {', '.join(self.types())}") from None
        return factory(**options)

    def types(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, type_tag: str) -> bool:
        return type_tag in self._factories

def default_registry(config: Optional[Dict[str, Any]] = None) -> OutputRegistry:
    """Registry with the built-in Google Sheets and Excel workbook outputs."""
    value_input_option = (config or {}).get('output', {}).get('value_input_option') or 'USER_ENTERED'
    registry = OutputRegistry()
    registry.register(SheetsHandler.type_tag,
                      partial(SheetsHandler, config=config, value_input_option=value_input_option))
    registry.register(XlsxHandler.type_tag, XlsxHandler)
    return registry
