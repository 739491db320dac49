from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union
import importlib
import logging
from ..query.query import Query
from ..sheets.range_builder import OutputPlan
from ..utils.errors import PostProcessingHookError

logger = logging.getLogger(__name__)

@dataclass
class PostProcessingContext:
    """Handed to the post-processing hook once the results are written."""
    query: Query
    application: Any  # Sheets service or openpyxl module
    container: Any    # spreadsheet resource or Workbook
    sheet: Any        # sheet properties or Worksheet

@dataclass
class WriteResult:
    container: str
    sheet: str
    range: str
    rows_written: int
    dry_run: bool = False
    hook_error: Optional[PostProcessingHookError] = None

PostProcessingHook = Callable[[PostProcessingContext], Any]

@dataclass(frozen=True)
class OutputTarget:
    """Where one query's results go, after per-query options are applied."""
    container: Optional[str]
    sheet: Optional[str]
    hook: Union[str, PostProcessingHook, None]

def resolve_hook(reference: Union[str, PostProcessingHook, None]) -> Optional[PostProcessingHook]:
    """Turn a hook option into a callable.

    Accepts a callable or an import reference such as "package.module:function".
    """
    if reference is None or callable(reference):
        return reference
    if not isinstance(reference, str) or ':' not in reference:
        raise PostProcessingHookError(f"Hook must be a callable or 'module:function', got {reference!r}")

    module_name, _, attribute = reference.partition(':')
    try:
        target = importlib.import_module(module_name)
        for part in attribute.split('.'):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise PostProcessingHookError(f"Couldn't resolve post-processing hook {reference}: {e}") from e

    if not callable(target):
        raise PostProcessingHookError(f"Post-processing hook {reference} is not callable")
    return target

class SpreadsheetOutput:
    """Base for sinks that write a query's results into a spreadsheet.

    Subclasses implement _write_plan(); the shaping, hook resolution and hook
    invocation are shared. A failing hook never undoes a completed write: the
    error is logged and returned on the WriteResult.
    """
    type_tag: str = ''

    def __init__(self, target_container: Optional[str] = None, target_sheet: Optional[str] = None,
                 create_missing_sheet: bool = True,
                 post_processing_hook: Union[str, PostProcessingHook, None] = None,
                 strict: bool = False, dry_run: bool = False):
        self.target_container = target_container
        self.target_sheet = target_sheet
        self.create_missing_sheet = create_missing_sheet
        self.post_processing_hook = post_processing_hook
        self.strict = strict
        self.dry_run = dry_run

    def target_for(self, query: Query) -> OutputTarget:
        """Handler settings, with the query's own options filling any left unset."""
        def setting(name: str):
            value = getattr(self, name)
            return value if value is not None else query.option(name)

        return OutputTarget(
            container=setting('target_container'),
            sheet=setting('target_sheet'),
            hook=setting('post_processing_hook'),
        )

    def write(self, query: Query) -> WriteResult:
        plan = query.plan(strict=self.strict)
        target = self.target_for(query)

        hook, hook_error = None, None
        try:
            hook = resolve_hook(target.hook)
        except PostProcessingHookError as e:
            logger.warning(str(e))
            hook_error = e

        result, context = self._write_plan(query, plan, target)
        logger.info(f"Wrote {result.rows_written} rows to {result.container} [{result.sheet}] {result.range}")

        if hook is not None and context is not None:
            hook_error = self._run_hook(hook, context)
        result.hook_error = hook_error
        return result

    def _run_hook(self, hook: PostProcessingHook, context: PostProcessingContext) -> Optional[PostProcessingHookError]:
        try:
            hook(context)
        except Exception as e:
            logger.warning(f"Post-processing hook failed: {str(e)}")
            error = PostProcessingHookError(f"Post-processing hook failed: {e}")
            error.__cause__ = e
            return error
        return None

    def _write_plan(self, query: Query, plan: OutputPlan,
                    target: OutputTarget) -> Tuple[WriteResult, Optional[PostProcessingContext]]:
        raise NotImplementedError
