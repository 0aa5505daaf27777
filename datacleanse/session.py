"""A cleansing session: one retained source Dataset plus the command handler.

``CleansingSession.handle`` is the synchronous core of the worker protocol:
every inbound command produces exactly one outbound event (``parse_success``,
``cleanse_success`` or ``error``).
"""
import logging
from typing import Dict, Any, List, Optional, Sequence, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from datacleanse.config import settings
from datacleanse.engine import exporter, profiler, runner
from datacleanse.engine.parser import parse_source
from datacleanse.exceptions import CleanseError, DataCleanseError
from datacleanse.models import (
    Command, ParseCommand, ParseSuccess, CleanseSuccess, ErrorEvent,
    ColumnProfile, Dataset,
)

logger = logging.getLogger(__name__)

_COMMAND = TypeAdapter(Command)


class CleansingSession:
    def __init__(self, preview_rows: int = settings.PREVIEW_ROWS,
                 top_n: int = settings.DISTRIBUTION_TOP_N,
                 json_indent: int = settings.JSON_INDENT):
        self.preview_rows = preview_rows
        self.top_n = top_n
        self.json_indent = json_indent
        # dataset and its profile are installed together as one pair
        self._state: Tuple[Optional[Dataset], List[ColumnProfile]] = (None, [])

    @property
    def dataset(self) -> Optional[Dataset]:
        return self._state[0]

    @property
    def profile(self) -> List[ColumnProfile]:
        return self._state[1]

    def snapshot(self) -> Tuple[Optional[Dataset], List[ColumnProfile]]:
        return self._state

    def parse(self, source: Union[str, bytes], fmt: str) -> ParseSuccess:
        dataset = parse_source(source, fmt)
        column_profiles = profiler.profile(dataset, top_n=self.top_n)
        # only installed once parsing and profiling both succeeded
        self._state = (dataset, column_profiles)
        logger.info("parsed %s source: %d rows, %d columns", fmt, dataset.row_count, len(dataset.header))
        return ParseSuccess(
            headers=dataset.header,
            preview_rows=dataset.rows[:self.preview_rows],
            profile=column_profiles,
            total_rows=dataset.row_count,
        )

    def cleanse(self, rules: Sequence) -> CleanseSuccess:
        dataset = self.dataset
        if dataset is None:
            raise CleanseError("No dataset loaded; parse a source first")
        cleansed, summary = runner.apply(dataset, rules)
        return CleanseSuccess(
            summary=summary,
            exported_csv_text=exporter.to_delimited_text(cleansed),
            exported_json_text=exporter.to_json_text(cleansed, indent=self.json_indent),
            preview_rows=cleansed.rows[:self.preview_rows],
        )

    def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        try:
            command = _COMMAND.validate_python(message)
        except ValidationError as e:
            logger.warning("rejected malformed command: %s", e)
            return ErrorEvent(message=f"Invalid command: {e.errors()[0]['msg']}").model_dump()

        try:
            if isinstance(command, ParseCommand):
                event = self.parse(command.source, command.format)
            else:
                event = self.cleanse(command.rules)
        except DataCleanseError as e:
            logger.warning("%s command failed: %s", command.command, e)
            return ErrorEvent(message=str(e)).model_dump()
        except Exception:
            logger.exception("unexpected failure handling %s command", command.command)
            failure = "Failed to parse file." if isinstance(command, ParseCommand) else "Failed to cleanse data."
            return ErrorEvent(message=failure).model_dump()
        return event.model_dump()
