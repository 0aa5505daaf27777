from typing import Tuple, Sequence
import logging
import time

from datacleanse.exceptions import CleanseError
from datacleanse.models import Dataset, Summary
from datacleanse.registry import get_handler, list_rule_types
# importing the module registers every rule handler
from datacleanse.workflows import cleansing  # noqa: F401

logger = logging.getLogger(__name__)


def apply(dataset: Dataset, rules: Sequence) -> Tuple[Dataset, Summary]:
    """
    Run ``rules`` in order against a private copy of ``dataset``.

    Each rule consumes the previous rule's output. Rules naming a column that
    is not in the header are skipped with a warning. Any failure is raised as
    CleanseError; ``dataset`` itself is never modified.
    """
    df = dataset.to_frame()
    summary = Summary(original_row_count=dataset.row_count)

    for position, rule in enumerate(rules):
        col = rule.column
        if col not in df.columns:
            msg = f"rule {position} ({rule.type}) references unknown column '{col}'; skipped"
            logger.warning(msg)
            summary.warnings.append(msg)
            continue

        handler = get_handler(rule.type)
        if handler is None:
            raise CleanseError(
                f"No handler registered for rule type '{rule.type}'; known types: {', '.join(list_rule_types())}"
            )

        start_ts = time.time()
        try:
            df, outcome = handler(df, rule)
        except CleanseError:
            raise
        except Exception as e:
            logger.exception("rule %d (%s) failed", position, rule.type)
            raise CleanseError(f"Rule {position} ({rule.type}) failed: {e}") from e

        summary.rows_removed += outcome.get("rows_removed", 0)
        summary.cells_modified += outcome.get("cells_modified", 0)
        if outcome.get("warning"):
            logger.warning(outcome["warning"])
            summary.warnings.append(outcome["warning"])
        logger.debug("rule %d (%s) on '%s': %s in %.4fs", position, rule.type, col, outcome, time.time() - start_ts)

    cleansed = Dataset.from_frame(df)
    summary.final_row_count = cleansed.row_count
    logger.info(
        "applied %d rules: %d -> %d rows, %d cells modified",
        len(rules), summary.original_row_count, summary.final_row_count, summary.cells_modified,
    )
    return cleansed, summary
