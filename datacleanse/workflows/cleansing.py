import re
from typing import Dict, Any, Callable, Tuple

import pandas as pd

from datacleanse.exceptions import CleanseError
from datacleanse.models import (
    DeduplicateRule, CaseRule, TrimRule, FindReplaceRule, MaskRule, ValidateFormatRule,
)
from datacleanse.registry import register
from datacleanse.values import to_text, is_number

Outcome = Dict[str, Any]

MASK_KEEP = 4
_TOKEN_RE = re.compile(r"\S+")
_WHITESPACE_RE = re.compile(r"\s+")

# ----------------------
# Helpers
# ----------------------

def _rewrite_cells(df: pd.DataFrame, col: str, fn: Callable[[str], str], count_all: bool = False) -> int:
    """
    Apply ``fn`` to the text of every truthy cell in ``col``. Only cells whose
    text changes are written back. Returns the number of modified cells, or the
    number of visited cells when ``count_all`` is set.
    """
    present = df[col].map(bool).astype(bool)
    if not present.any():
        return 0
    old = df.loc[present, col].map(to_text)
    new = old.map(fn)
    changed = new != old
    if changed.any():
        df.loc[changed[changed].index, col] = new[changed]
    return int(present.sum()) if count_all else int(changed.sum())

def _keep_rows(df: pd.DataFrame, keep: pd.Series) -> Tuple[pd.DataFrame, int]:
    removed = int((~keep).sum())
    return df.loc[keep].reset_index(drop=True), removed

def _title_token(token: str) -> str:
    for i, ch in enumerate(token):
        if ch.isalpha():
            return token[:i] + ch.upper() + token[i + 1:].lower()
    return token.lower()

def _title(text: str) -> str:
    """Uppercase the first letter of each whitespace-delimited token, lowercase the rest."""
    return _TOKEN_RE.sub(lambda m: _title_token(m.group(0)), text)

def mask_text(text: str) -> str:
    if len(text) <= MASK_KEEP:
        return "*" * len(text)
    return text[:MASK_KEEP] + "*" * (len(text) - MASK_KEEP)

# ----------------------
# Rule handlers
# ----------------------

@register("deduplicate")
def deduplicate(df: pd.DataFrame, rule: DeduplicateRule) -> Tuple[pd.DataFrame, Outcome]:
    """
    Keep the first row for each distinct text value of the column. Values are
    compared by their text form, so a null cell and an empty string count as
    the same value.
    """
    keys = df[rule.column].map(to_text)
    df, removed = _keep_rows(df, ~keys.duplicated(keep="first"))
    return df, {"rows_removed": removed}

@register("case")
def change_case(df: pd.DataFrame, rule: CaseRule) -> Tuple[pd.DataFrame, Outcome]:
    fn = {"UPPER": str.upper, "LOWER": str.lower, "TITLE": _title}[rule.mode]
    return df, {"cells_modified": _rewrite_cells(df, rule.column, fn)}

@register("trim")
def trim(df: pd.DataFrame, rule: TrimRule) -> Tuple[pd.DataFrame, Outcome]:
    modified = _rewrite_cells(df, rule.column, lambda s: _WHITESPACE_RE.sub(" ", s.strip()))
    return df, {"cells_modified": modified}

@register("find_replace")
def find_replace(df: pd.DataFrame, rule: FindReplaceRule) -> Tuple[pd.DataFrame, Outcome]:
    """
    Replace every match of ``rule.pattern`` (Python ``re`` syntax). The
    replacement follows ``re.sub`` template rules, so ``\\1`` and ``\\g<name>``
    refer to groups.
    """
    if not rule.pattern:
        return df, {"warning": f"find_replace on '{rule.column}' has an empty pattern; skipped"}
    try:
        regex = re.compile(rule.pattern)
        modified = _rewrite_cells(df, rule.column, lambda s: regex.sub(rule.replacement, s))
    except re.error as e:
        raise CleanseError(f"Invalid find/replace pattern {rule.pattern!r}: {e}") from e
    return df, {"cells_modified": modified}

@register("mask")
def mask(df: pd.DataFrame, rule: MaskRule) -> Tuple[pd.DataFrame, Outcome]:
    # every masked cell counts, even when the output equals the input
    return df, {"cells_modified": _rewrite_cells(df, rule.column, mask_text, count_all=True)}

@register("validate_format")
def validate_format(df: pd.DataFrame, rule: ValidateFormatRule) -> Tuple[pd.DataFrame, Outcome]:
    if not rule.remove_invalid:
        return df, {}
    if rule.kind == "isNumber":
        valid = df[rule.column].map(is_number)
    else:
        valid = df[rule.column].map(lambda v: "@" in to_text(v))
    df, removed = _keep_rows(df, valid.astype(bool))
    return df, {"rows_removed": removed}
