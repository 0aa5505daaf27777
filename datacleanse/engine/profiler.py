from typing import List

import pandas as pd

from datacleanse.models import Dataset, ColumnProfile, DistributionEntry
from datacleanse.values import to_text, is_null, is_number

SAMPLE_SIZE = 5


def _infer_type(first: str) -> str:
    if is_number(first):
        return "number"
    if first in ("true", "false"):
        return "boolean"
    return "string"


def profile_column(series: pd.Series, total_rows: int, top_n: int = 5) -> ColumnProfile:
    """
    Profile a single column: null count, distinct count, single-sample type
    inference and the top-N value distribution. Percentages are relative to
    ``total_rows``, nulls included.
    """
    null_mask = series.map(is_null).astype(bool)
    non_null = series[~null_mask].map(to_text)

    meta = ColumnProfile(
        name=str(series.name),
        null_count=int(null_mask.sum()),
        unique_count=int(non_null.nunique()),
    )
    if non_null.empty:
        return meta

    meta.inferred_type = _infer_type(non_null.iloc[0])

    # ties keep first-seen order: reindex by appearance, then stable sort
    first_seen = pd.Index(non_null.unique())
    counts = non_null.value_counts().reindex(first_seen)
    counts = counts.sort_values(ascending=False, kind="stable").head(top_n)
    meta.distribution = [
        DistributionEntry(value=value, percentage=float(count) / total_rows * 100)
        for value, count in counts.items()
    ]
    meta.sample_values = [str(v) for v in first_seen[:SAMPLE_SIZE]]

    if meta.inferred_type == "number":
        numbers = non_null[non_null.map(is_number).astype(bool)].map(float)
        if not numbers.empty:
            meta.min = float(numbers.min())
            meta.max = float(numbers.max())
            meta.mean = float(numbers.mean())
    return meta


def profile(dataset: Dataset, top_n: int = 5) -> List[ColumnProfile]:
    """One ColumnProfile per header column, in header order. Read-only."""
    df = dataset.to_frame()
    return [profile_column(df[col], len(df), top_n=top_n) for col in dataset.header]
