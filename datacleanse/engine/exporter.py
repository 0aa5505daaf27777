import json
from typing import Any

from datacleanse.models import Dataset
from datacleanse.values import to_text


def _quote(value: Any) -> str:
    return '"' + to_text(value).replace('"', '""') + '"'


def to_delimited_text(dataset: Dataset, delimiter: str = ",") -> str:
    """
    Header line followed by one line per row. Every field, header included, is
    wrapped in double quotes with embedded quotes doubled, so delimiters and
    line breaks inside values survive a re-parse.
    """
    if not dataset.header:
        return ""
    lines = [delimiter.join(_quote(h) for h in dataset.header)]
    for row in dataset.rows:
        lines.append(delimiter.join(_quote(row[h]) for h in dataset.header))
    return "\n".join(lines)


def to_json_text(dataset: Dataset, indent: int = 2) -> str:
    records = [{h: row[h] for h in dataset.header} for row in dataset.rows]
    return json.dumps(records, indent=indent, ensure_ascii=False)
