"""Turn raw delimited or JSON text into a Dataset.

Both parsers are pure: identical input always yields an identical Dataset.
"""
import json
import logging
from typing import List, Dict, Any, Optional, Union

from datacleanse.exceptions import ParseError
from datacleanse.models import Dataset
from datacleanse.values import to_text

logger = logging.getLogger(__name__)

DELIMITERS = {"csv": ",", "tsv": "\t"}


class _Field:
    """Characters of one field plus where its quoted section starts and ends."""

    def __init__(self):
        self.chars: List[str] = []
        self.quote_start: Optional[int] = None
        self.quote_end: Optional[int] = None

    def open_quote(self):
        if self.quote_start is None:
            self.quote_start = len(self.chars)
        self.quote_end = None

    def close_quote(self):
        self.quote_end = len(self.chars)

    def finish(self, trim: bool = True) -> str:
        text = "".join(self.chars)
        if not trim:
            return text
        if self.quote_start is None:
            return text.strip()
        # only whitespace outside the quotes is trimmed
        end = len(text) if self.quote_end is None else self.quote_end
        return text[:self.quote_start].lstrip() + text[self.quote_start:end] + text[end:].rstrip()


def _split_records(text: str, delimiter: str, trim: bool = True) -> List[List[str]]:
    records: List[List[str]] = []
    record: List[str] = []
    field = _Field()
    in_quotes = False
    has_content = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch == '"':
            has_content = True
            if in_quotes and i + 1 < n and text[i + 1] == '"':
                field.chars.append('"')
                i += 1
            elif in_quotes:
                in_quotes = False
                field.close_quote()
            else:
                in_quotes = True
                field.open_quote()
        elif ch == delimiter and not in_quotes:
            has_content = True
            record.append(field.finish(trim))
            field = _Field()
        elif ch in "\r\n" and not in_quotes:
            if has_content:
                record.append(field.finish(trim))
                records.append(record)
            record = []
            field = _Field()
            has_content = False
            if ch == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
        else:
            has_content = True
            field.chars.append(ch)
        i += 1

    if has_content:
        record.append(field.finish(trim))
        records.append(record)
    return records


def _unique_header(names: List[str]) -> List[str]:
    seen: Dict[str, int] = {}
    out: List[str] = []
    for name in names:
        if name in seen:
            seen[name] += 1
            candidate = f"{name}_{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}_{seen[name]}"
            seen[candidate] = 0
            out.append(candidate)
        else:
            seen[name] = 0
            out.append(name)
    return out


def parse_delimited(text: str, delimiter: str = ",", trim_fields: bool = True) -> Dataset:
    """
    Parse delimited text; the first record is the header.

    Unquoted whitespace around each field is trimmed unless ``trim_fields`` is
    False, in which case fields keep their raw text.
    """
    if len(delimiter) != 1 or delimiter in '"\r\n':
        raise ParseError(f"Unsupported delimiter: {delimiter!r}")

    records = _split_records(text, delimiter, trim_fields)
    if not records:
        return Dataset()

    header = _unique_header(records[0])
    width = len(header)
    rows = []
    for record in records[1:]:
        values = record[:width] + [""] * (width - len(record))
        rows.append(dict(zip(header, values)))

    logger.debug("parsed %d delimited rows x %d columns", len(rows), width)
    return Dataset(header=header, rows=rows)


def _json_cell(value: Any) -> Optional[str]:
    if value is None:
        return None
    return to_text(value)


def parse_json(text: str) -> Dataset:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON: {e}") from e

    if not isinstance(data, list):
        raise ParseError("JSON input must be an array of objects")
    if not data:
        return Dataset()
    if not all(isinstance(item, dict) for item in data):
        raise ParseError("JSON input must be an array of objects")

    # header comes from the first object only; later extra keys are dropped
    header = [str(k) for k in data[0].keys()]
    rows = []
    dropped = set()
    for item in data:
        rows.append({h: _json_cell(item.get(h)) for h in header})
        dropped.update(k for k in item.keys() if k not in data[0])
    if dropped:
        logger.debug("keys absent from the first object were ignored: %s", sorted(dropped))

    return Dataset(header=header, rows=rows)


def parse_source(source: Union[str, bytes], fmt: str) -> Dataset:
    """Decode ``source`` if needed and parse it according to ``fmt``."""
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Source is not valid UTF-8 text: {e}") from e
    elif source.startswith("\ufeff"):
        source = source[1:]

    if fmt == "json":
        return parse_json(source)
    if fmt in DELIMITERS:
        return parse_delimited(source, DELIMITERS[fmt])
    raise ParseError(f"Unsupported format: {fmt}")
