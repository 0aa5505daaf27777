import copy
from typing import List, Dict, Any, Optional, Union, Literal, Annotated

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ----------------------
# Dataset
# ----------------------

class Dataset(BaseModel):
    header: List[str] = []
    rows: List[Dict[str, Any]] = []

    @model_validator(mode="after")
    def _rows_match_header(self):
        if len(set(self.header)) != len(self.header):
            raise ValueError("header names must be unique")
        for i, row in enumerate(self.rows):
            if list(row.keys()) != self.header:
                raise ValueError(f"row {i} keys do not match the header")
        return self

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        """Deep copy of the rows as an object-dtype frame (no NaN coercion)."""
        rows = copy.deepcopy(self.rows)
        return pd.DataFrame(rows, columns=self.header, index=pd.RangeIndex(len(rows)), dtype=object)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "Dataset":
        if len(df.columns) == 0:
            # a frame without columns still carries its row count
            return cls(header=[], rows=[{} for _ in range(len(df.index))])
        return cls(header=[str(c) for c in df.columns], rows=df.to_dict(orient="records"))


# ----------------------
# Profiling
# ----------------------

class DistributionEntry(BaseModel):
    value: str
    percentage: float

class ColumnProfile(BaseModel):
    name: str
    inferred_type: Literal["string", "number", "boolean"] = "string"
    unique_count: int = 0
    null_count: int = 0
    distribution: List[DistributionEntry] = []
    sample_values: List[str] = []
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None


# ----------------------
# Rules
# ----------------------

_CASE_ALIASES = {
    "UPPERCASE": "UPPER",
    "lowercase": "LOWER",
    "Title Case": "TITLE",
}

class _RuleBase(BaseModel):
    model_config = ConfigDict(frozen=True)
    column: str

class DeduplicateRule(_RuleBase):
    type: Literal["deduplicate"] = "deduplicate"

class CaseRule(_RuleBase):
    type: Literal["case"] = "case"
    mode: Literal["UPPER", "LOWER", "TITLE"] = "UPPER"

    @field_validator("mode", mode="before")
    @classmethod
    def _accept_case_labels(cls, v):
        if isinstance(v, str):
            return _CASE_ALIASES.get(v, v)
        return v

class TrimRule(_RuleBase):
    type: Literal["trim"] = "trim"

class FindReplaceRule(_RuleBase):
    type: Literal["find_replace"] = "find_replace"
    pattern: Optional[str] = None
    replacement: str = ""

class MaskRule(_RuleBase):
    type: Literal["mask"] = "mask"

class ValidateFormatRule(_RuleBase):
    type: Literal["validate_format"] = "validate_format"
    kind: Literal["isNumber", "containsAt"] = "isNumber"
    remove_invalid: bool = False

Rule = Annotated[
    Union[DeduplicateRule, CaseRule, TrimRule, FindReplaceRule, MaskRule, ValidateFormatRule],
    Field(discriminator="type"),
]


class Summary(BaseModel):
    rows_removed: int = 0
    cells_modified: int = 0
    original_row_count: int = 0
    final_row_count: int = 0
    warnings: List[str] = []


# ----------------------
# Worker protocol
# ----------------------

class ParseCommand(BaseModel):
    command: Literal["parse"] = "parse"
    source: str
    format: Literal["csv", "tsv", "json"] = "csv"

class CleanseCommand(BaseModel):
    command: Literal["cleanse"] = "cleanse"
    rules: List[Rule] = []

Command = Annotated[Union[ParseCommand, CleanseCommand], Field(discriminator="command")]

class ParseSuccess(BaseModel):
    type: Literal["parse_success"] = "parse_success"
    headers: List[str]
    preview_rows: List[Dict[str, Any]]
    profile: List[ColumnProfile]
    total_rows: int

class CleanseSuccess(BaseModel):
    type: Literal["cleanse_success"] = "cleanse_success"
    summary: Summary
    exported_csv_text: str
    exported_json_text: str
    preview_rows: List[Dict[str, Any]]

class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str
