# app/core/import_rows.py
"""
Row model and validation for the questions import sheet.

The same rules run in two places: as a pre-flight check on an uploaded sheet
(invalid rows are reported and left out of the upload) and as the server-side
gate of the bulk import endpoint (any invalid row rejects the whole batch).
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from app.core.errors import ImportFileError, ImportValidationError

# Wire contract between export and import; order matters.
IMPORT_COLUMNS: List[str] = [
    "property_type_id",
    "category_id",
    "category_name_ro",
    "category_name_en",
    "question_id",
    "question_ro",
    "question_en",
    "question_weight",
    "answer_id",
    "answer_ro",
    "answer_en",
    "answer_weight",
]

INSTRUCTIONS_ROW: List[str] = [
    "ID from property types below, or new ID",
    "0 for new category, existing ID to update",
    "Required - category name in Romanian",
    "Optional - category name in English",
    "0 for new question, existing ID to update",
    "Required - question text in Romanian",
    "Optional - question text in English",
    "Number 1-10 (importance weight)",
    "0 for new answer, existing ID to update",
    "Required - answer text in Romanian",
    "Optional - answer text in English",
    "Number 1-10 (answer value)",
]

# camelCase aliases accepted on the JSON endpoint
_CAMEL = {
    "property_type_id": "propertyTypeId",
    "category_id": "categoryId",
    "category_name_ro": "categoryNameRo",
    "category_name_en": "categoryNameEn",
    "question_id": "questionId",
    "question_ro": "questionRo",
    "question_en": "questionEn",
    "question_weight": "questionWeight",
    "answer_id": "answerId",
    "answer_ro": "answerRo",
    "answer_en": "answerEn",
    "answer_weight": "answerWeight",
}

WEIGHT_MIN = 1
WEIGHT_MAX = 10

# ids are stored as 32-bit INTEGER columns
ID_MAX = 2**31 - 1

_ID_LABELS = {
    "property_type_id": "Property type",
    "category_id": "Category",
    "question_id": "Question",
    "answer_id": "Answer",
}

PROPERTY_TYPE_REQUIRED = "Property type ID is required"

# Marker for a numeric cell that is not a whole number ("7.5")
NOT_INTEGER = -1


def _to_int(value: Any) -> int:
    """Missing, empty or unparsable -> 0; non-integral numbers -> NOT_INTEGER."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else NOT_INTEGER
    text = str(value).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        num = float(text)
    except ValueError:
        return 0
    return int(num) if num.is_integer() else NOT_INTEGER


def _is_numeric(value: Any) -> bool:
    """True for blank cells and anything `_to_int` reads as a number."""
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    text = str(value).strip()
    if not text:
        return True
    try:
        float(text)
    except ValueError:
        return False
    return True


def _lookup(data: Mapping[str, Any], column: str) -> Any:
    value = data.get(column)
    if value is None:
        value = data.get(_CAMEL[column])
    return value


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


@dataclass(frozen=True)
class ImportRow:
    property_type_id: int = 0
    category_id: int = 0
    category_name_ro: str = ""
    category_name_en: str = ""
    question_id: int = 0
    question_ro: str = ""
    question_en: str = ""
    question_weight: int = 0
    answer_id: int = 0
    answer_ro: str = ""
    answer_en: str = ""
    answer_weight: int = 0

    @classmethod
    def from_cells(cls, cells: Sequence[Any], default_property_type_id: Optional[int] = None) -> "ImportRow":
        """Positional parse; missing trailing cells take their defaults."""
        padded = list(cells) + [None] * (len(IMPORT_COLUMNS) - len(cells))
        values = dict(zip(IMPORT_COLUMNS, padded))
        return cls._coerce(values, default_property_type_id)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], default_property_type_id: Optional[int] = None) -> "ImportRow":
        values = {column: _lookup(data, column) for column in IMPORT_COLUMNS}
        return cls._coerce(values, default_property_type_id)

    @classmethod
    def _coerce(cls, values: Mapping[str, Any], default_property_type_id: Optional[int]) -> "ImportRow":
        property_type_id = _to_int(values["property_type_id"])
        if not property_type_id and default_property_type_id:
            property_type_id = default_property_type_id
        return cls(
            property_type_id=property_type_id,
            category_id=_to_int(values["category_id"]),
            category_name_ro=_to_text(values["category_name_ro"]),
            category_name_en=_to_text(values["category_name_en"]),
            question_id=_to_int(values["question_id"]),
            question_ro=_to_text(values["question_ro"]),
            question_en=_to_text(values["question_en"]),
            question_weight=_to_int(values["question_weight"]),
            answer_id=_to_int(values["answer_id"]),
            answer_ro=_to_text(values["answer_ro"]),
            answer_en=_to_text(values["answer_en"]),
            answer_weight=_to_int(values["answer_weight"]),
        )

    def as_cells(self) -> List[Any]:
        return [getattr(self, column) for column in IMPORT_COLUMNS]

    def as_payload(self) -> Dict[str, Any]:
        # JSON body row for POST /questions/bulk-import
        return asdict(self)

    @property
    def category_name_en_or_ro(self) -> str:
        return self.category_name_en or self.category_name_ro

    @property
    def question_en_or_ro(self) -> str:
        return self.question_en or self.question_ro

    @property
    def answer_en_or_ro(self) -> str:
        return self.answer_en or self.answer_ro


def _weight_errors(label: str, weight: int) -> List[str]:
    if weight == 0:
        return [f"{label} weight is required (1-10). If missing from template, please download a fresh template."]
    if weight == NOT_INTEGER:
        return [f"{label} weight must be a whole number between 1-10"]
    if weight < WEIGHT_MIN or weight > WEIGHT_MAX:
        return [f"{label} weight must be between 1-10"]
    return []


def validate_import_row(row: ImportRow) -> List[str]:
    errors: List[str] = []
    if row.property_type_id < 1:
        errors.append(PROPERTY_TYPE_REQUIRED)
    elif row.property_type_id > ID_MAX:
        errors.append(f"Property type ID must be between 1 and {ID_MAX}")
    for label, value in (("Category", row.category_id), ("Question", row.question_id), ("Answer", row.answer_id)):
        if value < 0:
            errors.append(f"{label} ID must be 0 or a positive whole number")
        elif value > ID_MAX:
            errors.append(f"{label} ID must be between 0 and {ID_MAX}")
    if not row.category_name_ro:
        errors.append("Category name (Romanian) is required")
    if not row.question_ro:
        errors.append("Question text (Romanian) is required")
    if not row.answer_ro:
        errors.append("Answer text (Romanian) is required")
    errors.extend(_weight_errors("Question", row.question_weight))
    errors.extend(_weight_errors("Answer", row.answer_weight))
    return errors


# ---------------------------------------------------------------------------
# Server side: whole batch or nothing
# ---------------------------------------------------------------------------
def unparsable_id_errors(data: Mapping[str, Any]) -> List[str]:
    """Non-blank id values that are not numbers; blank ids still mean "new"."""
    errors: List[str] = []
    for column, label in _ID_LABELS.items():
        value = _lookup(data, column)
        if not _is_numeric(value):
            errors.append(f"{label} ID must be a whole number, got {value!r}")
    return errors


def parse_rows_for_import(raw_rows: Sequence[Mapping[str, Any]]) -> List[ImportRow]:
    rows: List[ImportRow] = []
    failures: List[Dict[str, Any]] = []
    for index, raw in enumerate(raw_rows, start=1):
        row = ImportRow.from_mapping(raw)
        errors = unparsable_id_errors(raw)
        bad_property_type = any(e.startswith("Property type ID") for e in errors)
        errors += [
            e for e in validate_import_row(row)
            if not (bad_property_type and e == PROPERTY_TYPE_REQUIRED)
        ]
        if errors:
            failures.append({"row": index, "errors": errors})
        else:
            rows.append(row)

    if failures:
        raise ImportValidationError(f"{len(failures)} rows have validation errors", details=failures)
    return rows


# ---------------------------------------------------------------------------
# Pre-flight: sheet -> valid / invalid buckets
# ---------------------------------------------------------------------------
def _norm_header(value: Any) -> str:
    return re.sub(r"[_\s]", "", str(value or "")).lower()


def match_headers(headers: Sequence[Any]) -> List[str]:
    """Required columns missing from the header row (case/underscore/space-insensitive)."""
    present = {_norm_header(h) for h in headers if h not in (None, "")}
    return [column for column in IMPORT_COLUMNS if _norm_header(column) not in present]


@dataclass
class SheetRow:
    row_number: int
    row: ImportRow
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        body = asdict(self.row)
        body["rowIndex"] = self.row_number
        body["errors"] = list(self.errors)
        return body


@dataclass
class SheetValidation:
    valid: List[SheetRow] = field(default_factory=list)
    invalid: List[SheetRow] = field(default_factory=list)
    total_rows: int = 0

    @property
    def rows(self) -> List[ImportRow]:
        return [item.row for item in self.valid]

    @property
    def categories(self) -> Set[str]:
        return {item.row.category_name_ro for item in self.valid if item.row.category_name_ro}

    def summary(self) -> Dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "validRows": len(self.valid),
            "invalidRows": len(self.invalid),
            "uniqueQuestions": len({item.row.question_ro for item in self.valid}),
            "categories": sorted(self.categories),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": [item.to_dict() for item in self.valid],
            "invalid": [item.to_dict() for item in self.invalid],
            "summary": self.summary(),
        }


def _is_blank(cells: Sequence[Any]) -> bool:
    return not cells or all(c is None or str(c).strip() == "" for c in cells)


def _is_instructions(cells: Sequence[Any]) -> bool:
    return bool(cells) and _to_text(cells[0]) == INSTRUCTIONS_ROW[0]


def validate_sheet(table: Sequence[Sequence[Any]], default_property_type_id: Optional[int] = None) -> SheetValidation:
    """
    `table` is the first sheet as rows of cells; row 1 holds the headers.
    Columns are read by position, in IMPORT_COLUMNS order.
    """
    if len(table) < 2:
        raise ImportFileError("File must contain at least a header row and one data row")

    missing = match_headers(table[0])
    if missing:
        raise ImportFileError(f"Missing required columns: {', '.join(missing)}", details={"missing": missing})

    data_rows = table[1:]
    result = SheetValidation(total_rows=len(data_rows))
    for offset, cells in enumerate(data_rows):
        if _is_blank(cells) or _is_instructions(cells):
            continue
        row = ImportRow.from_cells(cells, default_property_type_id)
        item = SheetRow(row_number=offset + 2, row=row, errors=validate_import_row(row))
        (result.invalid if item.errors else result.valid).append(item)
    return result
