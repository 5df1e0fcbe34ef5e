# tests/test_import_rows.py
import pytest

from app.core.errors import ImportFileError, ImportValidationError
from app.core.import_rows import (
    IMPORT_COLUMNS,
    INSTRUCTIONS_ROW,
    ImportRow,
    match_headers,
    parse_rows_for_import,
    validate_import_row,
    validate_sheet,
)

REQUIRED_MSG = "weight is required (1-10). If missing from template, please download a fresh template."


def _row(**overrides):
    values = dict(
        property_type_id=1,
        category_id=0,
        category_name_ro="Structura",
        category_name_en="Structure",
        question_id=0,
        question_ro="Starea structurii?",
        question_en="Structure condition?",
        question_weight=5,
        answer_id=0,
        answer_ro="Buna",
        answer_en="Good",
        answer_weight=7,
    )
    values.update(overrides)
    return ImportRow(**values)


@pytest.mark.parametrize("weight", [1, 10])
def test_weight_bounds_are_accepted(weight):
    assert validate_import_row(_row(question_weight=weight, answer_weight=weight)) == []


@pytest.mark.parametrize("weight", [0, 11])
def test_weight_outside_bounds_is_rejected(weight):
    errors = validate_import_row(_row(question_weight=weight))
    assert len(errors) == 1
    assert errors[0].startswith("Question weight")


def test_missing_weight_gets_the_template_hint():
    errors = validate_import_row(_row(answer_weight=0))
    assert errors == ["Answer " + REQUIRED_MSG]


def test_out_of_range_weight_message():
    assert validate_import_row(_row(answer_weight=11)) == ["Answer weight must be between 1-10"]


def test_romanian_texts_are_required():
    errors = validate_import_row(_row(category_name_ro="", question_ro="", answer_ro=""))
    assert "Category name (Romanian) is required" in errors
    assert "Question text (Romanian) is required" in errors
    assert "Answer text (Romanian) is required" in errors


def test_english_texts_are_optional():
    assert validate_import_row(_row(category_name_en="", question_en="", answer_en="")) == []


def test_property_type_is_required():
    assert "Property type ID is required" in validate_import_row(_row(property_type_id=0))


def test_from_cells_coerces_spreadsheet_values():
    row = ImportRow.from_cells([1.0, "0", " Structura ", None, 0, "Q?", "", 8.0, "", "A", None, "7"])
    assert row.property_type_id == 1
    assert row.category_name_ro == "Structura"
    assert row.category_name_en == ""
    assert row.question_weight == 8
    assert row.answer_id == 0
    assert row.answer_weight == 7


def test_from_cells_tolerates_missing_trailing_columns():
    row = ImportRow.from_cells([3, 0, "Cat", "", 0, "Q?", "", 5, 0, "A"])
    assert row.answer_en == ""
    assert row.answer_weight == 0
    assert validate_import_row(row) == ["Answer " + REQUIRED_MSG]


def test_fractional_weight_is_flagged():
    row = ImportRow.from_cells([1, 0, "Cat", "", 0, "Q?", "", 7.5, 0, "A", "", "2.5"])
    errors = validate_import_row(row)
    assert "Question weight must be a whole number between 1-10" in errors
    assert "Answer weight must be a whole number between 1-10" in errors


def test_unparsable_weight_counts_as_missing():
    row = ImportRow.from_cells([1, 0, "Cat", "", 0, "Q?", "", "high", 0, "A", "", 5])
    assert validate_import_row(row) == ["Question " + REQUIRED_MSG]


def test_from_mapping_accepts_camel_and_snake_keys():
    camel = ImportRow.from_mapping({
        "propertyTypeId": 2, "categoryId": 0, "categoryNameRo": "Cat", "questionId": 0,
        "questionRo": "Q?", "questionWeight": 4, "answerId": 0, "answerRo": "A", "answerWeight": 6,
    })
    snake = ImportRow.from_mapping(dict(zip(IMPORT_COLUMNS, camel.as_cells())))
    assert camel == snake
    assert camel.question_weight == 4


def test_default_property_type_fills_blank_cells():
    row = ImportRow.from_cells(["", 0, "Cat", "", 0, "Q?", "", 5, 0, "A", "", 5], default_property_type_id=7)
    assert row.property_type_id == 7


def test_match_headers_is_case_underscore_and_space_insensitive():
    headers = [c.upper().replace("_", " ") for c in IMPORT_COLUMNS]
    assert match_headers(headers) == []
    assert match_headers(["PropertyTypeId"] + IMPORT_COLUMNS[1:]) == []


def test_match_headers_reports_missing_columns():
    assert match_headers(IMPORT_COLUMNS[:-1]) == ["answer_weight"]


def test_validate_sheet_buckets_rows():
    table = [
        list(IMPORT_COLUMNS),
        list(INSTRUCTIONS_ROW),
        _row().as_cells(),
        [None] * 12,
        _row(answer_ro="Slaba", answer_weight=0).as_cells(),
        _row(question_ro="Alta?", question_weight=11).as_cells(),
    ]
    report = validate_sheet(table)

    assert report.total_rows == 5
    assert [item.row_number for item in report.valid] == [3]
    assert [item.row_number for item in report.invalid] == [5, 6]
    assert report.invalid[0].errors == ["Answer " + REQUIRED_MSG]
    assert report.invalid[1].errors == ["Question weight must be between 1-10"]

    summary = report.summary()
    assert summary["validRows"] == 1
    assert summary["invalidRows"] == 2
    assert summary["categories"] == ["Structura"]


def test_validate_sheet_rejects_missing_headers():
    with pytest.raises(ImportFileError) as err:
        validate_sheet([IMPORT_COLUMNS[:10], _row().as_cells()])
    assert err.value.details == {"missing": ["answer_en", "answer_weight"]}


def test_validate_sheet_requires_a_data_row():
    with pytest.raises(ImportFileError):
        validate_sheet([list(IMPORT_COLUMNS)])


def test_server_side_batch_is_all_or_nothing():
    raw = [_row().as_payload(), _row(answer_weight=11).as_payload(), _row(question_ro="").as_payload()]
    with pytest.raises(ImportValidationError) as err:
        parse_rows_for_import(raw)
    assert err.value.message == "2 rows have validation errors"
    assert [d["row"] for d in err.value.details] == [2, 3]


def test_server_side_batch_returns_rows():
    rows = parse_rows_for_import([_row().as_payload(), _row(answer_ro="Slaba").as_payload()])
    assert [r.answer_ro for r in rows] == ["Buna", "Slaba"]


@pytest.mark.parametrize("field,message", [
    ("property_type_id", "Property type ID must be between 1 and 2147483647"),
    ("category_id", "Category ID must be between 0 and 2147483647"),
    ("question_id", "Question ID must be between 0 and 2147483647"),
    ("answer_id", "Answer ID must be between 0 and 2147483647"),
])
def test_ids_beyond_the_integer_column_are_rejected(field, message):
    assert validate_import_row(_row(**{field: 10**20})) == [message]


def test_largest_storable_id_is_accepted():
    assert validate_import_row(_row(property_type_id=2**31 - 1, answer_id=2**31 - 1)) == []


def test_oversized_id_rejects_the_server_batch():
    with pytest.raises(ImportValidationError) as err:
        parse_rows_for_import([_row(category_id=10**20).as_payload()])
    assert err.value.details == [{"row": 1, "errors": ["Category ID must be between 0 and 2147483647"]}]


def test_non_numeric_id_on_the_server_path_is_an_error():
    payload = {**_row().as_payload(), "category_id": "abc"}
    with pytest.raises(ImportValidationError) as err:
        parse_rows_for_import([payload])
    assert err.value.details[0]["errors"] == ["Category ID must be a whole number, got 'abc'"]


def test_non_numeric_property_type_is_reported_once():
    payload = {**_row().as_payload(), "property_type_id": None, "propertyTypeId": "Casa"}
    with pytest.raises(ImportValidationError) as err:
        parse_rows_for_import([payload])
    assert err.value.details[0]["errors"] == ["Property type ID must be a whole number, got 'Casa'"]


def test_blank_and_numeric_text_ids_still_parse():
    payload = {**_row().as_payload(), "category_id": "", "question_id": " 0 ", "answer_id": None}
    rows = parse_rows_for_import([payload])
    assert (rows[0].category_id, rows[0].question_id, rows[0].answer_id) == (0, 0, 0)
