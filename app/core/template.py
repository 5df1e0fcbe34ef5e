# app/core/template.py
from __future__ import annotations

from datetime import date
from typing import Any, List, Optional, Tuple

from sqlmodel import Session, select

from app.core.hierarchy import flatten_hierarchy
from app.core.import_rows import IMPORT_COLUMNS, INSTRUCTIONS_ROW, ImportRow
from app.core.settings import settings
from app.core.spreadsheet import CSV_MEDIA_TYPE, XLSX_MEDIA_TYPE, build_csv, build_workbook
from app.models.hierarchy import PropertyType

TEMPLATE = "template"
EXPORT = "export"

_SAMPLE_CATEGORY = ("Structura si Constructie", "Structure and Construction")
_SAMPLE_QUESTION = (
    "Care este starea generala a structurii cladiri?",
    "What is the general condition of the building structure?",
)
_SAMPLE_ANSWERS = [
    ("Excelenta - fara fisuri sau probleme vizibile", "Excellent - no cracks or visible issues", 10),
    ("Buna - fisuri minore, fara impact structural", "Good - minor cracks, no structural impact", 7),
]


def _sample_rows(property_type_id: int) -> List[ImportRow]:
    # two answers to one new question: ID=0 rows link by name
    return [
        ImportRow(
            property_type_id=property_type_id,
            category_id=0,
            category_name_ro=_SAMPLE_CATEGORY[0],
            category_name_en=_SAMPLE_CATEGORY[1],
            question_id=0,
            question_ro=_SAMPLE_QUESTION[0],
            question_en=_SAMPLE_QUESTION[1],
            question_weight=8,
            answer_id=0,
            answer_ro=ro,
            answer_en=en,
            answer_weight=weight,
        )
        for ro, en, weight in _SAMPLE_ANSWERS
    ]


def build_template_rows(session: Session, property_type_id: Optional[int] = None) -> List[List[Any]]:
    """Header, instructions, then existing rows as examples (or two samples)."""
    examples = flatten_hierarchy(session, property_type_id, limit=settings.TEMPLATE_EXAMPLE_ROWS)
    if not examples:
        sample_pt = property_type_id or session.exec(select(PropertyType.id).order_by(PropertyType.id)).first() or 1
        examples = _sample_rows(sample_pt)
    return [list(IMPORT_COLUMNS), list(INSTRUCTIONS_ROW)] + [row.as_cells() for row in examples]


def build_export_rows(session: Session, property_type_id: Optional[int] = None) -> List[List[Any]]:
    """Header plus every flattened row with its real ids."""
    return [list(IMPORT_COLUMNS)] + [row.as_cells() for row in flatten_hierarchy(session, property_type_id)]


def instructions_sheet(session: Session) -> List[str]:
    types = session.exec(select(PropertyType).order_by(PropertyType.id)).all()
    available = (
        ", ".join(f"ID: {pt.id} - {pt.name_ro}" for pt in types)
        if types else "Example: ID: 1 - Apartament, ID: 2 - Casa, ID: 3 - Vila"
    )
    return [
        "ID-Based Questions Import Template",
        "",
        "Instructions:",
        "1. Use IDs for precise data management and conflict resolution",
        "2. property_type_id: Use existing property type ID",
        "3. category_id: 0 = new category, existing ID = update category",
        "4. question_id: 0 = new question, existing ID = update question",
        "5. answer_id: 0 = new answer, existing ID = update answer",
        "6. Question Weight: 1-10 (10 = most important)",
        "7. Answer Weight: 1-10 (10 = best answer, 1 = worst answer)",
        "8. Romanian text is required, English is optional",
        "9. New entries with ID=0 will get real IDs assigned automatically",
        "10. Save as .xlsx (or .csv) file and upload",
        "",
        "Property Types Available:",
        available,
        "",
        "ID=0 Smart Linking:",
        "- Multiple rows with same category_name_ro and ID=0 -> same category",
        "- Multiple rows with same question_ro and ID=0 -> same question",
        "- Each answer gets a unique ID even if answer_id=0",
    ]


# rows of instructions_sheet() styled as section titles
INFO_SECTIONS = (3, 15, 18)


def filename_for(kind: str, fmt: str, property_type_id: Optional[int] = None, today: Optional[date] = None) -> str:
    stamp = (today or date.today()).isoformat()
    if kind == TEMPLATE:
        return f"questions-import-template-{stamp}.{fmt}"
    if property_type_id is not None:
        return f"questions-export-property-{property_type_id}-{stamp}.{fmt}"
    return f"questions-export-all-{stamp}.{fmt}"


def render(
    session: Session,
    kind: str = TEMPLATE,
    fmt: str = "xlsx",
    property_type_id: Optional[int] = None,
) -> Tuple[bytes, str, str]:
    """Returns (content, media type, filename)."""
    if kind == EXPORT:
        rows = build_export_rows(session, property_type_id)
    else:
        rows = build_template_rows(session, property_type_id)
    filename = filename_for(kind, fmt, property_type_id)

    if fmt == "csv":
        return build_csv(rows), CSV_MEDIA_TYPE, filename

    if kind == EXPORT:
        content = build_workbook(rows, "Questions Export")
    else:
        content = build_workbook(
            rows,
            "Questions Template",
            instructions_row=True,
            info_lines=instructions_sheet(session),
            info_sections=INFO_SECTIONS,
        )
    return content, XLSX_MEDIA_TYPE, filename
