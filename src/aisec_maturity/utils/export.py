"""Excel and JSON export of assessment results, and answer import from Excel."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
from datetime import datetime
from zipfile import BadZipFile
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel, Field

from ..models.answers import Answer, AnswerResponse, UNANSWERED_LABEL
from ..models.catalog import ActiveQuestion
from ..models.metrics import CriticalGap, FrameworkCoverage, OverallMetrics, RoadmapItem

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="1F3A5F", end_color="1F3A5F", fill_type="solid")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)
MAX_COLUMN_WIDTH = 60

QUESTIONS_SHEET = "Questions"
QUESTION_HEADERS = [
    "Question ID", "Domain ID", "Subcategory ID", "Criticality", "Owner", "Weight",
    "Frameworks", "Response", "Evidence", "Notes", "Evidence Links", "Question",
]


def _pct(value: float) -> float:
    return round(value * 100, 1)


def _write_table(sheet: Worksheet, headers: List[str], rows: List[List[Any]]) -> None:
    """Write a header row and data rows, then size the columns."""
    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT

    for row in rows:
        sheet.append(row)

    for index, header in enumerate(headers, 1):
        width = max([len(str(header))] + [len(str(r[index - 1])) for r in rows if r[index - 1] is not None])
        sheet.column_dimensions[get_column_letter(index)].width = min(width + 2, MAX_COLUMN_WIDTH)
    sheet.freeze_panes = "A2"


def metrics_summary(metrics: OverallMetrics) -> Dict[str, Any]:
    """
    Flatten overall metrics into a JSON-ready summary.

    Args:
        metrics: Overall metrics snapshot

    Returns:
        Summary with headline figures and per-level scores
    """
    return {
        "overall_score": round(metrics.overall_score, 4),
        "maturity_level": metrics.maturity_level.level,
        "maturity_name": metrics.maturity_level.name,
        "coverage": round(metrics.coverage, 4),
        "evidence_readiness": round(metrics.evidence_readiness, 4),
        "critical_gaps": metrics.critical_gaps,
        "total_questions": metrics.total_questions,
        "answered_questions": metrics.answered_questions,
        "domains": [
            {
                "domain_id": dm.domain_id,
                "domain_name": dm.domain_name,
                "score": round(dm.score, 4),
                "maturity_level": dm.maturity_level.name,
                "coverage": round(dm.coverage, 4),
                "scored": dm.scored,
            }
            for dm in metrics.domain_metrics
        ],
        "nist_functions": {
            fm.function.value: round(fm.score, 4) for fm in metrics.nist_function_metrics if fm.scored
        },
        "framework_categories": {
            cm.category_id.value: round(cm.score, 4)
            for cm in metrics.framework_category_metrics
            if cm.scored
        },
        "ownership": {
            om.ownership_type.value: round(om.score, 4) for om in metrics.ownership_metrics if om.scored
        },
    }


def export_workbook(
    path: Union[str, Path],
    metrics: OverallMetrics,
    gaps: Sequence[CriticalGap],
    coverage: Sequence[FrameworkCoverage],
    roadmap: Sequence[RoadmapItem],
    questions: Sequence[ActiveQuestion],
    answers: Mapping[str, Answer],
) -> Path:
    """
    Write the assessment results to an Excel workbook.

    Sheets: Summary, Domains, Gaps, Frameworks, Roadmap, Questions.

    Returns:
        Path of the written workbook
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    summary = wb.active
    summary.title = "Summary"
    _write_table(
        summary,
        ["Metric", "Value"],
        [
            ["Overall Score", round(metrics.overall_score, 4)],
            ["Maturity Level", f"{metrics.maturity_level.level} - {metrics.maturity_level.name}"],
            ["Coverage (%)", _pct(metrics.coverage)],
            ["Evidence Readiness (%)", _pct(metrics.evidence_readiness)],
            ["Critical Gaps", metrics.critical_gaps],
            ["Total Questions", metrics.total_questions],
            ["Answered Questions", metrics.answered_questions],
            ["Schema Version", SCHEMA_VERSION],
            ["Exported At", datetime.utcnow().isoformat()],
        ],
    )

    domain_rows = []
    for dm in metrics.domain_metrics:
        for sm in dm.subcategory_metrics:
            domain_rows.append(
                [
                    dm.domain_id,
                    dm.domain_name,
                    dm.nist_function.value if dm.nist_function else "",
                    round(dm.score, 4),
                    dm.maturity_level.name,
                    sm.subcat_id,
                    sm.subcat_name,
                    sm.criticality.value,
                    round(sm.score, 4),
                    sm.maturity_level.name,
                    sm.total_questions,
                    sm.answered_questions,
                    _pct(sm.coverage),
                    sm.critical_gaps,
                ]
            )
    _write_table(
        wb.create_sheet("Domains"),
        [
            "Domain ID", "Domain", "NIST Function", "Domain Score", "Domain Maturity",
            "Subcategory ID", "Subcategory", "Criticality", "Subcategory Score",
            "Subcategory Maturity", "Questions", "Answered", "Coverage (%)", "Critical Gaps",
        ],
        domain_rows,
    )

    _write_table(
        wb.create_sheet("Gaps"),
        [
            "Question ID", "Domain", "Subcategory", "Criticality", "Score", "Weight",
            "Response", "Evidence", "Owner", "Question",
        ],
        [
            [
                g.question_id,
                g.domain_name,
                g.subcat_name,
                g.criticality.value,
                round(g.effective_score, 4),
                g.weight,
                g.response,
                "Yes" if g.evidence_ok else "No",
                g.ownership_type.value,
                g.question_text,
            ]
            for g in gaps
        ],
    )

    _write_table(
        wb.create_sheet("Frameworks"),
        ["Framework ID", "Framework", "Questions", "Answered", "Coverage (%)", "Average Score"],
        [
            [
                c.framework_id,
                c.framework_name,
                c.total_questions,
                c.answered_questions,
                _pct(c.coverage),
                round(c.average_score, 4),
            ]
            for c in coverage
        ],
    )

    _write_table(
        wb.create_sheet("Roadmap"),
        [
            "Horizon", "Timeframe", "Domain", "Question ID", "Criticality",
            "Domain Score", "Action", "Impact", "Effort", "Owner",
        ],
        [
            [
                item.priority.value,
                item.timeframe,
                item.domain,
                item.question_id,
                item.criticality.value,
                round(item.domain_score, 4),
                item.action,
                item.impact,
                item.effort.value,
                item.ownership_type.value,
            ]
            for item in roadmap
        ],
    )

    question_rows = []
    for q in questions:
        answer = answers.get(q.question_id)
        question_rows.append(
            [
                q.question_id,
                q.domain_id,
                q.subcat_id,
                q.criticality.value,
                q.ownership_type.value,
                q.weight,
                ", ".join(q.framework_ids),
                answer.response.value if answer and answer.response else UNANSWERED_LABEL,
                "Yes" if answer and answer.evidence_ok else "No",
                answer.notes if answer else "",
                " | ".join(answer.evidence_links) if answer else "",
                q.question_text,
            ]
        )
    _write_table(wb.create_sheet(QUESTIONS_SHEET), QUESTION_HEADERS, question_rows)

    wb.save(path)
    logger.info("Exported workbook to %s", path)
    return path


class WorkbookImportError(Exception):
    """Workbook cannot be read as an answer sheet."""


class WorkbookImport(BaseModel):
    """Answers read back from a workbook, with row-level warnings."""

    answers: List[Answer] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    schema_version: Optional[str] = Field(None, description="Schema version from the Summary sheet")


# Accepted spellings per response, compared lowercased
RESPONSE_ALIASES: Dict[str, AnswerResponse] = {
    "yes": AnswerResponse.YES, "y": AnswerResponse.YES, "1": AnswerResponse.YES,
    "partial": AnswerResponse.PARTIAL, "p": AnswerResponse.PARTIAL, "0.5": AnswerResponse.PARTIAL,
    "no": AnswerResponse.NO, "n": AnswerResponse.NO, "0": AnswerResponse.NO,
    "na": AnswerResponse.NOT_APPLICABLE, "n/a": AnswerResponse.NOT_APPLICABLE,
    "-": AnswerResponse.NOT_APPLICABLE,
}

REQUIRED_COLUMNS = ("questionid", "response")


def _column_key(header: Any) -> str:
    """Normalize a header so "Question ID", "questionId" and "question_id" match."""
    return "".join(str(header or "").lower().split()).replace("_", "")


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_response(value: Any) -> Optional[AnswerResponse]:
    """Map a response cell to a response, None when blank or unanswered."""
    text = _cell_text(value).lower()
    if not text or text == UNANSWERED_LABEL.lower():
        return None
    if text not in RESPONSE_ALIASES:
        raise ValueError(f"unrecognised response {value!r}")
    return RESPONSE_ALIASES[text]


def import_answers_workbook(
    path: Union[str, Path], known_question_ids: Optional[Iterable[str]] = None
) -> WorkbookImport:
    """
    Read answers back from a workbook written by export_workbook.

    The Questions sheet must carry "Question ID" and "Response" columns;
    "Evidence", "Notes" and "Evidence Links" are read when present. Rows with
    no response and no notes are skipped. Rows with an unknown question ID or
    an unrecognised response are skipped with a warning.

    Args:
        path: Workbook path
        known_question_ids: Question IDs accepted, all when None

    Returns:
        Imported answers and warnings

    Raises:
        WorkbookImportError: If the file is not a workbook or the sheet or a
            required column is missing
    """
    path = Path(path)
    try:
        workbook = load_workbook(path, data_only=True)
    except (InvalidFileException, BadZipFile, OSError) as e:
        raise WorkbookImportError(f"Cannot read workbook {path}: {e}") from e

    if QUESTIONS_SHEET not in workbook.sheetnames:
        raise WorkbookImportError(f'Sheet "{QUESTIONS_SHEET}" not found in {path}')
    sheet = workbook[QUESTIONS_SHEET]

    columns = {_column_key(cell.value): index for index, cell in enumerate(sheet[1])}
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise WorkbookImportError(f"Missing required columns: {', '.join(missing)}")

    result = WorkbookImport()
    known = set(known_question_ids) if known_question_ids is not None else None

    if "Summary" in workbook.sheetnames:
        for label, value in workbook["Summary"].iter_rows(min_row=2, max_col=2, values_only=True):
            if label == "Schema Version":
                result.schema_version = _cell_text(value)
        if result.schema_version and result.schema_version != SCHEMA_VERSION:
            result.warnings.append(f"Schema version {result.schema_version} may not be fully compatible")

    def cell(row, key):
        index = columns.get(key)
        return row[index] if index is not None and index < len(row) else None

    for row_idx, row in enumerate(sheet.iter_rows(min_row=2, values_only=True), start=2):
        question_id = _cell_text(cell(row, "questionid"))
        if not question_id:
            continue
        if known is not None and question_id not in known:
            result.warnings.append(f"Row {row_idx}: unknown question {question_id}, skipped")
            continue

        try:
            response = parse_response(cell(row, "response"))
        except ValueError as e:
            result.warnings.append(f"Row {row_idx}: {e}, skipped")
            continue

        notes = _cell_text(cell(row, "notes"))
        if response is None and not notes:
            continue

        links = [link.strip() for link in _cell_text(cell(row, "evidencelinks")).split("|")]
        result.answers.append(
            Answer(
                question_id=question_id,
                response=response,
                evidence_ok=_cell_text(cell(row, "evidence")).lower() in ("yes", "y", "1", "true"),
                notes=notes,
                evidence_links=[link for link in links if link],
            )
        )

    logger.info(
        "Read %d answers from %s (%d warnings)", len(result.answers), path, len(result.warnings)
    )
    return result
