"""Tests for workbook and summary export."""

import json

import pytest
from openpyxl import Workbook, load_workbook

from aisec_maturity.scoring.aggregator import calculate_overall_metrics
from aisec_maturity.scoring.coverage import get_framework_coverage
from aisec_maturity.scoring.gaps import get_critical_gaps
from aisec_maturity.scoring.roadmap import generate_roadmap
from aisec_maturity.models.answers import Answer, AnswerResponse
from aisec_maturity.utils.export import (
    WorkbookImportError,
    export_workbook,
    import_answers_workbook,
    metrics_summary,
    parse_response,
)


@pytest.fixture
def results(catalog, make_answers):
    answers = make_answers({"Q1": "Yes", "Q3": "Partial", "Q4": "No"}, evidence={"Q1"})
    return {
        "metrics": calculate_overall_metrics(answers, catalog=catalog),
        "gaps": get_critical_gaps(answers, catalog=catalog),
        "coverage": get_framework_coverage(answers, catalog=catalog),
        "roadmap": generate_roadmap(answers, catalog=catalog),
        "questions": catalog.active_questions(),
        "answers": answers,
    }


class TestMetricsSummary:
    """Tests for the JSON summary."""

    def test_summary_is_json_ready(self, results):
        """Test that the metrics summary serialises to JSON."""
        summary = metrics_summary(results["metrics"])

        json.dumps(summary)
        assert summary["total_questions"] == 5
        assert summary["answered_questions"] == 3
        assert summary["maturity_name"] == results["metrics"].maturity_level.name
        assert [d["domain_id"] for d in summary["domains"]] == ["GOV", "TECH"]

    def test_unscored_levels_omitted(self, results):
        """Test that unscored levels are left out of the summary."""
        summary = metrics_summary(results["metrics"])

        assert "MAP" not in summary["nist_functions"]
        assert "GOVERN" in summary["nist_functions"]


class TestExportWorkbook:
    """Tests for the Excel export."""

    def test_sheets(self, results, tmp_path):
        """Test that the workbook has every report sheet."""
        path = export_workbook(tmp_path / "reports" / "assessment.xlsx", **results)

        assert path.exists()
        wb = load_workbook(path)
        assert wb.sheetnames == ["Summary", "Domains", "Gaps", "Frameworks", "Roadmap", "Questions"]

    def test_summary_values(self, results, tmp_path):
        """Test that the Summary sheet holds the overall score."""
        path = export_workbook(tmp_path / "assessment.xlsx", **results)
        sheet = load_workbook(path)["Summary"]

        assert sheet["A1"].value == "Metric"
        assert sheet["A2"].value == "Overall Score"
        assert sheet["B2"].value == pytest.approx(round(results["metrics"].overall_score, 4))

    def test_row_counts(self, results, tmp_path):
        """Test that each sheet has one row per item plus a header."""
        path = export_workbook(tmp_path / "assessment.xlsx", **results)
        wb = load_workbook(path)

        assert wb["Gaps"].max_row == len(results["gaps"]) + 1
        assert wb["Questions"].max_row == 6
        assert wb["Domains"].max_row == 4

    def test_question_rows_include_answers(self, results, tmp_path):
        """Test that question rows show responses and evidence."""
        path = export_workbook(tmp_path / "assessment.xlsx", **results)
        rows = list(load_workbook(path)["Questions"].iter_rows(min_row=2, values_only=True))
        by_id = {row[0]: row for row in rows}

        assert by_id["Q1"][7] == "Yes"
        assert by_id["Q1"][8] == "Yes"
        assert by_id["Q2"][7] == "Unanswered"


class TestImportAnswersWorkbook:
    """Tests for reading answers back from an exported workbook."""

    @pytest.fixture
    def exported(self, results, tmp_path):
        results["answers"]["Q3"] = Answer(
            question_id="Q3",
            response=AnswerResponse.PARTIAL,
            notes="Owners named for two systems",
            evidence_links=["https://wiki/raci", "https://wiki/owners"],
        )
        return export_workbook(tmp_path / "assessment.xlsx", **results)

    def _set_cell(self, path, question_id, column, value):
        wb = load_workbook(path)
        sheet = wb["Questions"]
        for row in sheet.iter_rows(min_row=2):
            if row[0].value == question_id:
                row[column].value = value
        wb.save(path)

    def test_round_trip_restores_answers(self, exported, results):
        """Test that an exported workbook reads back into the same answers."""
        result = import_answers_workbook(exported)
        imported = {a.question_id: a for a in result.answers}

        assert set(imported) == {"Q1", "Q3", "Q4"}
        assert imported["Q1"].response == AnswerResponse.YES
        assert imported["Q1"].evidence_ok is True
        assert imported["Q4"].response == AnswerResponse.NO
        assert imported["Q4"].evidence_ok is False
        assert imported["Q3"].notes == "Owners named for two systems"
        assert imported["Q3"].evidence_links == results["answers"]["Q3"].evidence_links
        assert result.schema_version == "1.0.0"
        assert result.warnings == []

    def test_edited_response_is_read(self, exported):
        """Test that a response typed into the sheet by hand is normalised."""
        self._set_cell(exported, "Q2", 7, "p")
        imported = {a.question_id: a for a in import_answers_workbook(exported).answers}

        assert imported["Q2"].response == AnswerResponse.PARTIAL

    def test_bad_rows_are_skipped_with_warnings(self, exported):
        """Test that unknown questions and unrecognised responses become warnings."""
        self._set_cell(exported, "Q4", 7, "Maybe")
        result = import_answers_workbook(exported, known_question_ids=["Q1", "Q2", "Q4", "Q5"])
        imported = {a.question_id for a in result.answers}

        assert imported == {"Q1"}
        assert any("Q3" in w for w in result.warnings)
        assert any("Maybe" in w for w in result.warnings)

    def test_missing_questions_sheet_raises(self, tmp_path):
        """Test that a workbook without a Questions sheet is rejected."""
        path = tmp_path / "other.xlsx"
        Workbook().save(path)

        with pytest.raises(WorkbookImportError, match="Questions"):
            import_answers_workbook(path)

    def test_missing_required_column_raises(self, tmp_path):
        """Test that a Questions sheet without a Response column is rejected."""
        path = tmp_path / "other.xlsx"
        wb = Workbook()
        sheet = wb.active
        sheet.title = "Questions"
        sheet.append(["questionId", "notes"])
        sheet.append(["Q1", "n/a"])
        wb.save(path)

        with pytest.raises(WorkbookImportError, match="response"):
            import_answers_workbook(path)

    def test_not_a_workbook_raises(self, tmp_path):
        """Test that a file that is not a workbook is rejected."""
        path = tmp_path / "answers.xlsx"
        path.write_text("not a workbook")

        with pytest.raises(WorkbookImportError):
            import_answers_workbook(path)

    def test_parse_response_aliases(self):
        """Test that short and numeric response spellings are accepted."""
        assert parse_response("Yes") == AnswerResponse.YES
        assert parse_response(1) == AnswerResponse.YES
        assert parse_response(0.5) == AnswerResponse.PARTIAL
        assert parse_response("N/A") == AnswerResponse.NOT_APPLICABLE
        assert parse_response("Unanswered") is None
        assert parse_response(None) is None
        with pytest.raises(ValueError):
            parse_response("Maybe")
