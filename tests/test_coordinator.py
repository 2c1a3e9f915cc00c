"""Tests for the assessment coordinator."""

from pathlib import Path

import pytest

from aisec_maturity.coordinator.assessment import MaturityAssessment
from aisec_maturity.coordinator.config import ScoringConfig
from aisec_maturity.models.answers import Answer, AnswerResponse
from aisec_maturity.models.catalog import Framework, FrameworkLifecycle, Question
from aisec_maturity.utils.storage import StoreError


class TestMaturityAssessment:
    """Tests for running assessments over the store."""

    @pytest.fixture
    def assessment(self, store, catalog, config):
        return MaturityAssessment(store=store, catalog=catalog, config=config)

    @pytest.mark.asyncio
    async def test_run_on_empty_store(self, assessment):
        """Test that an empty store scores zero over the default frameworks."""
        report = await assessment.run()

        assert report.metrics.overall_score == 0.0
        assert report.metrics.coverage == 0.0
        # Q4 maps only to OWASP LLM, which is not enabled by default
        assert [q.question_id for q in report.questions] == ["Q1", "Q2", "Q3", "Q5"]

    @pytest.mark.asyncio
    async def test_run_produces_all_sections(self, assessment, store):
        """Test that a run fills metrics, gaps, coverage and roadmap."""
        await store.bulk_save_answers(
            [
                Answer(question_id="Q1", response=AnswerResponse.YES, evidence_ok=True),
                Answer(question_id="Q5", response=AnswerResponse.NO),
            ]
        )
        report = await assessment.run()

        assert report.metrics.answered_questions == 2
        assert report.gaps[0].question_id == "Q5"
        assert {c.framework_id for c in report.coverage} == {"NIST_AI_RMF", "ISO_27001_27002", "LGPD"}
        assert report.roadmap[0].question_id == "Q5"
        assert set(report.answers) == {"Q1", "Q5"}

    @pytest.mark.asyncio
    async def test_selection_narrows_scope(self, assessment, store):
        """Test that the stored selection narrows the scored questions."""
        await store.set_selected_frameworks(["LGPD"])
        report = await assessment.run()

        assert [q.question_id for q in report.questions] == ["Q3"]
        assert report.selected_frameworks == ["LGPD"]

    @pytest.mark.asyncio
    async def test_selecting_unenabled_framework_enables_it(self, assessment, store):
        """Test that selecting a framework outside the enabled list scores exactly that framework."""
        assert await assessment.select_frameworks(["OWASP_LLM"]) == ["OWASP_LLM"]
        report = await assessment.run()

        assert [q.question_id for q in report.questions] == ["Q4"]
        assert report.selected_frameworks == ["OWASP_LLM"]
        assert "OWASP_LLM" in await store.get_enabled_frameworks()

    @pytest.mark.asyncio
    async def test_selecting_unknown_framework_raises(self, assessment, store):
        """Test that an unknown framework id is rejected and the selection is unchanged."""
        with pytest.raises(StoreError, match="NOPE"):
            await assessment.select_frameworks(["LGPD", "NOPE"])

        assert await store.get_selected_frameworks() == []

    @pytest.mark.asyncio
    async def test_selecting_disabled_default_restores_it(self, assessment, store):
        """Test that selecting a disabled default framework re-enables it."""
        await store.disable_framework("LGPD")
        await assessment.select_frameworks(["LGPD"])
        report = await assessment.run()

        assert await store.get_disabled_frameworks() == []
        assert [q.question_id for q in report.questions] == ["Q3"]

    @pytest.mark.asyncio
    async def test_disabled_and_custom_questions(self, assessment, store):
        """Test that disabled defaults drop out and custom questions come last."""
        await store.disable_question("Q2")
        await store.save_custom_question(
            Question(
                question_id="C1",
                domain_id="TECH",
                subcat_id="TECH-01",
                question_text="Custom control?",
                frameworks=["LGPD Art. 46"],
            )
        )
        report = await assessment.run()
        ids = [q.question_id for q in report.questions]

        assert "Q2" not in ids
        assert ids[-1] == "C1"

    @pytest.mark.asyncio
    async def test_framework_override(self, assessment, store):
        """Test that a custom framework overrides a default one."""
        await store.disable_framework("LGPD")
        await store.save_custom_framework(Framework(framework_id="LGPD", framework_name="LGPD (bank)"))
        await store.enable_framework("LGPD")

        frameworks = {f.framework_id: f for f in await assessment.load_frameworks()}
        assert frameworks["LGPD"].lifecycle == FrameworkLifecycle.CUSTOM_OVERRIDE

        report = await assessment.run()
        names = {c.framework_id: c.framework_name for c in report.coverage}
        assert names["LGPD"] == "LGPD (bank)"

    @pytest.mark.asyncio
    async def test_configured_thresholds(self, store, catalog, tmp_path):
        """Test that the configured gap threshold and roadmap limit are used."""
        config = ScoringConfig(store_dir=str(tmp_path / "store"), gap_threshold=0.0, roadmap_limit=0)
        assessment = MaturityAssessment(store=store, catalog=catalog, config=config)

        report = await assessment.run()

        assert report.gaps == []
        assert report.roadmap == []

    @pytest.mark.asyncio
    async def test_export(self, assessment, store, config):
        """Test that export writes a workbook under the output directory."""
        await store.save_answer(Answer(question_id="Q1", response=AnswerResponse.PARTIAL))
        report = await assessment.run()

        path = assessment.export(report)

        assert path.exists()
        assert path.suffix == ".xlsx"
        assert path.parent == Path(config.output_dir)


class TestScoringConfig:
    """Tests for environment-driven configuration."""

    def test_defaults(self):
        """Test that the configuration defaults match the scoring rules."""
        config = ScoringConfig()

        assert config.gap_threshold == 0.5
        assert config.roadmap_limit == 10
        assert config.missing_evidence_multiplier == 1.0
        assert config.default_enabled_frameworks == ["NIST_AI_RMF", "ISO_27001_27002", "LGPD"]

    def test_env_prefix(self, monkeypatch):
        """Test that AISEC_ environment variables override the configuration."""
        monkeypatch.setenv("AISEC_GAP_THRESHOLD", "0.3")
        monkeypatch.setenv("AISEC_BACKUP_RETENTION", "4")

        config = ScoringConfig()

        assert config.gap_threshold == 0.3
        assert config.backup_retention == 4
