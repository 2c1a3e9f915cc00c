"""Tests for data models, the reference catalog and question scoring."""

import pytest
from pydantic import ValidationError

from aisec_maturity.catalog.reference import ReferenceCatalog, get_default_catalog
from aisec_maturity.models.answers import Answer, AnswerResponse, get_response_score
from aisec_maturity.models.catalog import (
    ActiveQuestion,
    Criticality,
    MaturityLevel,
    NistFunction,
    OwnershipType,
    Question,
)
from aisec_maturity.models.context import ScoringContext
from aisec_maturity.scoring.questions import calculate_question_score, gap_ranking_score


class TestResponseScores:
    """Tests for response score mapping."""

    def test_response_values(self):
        """Test that each response maps to its score."""
        assert get_response_score(AnswerResponse.YES) == 1.0
        assert get_response_score(AnswerResponse.PARTIAL) == 0.5
        assert get_response_score(AnswerResponse.NO) == 0.0

    def test_na_and_missing_do_not_score(self):
        """Test that NA and missing responses have no score."""
        assert get_response_score(AnswerResponse.NOT_APPLICABLE) is None
        assert get_response_score(None) is None

    def test_unanswered_question_is_applicable(self):
        """Test that an unanswered question is applicable and scores zero."""
        result = calculate_question_score("Q1", None)

        assert result.is_applicable is True
        assert result.is_answered is False
        assert result.effective_score is None

    def test_na_question_is_answered_but_not_applicable(self):
        """Test that an NA question is answered but not applicable."""
        answer = Answer(question_id="Q1", response=AnswerResponse.NOT_APPLICABLE)
        result = calculate_question_score("Q1", answer)

        assert result.is_answered is True
        assert result.is_applicable is False
        assert result.effective_score is None

    def test_cleared_response_counts_as_unanswered(self):
        """Test that a cleared response counts as unanswered."""
        answer = Answer(question_id="Q1", response=None, notes="draft")
        result = calculate_question_score("Q1", answer)

        assert result.is_answered is False

    def test_evidence_multiplier_off_by_default(self):
        """Test that missing evidence does not lower the score by default."""
        answer = Answer(question_id="Q1", response=AnswerResponse.YES, evidence_ok=False)

        assert calculate_question_score("Q1", answer).effective_score == 1.0
        assert calculate_question_score("Q1", answer, ScoringContext()).effective_score == 1.0

    def test_evidence_multiplier_applies_without_evidence(self):
        """Test that the evidence multiplier applies only without evidence."""
        context = ScoringContext(missing_evidence_multiplier=0.7)
        missing = Answer(question_id="Q1", response=AnswerResponse.YES, evidence_ok=False)
        ready = Answer(question_id="Q1", response=AnswerResponse.YES, evidence_ok=True)

        assert calculate_question_score("Q1", missing, context).effective_score == pytest.approx(0.7)
        assert calculate_question_score("Q1", ready, context).effective_score == 1.0

    def test_gap_ranking_score(self):
        """Test that the ranking score grows with the gap and the weight."""
        assert gap_ranking_score(0.0, 2.0) == 2.0
        assert gap_ranking_score(0.5, 1.0) == 0.5
        assert gap_ranking_score(1.0, 3.0) == 0.0


class TestModelValidation:
    """Tests for pydantic validation of catalog models."""

    def test_weight_must_be_positive(self):
        """Test that a non-positive weight is rejected."""
        with pytest.raises(ValidationError):
            Question(question_id="Q", domain_id="D", question_text="?", weight=0)

    def test_unknown_response_rejected(self):
        """Test that an unknown response value is rejected."""
        with pytest.raises(ValidationError):
            Answer(question_id="Q", response="Maybe")

    def test_min_score_bounds(self):
        """Test that a band threshold above 1 is rejected."""
        with pytest.raises(ValidationError):
            MaturityLevel(level=1, name="Bad", min_score=1.5)


class TestScoringContext:
    """Tests for the immutable scoring context."""

    def test_context_is_frozen(self):
        """Test that the scoring context cannot be modified."""
        context = ScoringContext.from_ids(enabled=["NIST_AI_RMF"])

        with pytest.raises(ValidationError):
            context.enabled_framework_ids = frozenset()

    def test_selection_wins_over_enabled(self):
        """Test that selected frameworks take precedence over enabled ones."""
        context = ScoringContext.from_ids(enabled=["A", "B"], selected=["B"])

        assert context.framework_filter == frozenset({"B"})

    def test_empty_context_does_not_filter(self):
        """Test that an empty context applies no framework filter."""
        question = ActiveQuestion(question_id="Q", question_text="?", domain_id="D", subcat_id="S")

        assert ScoringContext().includes(question) is True

    def test_question_without_framework_is_filtered_out(self):
        """Test that unmapped questions are excluded once a filter is set."""
        question = ActiveQuestion(question_id="Q", question_text="?", domain_id="D", subcat_id="S")
        context = ScoringContext.from_ids(enabled=["NIST_AI_RMF"])

        assert context.includes(question) is False

    def test_sanitized_drops_unenabled_selection(self):
        """Test that sanitizing drops selected frameworks that are not enabled."""
        context = ScoringContext.from_ids(enabled=["A"], selected=["A", "B"]).sanitized()

        assert context.selected_framework_ids == frozenset({"A"})


class TestReferenceCatalog:
    """Tests for catalog lookups and maturity bands."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.0, "Initial"),
            (0.19, "Initial"),
            (0.2, "Developing"),
            (0.399, "Developing"),
            (0.4, "Defined"),
            (0.6, "Managed"),
            (0.8, "Optimized"),
            (1.0, "Optimized"),
        ],
    )
    def test_maturity_band_lookup(self, catalog, score, expected):
        """Test that scores map to their maturity band."""
        assert catalog.maturity_level_for(score).name == expected

    def test_out_of_range_scores_are_clamped(self, catalog):
        """Test that out-of-range scores are clamped before lookup."""
        assert catalog.maturity_level_for(-0.5).name == "Initial"
        assert catalog.maturity_level_for(1.7).name == "Optimized"

    def test_bands_must_start_at_zero(self):
        """Test that a band set not starting at zero is rejected."""
        with pytest.raises(ValueError):
            ReferenceCatalog(
                domains=[],
                subcategories=[],
                questions=[],
                maturity_levels=[MaturityLevel(level=1, name="Only", min_score=0.3)],
            )

    def test_unknown_ids_fall_back_to_raw_id(self, catalog):
        """Test that lookups of unknown IDs fall back to the raw ID."""
        assert catalog.domain_name("NOPE") == "NOPE"
        assert catalog.subcategory_name("NOPE-01") == "NOPE-01"
        assert catalog.framework_name("CUSTOM_FW") == "CUSTOM_FW"
        assert catalog.nist_function_for("NOPE") is None

    def test_question_inherits_subcategory_attributes(self, catalog):
        """Test that a question inherits criticality and owner from its subcategory."""
        question = catalog.to_active_question(catalog.get_question("Q1"))

        assert question.criticality == Criticality.HIGH
        assert question.ownership_type == OwnershipType.EXECUTIVE
        assert question.framework_ids == ["NIST_AI_RMF"]

    def test_question_overrides_subcategory_criticality(self, catalog):
        """Test that a question's own criticality wins over its subcategory's."""
        question = Question(
            question_id="QX",
            domain_id="GOV",
            subcat_id="GOV-01",
            question_text="?",
            criticality=Criticality.LOW,
        )

        assert catalog.to_active_question(question).criticality == Criticality.LOW

    def test_question_without_subcategory_gets_defaults(self, catalog):
        """Test that a question with no subcategory gets default attributes."""
        question = Question(question_id="QX", domain_id="GOV", subcat_id="MISSING", question_text="?")
        active = catalog.to_active_question(question)

        assert active.criticality == Criticality.MEDIUM
        assert active.ownership_type == OwnershipType.GRC

    def test_domains_sorted_by_order(self, catalog):
        """Test that domains are sorted by their order field."""
        assert [d.domain_id for d in catalog.domains] == ["GOV", "TECH"]
        assert catalog.nist_function_for("TECH") == NistFunction.MEASURE


class TestPackagedCatalog:
    """Tests for the packaged reference dataset."""

    def test_loads_packaged_data(self):
        """Test that the packaged reference data loads."""
        catalog = get_default_catalog()

        assert len(catalog.domains) == 6
        assert len(catalog.subcategories) == 14
        assert len(catalog.questions) == 31
        assert len(catalog.maturity_levels) == 5

    def test_questions_reference_known_taxonomy(self):
        """Test that packaged questions reference known domains and subcategories."""
        catalog = get_default_catalog()

        for question in catalog.questions:
            subcat = catalog.get_subcategory(question.subcat_id)
            assert subcat is not None, question.question_id
            assert subcat.domain_id == question.domain_id

    def test_every_question_maps_to_a_known_framework(self):
        """Test that every packaged question maps to a known framework."""
        catalog = get_default_catalog()
        known = set(catalog.framework_ids())

        for question in catalog.active_questions():
            assert question.framework_ids, question.question_id
            assert set(question.framework_ids) <= known | {"CSA_CCM"}

    def test_default_enabled_frameworks(self):
        """Test that the packaged default-enabled frameworks are the core three."""
        catalog = get_default_catalog()
        enabled = {f.framework_id for f in catalog.frameworks if f.default_enabled}

        assert enabled == {"NIST_AI_RMF", "ISO_27001_27002", "LGPD"}
