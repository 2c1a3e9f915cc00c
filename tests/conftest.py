"""Shared fixtures for the scoring engine tests."""

import pytest

from aisec_maturity.catalog.reference import ReferenceCatalog
from aisec_maturity.coordinator.config import ScoringConfig
from aisec_maturity.models.answers import Answer, AnswerResponse
from aisec_maturity.utils.storage import SettingsStore


CATALOG_DATA = {
    "domains": [
        {"domain_id": "GOV", "domain_name": "Governance", "order": 1, "nist_function": "GOVERN"},
        {"domain_id": "TECH", "domain_name": "Model Security", "order": 2, "nist_function": "MEASURE"},
    ],
    "subcategories": [
        {"subcat_id": "GOV-01", "domain_id": "GOV", "subcat_name": "AI Policy",
         "criticality": "High", "weight": 1.0, "ownership_type": "Executive"},
        {"subcat_id": "GOV-02", "domain_id": "GOV", "subcat_name": "Roles",
         "criticality": "Medium", "weight": 1.0, "ownership_type": "GRC"},
        {"subcat_id": "TECH-01", "domain_id": "TECH", "subcat_name": "Prompt Injection",
         "criticality": "Critical", "weight": 1.5, "ownership_type": "Engineering"},
    ],
    "questions": [
        {"question_id": "Q1", "domain_id": "GOV", "subcat_id": "GOV-01",
         "question_text": "Is there an AI policy?", "frameworks": ["NIST AI RMF GOVERN 1.1"]},
        {"question_id": "Q2", "domain_id": "GOV", "subcat_id": "GOV-01",
         "question_text": "Is the policy reviewed?", "frameworks": ["ISO/IEC 27001 A.5.1"]},
        {"question_id": "Q3", "domain_id": "GOV", "subcat_id": "GOV-02",
         "question_text": "Are owners assigned?", "frameworks": ["NIST AI RMF GOVERN 2.1", "LGPD Art. 50"]},
        {"question_id": "Q4", "domain_id": "TECH", "subcat_id": "TECH-01",
         "question_text": "Is prompt injection tested?", "frameworks": ["OWASP LLM01"]},
        {"question_id": "Q5", "domain_id": "TECH", "subcat_id": "TECH-01",
         "question_text": "Are agent privileges limited?", "weight": 2.0,
         "frameworks": ["NIST AI RMF MEASURE 2.7"]},
    ],
    "frameworks": [
        {"framework_id": "NIST_AI_RMF", "framework_name": "NIST AI RMF", "category": "core",
         "default_enabled": True},
        {"framework_id": "ISO_27001_27002", "framework_name": "ISO 27001/27002", "category": "core",
         "default_enabled": True},
        {"framework_id": "LGPD", "framework_name": "LGPD", "category": "core", "default_enabled": True},
        {"framework_id": "OWASP_LLM", "framework_name": "OWASP LLM Top 10", "category": "tech-focused"},
    ],
}


@pytest.fixture
def catalog():
    """Small reference catalog with two domains and five questions."""
    return ReferenceCatalog.from_dict(CATALOG_DATA)


@pytest.fixture
def make_answers():
    """Build an answer snapshot from {question_id: response} pairs."""

    def _make(responses, evidence=()):
        return {
            qid: Answer(
                question_id=qid,
                response=AnswerResponse(value) if value is not None else None,
                evidence_ok=qid in evidence,
            )
            for qid, value in responses.items()
        }

    return _make


@pytest.fixture
def store(tmp_path):
    """Settings store in a temporary directory."""
    return SettingsStore(
        store_dir=str(tmp_path / "store"),
        default_enabled_frameworks=["NIST_AI_RMF", "ISO_27001_27002", "LGPD"],
        backup_retention=3,
    )


@pytest.fixture
def config(tmp_path):
    """Scoring configuration pointing at temporary directories."""
    return ScoringConfig(
        store_dir=str(tmp_path / "store"),
        output_dir=str(tmp_path / "outputs"),
    )
