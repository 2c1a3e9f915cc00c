"""Reference catalog: domains, subcategories, questions, frameworks and maturity bands."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.catalog import (
    ActiveQuestion,
    Criticality,
    Domain,
    Framework,
    MaturityLevel,
    NistFunction,
    OwnershipType,
    Question,
    Subcategory,
)
from ..models.context import ScoringContext
from .frameworks import get_question_framework_ids

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

DEFAULT_MATURITY_LEVELS = [
    MaturityLevel(level=1, name="Initial", description="Ad-hoc or no established practices",
                  min_score=0.0, color="#ef4444"),
    MaturityLevel(level=2, name="Developing", description="Practices emerging, inconsistently applied",
                  min_score=0.2, color="#f97316"),
    MaturityLevel(level=3, name="Defined", description="Documented and repeatable processes",
                  min_score=0.4, color="#eab308"),
    MaturityLevel(level=4, name="Managed", description="Measured and monitored processes",
                  min_score=0.6, color="#22c55e"),
    MaturityLevel(level=5, name="Optimized", description="Continuous improvement",
                  min_score=0.8, color="#3b82f6"),
]


class ReferenceCatalog:
    """Read-only lookup tables over the reference dataset."""

    def __init__(
        self,
        domains: Sequence[Domain],
        subcategories: Sequence[Subcategory],
        questions: Sequence[Question],
        frameworks: Sequence[Framework] = (),
        maturity_levels: Optional[Sequence[MaturityLevel]] = None,
    ):
        """
        Initialize catalog.

        Args:
            domains: Taxonomy domains
            subcategories: Taxonomy subcategories
            questions: Default questions
            frameworks: Default frameworks
            maturity_levels: Maturity bands; must start at 0.0
        """
        self.domains: List[Domain] = sorted(domains, key=lambda d: d.order)
        self.subcategories: List[Subcategory] = list(subcategories)
        self.questions: List[Question] = list(questions)
        self.frameworks: List[Framework] = list(frameworks)
        self.maturity_levels: List[MaturityLevel] = sorted(
            maturity_levels or DEFAULT_MATURITY_LEVELS, key=lambda m: m.min_score
        )

        if not self.maturity_levels or self.maturity_levels[0].min_score != 0.0:
            raise ValueError("Maturity levels must cover the full 0-1 range starting at 0.0")

        self._domains = {d.domain_id: d for d in self.domains}
        self._subcategories = {s.subcat_id: s for s in self.subcategories}
        self._questions = {q.question_id: q for q in self.questions}
        self._frameworks = {f.framework_id: f for f in self.frameworks}

    # ---- lookups -------------------------------------------------------

    def get_domain(self, domain_id: str) -> Optional[Domain]:
        return self._domains.get(domain_id)

    def get_subcategory(self, subcat_id: str) -> Optional[Subcategory]:
        return self._subcategories.get(subcat_id)

    def get_question(self, question_id: str) -> Optional[Question]:
        return self._questions.get(question_id)

    def get_framework(self, framework_id: str) -> Optional[Framework]:
        return self._frameworks.get(framework_id)

    def domain_name(self, domain_id: str) -> str:
        """Display name for a domain, the raw id when unknown."""
        domain = self._domains.get(domain_id)
        if domain is None:
            logger.debug("Unknown domain %s, using id as label", domain_id)
            return domain_id
        return domain.domain_name

    def subcategory_name(self, subcat_id: str) -> str:
        """Display name for a subcategory, the raw id when unknown."""
        subcat = self._subcategories.get(subcat_id)
        if subcat is None:
            logger.debug("Unknown subcategory %s, using id as label", subcat_id)
            return subcat_id
        return subcat.subcat_name

    def framework_name(self, framework_id: str) -> str:
        """Display name for a framework, the raw id when unknown."""
        framework = self._frameworks.get(framework_id)
        return framework.framework_name if framework else framework_id

    def nist_function_for(self, domain_id: str) -> Optional[NistFunction]:
        domain = self._domains.get(domain_id)
        return domain.nist_function if domain else None

    def subcategories_for(self, domain_id: str) -> List[Subcategory]:
        return [s for s in self.subcategories if s.domain_id == domain_id]

    def framework_ids(self) -> List[str]:
        return [f.framework_id for f in self.frameworks]

    def maturity_level_for(self, score: float) -> MaturityLevel:
        """
        Resolve a score to exactly one maturity band.

        Scores outside [0, 1] are clamped, so the lookup is total.
        """
        clamped = min(max(score, 0.0), 1.0)
        level = self.maturity_levels[0]
        for band in self.maturity_levels:
            if clamped >= band.min_score:
                level = band
            else:
                break
        return level

    # ---- active questions ----------------------------------------------

    def question_frameworks(self, question: Question) -> List[str]:
        """Merge question references with the subcategory references."""
        merged: List[str] = []
        subcat = self._subcategories.get(question.subcat_id)
        refs = list(question.frameworks) + (list(subcat.framework_refs) if subcat else [])
        for ref in refs:
            if ref and ref not in merged:
                merged.append(ref)
        return merged

    def to_active_question(
        self, question: Question, known_framework_ids: Optional[Iterable[str]] = None
    ) -> ActiveQuestion:
        """Resolve a question's criticality, ownership and frameworks against the taxonomy."""
        subcat = self._subcategories.get(question.subcat_id)
        criticality = question.criticality or (subcat.criticality if subcat else Criticality.MEDIUM)
        ownership = question.ownership_type or (
            subcat.ownership_type if subcat and subcat.ownership_type else OwnershipType.GRC
        )
        known = set(self._frameworks)
        if known_framework_ids is not None:
            known.update(known_framework_ids)
        references = self.question_frameworks(question)

        return ActiveQuestion(
            question_id=question.question_id,
            question_text=question.question_text,
            domain_id=question.domain_id,
            subcat_id=question.subcat_id,
            criticality=criticality,
            ownership_type=ownership,
            weight=question.weight,
            frameworks=references,
            framework_ids=get_question_framework_ids(references, known),
            is_custom=question.is_custom,
        )

    def active_questions(self, context: Optional[ScoringContext] = None) -> List[ActiveQuestion]:
        """Default questions that are not disabled, filtered by the context."""
        active = [self.to_active_question(q) for q in self.questions if not q.disabled]
        if context is None:
            return active
        return context.filter_questions(active)

    # ---- loading -------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, list]) -> "ReferenceCatalog":
        """Build a catalog from already-parsed reference data."""
        levels = data.get("maturity_levels")
        return cls(
            domains=[Domain(**d) for d in data.get("domains", [])],
            subcategories=[Subcategory(**s) for s in data.get("subcategories", [])],
            questions=[Question(**q) for q in data.get("questions", [])],
            frameworks=[Framework(**f) for f in data.get("frameworks", [])],
            maturity_levels=[MaturityLevel(**m) for m in levels] if levels else None,
        )

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "ReferenceCatalog":
        """
        Load the catalog from a data directory.

        Args:
            data_dir: Directory holding taxonomy.json, questions.json,
                frameworks.json and maturity_ref.json

        Returns:
            Loaded catalog
        """
        base = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
        data: Dict[str, list] = {}

        for filename in ("taxonomy.json", "questions.json", "frameworks.json", "maturity_ref.json"):
            path = base / filename
            if not path.exists():
                logger.warning("Reference data file missing: %s", path)
                continue
            with open(path, "r", encoding="utf-8") as f:
                data.update(json.load(f))

        catalog = cls.from_dict(data)
        logger.info(
            "Loaded catalog from %s: %d domains, %d subcategories, %d questions, %d frameworks",
            base,
            len(catalog.domains),
            len(catalog.subcategories),
            len(catalog.questions),
            len(catalog.frameworks),
        )
        return catalog


@lru_cache(maxsize=1)
def get_default_catalog() -> ReferenceCatalog:
    """Get the packaged reference catalog."""
    return ReferenceCatalog.load()
