"""Coordinator running a full maturity assessment over the settings store."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..catalog.active import build_active_questions
from ..catalog.frameworks import active_framework_ids, resolve_frameworks
from ..catalog.reference import ReferenceCatalog, get_default_catalog
from ..models.answers import Answer
from ..models.catalog import ActiveQuestion, Framework
from ..models.context import ScoringContext
from ..models.metrics import AssessmentReport
from ..scoring.aggregator import calculate_overall_metrics
from ..scoring.coverage import get_framework_coverage
from ..scoring.gaps import get_critical_gaps
from ..scoring.roadmap import generate_roadmap
from ..utils.export import export_workbook
from ..utils.storage import SettingsStore, StoreError
from .config import ScoringConfig, get_config

logger = logging.getLogger(__name__)


class MaturityAssessment:
    """Resolves the stored state and runs every scoring phase on it."""

    def __init__(
        self,
        store: Optional[SettingsStore] = None,
        catalog: Optional[ReferenceCatalog] = None,
        config: Optional[ScoringConfig] = None,
    ):
        """
        Initialize coordinator.

        Args:
            store: Settings store (defaults to one under the configured store_dir)
            catalog: Reference catalog (defaults to the configured data_dir or
                the packaged dataset)
            config: Scoring configuration
        """
        self.config = config or get_config()
        self.store = store or SettingsStore(
            store_dir=self.config.store_dir,
            default_enabled_frameworks=self.config.default_enabled_frameworks,
            backup_retention=self.config.backup_retention,
        )
        if catalog is not None:
            self.catalog = catalog
        elif self.config.data_dir:
            self.catalog = ReferenceCatalog.load(Path(self.config.data_dir))
        else:
            self.catalog = get_default_catalog()

    async def load_frameworks(self) -> List[Framework]:
        """Default frameworks with the stored overrides and disabled flags applied."""
        return resolve_frameworks(
            self.catalog.frameworks,
            await self.store.get_custom_frameworks(),
            await self.store.get_disabled_frameworks(),
        )

    async def select_frameworks(self, framework_ids: Sequence[str]) -> List[str]:
        """
        Select frameworks for scoring, enabling any that are not enabled yet.

        Args:
            framework_ids: Framework IDs to score

        Returns:
            The stored selection

        Raises:
            StoreError: If a framework is unknown
        """
        frameworks = await self.load_frameworks()
        known = {fw.framework_id for fw in frameworks}
        unknown = [fw_id for fw_id in framework_ids if fw_id not in known]
        if unknown:
            raise StoreError(f"Unknown frameworks: {', '.join(unknown)}")

        enabled = await self.store.get_enabled_frameworks()
        for fw_id in framework_ids:
            if fw_id not in enabled:
                await self.store.enable_framework(fw_id)
                logger.info("Enabled framework %s for selection", fw_id)
        return await self.store.set_selected_frameworks(framework_ids)

    async def load_state(
        self,
    ) -> Tuple[List[Framework], ScoringContext, List[ActiveQuestion], Dict[str, Answer]]:
        """
        Resolve everything the scoring engine needs from the store.

        Returns:
            Resolved frameworks, scoring context, active questions and answers
        """
        frameworks = await self.load_frameworks()
        context = await self.store.load_scoring_context(self.config.missing_evidence_multiplier)

        # Only frameworks still active can stay enabled
        live = set(active_framework_ids(frameworks))
        context = ScoringContext.from_ids(
            enabled=[fw_id for fw_id in context.enabled_framework_ids if fw_id in live],
            selected=[fw_id for fw_id in context.selected_framework_ids if fw_id in live],
            missing_evidence_multiplier=context.missing_evidence_multiplier,
        )

        questions = build_active_questions(
            self.catalog,
            custom_questions=await self.store.get_custom_questions(),
            disabled_question_ids=await self.store.get_disabled_questions(),
            frameworks=frameworks,
            context=context,
        )
        answers = await self.store.get_answers()
        return frameworks, context, questions, answers

    async def run(
        self,
        gap_threshold: Optional[float] = None,
        roadmap_limit: Optional[int] = None,
    ) -> AssessmentReport:
        """
        Run the complete assessment.

        Args:
            gap_threshold: Gap threshold (defaults to configuration)
            roadmap_limit: Maximum roadmap items (defaults to configuration)

        Returns:
            Assessment report
        """
        threshold = gap_threshold if gap_threshold is not None else self.config.gap_threshold
        limit = roadmap_limit if roadmap_limit is not None else self.config.roadmap_limit

        frameworks, context, questions, answers = await self.load_state()

        # Phase 1: hierarchical metrics
        metrics = calculate_overall_metrics(answers, questions, self.catalog, context)

        # Phase 2: gaps
        gaps = get_critical_gaps(answers, threshold, questions, self.catalog, context)

        # Phase 3: framework coverage
        coverage = get_framework_coverage(answers, questions, self.catalog, context, frameworks)

        # Phase 4: roadmap
        roadmap = generate_roadmap(answers, limit, questions, self.catalog, context, threshold)

        logger.info(
            "Assessment complete: score %.3f (%s), %d gaps, %d roadmap items",
            metrics.overall_score,
            metrics.maturity_level.name,
            len(gaps),
            len(roadmap),
        )

        return AssessmentReport(
            enabled_frameworks=sorted(context.enabled_framework_ids),
            selected_frameworks=sorted(context.selected_framework_ids),
            frameworks=frameworks,
            questions=questions,
            answers=answers,
            metrics=metrics,
            gaps=gaps,
            coverage=coverage,
            roadmap=roadmap,
        )

    def export(self, report: AssessmentReport, path: Optional[Union[str, Path]] = None) -> Path:
        """Write a report to an Excel workbook under the configured output directory."""
        if path is None:
            stamp = report.generated_at.strftime("%Y-%m-%d_%H-%M-%S")
            path = Path(self.config.output_dir) / f"ai-security-assessment-{stamp}.xlsx"
        return export_workbook(
            path,
            report.metrics,
            report.gaps,
            report.coverage,
            report.roadmap,
            report.questions,
            report.answers,
        )
