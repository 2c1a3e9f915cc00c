"""Scoring and metrics aggregation engine."""

from .questions import calculate_question_score, gap_ranking_score
from .aggregator import (
    calculate_all_domain_metrics,
    calculate_domain_metrics,
    calculate_framework_category_metrics,
    calculate_nist_function_metrics,
    calculate_overall_metrics,
    calculate_ownership_metrics,
    calculate_subcategory_metrics,
)
from .gaps import get_critical_gaps
from .coverage import get_framework_coverage
from .roadmap import generate_roadmap

__all__ = [
    "calculate_question_score",
    "gap_ranking_score",
    "calculate_all_domain_metrics",
    "calculate_domain_metrics",
    "calculate_framework_category_metrics",
    "calculate_nist_function_metrics",
    "calculate_overall_metrics",
    "calculate_ownership_metrics",
    "calculate_subcategory_metrics",
    "get_critical_gaps",
    "get_framework_coverage",
    "generate_roadmap",
]
