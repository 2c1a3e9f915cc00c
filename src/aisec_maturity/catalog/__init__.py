"""Question and framework catalog."""

from .reference import ReferenceCatalog, get_default_catalog
from .frameworks import (
    active_framework_ids,
    classify_reference,
    get_framework_categories,
    get_question_framework_ids,
    map_reference_to_framework_id,
    resolve_frameworks,
)
from .active import build_active_questions

__all__ = [
    "ReferenceCatalog",
    "get_default_catalog",
    "active_framework_ids",
    "classify_reference",
    "get_framework_categories",
    "get_question_framework_ids",
    "map_reference_to_framework_id",
    "resolve_frameworks",
    "build_active_questions",
]
