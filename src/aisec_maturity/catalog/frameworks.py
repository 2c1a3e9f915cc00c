"""Framework reference resolution and framework lifecycle handling."""

import re
import logging
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Set, Tuple

from ..models.catalog import (
    Framework,
    FrameworkCategoryId,
    FrameworkLifecycle,
)

logger = logging.getLogger(__name__)


# Question references look like "NIST AI RMF GOVERN 1.1" or "OWASP LLM01".
# Order matters: the first match wins.
FRAMEWORK_PATTERNS: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"NIST\s*AI\s*RMF", re.I), "NIST_AI_RMF"),
    (re.compile(r"ISO\s*/?\s*(IEC)?\s*42001", re.I), "NIST_AI_RMF"),
    (re.compile(r"ISO\s*/?\s*(IEC)?\s*23894", re.I), "ISO_23894"),
    (re.compile(r"ISO\s*/?\s*(IEC)?\s*2700[12]", re.I), "ISO_27001_27002"),
    (re.compile(r"LGPD", re.I), "LGPD"),
    (re.compile(r"SSDF", re.I), "NIST_SSDF"),
    (re.compile(r"CSA\s*(CCM|Cloud\s*Controls)", re.I), "CSA_CCM"),
    (re.compile(r"CSA", re.I), "CSA_AI"),
    (re.compile(r"OWASP\s*(Top\s*10\s*(for\s*)?)?LLM", re.I), "OWASP_LLM"),
    (re.compile(r"\bLLM(0[1-9]|10)\b", re.I), "OWASP_LLM"),
    (re.compile(r"OWASP\s*(Top\s*10\s*(for\s*)?)?API", re.I), "OWASP_API"),
    (re.compile(r"\bAPI([1-9]|10):", re.I), "OWASP_API"),
]

# Framework id -> analysis category
FRAMEWORK_ID_CATEGORIES: Dict[str, FrameworkCategoryId] = {
    "NIST_AI_RMF": FrameworkCategoryId.NIST_AI_RMF,
    "ISO_27001_27002": FrameworkCategoryId.SECURITY_BASELINE,
    "ISO_23894": FrameworkCategoryId.AI_RISK_MGMT,
    "NIST_SSDF": FrameworkCategoryId.SECURE_DEVELOPMENT,
    "CSA_AI": FrameworkCategoryId.SECURE_DEVELOPMENT,
    "CSA_CCM": FrameworkCategoryId.SECURE_DEVELOPMENT,
    "LGPD": FrameworkCategoryId.PRIVACY_LGPD,
    "OWASP_LLM": FrameworkCategoryId.THREAT_EXPOSURE,
    "OWASP_API": FrameworkCategoryId.THREAT_EXPOSURE,
}

# Free-text keywords -> analysis category, for references no framework id covers
CATEGORY_KEYWORDS: List[Tuple[FrameworkCategoryId, Tuple[str, ...]]] = [
    (FrameworkCategoryId.NIST_AI_RMF, ("nist ai rmf", "ai rmf")),
    (
        FrameworkCategoryId.SECURITY_BASELINE,
        ("iso 27001", "iso/iec 27001", "iso 27002", "iso/iec 27002",
         "nist sp 800-53", "nist 800-53", "nist csf"),
    ),
    (
        FrameworkCategoryId.AI_RISK_MGMT,
        ("iso/iec 23894", "iso 23894", "iso/iec 42001", "iso 42001", "iso 31000"),
    ),
    (FrameworkCategoryId.SECURE_DEVELOPMENT, ("ssdf", "slsa", "sbom", "csa")),
    (
        FrameworkCategoryId.PRIVACY_LGPD,
        ("lgpd", "privacy framework", "lc 105", "lei complementar 105"),
    ),
    (FrameworkCategoryId.THREAT_EXPOSURE, ("owasp llm", "owasp api", "api security")),
]


def map_reference_to_framework_id(
    reference: str, known_ids: Optional[Iterable[str]] = None
) -> Optional[str]:
    """
    Map a question framework reference to a framework ID.

    Args:
        reference: Framework reference or framework ID
        known_ids: Extra framework IDs accepted verbatim (e.g., custom frameworks)

    Returns:
        Framework ID, or None when the reference matches no framework
    """
    if not reference:
        return None

    candidate = reference.strip()
    if candidate in FRAMEWORK_ID_CATEGORIES:
        return candidate
    if known_ids is not None and candidate in set(known_ids):
        return candidate

    for pattern, framework_id in FRAMEWORK_PATTERNS:
        if pattern.search(candidate):
            return framework_id

    return None


def get_question_framework_ids(
    references: Sequence[str], known_ids: Optional[Iterable[str]] = None
) -> List[str]:
    """Resolve question references to unique framework IDs, in first-seen order."""
    known = set(known_ids) if known_ids is not None else None
    resolved: List[str] = []

    for reference in references:
        framework_id = map_reference_to_framework_id(reference, known)
        if framework_id and framework_id not in resolved:
            resolved.append(framework_id)

    return resolved


def classify_reference(reference: str) -> Optional[FrameworkCategoryId]:
    """Classify a single framework reference into an analysis category."""
    if reference in FRAMEWORK_ID_CATEGORIES:
        return FRAMEWORK_ID_CATEGORIES[reference]

    lowered = reference.lower()
    for category_id, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category_id

    # OWASP ML Top 10 is a development concern, not threat exposure
    if "owasp" in lowered and "ml" in lowered:
        return FrameworkCategoryId.SECURE_DEVELOPMENT

    return None


def get_framework_categories(
    references: Sequence[str],
    framework_ids: Sequence[str] = (),
    allowed_ids: Optional[Iterable[str]] = None,
) -> Set[FrameworkCategoryId]:
    """
    Get every analysis category a question contributes to.

    Args:
        references: Raw framework references of the question
        framework_ids: Framework IDs the question maps to
        allowed_ids: When given, references and IDs resolving to a framework
            outside this set are ignored; free-text references that resolve
            to no framework still count

    Returns:
        Set of analysis categories
    """
    allowed = set(allowed_ids) if allowed_ids is not None else None
    categories: Set[FrameworkCategoryId] = set()

    for reference in references:
        if allowed is not None:
            framework_id = map_reference_to_framework_id(reference, allowed)
            if framework_id is not None and framework_id not in allowed:
                continue
        category_id = classify_reference(reference)
        if category_id is not None:
            categories.add(category_id)

    for framework_id in framework_ids:
        if allowed is not None and framework_id not in allowed:
            continue
        category_id = FRAMEWORK_ID_CATEGORIES.get(framework_id)
        if category_id is not None:
            categories.add(category_id)

    return categories


def resolve_frameworks(
    defaults: Sequence[Framework],
    custom: Sequence[Framework],
    disabled_ids: Iterable[str],
) -> List[Framework]:
    """
    Apply user customisations to the default framework list.

    A custom framework sharing a default's ID replaces it entirely
    (CUSTOM_OVERRIDE); a disabled default without an override stays listed as
    DEFAULT_DISABLED so it can be restored later.

    Args:
        defaults: Frameworks shipped with the catalog
        custom: User-defined frameworks
        disabled_ids: IDs of disabled default frameworks

    Returns:
        Defaults in catalog order followed by new custom frameworks
    """
    disabled = set(disabled_ids)
    custom_by_id = {fw.framework_id: fw for fw in custom}
    default_ids = {fw.framework_id for fw in defaults}
    resolved: List[Framework] = []

    for framework in defaults:
        override = custom_by_id.get(framework.framework_id)
        if override is not None:
            resolved.append(
                override.model_copy(update={"lifecycle": FrameworkLifecycle.CUSTOM_OVERRIDE})
            )
        elif framework.framework_id in disabled:
            resolved.append(
                framework.model_copy(update={"lifecycle": FrameworkLifecycle.DEFAULT_DISABLED})
            )
        else:
            resolved.append(framework.model_copy(update={"lifecycle": FrameworkLifecycle.DEFAULT}))

    for framework in custom:
        if framework.framework_id in default_ids:
            continue
        resolved.append(framework.model_copy(update={"lifecycle": FrameworkLifecycle.CUSTOM_NEW}))

    logger.debug(
        "Resolved %d frameworks (%d disabled)",
        len(resolved),
        sum(1 for fw in resolved if not fw.is_active),
    )
    return resolved


def active_framework_ids(frameworks: Sequence[Framework]) -> List[str]:
    """IDs of frameworks that take part in the assessment."""
    return [fw.framework_id for fw in frameworks if fw.is_active]
