"""CLI for scoring an AI security maturity assessment."""

import asyncio
import json
import sys
import argparse
import logging
from pathlib import Path

from pydantic import ValidationError

from aisec_maturity.coordinator.assessment import MaturityAssessment
from aisec_maturity.coordinator.config import get_config
from aisec_maturity.models.answers import Answer
from aisec_maturity.utils.export import WorkbookImportError, import_answers_workbook, metrics_summary
from aisec_maturity.utils.storage import SettingsStore, StoreError


async def import_answers(assessment: MaturityAssessment, answers_path: Path) -> int:
    """Import answers from an exported workbook, a JSON list or a question-id keyed object."""
    store = assessment.store
    if answers_path.suffix.lower() == ".xlsx":
        known = [q.question_id for q in assessment.catalog.questions]
        known.extend(q.question_id for q in await store.get_custom_questions())
        result = import_answers_workbook(answers_path, known)
        for warning in result.warnings:
            print(f"Warning: {warning}", file=sys.stderr)
        return await store.bulk_save_answers(result.answers)

    payload = json.loads(answers_path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = [{"question_id": qid, **data} for qid, data in payload.items()]
    return await store.bulk_save_answers(Answer(**item) for item in payload)


def print_report(report) -> None:
    """Print a human-readable summary of a report."""
    metrics = report.metrics
    print(f"\nOverall score: {metrics.overall_score:.2f} "
          f"({metrics.maturity_level.level} - {metrics.maturity_level.name})")
    print(f"Coverage: {metrics.coverage:.0%}   Evidence readiness: {metrics.evidence_readiness:.0%}")
    print(f"Critical gaps: {metrics.critical_gaps}")

    print("\nDomains:")
    for dm in metrics.domain_metrics:
        marker = "" if dm.scored else " (not scored)"
        print(f"  {dm.domain_id:<8} {dm.score:.2f}  {dm.maturity_level.name:<10} {dm.domain_name}{marker}")

    print("\nFrameworks:")
    for fc in report.coverage:
        print(f"  {fc.framework_id:<18} {fc.answered_questions}/{fc.total_questions} answered, "
              f"avg {fc.average_score:.2f}")

    if report.gaps:
        print("\nTop gaps:")
        for gap in report.gaps[:10]:
            print(f"  [{gap.criticality.value}] {gap.question_id} ({gap.response}) {gap.subcat_name}")

    if report.roadmap:
        print("\nRoadmap:")
        for item in report.roadmap:
            print(f"  {item.timeframe:<11} {item.domain}: {item.action} (effort {item.effort.value})")


async def main_async(args):
    """Main async function."""
    config = get_config()
    store = SettingsStore(
        store_dir=args.store_dir or config.store_dir,
        default_enabled_frameworks=config.default_enabled_frameworks,
        backup_retention=config.backup_retention,
    )
    if args.data_dir:
        config.data_dir = args.data_dir
    assessment = MaturityAssessment(store=store, config=config)

    if not args.json:
        print("AI Security Maturity Scoring")
        print(f"Store: {store.store_dir}")
        print("-" * 50)

    if args.answers:
        count = await import_answers(assessment, Path(args.answers))
        if not args.json:
            print(f"Imported {count} answers from: {args.answers}")

    if args.frameworks:
        await assessment.select_frameworks(args.frameworks)

    if args.backup:
        record = await store.create_backup(args.backup, "Created from CLI")
        if not args.json:
            print(f"Created backup #{record.id}: {record.name}")

    report = await assessment.run(gap_threshold=args.threshold, roadmap_limit=args.roadmap_limit)

    if args.json:
        summary = metrics_summary(report.metrics)
        summary["enabled_frameworks"] = report.enabled_frameworks
        summary["selected_frameworks"] = report.selected_frameworks
        summary["gaps"] = [g.model_dump(mode="json") for g in report.gaps]
        summary["coverage"] = [c.model_dump(mode="json") for c in report.coverage]
        summary["roadmap"] = [r.model_dump(mode="json") for r in report.roadmap]
        print(json.dumps(summary, indent=2))
    else:
        scope = report.selected_frameworks or report.enabled_frameworks
        print(f"Scoring frameworks: {', '.join(scope) or 'all'}")
        print_report(report)

    if args.export:
        path = assessment.export(report, args.export)
        if not args.json:
            print(f"\nWorkbook written to: {path}")

    return report


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="AI Security Maturity Scoring CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Score the answers already in the store
  python run_scoring.py

  # Import answers and export an Excel report
  python run_scoring.py -a answers.json --export outputs/report.xlsx

  # Re-import answers edited in an exported workbook
  python run_scoring.py -a outputs/report.xlsx

  # Score only selected frameworks and print JSON
  python run_scoring.py -f NIST_AI_RMF LGPD --json
        """,
    )

    parser.add_argument(
        "-a", "--answers",
        help="JSON file or exported .xlsx workbook of answers to import before scoring",
    )
    parser.add_argument(
        "-f", "--frameworks",
        nargs="+",
        help="Framework IDs to select for scoring (enabled if needed)",
    )
    parser.add_argument(
        "--store-dir",
        help="Settings store directory (default: AISEC_STORE_DIR or ./data/store)",
    )
    parser.add_argument(
        "--data-dir",
        help="Reference data directory (default: packaged dataset)",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Gap threshold (default: 0.5)",
    )
    parser.add_argument(
        "--roadmap-limit",
        type=int,
        default=None,
        help="Maximum roadmap items (default: 10)",
    )
    parser.add_argument(
        "--export",
        help="Write an Excel workbook to this path",
    )
    parser.add_argument(
        "--backup",
        help="Create a named backup of the store before scoring",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the results as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(main_async(args))
    except (ValidationError, json.JSONDecodeError) as e:
        print(f"\nError: invalid answers file: {e}")
        sys.exit(1)
    except (StoreError, WorkbookImportError) as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
