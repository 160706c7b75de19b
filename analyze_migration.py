#!/usr/bin/env python3
"""
Control-M Migration Analyzer

Analyzes a Control-M JSON snapshot and plans its migration to Airflow.
Outputs complexity, circular dependencies, migration waves and folder
classification.

Usage:
    python analyze_migration.py snapshot.json
    python analyze_migration.py snapshot.json -o report.json
    python analyze_migration.py snapshot.json --query LOAD_A --direction upstream --depth 2
"""

import argparse
import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from controlm_analysis.analyzer import AnalysisReport, MigrationAnalyzer
from controlm_analysis.config import AnalysisSettings, get_config
from controlm_analysis.errors import AnalysisError
from controlm_analysis.graph.query import Direction, Scope, Subgraph


def make_progress_printer():
    """Progress bar for graph construction; safe to call from worker threads."""
    lock = threading.Lock()

    def update_progress(processed: int, total: int):
        with lock:
            progress_pct = int((processed / total) * 100) if total else 100
            bar_width = 30
            filled = int(bar_width * processed / total) if total else bar_width
            bar = "█" * filled + "░" * (bar_width - filled)
            print(f"\r⏳ [{bar}] {progress_pct:3d}% ({processed}/{total}) resolving dependencies",
                  end="", flush=True)
            if processed >= total:
                print()

    return update_progress


def print_report(report: AnalysisReport, verbose: bool = False):
    """Print formatted report to console."""
    summary = report.summary

    print("\n" + "=" * 60)
    print("📊 MIGRATION ANALYSIS REPORT")
    print("=" * 60)

    if not report.jobs:
        print("No jobs analyzed.")
        _print_warnings(report)
        return

    print(f"\n📈 SUMMARY")
    print(f"   Jobs Analyzed: {report.total_jobs_analyzed} of {report.total_jobs_attempted}")
    print(f"   Folders: {summary['total_folders']}")
    print(f"   Dependencies: {summary['total_edges']} "
          f"({summary['internal_edges']} internal, {summary['external_edges']} external)")
    print(f"   Average Complexity: {summary['avg_complexity']} (max {summary['max_complexity']})")
    print(f"   Max Dependency Depth: {summary['max_dependency_depth']}")
    print(f"   Total Estimated Effort: {summary['total_estimated_hours']} hours")
    print()

    total = max(report.total_jobs_analyzed, 1)
    dist = summary['difficulty_distribution']
    print("   Migration Difficulty:")
    difficulties = [
        ("🟢 EASY   ", dist['easy']),
        ("🟡 MEDIUM ", dist['medium']),
        ("🔴 HARD   ", dist['hard']),
    ]
    for label, count in difficulties:
        pct = count * 100 / total
        bar_width = int(pct / 2)
        bar = "█" * bar_width + "░" * (50 - bar_width)
        print(f"   {label}: {count:4d} ({pct:5.1f}%) |{bar}|")

    print(f"\n🌊 MIGRATION WAVES")
    for wave in report.waves:
        print(f"   Wave {wave.wave}: {len(wave.job_ids):4d} jobs - {wave.reason}")

    print(f"\n🧭 TOPOLOGY WAVES")
    labels = [
        ('isolated', "Isolated jobs"),
        ('self_contained', "Self-contained folders"),
        ('leaf', "Leaf jobs"),
        ('root', "Root jobs"),
        ('complex', "Complex folders"),
    ]
    for key, label in labels:
        bucket = report.topology_summary.get(key, {})
        print(f"   {label:<24}: {bucket.get('total_jobs', 0):5d} jobs in {bucket.get('total_folders', 0)} folders")

    if report.cycles:
        print(f"\n🔁 CIRCULAR DEPENDENCIES ({len(report.cycles)}):")
        for cycle in report.cycles[:10]:
            names = [report.jobs[i].job_name for i in cycle]
            shown = " → ".join(names[:6])
            print(f"   - {shown}{' ...' if len(names) > 6 else ''}")
        if len(report.cycles) > 10:
            print(f"   ... and {len(report.cycles) - 10} more")

    high_risk = report.prediction_report.critical_risk_jobs + report.prediction_report.high_risk_jobs
    if high_risk:
        print(f"\n⚠️  HIGH RISK JOBS ({len(high_risk)}):")
        for job in high_risk[:10]:
            print(f"   - {job}")
        if len(high_risk) > 10:
            print(f"   ... and {len(high_risk) - 10} more")

    ranked = sorted(report.jobs, key=lambda j: (-j.prediction.priority, j.job_id))
    print(f"\n🎯 TOP 10 PRIORITY JOBS:")
    icons = {"Easy": "🟢", "Medium": "🟡", "Hard": "🔴"}
    for job in ranked[:10]:
        icon = icons.get(job.difficulty.value, "⚪")
        print(f"   {icon} {job.job_name} [{job.folder_name}] "
              f"(priority: {job.prediction.priority}, score: {job.score}, wave {job.wave})")

    if verbose:
        print(f"\n📋 JOBS")
        for job in report.jobs:
            cycle_flag = " 🔁" if job.participates_in_cycle else ""
            print(f"   {job.job_name} [{job.folder_name}]: score {job.score} ({job.difficulty.value}), "
                  f"wave {job.wave}, depth {job.dependency_depth}, {job.topology.value}{cycle_flag}")

    _print_warnings(report)
    print("\n" + "=" * 60)


def _print_warnings(report: AnalysisReport):
    if not report.warnings:
        return
    print(f"\n❌ WARNINGS ({len(report.warnings)}):")
    for warning in report.warnings[:5]:
        print(f"   - [{warning.kind.value}] {warning.message}")
    if len(report.warnings) > 5:
        print(f"   ... and {len(report.warnings) - 5} more")


def print_subgraph(report: AnalysisReport, subgraph: Subgraph):
    """Print a dependency query result to console."""
    root = report.jobs[subgraph.root_job_id]
    depth = subgraph.depth_limit if subgraph.depth_limit is not None else "all"
    print(f"\n🔗 DEPENDENCIES OF {root.job_name} [{root.folder_name}]")
    print(f"   direction={subgraph.direction.value} depth={depth} scope={subgraph.scope.value}")

    for node in subgraph.nodes:
        if node.is_root:
            continue
        marker = "🏠" if node.is_internal else "🌐"
        print(f"   {marker} hop {node.hop}: {node.job_name} [{node.folder_name}]")

    stats = subgraph.stats
    print(f"\n   {stats['total_dependencies']} dependencies "
          f"({stats['internal_dependencies']} internal, {stats['external_dependencies']} external), "
          f"max depth {stats['max_depth']}")


def export_json(output: Dict[str, Any], output_path: str):
    """Export results to JSON."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(output, f, indent=2, ensure_ascii=False)

    print(f"📄 JSON exported to: {path}")


def _resolve_job(report: AnalysisReport, job: str, folder: Optional[str]) -> int:
    """Look the job up by name first, then as a numeric id."""
    found = report.job_by_name(job, folder)
    if found is None and job.isdigit() and int(job) < len(report.jobs):
        return int(job)
    if found is None:
        raise AnalysisError(f"Job not found: {job}" + (f" in folder {folder}" if folder else ""))
    return found.job_id


def _parse_depth(value: str) -> Optional[int]:
    if value.lower() in ('all', 'none'):
        return None
    return int(value)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Analyze Control-M jobs for Airflow migration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s snapshot.json                     Console report
  %(prog)s snapshot.json -o report.json      Export to JSON
  %(prog)s snapshot.json --query LOAD_A      Direct dependencies of LOAD_A
  %(prog)s snapshot.json --query 12 --depth all --scope external
        """
    )

    parser.add_argument(
        "snapshot",
        help="Snapshot file (.json or .json.gz) to analyze"
    )

    parser.add_argument(
        "-o", "--output",
        help="Output JSON file path"
    )

    parser.add_argument(
        "-f", "--format",
        choices=["console", "json"],
        default="console",
        help="Output format (default: console)"
    )

    parser.add_argument(
        "-w", "--workers",
        type=int,
        help="Worker threads for graph building and scoring (default: from config)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed output for each job"
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    # Query arguments
    parser.add_argument(
        "--query",
        metavar="JOB",
        help="Show the dependency subgraph around a job (name, or id when no job has that name)"
    )

    parser.add_argument(
        "--folder",
        help="Folder of the queried job, when the name is not unique"
    )

    parser.add_argument(
        "--direction",
        choices=[d.value for d in Direction],
        default=Direction.BOTH.value,
        help="Query direction (default: both)"
    )

    parser.add_argument(
        "--depth",
        type=_parse_depth,
        default=1,
        help="Query depth in hops, or 'all' for end-to-end (default: 1)"
    )

    parser.add_argument(
        "--scope",
        choices=[s.value for s in Scope],
        default=Scope.ALL.value,
        help="Query edge scope (default: all)"
    )

    args = parser.parse_args(argv)

    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.debug:
        logging.getLogger('controlm_analysis').setLevel(logging.DEBUG)

    print(f"\n🔍 Control-M to Airflow Migration Analyzer")
    print(f"   Analyzing: {args.snapshot}")
    print()

    settings = AnalysisSettings.from_config(config, max_workers=args.workers)
    print(f"🚀 Building dependency graph with {settings.max_workers} parallel workers")
    print("-" * 60)

    analyzer = MigrationAnalyzer(settings, progress=make_progress_printer())

    try:
        report = analyzer.analyze_file(args.snapshot)
    except AnalysisError as e:
        print(f"❌ Error: {e}")
        return 1

    if args.query is not None:
        try:
            job_id = _resolve_job(report, args.query, args.folder)
            subgraph = report.dependency_query().extract(
                job_id, Direction(args.direction), args.depth, Scope(args.scope),
            )
        except AnalysisError as e:
            print(f"❌ Error: {e}")
            return 1

        if args.format == "console" or not args.output:
            print_subgraph(report, subgraph)
        if args.output:
            export_json(subgraph.to_dict(), args.output)
        return 0

    if args.format == "console":
        print_report(report, verbose=args.verbose)

    output_path = args.output
    if args.format == "json" and not output_path:
        output_dir = config.get('output', 'output_dir', default='./output')
        output_path = str(Path(output_dir) / "controlm_analysis.json")

    if output_path:
        output = report.to_dict()
        output['analyzed_at'] = datetime.now().isoformat()
        output['source'] = str(args.snapshot)
        export_json(output, output_path)

    if report.jobs:
        easy = report.summary['difficulty_distribution']['easy']
        easy_pct = round(easy * 100 / report.total_jobs_analyzed, 1)
        print(f"\n✨ {easy_pct}% of jobs are easy to migrate to Airflow")

    return 0


if __name__ == "__main__":
    sys.exit(main())
