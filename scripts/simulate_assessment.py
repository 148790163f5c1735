#!/usr/bin/env python3
"""Simulate an assessment run end-to-end against the bundled YAML assessments.

Drives an ``AssessmentFlow`` over a ``LocalAssessmentService`` through the
lead gate(s) and the question loop, printing every question asked, the
answer chosen, and the final bucket as scored by the data service.

By default answers are **randomised** (``--random``, on by default) so each
run explores a different path through the question graph.  Use
``--no-random`` to always pick the first answer.

Usage::

    # Random walk through the GTM assessment
    python scripts/simulate_assessment.py gtm-assessment

    # Deterministic walk, reproducible with a seed
    python scripts/simulate_assessment.py sales-readiness --no-random
    python scripts/simulate_assessment.py sales-readiness --seed 7

    # List available assessments
    python scripts/simulate_assessment.py --list

    # Also print the graph analysis
    python scripts/simulate_assessment.py gtm-assessment --analyze
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Ensure the src/ layout is importable without an install.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from rich.console import Console  # noqa: E402
from rich.table import Table  # noqa: E402

from assessment_engine.analysis import analyze_graph  # noqa: E402
from assessment_engine.engine import AssessmentFlow  # noqa: E402
from assessment_engine.models.session import (  # noqa: E402
    CompletionStep,
    FlowPhase,
    LeadCaptureStep,
    QuestionStep,
)
from assessment_engine.service import LocalAssessmentService  # noqa: E402
from assessment_engine.store import AssessmentStore  # noqa: E402

# Lead used for both gate positions.
MOCK_LEAD = {
    "name": "Sim User",
    "email": "sim.user@example.com",
    "company": "Simulation Inc",
}

console = Console()


def list_assessments(store: AssessmentStore) -> None:
    table = Table(title="Assessments")
    table.add_column("slug")
    table.add_column("scoring")
    table.add_column("gate")
    table.add_column("questions", justify="right")
    table.add_column("published")
    for definition in store.definitions.values():
        c = definition.config
        table.add_row(
            c.slug, c.scoring_method.value, c.gate_behavior.value,
            str(len(definition.questions)), "yes" if c.published else "no",
        )
    console.print(table)


def print_analysis(store: AssessmentStore, config_id: str) -> None:
    analysis = analyze_graph(store.get_graph(config_id))
    console.rule("[bold]Graph analysis")
    console.print(f"  Edges:      {len(analysis.edges)}")
    console.print(f"  Reachable:  {', '.join(analysis.reachable) or '-'}")
    console.print(f"  Orphaned:   {', '.join(analysis.orphaned) or '-'}")
    console.print(f"  Cycles:     {', '.join(e.id for e in analysis.cycles) or '-'}")
    console.print(f"  Dangling:   {', '.join(analysis.dangling_routes) or '-'}")
    if analysis.unknown_buckets:
        console.print(f"  [yellow]![/] Unknown bucket keys on: {', '.join(analysis.unknown_buckets)}")


async def run_simulation(slug: str, store: AssessmentStore, randomise: bool) -> bool:
    """Walk one run to completion.  Returns True if a bucket was assigned."""
    service = LocalAssessmentService(store, include_unpublished=True)
    flow = AssessmentFlow(service, slug=slug)

    step = await flow.load()
    if step.type == "unavailable":
        console.print(f"  [red]ERROR[/] {step.reason}")
        return False

    console.rule(f"[bold]{flow.graph.config.title or slug}")
    console.print(
        f"  scoring={flow.graph.config.scoring_method.value}  gate={flow.gate_behavior.value}\n"
    )

    while not isinstance(step, CompletionStep):
        if isinstance(step, LeadCaptureStep):
            where = "before questions" if step.phase == FlowPhase.EMAIL_CAPTURE else "after submit"
            console.print(f"  [cyan]Lead form[/] ({where}): {MOCK_LEAD['email']}")
            step = await flow.submit_lead(MOCK_LEAD)
            continue

        assert isinstance(step, QuestionStep)
        q = step.question
        choice = random.choice(q.answers) if randomise else q.answers[0]
        console.print(
            f"  [dim]Q{step.progress.current}/{step.progress.total}:[/] {q.question_text} ({q.id})"
        )
        for option in q.answers:
            marker = "[green]>[/]" if option.id == choice.id else " "
            console.print(f"      {marker} {option.answer_text}")
        step = await flow.select_answer(q.id, choice.id)

    _, bucket = service.get_result(step.session_id)
    console.print()
    console.print(f"  Session:    {step.session_id}")
    console.print(f"  Result URL: {step.result_url}")
    if bucket is None:
        console.print("  [yellow]![/] No result bucket matched")
        return False
    console.print(f"  [green]✓[/] Bucket: {bucket.bucket_key} ({bucket.title})")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate an assessment run end-to-end against local YAML assessments.",
    )
    parser.add_argument("slug", nargs="?", default="gtm-assessment", help="Assessment slug to run")
    parser.add_argument(
        "--assessment-dir",
        default=None,
        help="Directory of assessment YAML files (default: assessments/ at repo root)",
    )
    parser.add_argument("--list", action="store_true", help="List available assessments and exit")
    parser.add_argument("--analyze", action="store_true", help="Print graph analysis before the run")
    parser.add_argument(
        "--random",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Randomise answers (default: on). Use --no-random to always pick the first answer.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for random answer choice")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show engine debug logs")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if args.seed is not None:
        random.seed(args.seed)

    store = AssessmentStore(args.assessment_dir)
    store.load()

    if args.list:
        list_assessments(store)
        sys.exit(0)

    definition = store.get_by_slug(args.slug)
    if definition is not None and args.analyze:
        print_analysis(store, definition.config.id)

    ok = asyncio.run(run_simulation(args.slug, store, args.random))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
