"""Command-line front end for the consensus verifier.

Usage::

    python -m consensus_verifier.cli verify jeff-mills "Jeff Mills"
    python -m consensus_verifier.cli verify jeff-mills "Jeff Mills" --json
    python -m consensus_verifier.cli synthesize jeff-mills "Jeff Mills"
    python -m consensus_verifier.cli pipeline jeff-mills "Jeff Mills"
    python -m consensus_verifier.cli batch jeff-mills="Jeff Mills" dvs1=DVS1 --delay 2
    python -m consensus_verifier.cli audit
    python -m consensus_verifier.cli status

Results go to stdout; logs go to stderr.  ``--json`` prints machine
readable output and silences logging below WARNING.  Exit code 1 means a
configuration or storage error, 2 a usage error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from consensus_verifier.config.loader import load_settings
from consensus_verifier.config.settings import Settings
from consensus_verifier.models.verification import (
    AuditResult,
    BatchResult,
    EvidenceDocument,
    InsufficientFacts,
    StoreStats,
    Subject,
    VerificationRun,
)
from consensus_verifier.utils.concurrency import RateLimiter
from consensus_verifier.utils.errors import ConsensusVerifierError
from consensus_verifier.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_run(run: VerificationRun) -> str:
    lines = [
        "=" * 60,
        f"  {run.subject_display_name}  [{run.verification_level.value}]",
        "=" * 60,
        f"Oracles: {run.oracles_queried} queried, {run.oracles_responded} responded, "
        f"{run.oracles_refused} refused, {run.oracles_failed} failed",
        "",
    ]
    if not run.accepted_facts:
        lines.append("No fact reached quorum.")
    for fact in run.accepted_facts:
        lines.append(
            f"  {fact.confidence_score:.2f}  {fact.claim_text}"
            f"  ({', '.join(sorted(fact.contributing_oracles))})"
        )
    return "\n".join(lines)


def _format_evidence(result: EvidenceDocument | InsufficientFacts) -> str:
    if isinstance(result, InsufficientFacts):
        return f"No document written for {result.subject_id}: {result.reason}"
    return (
        f"{result.title}\n{'-' * len(result.title)}\n{result.content}\n\n"
        f"({result.metadata.claims_used} claims, written by {result.metadata.oracle_id})"
    )


def _format_batch(result: BatchResult) -> str:
    lines = [_format_run(run) for run in result.runs]
    if result.skipped:
        lines.append(f"Skipped (already verified): {', '.join(result.skipped)}")
    if result.failed:
        lines.append(f"Failed: {', '.join(result.failed)}")
    return "\n\n".join(lines) if lines else "Nothing to verify."


def _format_audit(result: AuditResult) -> str:
    return f"Deleted {result.deleted_count} fact(s); {result.remaining_fact_count} remain."


def _format_status(stats: StoreStats) -> str:
    lines = [
        f"Subjects:           {stats.total_subjects}",
        f"Facts:              {stats.total_facts}",
    ]
    for status, count in sorted(stats.by_status.items()):
        lines.append(f"  {status:<18}{count}")
    lines.append(f"Documents:          {stats.documents}")
    lines.append(f"Archived responses: {stats.archived_responses}")
    return "\n".join(lines)


def _to_json(result: Any) -> str:
    if isinstance(result, tuple):
        return json.dumps([r.model_dump(mode="json") for r in result], indent=2)
    return json.dumps(result.model_dump(mode="json"), indent=2)


def parse_subject(value: str) -> Subject:
    """Parse ``id=Display Name`` (or just ``Name``, used as both) into a Subject."""
    subject_id, sep, name = value.partition("=")
    if not sep:
        name = subject_id
    if not subject_id.strip() or not name.strip():
        raise argparse.ArgumentTypeError(f"invalid subject: {value!r}")
    return Subject(subject_id=subject_id.strip(), display_name=name.strip())


# ---------------------------------------------------------------------------
# Command runner
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace, settings: Settings) -> str:
    # Deferred: building components reads credentials and creates SDK clients.
    from consensus_verifier.main import build_components, initialize_stores

    components = build_components(settings)
    await initialize_stores(components)
    verifier = components["verifier"]
    json_output = args.json_output

    if args.command == "verify":
        run = await verifier.run_verification(args.subject_id, args.name)
        return _to_json(run) if json_output else _format_run(run)

    if args.command == "synthesize":
        evidence = await verifier.synthesize_evidence(args.subject_id, args.name)
        return _to_json(evidence) if json_output else _format_evidence(evidence)

    if args.command == "pipeline":
        run, evidence = await verifier.full_pipeline(args.subject_id, args.name)
        if json_output:
            return _to_json((run, evidence))
        return f"{_format_run(run)}\n\n{_format_evidence(evidence)}"

    if args.command == "batch":
        delay = args.delay if args.delay is not None else settings.batch_delay_seconds
        result = await verifier.verify_batch(
            args.subjects, rate_limiter=RateLimiter(delay), force=args.force
        )
        return _to_json(result) if json_output else _format_batch(result)

    if args.command == "audit":
        audit = await verifier.audit_prune()
        return _to_json(audit) if json_output else _format_audit(audit)

    stats = await verifier.status()
    return _to_json(stats) if json_output else _format_status(stats)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m consensus_verifier.cli",
        description="Verify facts about a subject by multi-oracle consensus.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print JSON instead of formatted text (implies quiet logging).",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("verify", "Query all oracles and persist the facts a quorum agrees on."),
        ("synthesize", "Write an evidence document from a subject's stored facts."),
        ("pipeline", "Verify, then synthesize."),
    ):
        cmd = sub.add_parser(name, parents=[common], help=help_text)
        cmd.add_argument("subject_id", help="Stable subject identifier, e.g. jeff-mills.")
        cmd.add_argument("name", help='Display name sent to the oracles, e.g. "Jeff Mills".')

    batch = sub.add_parser("batch", parents=[common], help="Verify several subjects in sequence.")
    batch.add_argument(
        "subjects",
        nargs="+",
        type=parse_subject,
        help='Subjects as id="Display Name".',
    )
    batch.add_argument("--force", action="store_true", help="Re-verify subjects that have facts.")
    batch.add_argument("--delay", type=float, default=None, help="Seconds between subjects.")

    sub.add_parser("audit", parents=[common], help="Delete low-confidence and unverified facts.")
    sub.add_parser("status", parents=[common], help="Show store statistics.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command, and return the process exit code."""
    args = _build_parser().parse_args(argv)
    try:
        settings = load_settings(Settings())
    except ConsensusVerifierError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # stdout carries only results; logs always go to stderr.
    configure_logging(
        log_level="WARNING" if args.json_output else settings.log_level,
        json_output=args.json_output,
        stream=sys.stderr,
    )

    try:
        output = asyncio.run(_run(args, settings))
    except ConsensusVerifierError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
