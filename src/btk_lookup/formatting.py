"""Rendering of query outcomes for people and for machines."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from btk_lookup.connectors.btk.interfaces import (
    BatchSummary,
    QueryFailure,
    QueryOutcome,
    QuerySuccess,
)
from btk_lookup.connectors.btk.parser import NO_DECISION_TEXT

RULE = "═" * 60
THIN_RULE = "─" * 60


def format_duration(ms: int) -> str:
    """Human-readable duration: ``850ms``, ``2.50s`` or ``1m 5.0s``."""
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60000:
        return f"{ms / 1000:.2f}s"
    minutes, rest = divmod(ms, 60000)
    return f"{minutes}m {rest / 1000:.1f}s"


def render_outcome(outcome: QueryOutcome) -> str:
    """Render one outcome as a text block."""
    lines = ["", RULE, f"📌 Domain: {outcome.domain}"]

    if isinstance(outcome, QueryFailure):
        lines += [RULE, "❓ Status: FAILED", THIN_RULE, f"Reason: {outcome.reason}", RULE]
        return "\n".join(lines)

    if outcome.duration_ms:
        lines.append(f"⏱️  Query time: {format_duration(outcome.duration_ms)}")
    lines.append(RULE)

    record = outcome.record
    if not record.blocked:
        lines += ["✅ Status: ACCESSIBLE", THIN_RULE, f"ℹ️  {NO_DECISION_TEXT}", RULE]
        return "\n".join(lines)

    lines += ["🚫 Status: BLOCKED", THIN_RULE]
    for label, value in (
        ("📅 Decision date", record.decision_date),
        ("📋 Case number", record.case_number),
        ("📂 Case type", record.case_type),
        ("⚖️  Court", record.court),
    ):
        if value:
            lines.append(f"{label}: {value}")
    lines.append(THIN_RULE)

    if record.local_description:
        lines += ["", "📝 Turkish description:", f"   {record.local_description}"]
    if record.foreign_description:
        lines += ["", "📝 English description:", f"   {record.foreign_description}"]
    lines.append(RULE)
    return "\n".join(lines)


def render_summary(summary: BatchSummary) -> str:
    lines = ["", "📊 SUMMARY", RULE, f"   🚫 Blocked: {summary.blocked}", f"   ✅ Accessible: {summary.not_blocked}"]
    if summary.failed:
        lines.append(f"   ❓ Failed: {summary.failed}")
    lines.append(RULE)
    return "\n".join(lines)


def outcome_to_dict(outcome: QueryOutcome, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """Machine-readable envelope for one outcome."""
    timestamp = timestamp or datetime.now(timezone.utc)
    envelope: Dict[str, Any] = {
        "domain": outcome.domain,
        "timestamp": timestamp.isoformat(),
        "status": outcome.ok,
    }
    if isinstance(outcome, QuerySuccess):
        envelope.update(outcome.record.to_dict())
        envelope["duration_ms"] = outcome.duration_ms
        envelope["duration"] = format_duration(outcome.duration_ms)
    else:
        envelope["error"] = outcome.reason
    return envelope


def error_to_dict(message: str, domain: str = "", timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """Envelope for errors that happen before any domain is queried."""
    timestamp = timestamp or datetime.now(timezone.utc)
    return {"domain": domain, "timestamp": timestamp.isoformat(), "status": False, "error": message}
