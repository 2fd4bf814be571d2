"""Policy check report, written next to the build before any update is sent."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

import structlog

from ossinventory.engines.inventory_sync.models import ComplianceResult

log = structlog.get_logger("ossinventory.engine")

REPORT_JSON = "policy-check-report.json"
REPORT_TEXT = "policy-check-report.txt"


def _render_text(result: ComplianceResult, job_name: str, build_number: int | str) -> str:
    lines = [
        f"Policy check report for {job_name} #{build_number}",
        f"Organization: {result.organization or '-'}",
        f"New projects: {len(result.new_projects)}",
        f"Existing projects: {len(result.existing_projects)}",
        "",
    ]
    if not result.has_rejections:
        lines.append("All dependencies conform with open source policies.")
    else:
        count = len(result.rejected)
        lines.append(f"{count} rejected librar{'y' if count == 1 else 'ies'}:")
        for r in result.rejected:
            policy = f" (policy: {r.policy})" if r.policy else ""
            lines.append(f"  [{r.project}] {r.library}{policy}")
    if result.request_token:
        lines.extend(["", f"Support Token: {result.request_token}"])
    return "\n".join(lines) + "\n"


def write_policy_report(
    result: ComplianceResult,
    report_dir: Path,
    job_name: str,
    build_number: int | str,
) -> Path:
    """Write the JSON report plus a plain-text summary; return the JSON path."""
    report_dir.mkdir(parents=True, exist_ok=True)
    json_path = report_dir / REPORT_JSON
    document = {
        "job_name": job_name,
        "build_number": str(build_number),
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "organization": result.organization,
        "request_token": result.request_token,
        "has_rejections": result.has_rejections,
        "rejected": [asdict(r) for r in result.rejected],
        "new_projects": result.new_projects,
        "existing_projects": result.existing_projects,
    }
    json_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    (report_dir / REPORT_TEXT).write_text(
        _render_text(result, job_name, build_number), encoding="utf-8"
    )
    log.info("sync.report_written", path=str(json_path), rejected=len(result.rejected))
    return json_path
