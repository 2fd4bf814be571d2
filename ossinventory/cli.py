"""CLI entry point: ossinv.

Subcommands:
    ossinv scan ./workspace --includes "**/*.jar"     # Fingerprint matching files
    ossinv sync ./workspace --job-name app -b 42      # Collect and sync with the service

Global settings (service URL, API token, proxy, retries) come from OSSINV_*
environment variables; job options override them where both exist.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from ossinventory.core.logging import setup_logging
from ossinventory.core.settings import GlobalConfig, JobConfig
from ossinventory.engines.aggregator import BuildContext, load_module_graph
from ossinventory.engines.folder_scanner import ScanFilter, scan_folder
from ossinventory.exceptions import ConfigurationError
from ossinventory.pipeline import run_build


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """ossinventory: open source inventory scanner and policy-gated sync."""
    setup_logging(verbose)


@main.command("scan")
@click.argument("workspace", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--includes", default=None, help="Ant include patterns (comma/space separated)")
@click.option("--excludes", default=None, help="Ant exclude patterns (comma/space separated)")
@click.option("--json", "as_json", is_flag=True, help="Print records as JSON")
def scan(workspace: Path, includes: str | None, excludes: str | None, as_json: bool) -> None:
    """Scan a folder and print a fingerprint record per matching file."""
    try:
        records = scan_folder(workspace, ScanFilter.from_strings(includes, excludes))
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        click.echo("No matching files found.")
        return
    for r in records:
        click.echo(f"{r.sha1}  {r.system_path}")
    click.echo(f"\n{len(records)} file(s) fingerprinted")


@main.command("sync")
@click.argument("workspace", type=click.Path(file_okay=False, path_type=Path))
@click.option("--job-name", required=True, help="Build job name")
@click.option("-b", "--build-number", required=True, help="Build number")
@click.option(
    "--module-graph",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Resolved multi-module build graph (JSON)",
)
@click.option(
    "--pipeline-script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Pipeline script used to detect Maven pipelines",
)
@click.option(
    "--report-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Policy report directory (default: WORKSPACE/.ossinventory)",
)
@click.option("--api-token", default=None, help="Job API token (overrides OSSINV_API_TOKEN)")
@click.option("--user-key", default=None, help="Job user key (overrides OSSINV_USER_KEY)")
@click.option(
    "--check-policies",
    type=click.Choice(["global", "disable", "enableNew", "enableAll"]),
    default="global",
)
@click.option(
    "--force-update",
    type=click.Choice(["global", "forceUpdate", "noForceUpdate"]),
    default="global",
)
@click.option("--product", default=None, help="Product name or token")
@click.option("--product-version", default=None)
@click.option("--requester-email", default=None)
@click.option("--project-token", default=None)
@click.option("--includes", default=None, help="Ant include patterns")
@click.option("--excludes", default=None, help="Ant exclude patterns")
@click.option("--maven-project-token", default=None)
@click.option("--module-tokens", default=None, help="artifactId=token pairs")
@click.option("--modules-to-include", default=None)
@click.option("--modules-to-exclude", default=None)
@click.option("--ignore-pom-modules", is_flag=True)
def sync(
    workspace: Path,
    job_name: str,
    build_number: str,
    module_graph: Path | None,
    pipeline_script: Path | None,
    report_dir: Path | None,
    api_token: str | None,
    user_key: str | None,
    check_policies: str,
    force_update: str,
    product: str | None,
    product_version: str | None,
    requester_email: str | None,
    project_token: str | None,
    includes: str | None,
    excludes: str | None,
    maven_project_token: str | None,
    module_tokens: str | None,
    modules_to_include: str | None,
    modules_to_exclude: str | None,
    ignore_pom_modules: bool,
) -> None:
    """Collect the build's inventories and sync them with the service."""
    job = JobConfig(
        api_token=api_token,
        user_key=user_key,
        check_policies=check_policies,  # type: ignore[arg-type]
        force_update=force_update,  # type: ignore[arg-type]
        product=product,
        product_version=product_version,
        requester_email=requester_email,
        project_token=project_token,
        lib_includes=includes,
        lib_excludes=excludes,
        maven_project_token=maven_project_token,
        module_tokens=module_tokens,
        modules_to_include=modules_to_include,
        modules_to_exclude=modules_to_exclude,
        ignore_pom_modules=ignore_pom_modules,
    )

    try:
        graph = load_module_graph(module_graph) if module_graph else None
    except (OSError, ValueError) as e:
        click.echo(f"Error: cannot read module graph {module_graph}: {e}", err=True)
        sys.exit(1)

    build = BuildContext(
        job_name=job_name,
        build_number=build_number,
        workspace=workspace,
        module_graph=graph,
        pipeline_script=pipeline_script.read_text(encoding="utf-8") if pipeline_script else None,
    )

    result = asyncio.run(run_build(build, GlobalConfig.from_env(), job, report_dir))

    click.echo(f"Sync {result.state}" + (f": {result.message}" if result.message else ""))
    if result.support_token:
        click.echo(f"Support Token: {result.support_token}")
    if result.should_fail_build:
        sys.exit(1)
