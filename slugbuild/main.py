"""
slugbuild — CLI entrypoint.

The three buildpack entry points, as subcommands:

Usage:
    slugbuild detect BUILD_DIR
    slugbuild compile BUILD_DIR CACHE_DIR [ENV_DIR]
    slugbuild release BUILD_DIR
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
import yaml

from slugbuild import __version__
from slugbuild.core.models.context import MANIFEST_FILE
from slugbuild.core.observability.logging_config import configure_build_log


@click.group()
@click.version_option(version=__version__, prog_name="slugbuild")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only report errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """slugbuild — compile a Node.js app and its dependencies into a slug."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("SLUGBUILD_LOG_LEVEL", "INFO")

    configure_build_log(
        level=level,
        log_file=os.environ.get("SLUGBUILD_LOG_FILE"),
        log_file_level=os.environ.get("SLUGBUILD_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.argument("build_dir", type=click.Path(file_okay=False, path_type=Path))
def detect(build_dir: Path) -> None:
    """Report whether BUILD_DIR is a Node.js app."""
    if (build_dir / MANIFEST_FILE).is_file():
        click.echo("Node.js")
        return
    click.echo("no", err=True)
    sys.exit(1)


@cli.command()
@click.argument("build_dir", type=click.Path(file_okay=False, path_type=Path))
@click.argument("cache_dir", type=click.Path(file_okay=False, path_type=Path))
@click.argument("env_dir", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--buildpack-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Where to write the build-stage export script (default: $BUILDPACK_DIR or cwd).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print the build report as JSON.")
def compile(
    build_dir: Path,
    cache_dir: Path,
    env_dir: Path | None,
    buildpack_dir: Path | None,
    as_json: bool,
) -> None:
    """Install node, npm and dependencies into BUILD_DIR, caching in CACHE_DIR."""
    from slugbuild.core.use_cases.compile import run

    result = run(build_dir, cache_dir, env_dir, buildpack_dir=buildpack_dir)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))

    if not result.ok:
        click.secho(f" !     Build failed: {result.message}", fg="red", err=True)
        sys.exit(result.exit_code)


@cli.command()
@click.argument("build_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
def release(build_dir: Path) -> None:
    """Print release metadata (default process types) as YAML."""
    from slugbuild.core.config.loader import ConfigError, load_manifest
    from slugbuild.core.services.startup import detect_startup_method, process_types

    try:
        manifest = load_manifest(build_dir)
    except ConfigError as e:
        click.secho(f" !     {e}", fg="red", err=True)
        sys.exit(1)

    method = detect_startup_method(build_dir, manifest)
    metadata = {
        "addons": [],
        "default_process_types": process_types(build_dir, method),
    }
    click.echo("---")
    click.echo(yaml.safe_dump(metadata, default_flow_style=False, sort_keys=False), nl=False)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
