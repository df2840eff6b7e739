# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from localbuild import __version__
from localbuild.args import get_args
from localbuild.config import DEFAULT_SCRIPT, DEFAULT_TARGET, BuildOptions, default_color
from localbuild.manifest import DEFAULT_GROUPS, ManifestError, ManifestNotFound
from localbuild.orchestrator import AggregateBuildFailure, build_local_packages
from localbuild.ui.console import Console, set_console


def _no_flag_value(ctx, param, value):
    # `--script --verbose`: a flag directly followed by another flag has no value
    if isinstance(value, str) and value.startswith("--"):
        raise click.BadParameter(f"expected a value, got the flag {value!r}")
    return value


def _split_groups(ctx, param, value):
    value = _no_flag_value(ctx, param, value)
    if value is None:
        return None
    groups = tuple(g.strip() for g in value.split(",") if g.strip())
    if not groups:
        raise click.BadParameter("expected at least one group name")
    return groups


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.option("--script", default=None, callback=_no_flag_value, help=f"Lifecycle script to run in each local package [default: {DEFAULT_SCRIPT}]")
@click.option("--target", default=DEFAULT_TARGET, callback=_no_flag_value, show_default=True, help="Path to the root package.json")
@click.option(
    "--groups",
    default=",".join(DEFAULT_GROUPS),
    show_default=True,
    callback=_split_groups,
    help="Comma-separated dependency groups to scan",
)
@click.option("--install", is_flag=True, default=False, help="Run `npm install` in each local package")
@click.option("--ci", is_flag=True, default=False, help="Run `npm ci` in each local package")
@click.option("--git-pull", is_flag=True, default=False, help="Run `git pull` (best-effort) in each local package")
@click.option("--all", "all_", is_flag=True, default=False, help="git pull, npm ci, then the script")
@click.option("--verbose", is_flag=True, default=False, help="Print the output of successful builds")
@click.option("--strict", is_flag=True, default=False, help="Fail when a local package has no package.json")
@click.option("--color/--no-color", default=None, help="Force colored output on or off")
@click.option("--debug", is_flag=True, default=False, help="Show spawned commands and stack traces")
@click.version_option(__version__, "--version", prog_name="localbuild")
@click.pass_context
def cli(ctx, script, target, groups, install, ci, git_pull, all_, verbose, strict, color, debug):
    """Build the locally-linked (file:) dependencies of a package in parallel."""
    if color is None:
        color = default_color()
    console = Console(debug=debug, color=color)
    set_console(console)

    if ctx.args:
        unknown = get_args(ctx.args)
        if unknown:
            console.print_warning(f":: Ignoring unknown option(s): {', '.join('--' + k for k in unknown)}")

    options = BuildOptions(
        script=script or DEFAULT_SCRIPT,
        target=Path(target),
        groups=groups,
        install=install,
        ci=ci,
        git_pull=git_pull,
        all=all_,
        script_requested=script is not None,
        verbose=verbose,
        strict=strict,
    )

    try:
        build_local_packages(options, console)
    except ManifestNotFound as e:
        console.print_error(
            "Manifest not found",
            str(e),
            suggestion="Run from a package directory or point at one:\n  localbuild --target path/to/package.json",
        )
        sys.exit(1)
    except ManifestError as e:
        console.print_error("Invalid manifest", str(e))
        sys.exit(1)
    except AggregateBuildFailure as e:
        # the failing output was already printed by the runner
        console.print_error("Build failed", str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)
    finally:
        console.print_info("")


def main() -> None:
    cli(prog_name="localbuild")


if __name__ == "__main__":
    main()
