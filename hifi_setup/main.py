"""
hifi-setup — CLI entrypoint.

Usage:
    hifi-setup --help
    sudo hifi-setup install
    sudo hifi-setup uninstall
    hifi-setup status
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from hifi_setup import __version__
from hifi_setup.core.observability.logging_config import setup_logging

_STATUS_MARK = {"ok": ("✓", "green"), "ignored": ("⚠", "yellow"), "fatal": ("❌", "red")}


@click.group()
@click.version_option(version=__version__, prog_name="hifi-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to hifi-setup.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """hifi-setup — install and remove the hifi-wifi network optimizer."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("HIFI_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("HIFI_LOG_FILE"),
        log_file_level=os.environ.get("HIFI_LOG_FILE_LEVEL"),
    )


# ── Helpers ─────────────────────────────────────────────────────


def _setup(ctx: click.Context, installer_dir: Path):
    """Load settings, detect the platform, build the runner.

    Exits 1 on a configuration error.
    """
    from hifi_setup.adapters.shell.command import CommandRunner
    from hifi_setup.core.config.loader import ConfigError, find_settings_file, load_settings
    from hifi_setup.core.services.provision.detection.platform import detect_platform

    path = ctx.obj.get("config_path") or find_settings_file(installer_dir)
    try:
        settings = load_settings(path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    profile = detect_platform(settings)
    runner = CommandRunner(profile, settings.timeouts, brew_prefix=settings.paths.brew_prefix)
    return settings, profile, runner


def _print_result(result, *, quiet: bool = False) -> None:
    if quiet and result.ok:
        return
    mark, color = _STATUS_MARK[result.status]
    click.secho(f"  {mark} ", fg=color, nl=False)
    click.echo(result.message or result.step)


def _interactive() -> bool:
    return sys.stdin.isatty()


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--source-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding Cargo.toml and bin/ (default: current directory).",
)
@click.option("--reboot/--no-reboot", default=None, help="Reboot when the install succeeds.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, source_dir: Path | None, reboot: bool | None, as_json: bool) -> None:
    """Build (or use the precompiled binary) and install the service."""
    from hifi_setup.core.services.provision.orchestration.installer import Installer

    installer_dir = (source_dir or Path.cwd()).resolve()
    settings, profile, runner = _setup(ctx, installer_dir)
    quiet = ctx.obj.get("quiet", False)

    def ask_reboot() -> bool:
        return click.confirm("Reboot now to finish applying driver settings?", default=False)

    if reboot is None:
        reboot_choice = False if as_json or not _interactive() else ask_reboot
    else:
        reboot_choice = reboot

    def report_step(phase, result) -> None:
        if not as_json:
            _print_result(result, quiet=quiet)

    if not as_json and not quiet:
        click.secho("\n📡 Installing hifi-wifi", fg="cyan", bold=True)

    report = Installer(
        runner, profile, settings, installer_dir,
        reboot=reboot_choice, reporter=report_step,
    ).run()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(report.exit_code)

    if report.ok:
        click.secho("\n✅ hifi-wifi installed", fg="green", bold=True)
        if not quiet:
            click.echo(f"   Run '{settings.service.binary_name} status' to check it.")
    else:
        click.secho(f"\n❌ Install failed: {report.remediation}", fg="red", err=True)
    sys.exit(report.exit_code)


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Also remove configuration without asking.")
@click.option("--keep-config", is_flag=True, help="Keep user configuration.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, yes: bool, keep_config: bool, as_json: bool) -> None:
    """Remove the service and everything the installer created."""
    from hifi_setup.core.models.result import FailureKind, StepResult
    from hifi_setup.core.services.provision.data.remediation import hint
    from hifi_setup.core.services.provision.orchestration.reversal import ReversalOrchestrator

    settings, profile, runner = _setup(ctx, Path.cwd())
    quiet = ctx.obj.get("quiet", False)

    if not profile.is_elevated:
        denied = StepResult.failure(
            "uninstall",
            FailureKind.NOT_ELEVATED,
            "Uninstall must run as root",
            hint(FailureKind.NOT_ELEVATED.value),
        )
        if as_json:
            click.echo(json.dumps(denied.model_dump(mode="json"), indent=2))
        else:
            click.secho(f"❌ {denied.message}. {denied.remediation}", fg="red", err=True)
        sys.exit(1)

    if keep_config:
        remove_config = False
    elif yes:
        remove_config = True
    elif as_json or not _interactive():
        remove_config = False
    else:
        remove_config = click.confirm(
            f"Also remove configuration in {settings.paths.user_config_dir}?", default=False,
        )

    def report_step(result) -> None:
        if not as_json:
            _print_result(result, quiet=quiet)

    if not as_json and not quiet:
        click.secho("\n🧹 Uninstalling hifi-wifi", fg="cyan", bold=True)

    report = ReversalOrchestrator(runner, profile, settings, reporter=report_step).run(
        remove_config=remove_config,
    )

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(report.exit_code)

    if report.ok:
        click.secho("\n✅ Uninstall complete", fg="green", bold=True)
    else:
        click.secho(f"\n❌ {len(report.failed)} step(s) failed:", fg="red", err=True)
        for failed in report.failed:
            click.secho(f"   • {failed.message}", fg="red", err=True)
            if failed.remediation:
                click.echo(f"     {failed.remediation}", err=True)
    sys.exit(report.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show the detected platform and service state."""
    from hifi_setup.core.services.provision.detection.service_status import probe_service_state

    settings, profile, runner = _setup(ctx, Path.cwd())
    state = probe_service_state(runner, settings)

    if as_json:
        click.echo(json.dumps({
            "profile": profile.model_dump(mode="json"),
            "service": state.model_dump(mode="json"),
        }, indent=2))
        return

    click.secho(f"\n📋 {profile.distro_id}", fg="cyan", bold=True)
    click.echo(f"   {'immutable' if profile.is_immutable else 'mutable'} root, {profile.arch}")
    click.echo(f"   acting for {profile.acting_user} ({profile.acting_home})")
    click.echo()

    click.secho(f"   {settings.service.name}", fg="white", bold=True)
    for label, value in (
        ("unit registered", state.unit_registered),
        ("enabled", state.enabled),
        ("active", state.active),
        ("binary present", state.binary_present),
        ("alias present", state.alias_present),
    ):
        click.echo(f"     {label:<16}", nl=False)
        click.secho("yes" if value else "no", fg="green" if value else "yellow")
    click.echo()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
