"""CLI main entry point"""

import logging
from pathlib import Path
from typing import List, Optional

import click
import typer
import yaml

from .core.analyze.assembler import determine_namespace
from .core.analyze.config import DEFAULT_PROFILES, AnalyzerConfig
from .core.analyze.infrastructure_analyzer import InfrastructureAnalyzer
from .core.config_loader import ConfigLoader

app = typer.Typer(help="infracheck - derive infrastructure requirements from a service's config and source")


def _echo_kv_aligned(pairs: list[tuple[str, str]]) -> None:
    """Print key-values with aligned colon positions."""
    if not pairs:
        return
    width = max(len(k) for k, _ in pairs)
    for k, v in pairs:
        click.secho(f"{k.ljust(width)}", bold=True, fg="bright_white", nl=False)
        click.secho(": ", fg="bright_black", nl=False)
        click.secho(f"{v}", fg="bright_cyan")


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level),
                        format="%(levelname)s %(name)s: %(message)s")


@app.command()
def analyze(
    project_dir: Path = typer.Argument(Path("."), help="Project root directory"),
    profile: Optional[List[str]] = typer.Option(None, "--profile", "-p", help="Profile to analyze (repeatable)"),
    platform: str = typer.Option("auto", "--platform", help="auto, vm or kubernetes"),
    output_dir: str = typer.Option("build/infrastructure", "--output-dir", help="Output directory, relative to the project"),
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", help="Directory holding the application config"),
    source_dir: str = typer.Option("src/main/java", "--source-dir", help="Java source root, relative to the project"),
    project_name: Optional[str] = typer.Option(None, "--project-name", help="Project name written to the documents"),
    plugin: Optional[List[str]] = typer.Option(None, "--plugin", help="Declared build plugin id (repeatable)"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
):
    """Generate one requirements document per profile"""
    try:
        config = AnalyzerConfig(
            project_dir=str(project_dir),
            project_name=project_name,
            profiles=list(profile) if profile else list(DEFAULT_PROFILES),
            config_dir=str(config_dir) if config_dir else None,
            source_dir=source_dir,
            output_dir=output_dir,
            platform=platform,
            plugin_ids=list(plugin or []),
            log_level=log_level,
        )
    except ValueError as e:
        click.secho(f"Invalid options: {e}", fg="red")
        raise typer.Exit(code=2)

    _configure_logging(config.log_level)

    analyzer = InfrastructureAnalyzer(config)
    report = analyzer.run()

    _echo_kv_aligned([
        ("project", config.project_name),
        ("platform", report.platform.value),
        ("config", str(report.config_source) if report.config_source else "not found"),
    ])
    for result in report.results:
        if result.error:
            click.secho(f"  x {result.profile}: {result.error}", fg="red")
            continue
        document = result.document
        click.secho(
            f"  - {result.profile}: {len(document.files)} files, "
            f"{len(document.external_apis)} APIs -> {result.output_path}",
            fg="bright_cyan",
        )
        if result.diagnostics.unresolved_count:
            click.secho(
                f"    {result.diagnostics.unresolved_count} declaration(s) dropped: unresolved ${{...}}",
                fg="yellow",
            )

    if not report.ok:
        raise typer.Exit(code=1)


@app.command("show-config")
def show_config(
    project_dir: Path = typer.Argument(Path("."), help="Project root or config directory"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile overlay to apply"),
):
    """Print the merged configuration tree for a profile"""
    loader = ConfigLoader(project_dir)
    source = loader.find_source()
    if source is None:
        click.secho(f"No application config found under {project_dir}", fg="yellow")
        raise typer.Exit(code=1)
    tree = loader.load(profile)
    click.secho(f"# {source} (profile: {profile or 'base'})", fg="bright_black")
    click.echo(yaml.safe_dump(tree.to_dict(), sort_keys=False, allow_unicode=True), nl=False)


@app.command()
def namespace(profile: str = typer.Argument(..., help="Profile name")):
    """Display the Kubernetes namespace used for a profile"""
    click.secho(determine_namespace(profile), fg="bright_cyan")


def main():
    """Main entry function"""
    app()


if __name__ == "__main__":
    main()
