#!/usr/bin/env python3
"""
OpenCode Bundle - write agents, plugins and skills in OpenCode's layout.

Takes a bundle (an opencode.json config, agent prompts, plugin files and
skill directories) and writes it where OpenCode looks for it:
- <project>/opencode.json + <project>/.opencode/{agents,plugins,skills}/
- or directly into a .opencode/ directory when that is the output root

Usage:
    uv tool install opencode-bundle
    opencode-bundle write bundle.yaml --output ~/code/my-app
    opencode-bundle collect ./my-claude-plugin --output ~/code/my-app
    opencode-bundle paths ~/code/my-app/.opencode
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any

import typer
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from opencode_bundle.bundle import (
    OPENCODE_DIR_NAME,
    OpenCodeBundle,
    OpenCodePaths,
    resolve_opencode_paths,
    write_opencode_bundle,
)
from opencode_bundle.collect import collect_bundle
from opencode_bundle.errors import BundleError, ConfigError, ManifestError
from opencode_bundle.manifest import load_manifest

__all__ = [
    "OpenCodeBundle",
    "OpenCodePaths",
    "resolve_opencode_paths",
    "write_opencode_bundle",
    "collect_bundle",
    "load_manifest",
    "BundleError",
    "ConfigError",
    "ManifestError",
]

# Package version - keep in sync with pyproject.toml
__version__ = "0.1.0"

# Environment variable overriding the config home (~/.opencode-bundle)
HOME_ENV_VAR = "OPENCODE_BUNDLE_HOME"

DEFAULT_CONFIG: Dict[str, Any] = {
    "default_output": ".",
    "verbose": False,
}

# Errors that abort a write with exit status 1
WRITE_ERRORS = (BundleError, OSError, TypeError, ValueError)

console = Console()
app = typer.Typer(
    name="opencode-bundle",
    help="Write agents, plugins and skills in OpenCode's directory layout",
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context):
    """
    Write agents, plugins and skills in OpenCode's directory layout.
    """
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


# Sub-app for user configuration
config_app = typer.Typer(
    help="Show or change opencode-bundle settings",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")


# =============================================================================
# Configuration & Logging
# =============================================================================

def get_home() -> Path:
    """Get the opencode-bundle home directory."""
    override = os.getenv(HOME_ENV_VAR, "").strip()
    return Path(override).expanduser() if override else Path.home() / ".opencode-bundle"


def get_config_path() -> Path:
    """Get the path to the opencode-bundle config file."""
    return get_home() / "config.json"


def load_config() -> Dict[str, Any]:
    """Load the user configuration, falling back to defaults.

    Raises ConfigError if the file exists but is not a JSON object.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                stored = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e
        if not isinstance(stored, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")
        config.update(stored)
    return config


def save_config(config: Dict[str, Any]):
    """Save the user configuration."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        json.dump(config, f, indent=2)


def parse_config_value(key: str, value: str) -> Any:
    """Convert a command-line string into the type stored for ``key``."""
    if key not in DEFAULT_CONFIG:
        raise ConfigError(f"Unknown setting '{key}'. Known settings: {', '.join(DEFAULT_CONFIG)}")

    if isinstance(DEFAULT_CONFIG[key], bool):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
        raise ConfigError(f"'{key}' expects true or false, got '{value}'")
    return value


def setup_logging(verbose: bool = False):
    """Route package logging through the shared rich console."""
    logger = logging.getLogger("opencode_bundle")
    logger.handlers.clear()
    handler = RichHandler(console=console, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def _load_config_or_exit() -> Dict[str, Any]:
    try:
        return load_config()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


# =============================================================================
# Output Helpers
# =============================================================================

def show_summary(bundle: OpenCodeBundle, paths: OpenCodePaths):
    """Print what was written and where."""
    table = Table(title="Bundle Written")
    table.add_column("Component", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_column("Location")

    table.add_row("Config", "1", escape(str(paths.config_path)))
    table.add_row("Agents", str(len(bundle.agents)), escape(str(paths.agents_dir)))
    table.add_row(
        "Plugins",
        str(len(bundle.plugins)),
        escape(str(paths.plugins_dir)) if bundle.plugins else "[dim]skipped[/dim]",
    )
    table.add_row(
        "Skills",
        str(len(bundle.skill_dirs)),
        escape(str(paths.skills_dir)) if bundle.skill_dirs else "[dim]skipped[/dim]",
    )
    console.print(table)


def build_preview_tree(bundle: OpenCodeBundle, paths: OpenCodePaths) -> Tree:
    """Build a rich tree of the files a bundle would produce."""
    tree = Tree(f"[bold cyan]{escape(str(paths.root))}[/bold cyan]")
    tree.add(escape(paths.config_path.name))

    def branch(directory: Path) -> Tree:
        return tree.add(f"[cyan]{escape(str(directory.relative_to(paths.root)))}/[/cyan]")

    if bundle.agents:
        agents = branch(paths.agents_dir)
        for agent in bundle.agents:
            agents.add(escape(f"{agent.name}.md"))

    if bundle.plugins:
        plugins = branch(paths.plugins_dir)
        for plugin in bundle.plugins:
            plugins.add(escape(plugin.name))

    if bundle.skill_dirs:
        skills = branch(paths.skills_dir)
        for skill in bundle.skill_dirs:
            skills.add(f"{escape(skill.name)}/ [dim]← {escape(str(skill.source_dir))}[/dim]")

    return tree


def _write_or_exit(output_root: str, bundle: OpenCodeBundle) -> OpenCodePaths:
    try:
        return write_opencode_bundle(output_root, bundle)
    except WRITE_ERRORS as e:
        console.print(f"[red]Error writing bundle:[/red] {escape(str(e))}")
        raise typer.Exit(1)


# =============================================================================
# CLI Commands
# =============================================================================

@app.command()
def write(
    manifest: Path = typer.Argument(..., help="Bundle manifest (YAML or JSON)"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o",
        help="Output root: a project directory or a .opencode directory (default from config)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every file written"),
):
    """
    Write the bundle described by a manifest.

    Examples:
        opencode-bundle write bundle.yaml
        opencode-bundle write bundle.yaml -o ~/code/my-app/.opencode
    """
    config = _load_config_or_exit()
    setup_logging(verbose or bool(config.get("verbose")))

    try:
        bundle = load_manifest(manifest)
    except ManifestError as e:
        console.print(f"[red]Invalid manifest:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    output_root = output or config["default_output"]
    paths = _write_or_exit(output_root, bundle)
    show_summary(bundle, paths)
    console.print("[green]✓ Bundle written![/green]")


@app.command(name="collect")
def collect_cmd(
    source: Path = typer.Argument(..., help="Plugin source directory (agents/, plugins/, skills/)"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o",
        help="Output root: a project directory or a .opencode directory (default from config)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Show what would be written"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every file written"),
):
    """
    Collect a bundle from a plugin source directory and write it.

    Examples:
        opencode-bundle collect ./my-plugin
        opencode-bundle collect ./my-plugin -o ~/code/my-app --dry-run
    """
    config = _load_config_or_exit()
    setup_logging(verbose or bool(config.get("verbose")))

    try:
        bundle = collect_bundle(source)
    except ManifestError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    output_root = output or config["default_output"]

    if dry_run:
        paths = resolve_opencode_paths(output_root)
        console.print(build_preview_tree(bundle, paths))
        console.print("\n[dim]Dry run: nothing written.[/dim]")
        return

    paths = _write_or_exit(output_root, bundle)
    show_summary(bundle, paths)
    console.print("[green]✓ Bundle written![/green]")


@app.command(name="paths")
def paths_cmd(
    output: Optional[str] = typer.Argument(None, help="Output root (default from config)"),
):
    """Show where each part of a bundle would be written."""
    config = _load_config_or_exit()
    resolved = resolve_opencode_paths(output or config["default_output"])

    if resolved.root.name == OPENCODE_DIR_NAME:
        layout = f"direct ({OPENCODE_DIR_NAME} root)"
    else:
        layout = f"project (nested {OPENCODE_DIR_NAME}/)"
    console.print(f"[cyan]Layout:[/cyan]  {layout}", soft_wrap=True)
    for label, value in [
        ("Root", resolved.root),
        ("Config", resolved.config_path),
        ("Agents", resolved.agents_dir),
        ("Plugins", resolved.plugins_dir),
        ("Skills", resolved.skills_dir),
    ]:
        console.print(f"[cyan]{label + ':':<8}[/cyan] {escape(str(value))}", soft_wrap=True)


@config_app.command("show")
def config_show():
    """Show current settings."""
    config = _load_config_or_exit()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan", justify="right")
    table.add_column("Value", style="white")
    for key, value in config.items():
        table.add_row(key, escape(str(value)))
    table.add_row("[dim]file[/dim]", f"[dim]{escape(str(get_config_path()))}[/dim]")
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help=f"Setting name ({', '.join(DEFAULT_CONFIG)})"),
    value: str = typer.Argument(..., help="New value"),
):
    """Change a setting."""
    config = _load_config_or_exit()
    try:
        config[key] = parse_config_value(key, value)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    save_config(config)
    console.print(f"[green]✓[/green] {key} = {escape(str(config[key]))}")


# =============================================================================
# Version Command
# =============================================================================

PYPI_URL = "https://pypi.org/pypi/opencode-bundle/json"


def get_installed_version() -> str:
    """Version of the installed distribution, or the source version in a checkout."""
    import importlib.metadata
    try:
        return importlib.metadata.version("opencode-bundle")
    except importlib.metadata.PackageNotFoundError:
        return __version__


def fetch_latest_release(timeout: float = 5.0) -> Optional[str]:
    """Ask PyPI for the newest opencode-bundle release.

    Returns None when PyPI cannot be reached or answers with something
    unexpected; the caller only uses this for a hint.
    """
    try:
        response = httpx.get(PYPI_URL, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        return response.json()["info"]["version"]
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        logging.getLogger(__name__).debug("Release lookup failed: %s", e)
        return None


@app.command()
def version(
    check_update: bool = typer.Option(
        False, "--check", "-c",
        help="Also look up the newest release on PyPI"
    ),
):
    """Show the version and where bundles go by default."""
    import platform

    config = _load_config_or_exit()
    installed = get_installed_version()
    default_paths = resolve_opencode_paths(config["default_output"])

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan", justify="right")
    table.add_column("Value", style="white")

    table.add_row("opencode-bundle", installed)
    table.add_row("Python", platform.python_version())
    table.add_row("Settings", escape(str(get_config_path())))
    table.add_row("Default output", escape(str(default_paths.root)))
    table.add_row("Writes config to", escape(str(default_paths.config_path)))

    if check_update:
        latest = fetch_latest_release()
        if latest is None:
            table.add_row("Latest release", "[dim]PyPI unreachable[/dim]")
        elif latest == installed:
            table.add_row("Latest release", f"{latest} [green](current)[/green]")
        else:
            table.add_row("Latest release", f"{latest} [yellow](run: uv tool upgrade opencode-bundle)[/yellow]")

    console.print(Panel(table, title="[bold cyan]opencode-bundle[/bold cyan]", border_style="cyan"))


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
