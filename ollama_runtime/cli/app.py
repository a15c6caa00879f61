"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from ollama_runtime import __version__
from ollama_runtime.core.runtime import OllamaRuntime
from ollama_runtime.exceptions import StartupTimeoutError
from ollama_runtime.models.config import RuntimeConfig
from ollama_runtime.models.release import LATEST, PlatformConfig
from ollama_runtime.storage.config_manager import ConfigManager
from ollama_runtime.utils.platform import resolve_current_platform

from .formatters import print_config, print_metadata, print_versions
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("ollama_runtime")

app = typer.Typer(
    name="ollama-runtime",
    help=(
        "Download, cache and run local Ollama servers. Use 'ollama-runtime"
        " <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


class OsChoice(str, Enum):
    windows = "windows"
    darwin = "darwin"
    linux = "linux"


class ArchChoice(str, Enum):
    arm64 = "arm64"
    amd64 = "amd64"


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "ollama-runtime"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"

OS_OPTION = typer.Option(None, "--os", help="Target OS (defaults to this machine).")
ARCH_OPTION = typer.Option(
    None, "--arch", help="Target architecture (defaults to this machine)."
)


def _load_config(ctx: typer.Context) -> RuntimeConfig:
    state: dict[str, Any] = ctx.obj or {}
    config_manager = ConfigManager(state.get("config_file", CONFIG_FILE))
    return config_manager.load_config(state.get("overrides"))


def _resolve_platform(
    os_name: OsChoice | None, arch: ArchChoice | None
) -> PlatformConfig:
    """Builds the target platform, filling gaps from the running machine."""
    if os_name and arch:
        return PlatformConfig(os=os_name.value, arch=arch.value)
    current = resolve_current_platform()
    return PlatformConfig(
        os=os_name.value if os_name else current.os,
        arch=arch.value if arch else current.arch,
    )


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
    config_file: Path = typer.Option(
        CONFIG_FILE, "--config", help="Path to the configuration file."
    ),
    base_path: Path | None = typer.Option(
        None, "--base-path", help="Directory under which versions are stored."
    ),
):
    """Ollama Runtime CLI"""
    if version:
        console.print(
            f"[bold]ollama-runtime[/bold] version [cyan]{__version__}[/cyan]"
        )
        raise typer.Exit()

    if verbose >= 1:
        logging.getLogger("ollama_runtime").setLevel("DEBUG")

    overrides: dict[str, Any] = {}
    if base_path is not None:
        overrides["base_path"] = str(base_path)
    ctx.obj = {"config_file": config_file, "overrides": overrides}

    if show_config:
        config_data = ConfigManager(config_file).get_config_as_dict()
        print_config(config_file, {**config_data, **overrides})
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    ctx: typer.Context,
    base_path: Path | None = typer.Option(
        None, "--storage", help="Directory under which versions are stored."
    ),
    github_token: str = typer.Option(
        "", "--github-token", help="GitHub token used for release lookups."
    ),
    startup_timeout: float = typer.Option(
        5.0, "--startup-timeout", help="Seconds to wait for a server to answer."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
):
    """Write a configuration file."""
    config_file: Path = (ctx.obj or {}).get("config_file", CONFIG_FILE)
    if (
        config_file.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings: dict[str, Any] = {"startup_timeout": startup_timeout}
    if base_path is not None:
        settings["base_path"] = str(base_path)
    if github_token:
        settings["github_token"] = github_token

    ConfigManager(config_file).save_config(settings)
    console.print(f"[bold green]✓ Configuration saved to '{config_file}'[/bold green]")


@app.command(name="platform")
def platform_command(ctx: typer.Context):
    """Show this machine's platform and the matching release asset."""
    config = _load_config(ctx)
    runtime = OllamaRuntime(config)
    platform = runtime.current_platform()
    console.print(f"Platform:   [cyan]{platform}[/cyan]")
    console.print(f"Asset:      {runtime.asset_name(platform)}")
    console.print(f"Executable: {runtime.executable_name(platform)}")


@app.command()
def metadata(
    ctx: typer.Context,
    version: str = typer.Argument(LATEST, help="'latest' or a tag like v0.11.0."),
    os_name: OsChoice | None = OS_OPTION,
    arch: ArchChoice | None = ARCH_OPTION,
):
    """Show release metadata for a version."""
    config = _load_config(ctx)
    platform = _resolve_platform(os_name, arch)

    async def _metadata_async():
        async with OllamaRuntime(config) as runtime:
            return await runtime.get_metadata(version, platform)

    print_metadata(asyncio.run(_metadata_async()))


@app.command()
def download(
    ctx: typer.Context,
    version: str = typer.Argument(LATEST, help="'latest' or a tag like v0.11.0."),
    os_name: OsChoice | None = OS_OPTION,
    arch: ArchChoice | None = ARCH_OPTION,
):
    """Download and extract a version."""
    config = _load_config(ctx)
    platform = _resolve_platform(os_name, arch)

    async def _download_async() -> str:
        async with OllamaRuntime(config) as runtime:
            with ProgressManager(console) as progress:
                installed = await runtime.download(version, platform, progress.update)
            console.print(
                f"[green]✓ Ollama {installed} ({platform}) installed in "
                f"'{runtime.get_bin_path(installed, platform)}'[/green]"
            )
            return installed

    asyncio.run(_download_async())


@app.command(name="list")
def list_command(
    ctx: typer.Context,
    os_name: OsChoice | None = OS_OPTION,
    arch: ArchChoice | None = ARCH_OPTION,
):
    """List installed versions."""
    config = _load_config(ctx)
    platform = _resolve_platform(os_name, arch)
    runtime = OllamaRuntime(config)
    print_versions(runtime.downloaded_versions(platform), str(platform))


@app.command()
def path(
    ctx: typer.Context,
    version: str = typer.Argument(..., help="A tag like v0.11.0."),
    os_name: OsChoice | None = OS_OPTION,
    arch: ArchChoice | None = ARCH_OPTION,
):
    """Print the install directory of a version."""
    config = _load_config(ctx)
    platform = _resolve_platform(os_name, arch)
    runtime = OllamaRuntime(config)
    typer.echo(str(runtime.get_bin_path(version, platform)))


@app.command()
def remove(
    ctx: typer.Context,
    version: str = typer.Argument(..., help="A tag like v0.11.0."),
    os_name: OsChoice | None = OS_OPTION,
    arch: ArchChoice | None = ARCH_OPTION,
    force: bool = typer.Option(
        False, "--force", "-f", help="Bypass the confirmation prompt."
    ),
):
    """Delete an installed version."""
    config = _load_config(ctx)
    platform = _resolve_platform(os_name, arch)
    if not force and not typer.confirm(f"Remove Ollama {version} ({platform})?"):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()

    runtime = OllamaRuntime(config)
    if runtime.remove(version, platform):
        console.print(f"[green]✓ Removed Ollama {version} ({platform}).[/green]")
    else:
        console.print(f"[yellow]Ollama {version} ({platform}) is not installed.[/yellow]")


@app.command()
def serve(
    ctx: typer.Context,
    version: str = typer.Argument(LATEST, help="'latest' or a tag like v0.11.0."),
):
    """Start an Ollama server and keep it running until Ctrl-C."""
    config = _load_config(ctx)

    async def _serve_async():
        async with OllamaRuntime(config) as runtime:
            if await runtime.is_running():
                live = await runtime.server_version()
                console.print(
                    f"[yellow]⚠️  An Ollama server ({live or 'unknown version'}) is "
                    f"already running at {config.health_url}.[/yellow]"
                )
                return

            try:
                with ProgressManager(console) as progress:
                    server = await runtime.serve(
                        version,
                        server_log=lambda line: console.print(f"[dim][Ollama][/dim] {line}"),
                        download_log=progress.update,
                    )
            except StartupTimeoutError:
                await runtime.stop()
                raise

            live = await runtime.server_version()
            console.print(
                f"[bold green]✓ Ollama {live or version} is running at "
                f"{config.health_url} (pid {server.pid}). Press Ctrl-C to stop."
                "[/bold green]"
            )
            try:
                code = await server.wait()
                console.print(f"[yellow]Ollama server exited with code {code}.[/yellow]")
            finally:
                await server.stop()

    asyncio.run(_serve_async())


@app.command()
def status(ctx: typer.Context):
    """Check whether an Ollama server answers on the health URL."""
    config = _load_config(ctx)

    async def _status_async():
        async with OllamaRuntime(config) as runtime:
            if not await runtime.is_running():
                console.print(f"[red]✗ No Ollama server at {config.health_url}.[/red]")
                return False
            live = await runtime.server_version()
            console.print(
                f"[green]✓ Ollama {live or '(unknown version)'} is running at "
                f"{config.health_url}.[/green]"
            )
            return True

    if not asyncio.run(_status_async()):
        raise typer.Exit(code=1)
