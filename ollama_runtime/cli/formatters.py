"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ollama_runtime.models.release import AssetMetadata

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def _format_size(size: int) -> str:
    """Renders an asset size such as 1.2 GB; sizes at or below zero read as unknown."""
    if size <= 0:
        return "unknown"
    value = float(size)
    for unit in _SIZE_UNITS[:-1]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "UnsupportedPlatformError": [
            "• Ollama publishes builds for Windows, macOS and Linux only.",
        ],
        "UnsupportedArchitectureError": [
            "• Ollama publishes builds for arm64 and amd64 only.",
            "• Use --os/--arch to fetch a build for another machine.",
        ],
        "InvalidVersionError": [
            "• Use 'latest' or a release tag such as v0.11.0.",
        ],
        "IndexUnavailableError": [
            "• Check your internet connection.",
            "• GitHub may be rate-limiting you. Set github_token in the config.",
            "• Please try again in a few minutes.",
        ],
        "AssetNotFoundError": [
            "• This release has no build for your platform.",
            "• Try a newer version, or 'latest'.",
        ],
        "DownloadError": [
            "• The release archive could not be downloaded.",
            "• Check your internet connection and try again.",
        ],
        "UnsupportedContentTypeError": [
            "• Ollama changed its packaging format.",
            "• Upgrade ollama-runtime to a version that understands it.",
        ],
        "ExtractionError": [
            "• The archive may be corrupt or the disk may be full.",
            "• Remove the version with `ollama-runtime remove` and download again.",
        ],
        "StartupTimeoutError": [
            "• The server was started but did not answer in time.",
            "• Raise startup_timeout in the config on slow machines.",
            "• Check whether another program is using the port.",
        ],
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `ollama-runtime --show-config` to inspect it.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -v for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in sorted(config_data.items()):
        if key == "github_token" and value:
            value = "[hidden]"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip() or "[dim](defaults)[/dim]",
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_metadata(metadata: AssetMetadata):
    """Displays release asset metadata."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Version:", f"[green]{metadata.version}[/green]")
    table.add_row("Asset:", metadata.file_name)
    table.add_row("Content Type:", metadata.content_type)
    table.add_row("Size:", _format_size(metadata.size))
    table.add_row("Digest:", metadata.digest or "[dim]n/a[/dim]")
    table.add_row("Downloads:", f"{metadata.download_count:,}")
    table.add_row("Download URL:", metadata.download_url)
    table.add_row("Release:", metadata.release_url)

    console.print(
        Panel(table, title="[bold]Ollama Release[/bold]", border_style="cyan")
    )


def print_versions(versions: list[str], platform: str):
    """Displays installed versions for a platform."""
    console = Console()
    if not versions:
        console.print(f"[yellow]No versions installed for {platform}.[/yellow]")
        return
    table = Table(title=f"Installed versions ({platform})", show_lines=False)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Version", style="green")
    for index, version in enumerate(versions, 1):
        table.add_row(str(index), version)
    console.print(table)
