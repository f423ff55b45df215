"""
CLI for jellyfin-organizer.

Runs the organize conversation: the model is given the input path and the
library layout, and works through the sandboxed file tools while the operator
can reply line by line.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt

from jellyfin_organizer.conversation import ConversationController, ToolCall, ToolResult
from jellyfin_organizer.llm.config import ProviderType
from jellyfin_organizer.llm.exceptions import LLMError
from jellyfin_organizer.llm.factory import default_base_url, get_provider, list_providers
from jellyfin_organizer.prompts import SYSTEM_PROMPT, build_organize_prompt
from jellyfin_organizer.sandbox import (
    ConfigurationError,
    LibraryRoots,
    MediaFileOperations,
    PathSandbox,
)
from jellyfin_organizer.settings import OrganizerConfig, api_key_from_env
from jellyfin_organizer.tools import IMDbSearch, ToolExecutor, build_default_registry

# Load environment variables
load_dotenv()

console = Console()

# Longest tool output echoed to the operator
MAX_RESULT_PREVIEW = 400


def setup_logging(verbose: bool = False) -> None:
    """Setup rich logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # Reduce noise from httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class ConsoleDisplay:
    """Shows the conversation on a rich console."""

    def __init__(self, console: Console):
        self.console = console

    def prompt(self) -> None:
        self.console.print("\n[bold blue]You[/bold blue] ", end="")

    def model_text(self, text: str) -> None:
        self.console.print("\n[bold green]Assistant[/bold green]")
        self.console.print(Markdown(text))

    def tool_call(self, call: ToolCall) -> None:
        arguments = call.arguments if isinstance(call.arguments, str) else json.dumps(call.arguments or {})
        self.console.print(f"[cyan]→ {escape(call.name)}[/cyan] [dim]{escape(arguments)}[/dim]")

    def tool_result(self, call: ToolCall, result: ToolResult) -> None:
        preview = result.output
        if len(preview) > MAX_RESULT_PREVIEW:
            preview = preview[:MAX_RESULT_PREVIEW] + "…"
        if result.is_error:
            self.console.print(f"[red]✗ {escape(preview)}[/red]")
        else:
            self.console.print(f"[dim]{escape(preview) or '(empty)'}[/dim]")

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")


async def _read_line() -> Optional[str]:
    """Read one operator line from stdin; None at end of input."""
    line = await asyncio.to_thread(sys.stdin.readline)
    if not line:
        return None
    return line.rstrip("\n")


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """Jellyfin Organizer CLI - let a model sort media into a Jellyfin library."""
    pass


@cli.command()
@click.argument("input_path", required=False)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to config file (default: read the environment)",
)
@click.option(
    "--provider",
    "-p",
    type=click.Choice(list_providers()),
    default=None,
    help="LLM provider to use (overrides the configuration)",
)
@click.option(
    "--model",
    "-m",
    default=None,
    help="Model name/identifier",
)
@click.option(
    "--base-url",
    "-u",
    default=None,
    help="API base URL (defaults based on provider)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def organize(
    input_path: Optional[str],
    config_path: Optional[str],
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
    verbose: bool,
):
    """
    Organize a file or folder into the Jellyfin library.

    The model explores the library, looks titles up on IMDb and copies or
    renames files into place. Type replies after each answer; end input
    (Ctrl+D) to finish.

    Examples:

        # Library from JELLYFIN_MOVIES_FOLDER / JELLYFIN_SHOWS_FOLDER,
        # downloads readable through SOURCE_FOLDER=/downloads
        jellyfin-organizer organize /downloads/The.Matrix.1999

        # Local model through Ollama
        jellyfin-organizer organize -p ollama -m qwen2.5:14b /downloads/show

        # Everything from a config file
        jellyfin-organizer organize -c ~/.config/jellyfin-organizer.yaml
    """
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        if config_path:
            logger.info(f"Loading config from {config_path}")
            config = OrganizerConfig.from_file(config_path)
        else:
            config = OrganizerConfig.from_env()
        config = _apply_overrides(config, provider, model, base_url)
        config.check_directories()
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        sys.exit(1)

    if not input_path:
        input_path = Prompt.ask("Enter the path to the file or folder to organize", console=console)

    # The tools can only reach the input through a readable root.
    input_path = str(Path(input_path).expanduser().resolve())
    allowed, reason = PathSandbox(config.library).is_allowed(input_path)
    if not allowed:
        console.print(
            f"[bold red]Configuration error:[/bold red] {escape(reason)}\n"
            "Set SOURCE_FOLDER (or library.source in the config file) to the folder "
            "holding the input."
        )
        sys.exit(1)

    try:
        prompt = build_organize_prompt(
            input_path,
            config.library,
            template_path=config.prompt.template_path,
            docs_dir=config.prompt.docs_dir,
        )
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        sys.exit(1)

    llm_config = config.llm.to_llm_config()
    if llm_config.provider == ProviderType.ANTHROPIC and not llm_config.get_api_key():
        console.print("[bold red]Configuration error:[/bold red] ANTHROPIC_API_KEY is not set")
        sys.exit(1)

    console.print(
        Panel(
            f"[bold cyan]Jellyfin Organizer[/bold cyan]\n\n"
            f"Input: [green]{escape(input_path)}[/green]\n"
            f"Movies: [green]{escape(str(config.library.movies))}[/green]\n"
            f"Shows: [green]{escape(str(config.library.shows))}[/green]\n"
            f"Provider: [green]{llm_config.provider.value}[/green] "
            f"([green]{escape(llm_config.effective_model)}[/green])\n\n"
            f"Press [yellow]Ctrl+D[/yellow] to finish.",
            title="Starting",
        )
    )

    try:
        asyncio.run(_run_organize(config, prompt))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
    except LLMError as e:
        console.print(f"[bold red]LLM Error:[/bold red] {escape(str(e))}")
        sys.exit(1)

    console.print("\n[green]Done.[/green]")


def _apply_overrides(
    config: OrganizerConfig,
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
) -> OrganizerConfig:
    """Apply command-line overrides to the LLM settings."""
    update = {}
    if provider:
        update["provider"] = ProviderType(provider)
        if config.llm.api_key is None:
            update["api_key"] = api_key_from_env(provider)
    if model:
        update["model"] = model
    if base_url:
        update["base_url"] = base_url.rstrip("/")
    if not update:
        return config
    return config.model_copy(update={"llm": config.llm.model_copy(update=update)})


async def _run_organize(config: OrganizerConfig, prompt: str) -> None:
    """Wire the tools to the model and run the conversation."""
    sandbox = PathSandbox(config.library)
    registry = build_default_registry(MediaFileOperations(sandbox), IMDbSearch(config.imdb))

    async with get_provider(config.llm.to_llm_config()) as provider:
        controller = ConversationController(
            provider=provider,
            registry=registry,
            executor=ToolExecutor(registry),
            read_input=_read_line,
            display=ConsoleDisplay(console),
            system_prompt=config.prompt.system_prompt or SYSTEM_PROMPT,
            max_model_calls_per_input=config.conversation.max_model_calls_per_input,
        )
        await controller.run(initial_prompt=prompt)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the full tool schemas as JSON")
def tools(as_json: bool):
    """List the tools offered to the model."""
    # Handlers are never invoked here, so any root will do.
    placeholder = LibraryRoots(movies=Path.cwd(), shows=Path.cwd())
    registry = build_default_registry(MediaFileOperations(PathSandbox(placeholder)))

    if as_json:
        click.echo(json.dumps(registry.schemas(), indent=2))
        return

    console.print("[bold]Available Tools:[/bold]")
    for name, definition in registry.items():
        console.print(f"  • [green]{name}[/green] - {escape(definition.description)}")


@cli.command()
def providers():
    """List available LLM providers."""
    console.print("[bold]Available Providers:[/bold]")
    for p in list_providers():
        default_url = default_base_url(p) or "(offline)"
        console.print(f"  • [green]{p}[/green] - {default_url}")


if __name__ == "__main__":
    cli()
