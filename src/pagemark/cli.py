"""Command-line interface for pagemark."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .core.converter import Converter
from .errors import ErrorCategory, PagemarkError
from .logging_config import setup_logging
from .models.config import PagemarkConfig
from .models.events import ConversionEvent, EventType, PipelineState
from .models.results import ConversionResult
from .naming import generate_filename

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INPUT_ERROR = 2

_STATE_DESCRIPTIONS = {
    PipelineState.FETCHING: "[cyan]Fetching page...",
    PipelineState.EXTRACTING: "[cyan]Extracting readable content...",
    PipelineState.RENDERING: "[cyan]Rendering Markdown...",
    PipelineState.ASSEMBLING: "[cyan]Assembling document...",
    PipelineState.DONE: "[green]Done",
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="pagemark",
        description="Convert a web page into clean Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print Markdown to stdout
  pagemark https://example.com/blog/post

  # Save next to other notes, named after the page title
  pagemark https://example.com/blog/post -o notes/

  # Body only, setext headings, asterisk bullets
  pagemark https://example.com/post --no-metadata --heading-style setext --bullet-marker "*"

  # Machine-readable output
  pagemark https://example.com/post --json
        """,
    )

    parser.add_argument(
        "url",
        help="URL of the page to convert",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        metavar="PATH",
        help="Output file, or directory to save into (default: stdout)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML configuration file (requires pyyaml)",
    )

    # Rendering
    render_group = parser.add_argument_group("rendering")
    render_group.add_argument(
        "--heading-style",
        choices=["atx", "setext"],
        default=None,
        help="Heading syntax (default: atx)",
    )
    render_group.add_argument(
        "--bullet-marker",
        choices=["-", "*", "+"],
        default=None,
        help="Unordered list marker (default: -)",
    )
    render_group.add_argument(
        "--code-block-style",
        choices=["fenced", "indented"],
        default=None,
        help="Code block syntax (default: fenced)",
    )
    render_group.add_argument(
        "--no-metadata",
        action="store_true",
        help="Output the body only, without title and metadata",
    )
    render_group.add_argument(
        "--frontmatter",
        action="store_true",
        help="Put metadata in YAML frontmatter instead of a Markdown block",
    )

    # Network settings
    network_group = parser.add_argument_group("network settings")
    network_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Fetch timeout in seconds (default: 30)",
    )
    network_group.add_argument(
        "--max-size",
        type=str,
        default=None,
        metavar="SIZE",
        help="Maximum page size, e.g. 5mb (default: 10mb)",
    )
    network_group.add_argument(
        "--user-agent",
        type=str,
        help="Custom User-Agent string",
    )
    network_group.add_argument(
        "--proxy",
        type=str,
        metavar="URL",
        help="Proxy URL",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print the result (or error) as JSON",
    )
    verbosity = output_group.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    verbosity.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress progress and status output",
    )

    return parser


def build_config(args: argparse.Namespace) -> PagemarkConfig:
    """
    Merge the config file (if any) with command-line overrides.

    Raises:
        ValidationError: Invalid option values
    """
    base = PagemarkConfig.from_yaml_file(args.config) if args.config else PagemarkConfig()
    data: dict[str, Any] = base.model_dump()

    network = data["network"]
    if args.timeout is not None:
        network["timeout"] = args.timeout
    if args.max_size is not None:
        network["max_content_size"] = args.max_size
    if args.user_agent:
        network["user_agent"] = args.user_agent
    if args.proxy:
        network["proxy"] = args.proxy

    options = data["options"]
    if args.heading_style:
        options["heading_style"] = args.heading_style
    if args.bullet_marker:
        options["bullet_list_marker"] = args.bullet_marker
    if args.code_block_style:
        options["code_block_style"] = args.code_block_style
    if args.no_metadata:
        options["include_metadata"] = False
    if args.frontmatter:
        options["metadata_format"] = "frontmatter"

    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return PagemarkConfig.model_validate(data)


def _output_path(target: Path, result: ConversionResult) -> Path:
    if target.is_dir() or str(target).endswith(("/", "\\")):
        return target / generate_filename(result.extraction.title, result.url)
    return target


async def _convert(args: argparse.Namespace, config: PagemarkConfig, console: Console) -> ConversionResult:
    converter = Converter(config)
    if args.quiet:
        return await converter.convert(args.url)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Starting...", total=None)

        def on_event(event: ConversionEvent) -> None:
            if event.type == EventType.STATE_CHANGED and event.state in _STATE_DESCRIPTIONS:
                progress.update(task, description=_STATE_DESCRIPTIONS[event.state])
            elif event.type == EventType.FETCH_COMPLETED:
                progress.update(task, description=f"[green]Fetched {event.bytes_downloaded} bytes")

        return await converter.convert(args.url, emit=on_event)


def run_converter(args: argparse.Namespace) -> int:
    """Run a conversion with given arguments."""
    console = Console(stderr=True)

    try:
        config = build_config(args)
    except ImportError:
        console.print("[red]Configuration error:[/red] YAML config files require pyyaml (pip install pagemark[yaml])")
        return EXIT_INPUT_ERROR
    except (ValidationError, OSError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return EXIT_INPUT_ERROR

    setup_logging(config.log_level, config.log_file)

    try:
        result = asyncio.run(_convert(args, config, console))
    except PagemarkError as e:
        if args.json:
            print(json.dumps(e.to_payload(), ensure_ascii=False))
        else:
            console.print(f"[red]Error:[/red] {escape(e.to_payload()['error'])}")
        if args.verbose and e.__cause__ is not None:
            console.print_exception()
        return EXIT_INPUT_ERROR if e.category == ErrorCategory.INPUT else EXIT_FAILURE

    if args.json:
        text = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    else:
        text = result.markdown

    if args.output is None:
        sys.stdout.write(text + "\n")
        return EXIT_OK

    path = _output_path(args.output, result)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error:[/red] Could not write {path}: {escape(str(e))}")
        return EXIT_FAILURE

    if not args.quiet:
        console.print(f"[green]Saved[/green] {path}")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_converter(args)


if __name__ == "__main__":
    sys.exit(main())
