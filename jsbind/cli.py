from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, TextIO

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .codegen import GeneratorConfig, generate_bindings, load_config
from .codegen.core.config import ConfigError, validate_config
from .codegen.core.errors import BindingError
from .logging_config import get_logger
from .utils import SignatureLoaderError, load_signature

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BINDING_ERROR = 2


class CLIHandler:
    """Handle command-line operations for binding generation."""

    def __init__(self, console: Console | None = None, stdout: TextIO | None = None) -> None:
        """Initialize CLI handler.

        Args:
            console: Console for diagnostics; defaults to stderr.
            stdout: Stream receiving generated code when no output file is given.
        """
        self.console = console or Console(stderr=True)
        self.stdout = stdout or sys.stdout
        logger.debug("CLIHandler initialized")

    def build_config(self, args: Any) -> GeneratorConfig:
        """Build configuration from a config file and CLI overrides.

        Raises:
            ConfigError: If the configuration file cannot be used.
        """
        overrides: dict[str, Any] = {}
        if getattr(args, "runtime_module", None):
            overrides["runtime_module"] = args.runtime_module
        if getattr(args, "no_comments", False):
            overrides["add_comments"] = False
        if getattr(args, "output", None):
            overrides["output_file"] = args.output
        return load_config(custom_config=overrides, config_file=getattr(args, "config", None))

    def run(self, args: Any) -> int:
        """Generate bindings for ``args.signature``.

        Returns:
            Exit code: 0 on success, 1 on I/O or configuration errors,
            2 when the signature is rejected.
        """
        try:
            config = self.build_config(args)
        except ConfigError as e:
            self.console.print(f"[red]✗ Configuration error:[/red] {escape(str(e))}")
            return EXIT_FAILURE

        for warning in validate_config(config):
            self.console.print(f"[yellow]⚠️  {escape(warning)}[/yellow]")

        try:
            source, text = load_signature(args.signature)
        except SignatureLoaderError as e:
            self.console.print(f"[red]✗[/red] {escape(str(e))}")
            return EXIT_FAILURE

        logger.info("Generating bindings for %s", source)
        result = generate_bindings(
            text, config, filename=source, fragment=getattr(args, "fragment", False)
        )

        if not result.success:
            self.console.print(result.error_message, markup=False, highlight=False, soft_wrap=True)
            if isinstance(result.exception, BindingError):
                return EXIT_BINDING_ERROR
            return EXIT_FAILURE

        if config.output_file:
            output_path = Path(config.output_file)
            try:
                output_path.write_text(result.code, encoding="utf-8")
            except OSError as e:
                self.console.print(f"[red]✗ Failed to write to {output_path}:[/red] {escape(str(e))}")
                return EXIT_FAILURE
            self.console.print(f"[green]✓[/green] Bindings saved to [cyan]{output_path}[/cyan]")
        else:
            self.stdout.write(result.code)

        if getattr(args, "verbose", False):
            self._print_metadata(result.metadata)

        self._print_warnings(result.warnings)
        return EXIT_OK

    def _print_metadata(self, metadata: dict[str, Any]) -> None:
        table = Table(
            title="📊 Generation Metadata",
            box=box.SIMPLE,
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Property", style="bold")
        table.add_column("Value", style="green")

        for key, value in metadata.items():
            if isinstance(value, dict):
                value = ", ".join(f"{k}: {v}" for k, v in value.items()) or "-"
            table.add_row(key.replace("_", " ").title(), str(value))

        self.console.print()
        self.console.print(table)

    def _print_warnings(self, warnings: list[str]) -> None:
        if not warnings:
            return
        self.console.print("\n[yellow]⚠️  Warnings:[/yellow]")
        for warning in warnings:
            self.console.print(f"  [yellow]•[/yellow] {escape(warning)}", highlight=False)
        self.console.print()
