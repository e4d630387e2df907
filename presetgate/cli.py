#!/usr/bin/env python3
"""Command-line interface for presetgate.

This module inspects a presetgate configuration without running a build:
- ``filter``: show the pre-filter a host dispatcher would receive
- ``select``: list the presets that apply to one file
- ``explain``: show, per preset and dimension, why it was kept or dropped

Example:
    >>> from presetgate.cli import parse_arguments
    >>> args = parse_arguments(["-c", "presetgate.yaml", "select", "src/App.tsx"])
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from presetgate.core.config import ConfigError, ConfigManager, ConfigSource
from presetgate.core.constants import PRESETGATE_VERSION, ConfigKey, ErrorCode
from presetgate.core.logging import Logger, set_global_logger
from presetgate.core.validators import ValidationError, validate_environment_name
from presetgate.options import options_from_config
from presetgate.plugin import PresetPlugin
from presetgate.report import ReportRenderer, pre_filter_data
from presetgate.rules.filters import FileContext
from presetgate.rules.presets import Environment, preset_label

DESCRIPTION = "presetgate - per-file preset selection for build pipelines"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If arguments fail validation
    """
    parser = argparse.ArgumentParser(
        prog="presetgate",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the pre-filter for the client environment
  presetgate -c presetgate.yaml --environment client filter

  # Same, as YAML
  presetgate -c presetgate.yaml filter --format yaml

  # Which presets apply to a file during "build"?
  presetgate -c presetgate.yaml --command build select src/App.tsx

  # Explain every decision for a file
  presetgate -c presetgate.yaml explain src/App.tsx --category tsx
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {PRESETGATE_VERSION}",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # Build options
    build_group = parser.add_argument_group("build options")

    build_group.add_argument(
        "--command",
        metavar="NAME",
        default="build",
        help="Build command passed to phase gates (default: build)",
    )

    build_group.add_argument(
        "--mode",
        metavar="NAME",
        default="production",
        help="Build mode passed to phase gates (default: production)",
    )

    build_group.add_argument(
        "--environment",
        metavar="NAME",
        help="Environment passed to environment gates (default: none)",
    )

    # Logging options
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="action", metavar="ACTION")
    subparsers.required = True

    filter_parser = subparsers.add_parser("filter", help="Show the pre-filter")
    filter_parser.add_argument(
        "--format",
        choices=["text", "yaml"],
        default="text",
        help="Output format (default: text)",
    )

    for name, help_text in (
        ("select", "List the presets that apply to a file"),
        ("explain", "Explain preset decisions for a file"),
    ):
        file_parser = subparsers.add_parser(name, help=help_text)
        file_parser.add_argument("path", help="File path (read for content when it exists)")
        file_parser.add_argument(
            "--category",
            metavar="TAG",
            help="Module type tag (default: file extension)",
        )
        file_parser.add_argument(
            "--content-file",
            metavar="FILE",
            help="Read content from this file instead of PATH",
        )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")

    if args.environment is not None:
        try:
            validate_environment_name(args.environment)
        except ValidationError as e:
            raise CLIError(str(e))

    content_file = getattr(args, "content_file", None)
    if content_file and not Path(content_file).is_file():
        raise CLIError(f"Content file does not exist: {content_file}")


def load_config_from_file(config_path: Optional[str]) -> ConfigManager:
    """
    Load layered configuration, optionally from a YAML file.

    Args:
        config_path: Path to configuration file, or None for defaults only

    Returns:
        ConfigManager with defaults, file and environment layers

    Raises:
        CLIError: If file cannot be loaded or parsed
    """
    try:
        return ConfigManager(config_file=config_path)
    except ConfigError as e:
        raise CLIError(f"Failed to load configuration: {e.message}")


def apply_args_to_config(args: argparse.Namespace, config: ConfigManager) -> None:
    """Record logging arguments in the CLI configuration layer."""
    if args.debug:
        config.set(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}.level", "DEBUG", ConfigSource.CLI_ARGS)
    if args.log_file:
        config.set(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}.file", args.log_file, ConfigSource.CLI_ARGS)


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging based on configuration.

    Args:
        config: Layered configuration

    Returns:
        Configured logger instance, installed as the global logger
    """
    log_level = config.get(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}.level", "INFO")
    log_file = config.get(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}.file")

    logger = Logger("presetgate", level=log_level)
    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))

    set_global_logger(logger)
    return logger


def build_context(args: argparse.Namespace) -> FileContext:
    """Build the FileContext for the ``select`` and ``explain`` actions."""
    path = Path(args.path)
    category = args.category or path.suffix.lstrip(".")

    content_source = Path(args.content_file) if args.content_file else path
    try:
        content = content_source.read_text(encoding="utf-8") if content_source.is_file() else ""
    except (OSError, UnicodeDecodeError) as e:
        raise CLIError(f"Failed to read content from {content_source}: {e}")

    return FileContext(path=args.path, category=category, content=content)


def build_plugin(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> PresetPlugin:
    """Build a plugin from configuration and run the phase gate."""
    plugin = PresetPlugin(options_from_config(config.get_section()), logger=logger)
    plugin.config_resolved({"command": args.command, "mode": args.mode})
    return plugin


def run_action(args: argparse.Namespace, plugin: PresetPlugin, out=None) -> int:
    """
    Run the requested action and write its output.

    Args:
        args: Parsed arguments namespace
        plugin: Plugin with the phase gate applied
        out: Output stream (defaults to stdout)

    Returns:
        Exit code
    """
    out = out or sys.stdout
    environment = Environment(args.environment) if args.environment else None
    state = plugin.environment_state(environment)
    renderer = ReportRenderer()

    if args.action == "filter":
        if args.format == "yaml":
            out.write(yaml.safe_dump(pre_filter_data(state.pre_filter, args.environment), sort_keys=False))
        else:
            out.write(renderer.pre_filter_report(state.pre_filter, args.environment))
        return ErrorCode.SUCCESS

    context = build_context(args)
    matched = state.accepts(context.path, context.category, context.content)

    if args.action == "select":
        if matched:
            for preset in state.converter.select(context):
                out.write(f"{preset_label(preset)}\n")
            for i, selected in enumerate(state.converter.select_overrides(context)):
                for preset in selected:
                    out.write(f"overrides[{i}]: {preset_label(preset)}\n")
        return ErrorCode.SUCCESS

    out.write(renderer.selection_report(context, state.options, matched, verbose=True))
    return ErrorCode.SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code
    """
    try:
        args = parse_arguments(argv)

        config = load_config_from_file(args.config)
        apply_args_to_config(args, config)

        logger = setup_logging(config)
        logger.debug("Configuration loaded", config=args.config or "-")

        plugin = build_plugin(args, config, logger)
        return int(run_action(args, plugin))

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except (ValidationError, ConfigError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return int(e.error_code)

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
