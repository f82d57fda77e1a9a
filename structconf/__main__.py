"""
Entry point for structconf.

Usage:
    python -m structconf httpd.conf --from apache
    python -m structconf php.ini --from ini_commented --to php_array --to-option name=php_ini
    python -m structconf settings.xml --from xml --array
    python -m structconf --help
"""

import argparse
import json
import sys

from . import __version__
from .const import APP_NAME, APP_URL
from .container import ContainerError
from .document import ConfigDocument, ConfigError
from .drivers import DriverError
from .logging import LogConfig, get_logger, setup_logging

logger = get_logger("main")


def parse_option_pairs(pairs: list[str] | None) -> dict[str, object]:
    """
    Convert KEY=VALUE strings into an options mapping.

    "true"/"false" become booleans so flag options can be switched from
    the command line. Escaped \\n, \\r and \\t become control characters.
    """
    options: dict[str, object] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigError(f"Option must look like KEY=VALUE, got {pair!r}")
        lowered = value.lower()
        if lowered in ("true", "false"):
            options[key] = lowered == "true"
        else:
            options[key] = value.replace("\\n", "\n").replace("\\r", "\r").replace("\\t", "\t")
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Parse, convert and inspect structured configuration files",
        epilog=f"Documentation: {APP_URL}",
    )

    parser.add_argument("source", help="Configuration file to read")

    parser.add_argument(
        "-f", "--from",
        dest="source_format",
        required=True,
        metavar="FORMAT",
        help="Format of the source file",
    )

    parser.add_argument(
        "-t", "--to",
        dest="target_format",
        metavar="FORMAT",
        help="Format to render (default: same as --from)",
    )

    parser.add_argument(
        "-o", "--output",
        metavar="PATH",
        help="Write to PATH instead of printing",
    )

    parser.add_argument(
        "--option",
        action="append",
        metavar="KEY=VALUE",
        help="Option for the source driver (repeatable)",
    )

    parser.add_argument(
        "--to-option",
        action="append",
        metavar="KEY=VALUE",
        help="Option for the target driver (repeatable)",
    )

    parser.add_argument(
        "--array",
        action="store_true",
        help="Print the tree as JSON instead of rendering it",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging (INFO level)",
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging (DEBUG level)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only errors)",
    )

    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="Write logs to file",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    log_config = LogConfig()
    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"
    if args.no_color:
        log_config.console_colors = False
    if args.log_file:
        log_config.file_enabled = True
        log_config.file_path = args.log_file
    setup_logging(log_config)

    document = ConfigDocument()
    target_format = args.target_format or args.source_format

    try:
        source_options = parse_option_pairs(args.option)
        target_options = parse_option_pairs(args.to_option)
        if not args.target_format and not target_options:
            target_options = source_options

        document.parse(args.source, args.source_format, source_options)

        if args.array:
            output = json.dumps(document.to_array(), indent=2, ensure_ascii=False) + "\n"
            if args.output:
                with open(args.output, "w", encoding="utf-8") as fp:
                    fp.write(output)
            else:
                sys.stdout.write(output)
            return 0

        if args.output:
            document.write(args.output, target_format, target_options)
        else:
            sys.stdout.write(document.render(target_format, target_options))
        return 0

    except (ConfigError, DriverError, ContainerError) as e:
        logger.error(f"{e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
