"""jakartaee-migration CLI: migrate a file or directory tree to jakarta.*."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path

from jakartaee_migration.kernel.profile import EESpecProfile

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser() -> argparse.ArgumentParser:
    # Get version for --version argument (handle PackageNotFoundError)
    try:
        tool_version = get_version("jakartaee-migration")
    except PackageNotFoundError:
        tool_version = "dev"

    parser = argparse.ArgumentParser(
        prog="jakartaee-migration",
        description="Migrate Java EE archives, classes and descriptors from javax.* to jakarta.*"
    )
    parser.add_argument("--version", action="version", version=f"jakartaee-migration {tool_version}")
    parser.add_argument(
        "--profile",
        type=lambda value: value.upper(),
        choices=[profile.value for profile in EESpecProfile],
        default=EESpecProfile.TOMCAT.value,
        help="Packages to migrate: TOMCAT (servlet container APIs) or EE (all of Java EE)"
    )
    parser.add_argument(
        "--log-level",
        type=lambda value: value.upper(),
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging verbosity"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parser.add_argument(
        "source",
        type=Path,
        help="File or directory to migrate"
    )
    parser.add_argument(
        "destination",
        type=Path,
        help="Where the migrated copy is written"
    )
    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    level = "WARNING" if args.quiet else args.log_level
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Lazy import: keep --help and --version free of the engine import
    from jakartaee_migration.api import migrate

    try:
        result = migrate(args.source, args.destination, profile=args.profile)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError:
        logging.getLogger(__name__).exception("Error while migrating %s", args.source)
        sys.exit(1)

    if not args.quiet:
        status = "OK" if result.ok else "FAILED"
        print(f"[{status}] Migration complete")
        print(f"  Source: {result.source}")
        print(f"  Destination: {result.destination}")
        print(f"  Profile: {result.profile.value}")
        print(f"  Artifacts: {result.artifacts}")
        print(f"  Elapsed: {result.elapsed_ms} ms")

    # Signal caller that migration failed
    if not result.ok:
        sys.exit(1)
