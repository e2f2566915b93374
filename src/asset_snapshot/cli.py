"""asset-snapshot CLI: export a snapshot from a host, inspect an exported one."""

import argparse
import importlib
import json
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Any


def load_host(host_ref: str) -> Any:
    """Import ``MODULE:ATTR`` and return the host it names.

    A callable attribute is treated as a factory and called with no
    arguments.
    """
    module_name, sep, attr = host_ref.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Host must be given as MODULE:ATTR, got {host_ref!r}")
    module = importlib.import_module(module_name)
    target = module
    for part in attr.split("."):
        target = getattr(target, part)
    return target() if callable(target) else target


def _configure_logging(args) -> None:
    if args.quiet:
        level = logging.ERROR
    elif getattr(args, "verbose", False):
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main():
    """Main CLI entry point for asset-snapshot commands."""
    try:
        package_version = get_version("asset-snapshot")
    except PackageNotFoundError:
        package_version = "dev"

    parser = argparse.ArgumentParser(
        prog="asset-snapshot",
        description="Asset snapshot: schema annotations and reference indexes for editor tooling"
    )
    parser.add_argument("--version", action="version", version=f"asset-snapshot {package_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Run one export against a host",
        parents=[parent_parser]
    )
    export_parser.add_argument(
        "--host",
        required=True,
        help="Host factory as MODULE:ATTR"
    )
    export_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings JSON (ExportPath)"
    )
    export_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output directory (overrides settings and the host data directory)"
    )

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Summarize an exported snapshot",
        parents=[parent_parser]
    )
    show_parser.add_argument(
        "--root",
        type=Path,
        required=True,
        help="Snapshot directory"
    )

    # lookup command
    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Print the semantic annotation of one property",
        parents=[parent_parser]
    )
    lookup_parser.add_argument(
        "--root",
        type=Path,
        required=True,
        help="Snapshot directory"
    )
    lookup_parser.add_argument(
        "--property",
        dest="property_key",
        required=True,
        help="Property key, e.g. BlockMaskAsset.json#/properties/ExportAs"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _configure_logging(args)

    if args.command == "export":
        from asset_snapshot.api import export_snapshot
        from asset_snapshot.codes import ExportStatus
        from asset_snapshot.config import SettingsError, load_settings, resolve_output_directory

        try:
            host = load_host(args.host)
            settings = load_settings(args.config)
        except (ImportError, AttributeError, ValueError, SettingsError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        output_directory = args.out or resolve_output_directory(settings, host.data_directory)
        result = export_snapshot(host, output_directory)
        if result.status == ExportStatus.FAILED:
            print(f"Error: export failed at {result.stage}: {result.error}", file=sys.stderr)
            sys.exit(1)
        if not args.quiet:
            if result.status == ExportStatus.SKIPPED:
                print(f"[OK] Snapshot already up to date (version={result.version})")
            else:
                print("[OK] Export complete")
                print(f"  Output: {result.output_directory}")
                print(f"  Version: {result.version}")
                print(f"  Schemas: {result.schema_count}")
                print(f"  Index shards: {result.shard_count}")
        sys.exit(0)
    elif args.command == "show":
        from asset_snapshot._internal.io.snapshot_reader import SnapshotReadError, load_snapshot

        try:
            view = load_snapshot(args.root)
        except SnapshotReadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if not args.quiet:
            print(f"Version: {view.version or 'unknown'}")
            print(f"Generated at: {view.generated_at or '-'}")
            print(f"Schemas: {len(view.schemas)}")
            print(f"Annotated properties: {len(view.annotated_keys())}")
            for kind, count in view.shard_counts().items():
                print(f"  {kind}: {count}")
        sys.exit(0)
    elif args.command == "lookup":
        from asset_snapshot._internal.io.snapshot_reader import SnapshotReadError, load_snapshot

        try:
            view = load_snapshot(args.root)
        except SnapshotReadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        annotation = view.annotation(args.property_key)
        if annotation is None:
            print(f"Error: no annotation for {args.property_key}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(annotation, indent=2, ensure_ascii=False))
        sys.exit(0)


if __name__ == "__main__":
    main()
