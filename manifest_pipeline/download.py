from __future__ import annotations

import argparse
import logging
import sys

from manifest_pipeline.common import getenv
from manifest_pipeline.errors import PipelineError
from manifest_pipeline.pipeline import run_download
from manifest_pipeline.settings import load_settings
from manifest_pipeline.stages import DownloadProgress


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def print_progress(update: DownloadProgress) -> None:
    if update.percent is None:
        sys.stdout.write(f"\rDownloaded {update.written_bytes:,} bytes")
    else:
        sys.stdout.write(
            f"\rProgress: {update.percent:.1f}% ({update.written_bytes:,}/{update.total_bytes:,} bytes)"
        )
    sys.stdout.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download and extract the content manifest.")
    parser.add_argument("--config", help="settings YAML (default: config/pipeline.yaml when present)")
    parser.add_argument("--data-dir", help="directory holding the extracted store and run record")
    parser.add_argument("--language", help="manifest language code, e.g. en")
    parser.add_argument("--no-progress", action="store_true", help="do not print download progress")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(args.config, data_dir=args.data_dir, language=args.language)
    except PipelineError as exc:
        print(f"{exc.stage} failed: {exc}", file=sys.stderr)
        return 1

    api_key = getenv(settings.api_key_env)
    if not api_key:
        print(f"Please set your API key in environment variable {settings.api_key_env}", file=sys.stderr)
        print(f"   Example: export {settings.api_key_env}=your_api_key_here", file=sys.stderr)
        return 1

    try:
        result = run_download(settings, api_key, progress=None if args.no_progress else print_progress)
    except PipelineError as exc:
        print(file=sys.stderr)
        print(f"{exc.stage} failed: {exc}", file=sys.stderr)
        return 1

    record = result.run_record
    print()
    print(f"Manifest version {record.version} ready at {record.db_path}")
    print(f"Found {len(record.tables)} tables:")
    for name in record.tables:
        print(f"  - {name}: {result.row_counts[name]:,} records")
    print(f"Manifest info saved to: {settings.run_record_path}")
    print("Next step: python -m manifest_pipeline.explore")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
