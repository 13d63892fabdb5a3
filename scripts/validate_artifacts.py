#!/usr/bin/env python
from __future__ import annotations

import argparse

from manifest_pipeline.settings import load_settings
from manifest_pipeline.validate import run


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate the downloaded manifest artifacts")
    parser.add_argument("--config", help="settings YAML (default: config/pipeline.yaml when present)")
    parser.add_argument("--data-dir", help="directory holding the extracted store and run record")
    parser.add_argument("--fail-on-warning", action="store_true", default=False)
    args = parser.parse_args()

    settings = load_settings(args.config, data_dir=args.data_dir)
    raise SystemExit(run(settings, args.fail_on_warning))


if __name__ == "__main__":
    main()
