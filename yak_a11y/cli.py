"""
Command-line entry point: check a URL and/or static HTML files.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .checker import AccessibilityChecker, CheckResult
from .config import CheckConfiguration, load_config, parse_frameworks
from .errors import describe_error
from .hooks import DevServerHook
from .reporter import print_report, write_json_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yak-a11y",
        description="Audit rendered pages and hydrated islands for accessibility violations",
    )
    parser.add_argument("--url", help="URL of the page to check (http or https)")
    parser.add_argument("--file", nargs="+", default=[], metavar="PATH", help="Static HTML file(s) to check")
    parser.add_argument("--verbose", action="store_true", help="Show documentation links and phase progress")
    parser.add_argument("--config", help="JSON file with check options")
    parser.add_argument("--dynamic", action="store_true", help="Simulate interactions and re-audit the mutated page")
    parser.add_argument("--route-changes", action="store_true", help="Also audit same-origin client-side routes")
    parser.add_argument("--no-hydration-wait", action="store_true", help="Do not wait for data-hydrated on <html>")
    parser.add_argument("--ajax-timeout", type=int, metavar="MS", help="Settle/network timeout in milliseconds")
    parser.add_argument("--islands", action="store_true", help="Audit each hydrated island in isolation")
    parser.add_argument("--frameworks", help="Comma-separated island frameworks (default: react,vue,svelte)")
    parser.add_argument("--no-auto-detect", action="store_true", help="Test the given frameworks even if not detected")
    parser.add_argument("--strict", action="store_true", help="Treat hydration and island failures as fatal")
    parser.add_argument("--json", metavar="PATH", help="Also write results as JSON")
    parser.add_argument("--watch", metavar="DIR", help="Re-check --url whenever files under DIR change")
    parser.add_argument("--fail-on-violations", action="store_true", help="Exit non-zero when violations are found")
    return parser


def configuration_from_args(args: argparse.Namespace) -> CheckConfiguration:
    config = load_config(args.config) if args.config else CheckConfiguration()
    config.verbose = config.verbose or args.verbose
    dynamic = config.dynamic_testing
    islands = config.island_testing
    if args.dynamic or args.route_changes:
        dynamic.enabled = True
    if args.route_changes:
        dynamic.route_changes = True
    if args.no_hydration_wait:
        dynamic.wait_for_hydration = False
    if args.ajax_timeout is not None:
        dynamic.ajax_timeout_ms = args.ajax_timeout
    if args.islands or args.frameworks:
        islands.enabled = True
        islands.test_islands = True
    if args.frameworks:
        islands.frameworks = parse_frameworks(args.frameworks)
    if args.no_auto_detect:
        islands.auto_detect = False
    if args.strict:
        dynamic.strict = True
        islands.strict = True
    return config


async def watch_async(checker: AccessibilityChecker, url: str, directory: str, config: CheckConfiguration) -> None:
    hook = DevServerHook(checker, url, config=config)
    await hook.on_server_setup()
    observer = hook.watch(directory)
    try:
        while True:
            await asyncio.sleep(1)
    finally:
        observer.stop()
        observer.join()


async def main_async(args: argparse.Namespace) -> List[CheckResult]:
    config = configuration_from_args(args)
    results: List[CheckResult] = []
    async with AccessibilityChecker() as checker:
        if args.watch:
            await watch_async(checker, args.url, args.watch, config)
            return results
        if args.url:
            result = await checker.check_url(args.url, config)
            print_report(result.report, config.verbose)
            results.append(result)
        for path in args.file:
            print(f"\n📄 {path}")
            result = await checker.check_static_html(path, config)
            print_report(result.report, config.verbose)
            results.append(result)
    for result in results:
        for note in result.notes:
            print(f"⚠️  {note}")
    if args.json:
        out = write_json_report(args.json, results)
        print(f"\nJSON report written to: {out}")
    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.file and not args.url:
        print("Please provide either a file path (--file) or URL (--url)", file=sys.stderr)
        return 1
    if args.watch and not args.url:
        print("--watch requires --url", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )

    try:
        results = asyncio.run(main_async(args))
    except KeyboardInterrupt:
        return 130
    except Exception as exc:
        print(describe_error(exc), file=sys.stderr)
        return 1

    if args.fail_on_violations and not all(r.passed for r in results):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
