"""CLI entrypoint for crawling one site from a seed URL."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from sitecrawl.crawler import (
    CrawlConfig,
    CrawlOrchestrator,
    CrawlPlan,
    CrawlResult,
    ExtractionResult,
    InvalidSeedUrlError,
    analyze_url_patterns,
    format_page_block,
    load_config,
)
from sitecrawl.crawler.constants import JSON_INDENT, RATE_LIMIT_STRATEGIES


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a site from its sitemap and extract clean text from the top-ranked pages.",
    )

    parser.add_argument(
        "--seed",
        type=str,
        default=None,
        help="Seed URL. Overrides metadata.seed from the config if provided.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config.",
    )
    parser.add_argument(
        "--output_dir",
        type=Path,
        default=None,
        help="Write result.json, consolidated.txt, and logs/crawl.log here.",
    )

    parser.add_argument("--max_pages", type=int, default=None)
    parser.add_argument(
        "--profile",
        type=str,
        default=None,
        help="Content profile: documentation, general, or a profile defined in the config.",
    )
    parser.add_argument("--rate_limit_ms", type=int, default=None)
    parser.add_argument(
        "--rate_limit_strategy",
        type=str,
        choices=list(RATE_LIMIT_STRATEGIES),
        default=None,
    )
    parser.add_argument("--timeout_seconds", type=float, default=None)
    parser.add_argument("--retries", type=int, default=None)
    parser.add_argument("--user_agent", type=str, default=None)

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--explain",
        action="store_true",
        help="Only discover, filter, and rank; print scores and URL patterns without fetching pages.",
    )
    mode.add_argument(
        "--single_page",
        action="store_true",
        help="Fetch and extract only the seed URL, skipping sitemap discovery and ranking.",
    )
    parser.add_argument(
        "--print_json",
        action="store_true",
        help="Print the full result JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    config = load_config(args.config) if args.config is not None else CrawlConfig()

    return config.with_overrides(
        max_pages=args.max_pages,
        profile=args.profile,
        rate_limit_ms=args.rate_limit_ms,
        rate_limit_strategy=args.rate_limit_strategy,
        timeout_seconds=args.timeout_seconds,
        retries=args.retries,
        user_agent=args.user_agent,
    )


def resolve_seed(args: argparse.Namespace, config: CrawlConfig) -> str:
    seed = args.seed or config.metadata.get("seed")
    if not seed:
        raise ValueError("No seed provided. Use --seed or set metadata.seed in the config.")
    return str(seed)


def setup_logging(verbose: bool, log_file: Path | None = None) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # urllib3 logs every connection at DEBUG; keep verbose crawler logs readable.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def write_outputs(result: CrawlResult, output_dir: Path) -> dict[str, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "result": output_dir / "result.json",
        "consolidated": output_dir / "consolidated.txt",
    }

    paths["result"].write_text(
        json.dumps(result.to_json(include_text=False), indent=JSON_INDENT, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    paths["consolidated"].write_text(result.consolidated_text, encoding="utf-8")
    return paths


def print_summary(result: CrawlResult, *, paths: dict[str, Path] | None, print_json: bool) -> None:
    summary = result.summary

    print("\n=== Crawl Complete ===")
    print(f"base_url: {summary.base_url}")
    if paths:
        for name, path in paths.items():
            print(f"{name}: {path}")
    if summary.cancelled:
        print("cancelled: True")

    print("\n--- Core Stats ---")
    for key in [
        "total_discovered",
        "total_filtered",
        "total_scraped",
        "total_successful",
        "total_content_size",
    ]:
        print(f"{key}: {getattr(summary, key)}")

    failed = [page for page in result.pages if not page.success]
    if failed:
        print("\n--- Failed Pages ---")
        for page in failed:
            kind = page.error_kind.value if page.error_kind else "unknown"
            print(f"[{kind}] {page.url}: {page.error_message}")

    if print_json:
        print("\n--- Full Result JSON ---")
        print(json.dumps(result.to_json(), indent=JSON_INDENT, ensure_ascii=False))


def write_page_outputs(page: ExtractionResult, output_dir: Path) -> dict[str, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "page": output_dir / "page.json",
        "consolidated": output_dir / "consolidated.txt",
    }

    paths["page"].write_text(
        json.dumps(page.to_json(), indent=JSON_INDENT, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    paths["consolidated"].write_text(format_page_block(page) if page.success else "", encoding="utf-8")
    return paths


def print_page_summary(page: ExtractionResult, *, paths: dict[str, Path] | None, print_json: bool) -> None:
    print("\n=== Page Scraped ===" if page.success else "\n=== Page Failed ===")
    print(f"url: {page.url}")
    if paths:
        for name, path in paths.items():
            print(f"{name}: {path}")

    if page.success:
        print(f"title: {page.title or 'Untitled'}")
        print(f"length: {page.length}")
        print(f"content_type: {page.metadata.content_type}")
        print(f"reading_time: {page.metadata.reading_time} min")
        if page.metadata.rendering_suspected:
            print(f"rendering_suspected: {', '.join(page.metadata.rendering_indicators)}")
    else:
        kind = page.error_kind.value if page.error_kind else "unknown"
        print(f"[{kind}] {page.error_message}")

    if print_json:
        print("\n--- Full Page JSON ---")
        print(json.dumps(page.to_json(), indent=JSON_INDENT, ensure_ascii=False))


def print_explain(orchestrator: CrawlOrchestrator, plan: CrawlPlan, *, print_json: bool) -> None:
    analysis = orchestrator.ranker.analyze(plan.filtered, plan.profile)
    patterns = analyze_url_patterns(plan.discovered)

    print("\n=== Crawl Plan ===")
    print(f"seed: {plan.seed_url}")
    print(f"profile: {plan.profile.name}")
    print(f"discovered: {len(plan.discovered)}")
    print(f"filtered: {len(plan.filtered)}")
    print(f"selected: {len(plan.ranked)}")

    print("\n--- Ranked URLs ---")
    for item in analysis.priorities[: plan.max_pages]:
        print(f"[{item.score:>4}] {item.url}")

    print("\n--- Priority Distribution ---")
    for bucket, count in analysis.distribution.items():
        print(f"{bucket}: {count}")

    print("\n--- Top URL Patterns ---")
    for segment, count in patterns:
        print(f"/{segment}/: {count}")

    if print_json:
        payload: dict[str, Any] = {
            "seed": plan.seed_url,
            "profile": plan.profile.name,
            "ranked_urls": list(plan.ranked),
            "analysis": analysis.to_json(),
            "patterns": [{"segment": segment, "count": count} for segment, count in patterns],
            "errors": [error.to_json() for error in plan.errors],
        }
        print("\n--- Full Plan JSON ---")
        print(json.dumps(payload, indent=JSON_INDENT, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    log_file = None if args.output_dir is None else args.output_dir / "logs" / "crawl.log"
    setup_logging(args.verbose, log_file)

    try:
        config = build_config(args)
        seed = resolve_seed(args, config)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    logging.info(
        "Starting crawl: seed=%s, profile=%s, max_pages=%d, rate_limit_ms=%d",
        seed,
        config.profile,
        config.max_pages,
        config.rate_limit_ms,
    )

    try:
        with CrawlOrchestrator(config) as orchestrator:
            if args.explain:
                plan = orchestrator.plan(seed)
                print_explain(orchestrator, plan, print_json=args.print_json)
                return 0
            if args.single_page:
                page = orchestrator.scrape_page(seed)
                paths = write_page_outputs(page, args.output_dir) if args.output_dir is not None else None
                print_page_summary(page, paths=paths, print_json=args.print_json)
                return 0 if page.success else 1
            result = orchestrator.run(seed)
    except InvalidSeedUrlError as exc:
        logging.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl failed")
        return 1

    paths = write_outputs(result, args.output_dir) if args.output_dir is not None else None
    print_summary(result, paths=paths, print_json=args.print_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
