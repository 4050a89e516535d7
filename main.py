"""CLI entry point for the GitHub candidate analyzer."""

import argparse
import asyncio
import json
import logging
import sys

from src.api.rate_limiter import InMemoryRateLimiter
from src.core.config import Settings
from src.github.client import GitHubClient
from src.llm import get_provider
from src.pipeline.orchestrator import AnalysisOrchestrator

DEFAULT_CONFIG = "config/settings.yaml"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="GitHub candidate analyzer - score GitHub activity against a job role",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- serve subcommand (default) ---
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG}, optional)",
    )
    serve_parser.add_argument("--host", help="Bind host (overrides config)")
    serve_parser.add_argument("--port", type=int, help="Bind port (overrides config)")
    serve_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # --- analyze subcommand ---
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze one GitHub user from the terminal and print the JSON verdict",
    )
    analyze_parser.add_argument("--username", required=True, help="GitHub username")
    analyze_parser.add_argument("--job-title", required=True, help="Job title")
    analyze_parser.add_argument(
        "--required-skills",
        required=True,
        help="Comma-separated required skills",
    )
    analyze_parser.add_argument(
        "--nice-to-have-skills",
        default="",
        help="Comma-separated nice-to-have skills",
    )
    analyze_parser.add_argument(
        "--seniority",
        required=True,
        choices=["junior", "mid", "senior"],
        help="Role seniority",
    )
    analyze_parser.add_argument(
        "--focus",
        required=True,
        choices=["frontend", "backend", "fullstack", "data", "infra"],
        help="Role focus area",
    )
    analyze_parser.add_argument(
        "--include-all-commits",
        action="store_true",
        help="Count all-time commits via commit search instead of the last year",
    )
    analyze_parser.add_argument("--model", help="Scoring model (default from config)")
    analyze_parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG}, optional)",
    )
    analyze_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args(argv)

    # Default to serve when no subcommand given
    if args.command is None:
        args = parser.parse_args(["serve", *(argv or [])])

    return args


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def cmd_serve(args: argparse.Namespace, settings: Settings) -> None:
    """Handle serve subcommand."""
    import uvicorn

    from src.api.app import create_app

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    print(f"Serving on http://{host}:{port}/api/analyze")
    uvicorn.run(create_app(settings), host=host, port=port)


def build_query(args: argparse.Namespace) -> dict[str, str]:
    query = {
        "username": args.username,
        "job_title": args.job_title,
        "required_skills": args.required_skills,
        "nice_to_have_skills": args.nice_to_have_skills,
        "seniority": args.seniority,
        "focus": args.focus,
        "include_all_commits": "true" if args.include_all_commits else "false",
    }
    if args.model:
        query["openai_model"] = args.model
    return query


async def cmd_analyze(args: argparse.Namespace, settings: Settings) -> int:
    """Handle analyze subcommand. Returns the process exit code."""
    orchestrator = AnalysisOrchestrator(
        settings,
        InMemoryRateLimiter(max_requests=1, window_seconds=settings.rate_limit.window_seconds),
        GitHubClient(settings.github),
        get_provider(settings.scoring.provider),
    )
    response = await orchestrator.handle(build_query(args), headers={}, peer="cli")
    if response.status != 200:
        print(f"Error ({response.status}): {response.body.get('error')}", file=sys.stderr)
        return 1
    print(json.dumps(response.body, indent=2))
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.load(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "analyze":
        sys.exit(asyncio.run(cmd_analyze(args, settings)))
    else:
        cmd_serve(args, settings)


if __name__ == "__main__":
    main()
