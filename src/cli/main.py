"""
Main CLI entrypoint for the Tectonic stats verifier
Runs the stats pipeline verification cases and reports a pass/fail summary
"""

import os
import sys
import argparse
import json
from typing import Any, Dict, List, Optional
import time

from common.config import Config
from common.durations import format_duration, parse_duration
from common.logging import (
    setup_logging,
    log_cli_command,
    log_configuration,
    create_error_handler,
    LogCategory,
)
from stats_verifier.config.settings import HarnessSettings
from stats_verifier.suite import CaseResult, CaseStatus, VerificationSuite, suite_passed


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser"""

    parser = argparse.ArgumentParser(
        prog="stats-verify",
        description="Verify that the Tectonic stats pipeline delivered cluster data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check stats-emitter logs only
  stats-verify --timeout 2m

  # Also check the BigQuery analytics table
  stats-verify --bigqueryspec bigquery://my-project.stats.reports

  # JSON summary for automation
  stats-verify --output json --quiet

Environment Variables:
  KUBECONFIG                      Kubeconfig for the target cluster (default: in-cluster)
  GOOGLE_APPLICATION_CREDENTIALS  Service account key file for BigQuery
  STATS_BIGQUERY_SPEC             Default for --bigqueryspec
  STATS_TIMEOUT                   Default for --timeout (default: 1m)
  LOG_LEVEL                       Logging level: DEBUG, INFO, WARNING, ERROR (default: INFO)
  LOG_FILE                        Log file path (default: console only)
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    parser.add_argument(
        "--bigqueryspec",
        default=Config.STATS_BIGQUERY_SPEC,
        help="BigQuery spec (formatted as `bigquery://project.dataset.table`); "
             "empty skips the BigQuery check"
    )

    parser.add_argument(
        "--timeout",
        type=_duration,
        default=Config.STATS_TIMEOUT,
        help="Maximum time for each check, e.g. 1m or 90s (default: 1m)"
    )

    parser.add_argument(
        "--output", "-o",
        choices=["console", "json"],
        default="console",
        help="Summary format (default: console)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        help="Set logging level"
    )

    parser.add_argument(
        "--log-file",
        default=os.getenv("LOG_FILE"),
        help="Log to file instead of console"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress console logging"
    )

    return parser


def format_output(results: List[CaseResult], output_format: str,
                  timeout: float) -> str:
    """Format suite results for output"""
    if output_format == "json":
        return json.dumps(
            {
                "passed": suite_passed(results),
                "timeout": format_duration(timeout),
                "cases": [result.to_dict() for result in results],
            },
            indent=2,
        )

    markers = {
        CaseStatus.PASSED: "PASS",
        CaseStatus.FAILED: "FAIL",
        CaseStatus.SKIPPED: "SKIP",
    }
    lines = []
    for result in results:
        lines.append(
            f"--- {markers[result.status]}: {result.name} "
            f"({result.duration_ms / 1000:.2f}s, {result.attempts} attempts)"
        )
        lines.append(f"    {result.message}")
    lines.append("PASS" if suite_passed(results) else "FAIL")
    return "\n".join(lines)


def build_settings(args: argparse.Namespace) -> HarnessSettings:
    """Turn parsed arguments into harness settings"""
    return HarnessSettings.from_environment(
        bigquery_spec=args.bigqueryspec or "",
        timeout=args.timeout,
    )


def main(argv: Optional[List[str]] = None, suite_factory=VerificationSuite) -> int:
    """Main CLI entrypoint"""
    parser = create_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(
        log_level=args.log_level,
        log_file=args.log_file,
        console_output=not args.quiet
    )

    log_cli_command("stats-verify", vars(args))
    log_configuration(Config.as_dict())

    start_time = time.time()
    try:
        settings = build_settings(args)
        suite = suite_factory(settings, structured_logger=logger)
        results = suite.run()

    except KeyboardInterrupt:
        logger.warning("Verification interrupted by user", category=LogCategory.CLI)
        return 130  # Standard exit code for Ctrl+C

    except Exception as e:
        create_error_handler(logger).handle_system_error(
            "unknown", "stats-verify", e, {"bigqueryspec": args.bigqueryspec}
        )
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1

    print(format_output(results, args.output, settings.timeout))

    passed = suite_passed(results)
    summary: Dict[str, Any] = {
        "passed": passed,
        "cases": {result.name: result.status.value for result in results},
    }
    logger.info(
        "Verification completed",
        category=LogCategory.CLI,
        run_id=suite.run_id,
        duration_ms=int((time.time() - start_time) * 1000),
        metadata=summary
    )

    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
