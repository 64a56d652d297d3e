#!/usr/bin/env python3
"""
CLI for the Test Run Notifier

Usage:
    python run.py --results results.json                   # Replay a results file and notify
    python run.py --results results.json --only-on-failure # Notify only if something failed
    python run.py --check-config                           # Show resolved configuration
    python run.py --send-test                              # Post a connectivity message
    python run.py --config config/notifications.yaml --check-config
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from src import __version__
from src.reporters import DeliveryStatus, TestRunReporter, default_channels
from src.shared.config import ReporterConfig, resolve_ci_url
from src.shared.exceptions import ConfigurationError, DeliveryError
from src.shared.logging_config import setup_logging
from src.shared.results_file import load_results


def setup_parser() -> argparse.ArgumentParser:
    """Setup command line argument parser"""
    parser = argparse.ArgumentParser(
        description="Send test run summaries to Slack and Microsoft Teams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    action_group = parser.add_mutually_exclusive_group(required=True)
    action_group.add_argument(
        '--results',
        type=str,
        metavar='FILE',
        help='JSON results file to replay through the reporter'
    )
    action_group.add_argument(
        '--check-config',
        action='store_true',
        help='Print the resolved configuration (webhook URLs redacted) and exit'
    )
    action_group.add_argument(
        '--send-test',
        action='store_true',
        help='Send a one-line test message to every configured channel'
    )

    parser.add_argument(
        '--config',
        type=str,
        metavar='FILE',
        help='YAML configuration file (environment variables are used otherwise)'
    )
    parser.add_argument('--slack-webhook-url', type=str, help='Slack incoming webhook URL')
    parser.add_argument('--teams-webhook-url', type=str, help='Teams incoming webhook URL')
    parser.add_argument('--environment', type=str, help='Environment label')
    parser.add_argument('--project-name', type=str, help='Project name')
    parser.add_argument(
        '--only-on-failure',
        action='store_true',
        default=None,
        help='Only notify when at least one test failed'
    )
    parser.add_argument(
        '--max-failures',
        type=int,
        help='Number of failures detailed in the message (default: 5)'
    )
    parser.add_argument('--ci-url', type=str, help='Link to the full CI report')
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Exit with status 1 when a channel could not be notified'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default='logs/reporter.log',
        help='Path to log file (default: logs/reporter.log)'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def load_config(args: argparse.Namespace) -> ReporterConfig:
    """Resolve configuration: YAML file or environment, then CLI overrides.

    Raises:
        ConfigurationError: If any source holds an invalid value
    """
    if args.config:
        base = ReporterConfig.from_yaml(args.config)
        base = base.merged(ci_url=resolve_ci_url(base.ci_url))
    else:
        base = ReporterConfig.from_env()
    return base.merged(
        slack_webhook_url=args.slack_webhook_url,
        teams_webhook_url=args.teams_webhook_url,
        environment=args.environment,
        project_name=args.project_name,
        only_on_failure=args.only_on_failure,
        max_failures_to_show=args.max_failures,
        ci_url=args.ci_url,
    )


def check_config(config: ReporterConfig) -> int:
    """Print resolved configuration and webhook URL verdicts."""
    print(json.dumps(config.redacted(), indent=2))
    for channel, url in default_channels(config):
        if not url:
            print(f"{channel.name}: not configured")
        elif channel.validate_webhook_url(url):
            print(f"{channel.name}: webhook URL looks valid")
        else:
            print(f"{channel.name}: webhook URL does not look like a {channel.name} webhook")
    return 0


def send_test(config: ReporterConfig) -> int:
    """Post a connectivity message to every configured channel."""
    targets = [(channel, url) for channel, url in default_channels(config) if url]
    if not targets:
        print("No webhook URLs configured")
        return 1

    exit_code = 0
    for channel, url in targets:
        try:
            channel.send(url, channel.build_text_message("Test run notifier: connectivity check"))
            print(f"{channel.name}: message delivered")
        except DeliveryError as e:
            print(f"{channel.name}: delivery failed ({e})")
            exit_code = 1
    return exit_code


def replay_results(config: ReporterConfig, results_path: str, strict: bool = False) -> int:
    """Feed a results file through the reporter lifecycle."""
    try:
        results = load_results(results_path)
    except (OSError, ValueError) as e:
        print(f"Could not read results file: {e}")
        return 1

    reporter = TestRunReporter(config)
    reporter.on_begin(total_tests=len(results.outcomes), start_time=results.start_time)
    for outcome in results.outcomes:
        reporter.on_test_end(outcome)
    deliveries = reporter.on_end(end_time=results.end_time)

    failed_channels: List[str] = [
        name for name, outcome in deliveries.items()
        if outcome.status is DeliveryStatus.FAILED
    ]
    if strict and failed_channels:
        print(f"Notification failed for: {', '.join(failed_channels)}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = setup_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_file, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1

    if args.check_config:
        return check_config(config)
    if args.send_test:
        return send_test(config)
    return replay_results(config, args.results, strict=args.strict)


if __name__ == '__main__':
    sys.exit(main())
