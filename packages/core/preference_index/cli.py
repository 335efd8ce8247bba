"""
Command-line interface for the match preference index.

Usage:
    python -m preference_index analyze --matches matches.csv
    python -m preference_index analyze --cutoff 0 --met-only -o report.md
    python -m preference_index baseline
    python -m preference_index classify east_asian,hispanic_latino
"""

import argparse
import logging
import sys

from .classifier import (
    classify,
    classify_hispanic_subrace,
    matching_rule,
    parse_ethnicity_names,
)
from .config import (
    DEFAULT_DEMOGRAPHICS_PATH,
    DEFAULT_HISPANIC_DEMOGRAPHICS_PATH,
    DEFAULT_MATCHES_PATH,
    AnalysisConfig,
)
from .exceptions import (
    BaselineError,
    ClassificationError,
    ConfigurationError,
    InputFileError,
)
from .filters import ProfileFilter
from .loaders import load_baseline
from .pipeline import run_analysis
from .report import ReportExporter, format_baseline, format_report


# Configure logging
def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


logger = logging.getLogger(__name__)


def cmd_analyze(args):
    """Run the full analysis and print the report."""
    setup_logging(verbose=args.verbose)

    try:
        config = AnalysisConfig.build(
            sample_cutoff=args.cutoff,
            matches_path=args.matches,
            demographics_path=args.demographics,
            hispanic_demographics_path=args.hispanic_demographics,
            profile_filter=ProfileFilter(
                matched_only=args.matched_only,
                met_only=args.met_only,
                convo_only=args.convo_only,
                specified_only=args.specified_only,
            ),
        )
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Sample cutoff: {config.sample_cutoff}")

    try:
        report = run_analysis(config)
    except BaselineError as e:
        logger.error(f"Cannot build population baseline: {e}")
        return 1
    except InputFileError as e:
        logger.error(str(e))
        return 1

    print(format_report(report, show_baseline=args.show_baseline))  # Keep for user-facing output

    if args.output:
        try:
            written = ReportExporter().export(report, args.output)
            logger.info(f"Report saved to {written}")
        except OSError as e:
            logger.error(f"Failed to write report: {e}")

    if report.skipped_count:
        logger.info(f"Completed with {report.skipped_count} skipped rows")
    return 0


def cmd_baseline(args):
    """Print the baseline distributions only."""
    setup_logging(verbose=args.verbose)

    try:
        baseline = load_baseline(args.demographics, args.hispanic_demographics)
    except BaselineError as e:
        logger.error(f"Cannot build population baseline: {e}")
        return 1

    print(format_baseline(baseline))
    return 0


def cmd_classify(args):
    """Classify an ethnicity flag list, for checking the precedence rules."""
    setup_logging(verbose=args.verbose)

    try:
        ethnicity = parse_ethnicity_names(args.ethnicities.split(","))
    except ValueError as e:
        logger.error(str(e))
        return 1

    flags = ", ".join(member.name.lower() for member in ethnicity.members()) or "(empty)"
    print(f"Ethnicity:  {flags}")

    try:
        race = classify(ethnicity)
        rule = matching_rule(ethnicity)
        print(f"Race:       {race.value} (rule: {rule.name})")
    except ClassificationError as e:
        print(f"Race:       unclassifiable ({e.reason.value})")

    if ethnicity.is_hispanic:
        try:
            print(f"Sub-race:   {classify_hispanic_subrace(ethnicity).value}")
        except ClassificationError as e:
            print(f"Sub-race:   unclassifiable ({e.reason.value})")

    return 0


def _add_baseline_args(parser):
    parser.add_argument('--demographics', type=str, default=str(DEFAULT_DEMOGRAPHICS_PATH),
                        help=f'General population CSV (default: {DEFAULT_DEMOGRAPHICS_PATH})')
    parser.add_argument('--hispanic-demographics', type=str,
                        default=str(DEFAULT_HISPANIC_DEMOGRAPHICS_PATH),
                        help=f'Hispanic population CSV (default: {DEFAULT_HISPANIC_DEMOGRAPHICS_PATH})')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='preference-index',
        description="Population-adjusted match preference index and conversation funnel"
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                       help='Enable verbose logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Compute the preference index and funnel')
    analyze_parser.add_argument('-m', '--matches', type=str, default=str(DEFAULT_MATCHES_PATH),
                                help=f'Match log CSV (default: {DEFAULT_MATCHES_PATH})')
    _add_baseline_args(analyze_parser)
    analyze_parser.add_argument('-c', '--cutoff', type=int, default=None,
                                help='Minimum matches before a race is scored '
                                     '(default: $PREFERENCE_INDEX_SAMPLE_CUTOFF or 2; 0 scores all)')
    analyze_parser.add_argument('--matched-only', action='store_true',
                                help='Only count profiles that matched')
    analyze_parser.add_argument('--met-only', action='store_true',
                                help='Only count profiles you met')
    analyze_parser.add_argument('--convo-only', action='store_true',
                                help='Only count profiles with a conversation')
    analyze_parser.add_argument('--specified-only', action='store_true',
                                help='Only count profiles that specified ethnicity')
    analyze_parser.add_argument('--show-baseline', action='store_true',
                                help='Include baseline weights in the report')
    analyze_parser.add_argument('-o', '--output', type=str, default=None,
                                help='Also save the report (.json or .md)')

    # Baseline command
    baseline_parser = subparsers.add_parser('baseline', help='Show the population baseline')
    _add_baseline_args(baseline_parser)

    # Classify command
    classify_parser = subparsers.add_parser('classify', help='Classify a set of ethnicity flags')
    classify_parser.add_argument('ethnicities', type=str,
                                 help='Comma-separated flags, e.g. east_asian,hispanic_latino')

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        'analyze': cmd_analyze,
        'baseline': cmd_baseline,
        'classify': cmd_classify,
    }

    return commands[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
