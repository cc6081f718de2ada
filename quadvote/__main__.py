"""A commandline tool for quick evaluation of quadratic voting events.

Reads a JSON snapshot of a single event with its options and votes and
shows the results under the event's decision framework.
"""

import argparse
import datetime
import io
import json
import logging
import sys
import warnings
from typing import List, Optional, Sequence

import quadvote.io.snapshot
import quadvote.measure
import quadvote.results
from quadvote.evaluate.core import ConfigError, BinaryResults
from quadvote.io.core import ParseError
from quadvote.option import Event
from quadvote.results import EventResults
from quadvote.store import EventNotFoundError, EventStore
from quadvote.system import DecisionFramework


def timestamp_argument(value: str) -> datetime.datetime:
    try:
        return quadvote.io.snapshot.parse_timestamp(value)
    except ParseError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


argparser = argparse.ArgumentParser(
    prog='quadvote',
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the event snapshot from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the event snapshot from standard input',
)
argparser.add_argument(
    '--json',
    dest='as_json',
    action='store_true',
    help='print the results as JSON instead of a table',
)
argparser.add_argument(
    '--now',
    type=timestamp_argument,
    help=(
        'evaluate as of this ISO 8601 time, which decides whether the'
        ' results are final; default (None) is the current time'
    ),
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all evaluator log messages and other info',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any evaluator log messages or other info',
)

HANDLED_ERRORS = (ConfigError, EventNotFoundError, ParseError)


def main(input_file: io.TextIOBase,
         use_stdin: bool = False,
         as_json: bool = False,
         now: Optional[datetime.datetime] = None,
         verbose: bool = False,
         quiet: bool = False,
         ) -> None:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    snapshot = quadvote.io.snapshot.load(input_file)
    store = snapshot.to_store()
    event_id = snapshot.event.id
    if not store.get_votes(event_id):
        warnings.warn('empty votes: all options will get zero votes')
    results = quadvote.results.get_results(store, event_id, now=now)
    if as_json:
        print(json.dumps(results.to_dict(), indent=2, ensure_ascii=False))
    else:
        show_results(store, results)


def show_results(store: EventStore, results: EventResults) -> None:
    """Show the results of an event as a table."""
    event = store.get_event(results.event_id)
    framework = DecisionFramework.coerce(event.decision_framework)
    print()
    print(f'Results of {event.title or event.id}'
          f' ({framework.framework_type})')
    show_vote_stats(store, event)
    print('Results are ' + (
        'final' if results.participation.is_final else 'preliminary'
    ))
    print()
    if isinstance(results.results, BinaryResults):
        show_selection(results.results)
    else:
        show_distribution(results.results, framework.config)


def show_vote_stats(store: EventStore, event: Event) -> None:
    stats = quadvote.measure.voting_stats(store.get_votes(event.id))
    print(f'Received {stats["total_votes"]} votes'
          f' for {len(store.get_options(event.id))} options')
    if stats['total_votes']:
        print(f'Credits used per vote: {stats["avg_credits_used"]:.1f}'
              f' on average (from {stats["min_credits_used"]}'
              f' to {stats["max_credits_used"]},'
              f' budget {event.credits_per_voter})')


def show_selection(results: BinaryResults) -> None:
    """Show the ranking of a binary selection."""
    ranking = results.ranking
    if not ranking:
        print('No options')
        return
    rows = [
        [str(res.rank), res.title, f'{res.votes:.4f}',
         'selected' if res.selected else '']
        for res in ranking
    ]
    _print_table(rows, rjust=(True, False, True, False))
    print()
    print(f'{results.selected_count} of {len(ranking)} options selected'
          f' ({results.threshold_mode})')
    if results.selection_margin is not None:
        print(f'Selection margin: {results.selection_margin:.4f} votes')


def show_distribution(results, config) -> None:
    """Show the allocations of a proportional distribution."""
    if not results.distributions:
        print('No options')
        return
    rows = [
        [dist.title, f'{dist.votes:.4f}',
         config.format_amount(dist.allocation_amount),
         f'{dist.allocation_percentage:.2f} %']
        for dist in results.distributions
    ]
    _print_table(rows, rjust=(False, True, True, True))
    print()
    print(f'{results.resource_name} allocated:'
          f' {config.format_amount(results.total_allocated)}'
          f' of {config.format_amount(results.total_pool)}')
    print(f'Gini coefficient: {results.gini_coefficient:.4f}')


def _print_table(rows: List[List[str]], rjust: Sequence[bool]) -> None:
    widths = [max(len(row[i]) for row in rows) for i in range(len(rjust))]
    for row in rows:
        print('  '.join(
            (cell.rjust if right else cell.ljust)(width)
            for cell, right, width in zip(row, rjust, widths)
        ).rstrip())


def run(argv: Optional[List[str]] = None) -> int:
    """Run the tool with the given arguments, returning the exit status."""
    args = argparser.parse_args(argv)
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
        return 1
    try:
        main(**vars(args))
    except HANDLED_ERRORS as e:
        print(f'error: {e}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(run())
