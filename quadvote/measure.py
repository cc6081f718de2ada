"""Measure inequality of distributions and participation in events.

The Gini coefficient [#gini]_ expresses how unequally a resource pool ended
up distributed among the options. It ranges from zero (every option got the
same amount) towards one (a single option got everything); for *n* options
its maximum is (n-1)/n.

The participation statistics summarize the votes cast in an event without
evaluating them; they describe the voters rather than the options. The
participation timeline shows when the votes came in.

.. [#gini] "Gini coefficient", Wikipedia.
    https://en.wikipedia.org/wiki/Gini_coefficient
"""

import datetime
from typing import Any, Dict, Iterable, List, Sequence
from numbers import Number

import quadvote.convert
from quadvote.option import Option, Vote


def gini(values: Iterable[Number]) -> float:
    """Compute the Gini coefficient of a set of non-negative values.

    Uses the formula on values sorted in ascending order, with *i* indexed
    from one::

        G = 2 * sum(i * value_i) / (n * sum(value)) - (n + 1) / n

    :param values: Non-negative amounts, e.g. allocations of a pool.
    :returns: The coefficient; zero if there are no values or all are zero.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return 0
    total = sum(ordered)
    if total == 0:
        return 0
    weighted = sum((i + 1) * value for i, value in enumerate(ordered))
    return (2 * weighted) / (n * total) - (n + 1) / n


def voting_stats(votes: Sequence[Vote]) -> Dict[str, Number]:
    """Summarize the credit usage of the votes cast in an event.

    :param votes: The votes.
    :returns: A dictionary with the number of votes (``total_votes``),
        distinct voter identities (``unique_voters``) and the mean,
        maximum and minimum credits used per vote. All zero if there are
        no votes.
    """
    if not votes:
        return {
            'total_votes': 0,
            'unique_voters': 0,
            'avg_credits_used': 0,
            'max_credits_used': 0,
            'min_credits_used': 0,
        }
    credits_used = [vote.total_credits_used or 0 for vote in votes]
    return {
        'total_votes': len(votes),
        'unique_voters': len({vote.invite_code for vote in votes}),
        'avg_credits_used': sum(credits_used) / len(votes),
        'max_credits_used': max(credits_used),
        'min_credits_used': min(credits_used),
    }


def option_performance(options: Sequence[Option],
                       votes: Sequence[Vote],
                       ) -> List[Dict[str, Any]]:
    """Summarize the support of every option.

    :param options: Options of the event.
    :param votes: The votes.
    :returns: A list with an entry per option giving the total credits
        allocated to it, the number of voters who allocated any credits to
        it and its aggregated quadratic votes. The quadratic votes are the
        sum of the square roots of the individual allocations, the same
        total the options are evaluated on, not the square root of the
        total credits (which would be 5 instead of 7 for allocations of 16
        and 9 credits).
    """
    totals = quadvote.convert.aggregate_votes(votes)
    performance = []
    for opt in options:
        allocated = [vote.allocations.get(opt.id, 0) for vote in votes]
        performance.append({
            'option_id': opt.id,
            'title': opt.title,
            'total_credits': sum(allocated),
            'vote_count': sum(1 for credits in allocated if credits > 0),
            'quadratic_votes': totals.get(opt.id, 0),
        })
    return performance


def participation_timeline(votes: Iterable[Vote]) -> List[Dict[str, Any]]:
    """Count the votes and credits submitted in every hour of an event.

    Votes are assigned to the hour of their ``submitted_at`` time, which is
    converted to UTC if it is timezone-aware; votes without it are skipped.
    Hours in which no vote was submitted are not listed.

    :param votes: The votes.
    :returns: A list of dictionaries with the start of the hour (``hour``),
        the number of votes submitted in it (``vote_count``) and the credits
        they used (``total_credits``), in chronological order.
    """
    hourly = {}
    for vote in votes:
        if vote.submitted_at is None:
            continue
        submitted = vote.submitted_at
        if submitted.tzinfo is not None:
            submitted = submitted.astimezone(datetime.timezone.utc)
        hour = submitted.replace(minute=0, second=0, microsecond=0)
        counts = hourly.setdefault(hour, [0, 0])
        counts[0] += 1
        counts[1] += vote.total_credits_used or 0
    return [
        {'hour': hour, 'vote_count': count, 'total_credits': credits}
        for hour, (count, credits) in sorted(hourly.items())
    ]
