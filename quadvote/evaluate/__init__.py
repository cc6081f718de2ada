'''Evaluate the results of quadratic voting events.

There are two decision frameworks - selections and distributions.
In *binary selections*, each option is either selected or not selected,
according to a threshold on its aggregated votes; see :mod:`binary` and the
threshold selectors in :mod:`threshold`.
In *proportional distributions*, a resource pool is divided among the
options proportionally to their aggregated votes; see :mod:`proportional`.

All evaluators accept aggregated quadratic votes, as produced by
:class:`quadvote.convert.VoteTotals`, together with the options of the
event. None of the evaluators validate the votes; use
:class:`quadvote.vote.AllocationValidator` for that before they are stored.
'''

from quadvote.evaluate.core import *    # noqa
