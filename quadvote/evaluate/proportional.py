'''Proportional distribution of a resource pool.

The pool is divided among the options strictly proportionally to their
aggregated quadratic votes (no rounding). Optionally, every option that got
any votes is guaranteed a minimum share of the pool; if raising the small
allocations to that minimum overdraws the pool, all allocations are scaled
down by the same factor so that they sum to the pool again.

If the minimum share times the number of options with votes exceeds the
pool, the scaling makes the allocations nearly uniform. That is the
expected outcome of such a configuration and is not corrected further.
'''

import logging
from typing import Any, Dict, List, Sequence
from numbers import Number

import quadvote.measure
import quadvote.persist
import quadvote.evaluate.core
from quadvote.evaluate.core import (
    Distribution, ProportionalDistributionConfig, ProportionalResults,
)
from quadvote.option import Option

logger = logging.getLogger(__name__)


class ProportionalDistribution(quadvote.evaluate.core.Distributor):
    '''Distribute a resource pool proportionally to the votes.

    :param config: The proportional distribution configuration.
    '''
    def __init__(self, config: ProportionalDistributionConfig):
        self.config = config

    def to_dict(self) -> Dict[str, Any]:
        return {
            'class': quadvote.persist.scoped_class_name(self),
            'config': self.config.to_dict(),
        }

    def evaluate(self,
                 votes: Dict[str, Number],
                 options: Sequence[Option],
                 seed: Any = None,
                 ) -> ProportionalResults:
        '''Distribute the pool among the options.

        :param votes: Aggregated votes for option IDs. Options not present
            have zero votes; votes for IDs not among the options are
            ignored.
        :param options: Options of the event.
        :param seed: Ignored; the distribution involves no tiebreaking.
        '''
        pool = self.config.total_pool_amount
        option_votes = quadvote.evaluate.core.option_votes(votes, options)
        total_votes = sum(option_votes.values())
        if total_votes == 0:
            logger.info('no votes cast, distributing nothing')
            return self._result([
                Distribution(opt.id, opt.title, 0, 0, 0) for opt in options
            ])
        distributions = []
        for opt in options:
            n_votes = option_votes[opt.id]
            fraction = n_votes / total_votes
            distributions.append(Distribution(
                option_id=opt.id,
                title=opt.title,
                votes=n_votes,
                allocation_amount=fraction * pool,
                allocation_percentage=fraction * 100,
            ))
        if self.config.minimum_allocation_enabled:
            self._apply_minimum(distributions)
        self._normalize(distributions)
        distributions.sort(key=lambda dist: dist.allocation_amount,
                           reverse=True)
        return self._result(distributions)

    def _apply_minimum(self, distributions: List[Distribution]) -> None:
        minimum = self.config.minimum_allocation
        for dist in distributions:
            if dist.votes > 0 and dist.allocation_amount < minimum:
                logger.debug('raising %s from %g to minimum %g',
                             dist.option_id, dist.allocation_amount, minimum)
                dist.allocation_amount = minimum

    def _normalize(self, distributions: List[Distribution]) -> None:
        pool = self.config.total_pool_amount
        allocated = sum(dist.allocation_amount for dist in distributions)
        if allocated <= pool:
            return
        factor = pool / allocated
        logger.info('allocations total %g over pool %g, scaling by %g',
                    allocated, pool, factor)
        for dist in distributions:
            dist.allocation_amount *= factor
            dist.allocation_percentage = dist.allocation_amount / pool * 100

    def _result(self, distributions: List[Distribution]) -> ProportionalResults:
        amounts = [dist.allocation_amount for dist in distributions]
        return ProportionalResults(
            resource_name=self.config.resource_name,
            resource_symbol=self.config.resource_symbol,
            total_pool=self.config.total_pool_amount,
            distributions=distributions,
            total_allocated=sum(amounts),
            gini_coefficient=quadvote.measure.gini(amounts),
        )
