'''Binary selection: decide which options are selected.

The options are ranked by their aggregated quadratic votes, with ties
broken by the configured tiebreaker, and then the threshold selector for
the configured mode determines which of them pass. Every option is reported
with its rank and selection status.
'''

import logging
from typing import Any, Dict, Sequence
from numbers import Number

import quadvote.persist
import quadvote.util
import quadvote.evaluate.auxiliary
import quadvote.evaluate.core
import quadvote.evaluate.threshold
from quadvote.evaluate.core import (
    BinaryOptionResult, BinaryResults, BinarySelectionConfig, ConfigError,
    UnknownThresholdModeError,
)
from quadvote.option import Option

logger = logging.getLogger(__name__)


def threshold_selector(config: BinarySelectionConfig):
    '''Create the threshold selector for the configured mode.

    :raises ConfigError: If the field required by the mode is missing.
    :raises UnknownThresholdModeError: If the mode is unknown.
    '''
    mode = config.threshold_mode
    if mode == 'top_n':
        _require(config.top_n_count, 'top_n_count', mode)
        return quadvote.evaluate.threshold.TopN(config.top_n_count)
    elif mode == 'percentage':
        _require(config.percentage_threshold, 'percentage_threshold', mode)
        return quadvote.evaluate.threshold.PercentageOfMaximum(
            config.percentage_threshold
        )
    elif mode == 'absolute_votes':
        _require(
            config.absolute_vote_threshold, 'absolute_vote_threshold', mode
        )
        return quadvote.evaluate.threshold.AbsoluteThreshold(
            config.absolute_vote_threshold
        )
    elif mode == 'above_average':
        return quadvote.evaluate.threshold.AboveAverage()
    else:
        raise UnknownThresholdModeError(mode)


def _require(value: Any, field: str, mode: str) -> None:
    if value is None:
        raise ConfigError(f'{field} is required in {mode} mode', field=field)


class BinarySelection(quadvote.evaluate.core.Selector):
    '''Select options by a threshold on their aggregated votes.

    :param config: The binary selection configuration.
    '''
    def __init__(self, config: BinarySelectionConfig):
        self.config = config

    def to_dict(self) -> Dict[str, Any]:
        return {
            'class': quadvote.persist.scoped_class_name(self),
            'config': self.config.to_dict(),
        }

    def rank(self,
             votes: Dict[str, Number],
             options: Sequence[Option],
             seed: Any = None,
             ) -> Dict[str, Number]:
        '''Rank the options by votes, breaking ties by the tiebreaker.

        :param votes: Aggregated votes for option IDs.
        :param options: Options of the event.
        :param seed: Seed for the random tiebreaker, used if the
            configuration does not give its own.
        :returns: Votes of all options (zero if they got none), ordered
            from the best option to the worst.
        '''
        if self.config.tiebreak_seed is not None:
            seed = self.config.tiebreak_seed
        tiebreaker = quadvote.evaluate.auxiliary.construct(
            self.config.tiebreaker, seed
        )
        preordered = quadvote.evaluate.core.option_votes(
            votes, tiebreaker.order(options)
        )
        return dict(quadvote.util.sorted_votes(preordered))

    def evaluate(self,
                 votes: Dict[str, Number],
                 options: Sequence[Option],
                 seed: Any = None,
                 ) -> BinaryResults:
        '''Rank the options and determine which of them are selected.

        :param votes: Aggregated votes for option IDs. Options not present
            have zero votes.
        :param options: Options of the event.
        :param seed: Seed for the random tiebreaker, used if the
            configuration does not give its own.
        :raises ConfigError: If the field required by the mode is missing.
        :raises UnknownThresholdModeError: If the mode is unknown.
        '''
        selector = threshold_selector(self.config)
        ranked = self.rank(votes, options, seed=seed)
        selected_ids = frozenset(selector.evaluate(ranked))
        titles = {opt.id: opt.title for opt in options}
        selected, not_selected = [], []
        for i, (option_id, n_votes) in enumerate(ranked.items()):
            is_selected = option_id in selected_ids
            result = BinaryOptionResult(
                option_id=option_id,
                title=titles[option_id],
                votes=n_votes,
                rank=i + 1,
                selected=is_selected,
            )
            (selected if is_selected else not_selected).append(result)
        margin = None
        if self.config.threshold_mode == 'top_n':
            margin = selector.margin(ranked)
        logger.info('%s selection: %d of %d options selected',
                    self.config.threshold_mode, len(selected), len(ranked))
        return BinaryResults(
            threshold_mode=self.config.threshold_mode,
            selected_options=selected,
            not_selected_options=not_selected,
            selection_margin=margin,
        )
