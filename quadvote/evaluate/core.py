'''General result evaluation machinery.

Contains the configuration errors, the configuration objects of both
decision frameworks, the records the evaluators produce and the abstract
evaluator base classes.

The configuration objects validate themselves on construction, so a
configuration that declares a threshold mode without the field that mode
requires never gets to an evaluator. The evaluators still reject unknown
modes at run time in case an object was modified after construction.
'''

from __future__ import annotations

import abc
import dataclasses
from typing import Any, Dict, List, Mapping, Optional, Sequence
from numbers import Number

import quadvote.util
from quadvote.option import Option
from quadvote.persist import simple_serialization

BINARY_SELECTION = 'binary_selection'
PROPORTIONAL_DISTRIBUTION = 'proportional_distribution'
FRAMEWORK_TYPES = (BINARY_SELECTION, PROPORTIONAL_DISTRIBUTION)

THRESHOLD_MODES = ('top_n', 'percentage', 'absolute_votes', 'above_average')
TIEBREAKERS = ('timestamp', 'random', 'alphabetical')

MAX_DECIMAL_PLACES = 8
DEFAULT_DECIMAL_PLACES = 2

# accepted by random.Random
SEED_TYPES = (int, float, str, bytes)


class ConfigError(ValueError):
    '''A decision framework configuration is invalid.

    :param message: Description of the problem.
    :param field: Name of the offending configuration field, if any.
    '''
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class UnknownThresholdModeError(ConfigError):
    '''A binary selection configuration declares an unknown threshold mode.

    :param mode: The unknown mode.
    '''
    def __init__(self, mode: Any):
        self.mode = mode
        super().__init__(
            f'unknown threshold mode: {mode!r}, must be one of '
            + ', '.join(THRESHOLD_MODES),
            field='threshold_mode',
        )


class UnknownFrameworkTypeError(ConfigError):
    '''An event declares an unknown decision framework type.

    :param framework_type: The unknown type.
    '''
    def __init__(self, framework_type: Any):
        self.framework_type = framework_type
        super().__init__(
            f'unknown framework type: {framework_type!r}, must be one of '
            + ', '.join(FRAMEWORK_TYPES),
            field='framework_type',
        )


def _require_positive(value: Any, field: str, mode: str) -> None:
    if value is None:
        raise ConfigError(f'{field} is required in {mode} mode', field=field)
    if isinstance(value, bool) or not isinstance(value, Number) or value <= 0:
        raise ConfigError(f'{field} must be positive, got {value!r}',
                          field=field)


def _config_kwargs(cls: type, data: Mapping[str, Any]) -> Dict[str, Any]:
    # drops unknown keys such as 'class' from the serialized form
    return {
        key: value for key, value in data.items()
        if key in cls.serialize_params
    }


@simple_serialization
class BinarySelectionConfig:
    '''Configuration of a binary selection decision.

    Every option is either selected or not, according to its aggregated
    votes and the threshold mode:

    -   ``top_n`` selects the ``top_n_count`` options with the most votes,
    -   ``percentage`` selects the options that got at least
        ``percentage_threshold`` percent of the votes of the best option,
    -   ``absolute_votes`` selects the options with at least
        ``absolute_vote_threshold`` votes,
    -   ``above_average`` selects the options with at least the mean number
        of votes.

    :param threshold_mode: One of the modes above.
    :param top_n_count: Number of options to select in ``top_n`` mode.
    :param percentage_threshold: Percentage of the maximum in
        ``percentage`` mode, in (0, 100].
    :param absolute_vote_threshold: Minimum number of votes in
        ``absolute_votes`` mode.
    :param tiebreaker: How to order options with equal votes:
        ``timestamp`` (earlier created first), ``alphabetical`` (by title) or
        ``random`` (seeded shuffle, see
        :class:`quadvote.evaluate.auxiliary.RandomTiebreaker`).
    :param tiebreak_seed: Seed for the ``random`` tiebreaker. If not given,
        the seed passed to the evaluator is used.
    :raises UnknownThresholdModeError: If the threshold mode is unknown.
    :raises ConfigError: If the field required by the mode is missing or
        not positive, or the tiebreaker is unknown.
    '''
    serialize_params = [
        'threshold_mode',
        'top_n_count',
        'percentage_threshold',
        'absolute_vote_threshold',
        'tiebreaker',
        'tiebreak_seed',
    ]

    def __init__(self,
                 threshold_mode: str,
                 top_n_count: Optional[int] = None,
                 percentage_threshold: Optional[Number] = None,
                 absolute_vote_threshold: Optional[Number] = None,
                 tiebreaker: str = 'timestamp',
                 tiebreak_seed: Any = None,
                 ):
        self.threshold_mode = threshold_mode
        self.top_n_count = top_n_count
        self.percentage_threshold = percentage_threshold
        self.absolute_vote_threshold = absolute_vote_threshold
        self.tiebreaker = tiebreaker
        self.tiebreak_seed = tiebreak_seed
        self.check()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BinarySelectionConfig:
        if 'threshold_mode' not in data:
            raise ConfigError('threshold_mode is required',
                              field='threshold_mode')
        return cls(**_config_kwargs(cls, data))

    def check(self) -> None:
        '''Check that the configuration is complete for its mode.

        :raises ConfigError: If it is not.
        '''
        mode = self.threshold_mode
        if mode == 'top_n':
            _require_positive(self.top_n_count, 'top_n_count', mode)
            if not quadvote.util.is_whole_number(self.top_n_count):
                raise ConfigError(
                    f'top_n_count must be an integer, got {self.top_n_count!r}',
                    field='top_n_count',
                )
        elif mode == 'percentage':
            _require_positive(
                self.percentage_threshold, 'percentage_threshold', mode
            )
            if self.percentage_threshold > 100:
                raise ConfigError(
                    'percentage_threshold must be at most 100, got '
                    f'{self.percentage_threshold!r}',
                    field='percentage_threshold',
                )
        elif mode == 'absolute_votes':
            _require_positive(
                self.absolute_vote_threshold, 'absolute_vote_threshold', mode
            )
        elif mode != 'above_average':
            raise UnknownThresholdModeError(mode)
        if self.tiebreaker not in TIEBREAKERS:
            raise ConfigError(
                f'unknown tiebreaker: {self.tiebreaker!r}, must be one of '
                + ', '.join(TIEBREAKERS),
                field='tiebreaker',
            )
        seed = self.tiebreak_seed
        if seed is not None and not isinstance(seed, SEED_TYPES):
            raise ConfigError(
                f'tiebreak_seed must be a number or a string, got {seed!r}',
                field='tiebreak_seed',
            )


@simple_serialization
class ProportionalDistributionConfig:
    '''Configuration of a proportional distribution of a resource pool.

    The pool is divided among the options proportionally to their
    aggregated votes, optionally guaranteeing every option that got any
    votes a minimum share of the pool.

    :param resource_name: Name of the distributed resource (e.g. Budget).
    :param resource_symbol: Symbol or unit of the resource (e.g. $).
    :param total_pool_amount: Amount of the resource to distribute.
    :param minimum_allocation_enabled: Whether to apply the minimum share.
    :param minimum_allocation_percentage: The minimum share as a
        percentage of the pool, in (0, 100]. Required if the minimum is
        enabled.
    :param decimal_places: Number of decimal places to display amounts
        with, 0 to 8. Computed amounts are never rounded.
    :raises ConfigError: If any field is missing or out of range.
    '''
    serialize_params = [
        'resource_name',
        'resource_symbol',
        'total_pool_amount',
        'minimum_allocation_enabled',
        'minimum_allocation_percentage',
        'decimal_places',
    ]

    def __init__(self,
                 resource_name: str,
                 resource_symbol: str,
                 total_pool_amount: Number,
                 minimum_allocation_enabled: bool = False,
                 minimum_allocation_percentage: Optional[Number] = None,
                 decimal_places: Optional[int] = None,
                 ):
        self.resource_name = resource_name
        self.resource_symbol = resource_symbol
        self.total_pool_amount = total_pool_amount
        self.minimum_allocation_enabled = bool(minimum_allocation_enabled)
        self.minimum_allocation_percentage = minimum_allocation_percentage
        self.decimal_places = decimal_places
        self.check()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]
                  ) -> ProportionalDistributionConfig:
        for field in ('resource_name', 'resource_symbol', 'total_pool_amount'):
            if field not in data:
                raise ConfigError(f'{field} is required', field=field)
        return cls(**_config_kwargs(cls, data))

    def check(self) -> None:
        '''Check that the configuration is complete and in range.

        :raises ConfigError: If it is not.
        '''
        for field in ('resource_name', 'resource_symbol'):
            value = getattr(self, field)
            if not isinstance(value, str) or not value:
                raise ConfigError(f'{field} must be a non-empty string',
                                  field=field)
        _require_positive(
            self.total_pool_amount, 'total_pool_amount', PROPORTIONAL_DISTRIBUTION
        )
        if self.minimum_allocation_enabled:
            _require_positive(
                self.minimum_allocation_percentage,
                'minimum_allocation_percentage',
                'minimum allocation',
            )
            if self.minimum_allocation_percentage > 100:
                raise ConfigError(
                    'minimum_allocation_percentage must be at most 100, got '
                    f'{self.minimum_allocation_percentage!r}',
                    field='minimum_allocation_percentage',
                )
        if self.decimal_places is not None and not (
            quadvote.util.is_whole_number(self.decimal_places)
            and 0 <= self.decimal_places <= MAX_DECIMAL_PLACES
        ):
            raise ConfigError(
                f'decimal_places must be an integer from 0 to '
                f'{MAX_DECIMAL_PLACES}, got {self.decimal_places!r}',
                field='decimal_places',
            )

    @property
    def minimum_allocation(self) -> Number:
        '''The minimum amount for options with votes; zero if disabled.'''
        if not self.minimum_allocation_enabled:
            return 0
        return self.minimum_allocation_percentage / 100 * self.total_pool_amount

    def format_amount(self, amount: Number) -> str:
        '''Format an amount of the resource for display.'''
        places = self.decimal_places
        if places is None:
            places = DEFAULT_DECIMAL_PLACES
        return f'{self.resource_symbol}{amount:,.{int(places)}f}'


@dataclasses.dataclass
class BinaryOptionResult:
    '''Outcome of a single option in a binary selection.'''
    option_id: str
    title: str
    votes: float
    rank: int
    selected: bool

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclasses.dataclass
class BinaryResults:
    '''Outcome of a binary selection.

    The option lists are ordered by rank. The selection margin is only
    given in ``top_n`` mode, and only when there is both a last selected
    and a first unselected option.
    '''
    threshold_mode: str
    selected_options: List[BinaryOptionResult]
    not_selected_options: List[BinaryOptionResult]
    selection_margin: Optional[float] = None
    framework_type: str = BINARY_SELECTION

    @property
    def selected_count(self) -> int:
        return len(self.selected_options)

    @property
    def ranking(self) -> List[BinaryOptionResult]:
        '''All options in rank order.'''
        return sorted(
            self.selected_options + self.not_selected_options,
            key=lambda res: res.rank
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'framework_type': self.framework_type,
            'threshold_mode': self.threshold_mode,
            'selected_options': [
                res.to_dict() for res in self.selected_options
            ],
            'not_selected_options': [
                res.to_dict() for res in self.not_selected_options
            ],
            'selected_count': self.selected_count,
            'selection_margin': self.selection_margin,
        }


@dataclasses.dataclass
class Distribution:
    '''Share of the resource pool allocated to a single option.'''
    option_id: str
    title: str
    votes: float
    allocation_amount: float
    allocation_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclasses.dataclass
class ProportionalResults:
    '''Outcome of a proportional distribution.

    Distributions are ordered by allocated amount, largest first.
    '''
    resource_name: str
    resource_symbol: str
    total_pool: Number
    distributions: List[Distribution]
    total_allocated: float
    gini_coefficient: float
    framework_type: str = PROPORTIONAL_DISTRIBUTION

    def to_dict(self) -> Dict[str, Any]:
        return {
            'framework_type': self.framework_type,
            'resource_name': self.resource_name,
            'resource_symbol': self.resource_symbol,
            'total_pool': self.total_pool,
            'distributions': [dist.to_dict() for dist in self.distributions],
            'total_allocated': self.total_allocated,
            'gini_coefficient': self.gini_coefficient,
        }


class Evaluator(metaclass=abc.ABCMeta):
    '''Evaluate aggregated votes for the options of an event.

    A root abstract base class for the decision framework evaluators.
    '''
    @abc.abstractmethod
    def evaluate(self,
                 votes: Dict[str, Number],
                 options: Sequence[Option],
                 seed: Any = None,
                 ) -> Any:
        '''Evaluate the votes.

        :param votes: Aggregated votes for option IDs. Options not present
            have zero votes; votes for IDs not among the options are ignored.
        :param options: Options of the event, in their list order.
        :param seed: Seed for any random tiebreaking.
        '''
        raise NotImplementedError


class Selector(Evaluator):
    '''Decide for every option whether it is selected.'''
    @abc.abstractmethod
    def evaluate(self,
                 votes: Dict[str, Number],
                 options: Sequence[Option],
                 seed: Any = None,
                 ) -> BinaryResults:
        raise NotImplementedError


class Distributor(Evaluator):
    '''Distribute a resource pool among the options.'''
    @abc.abstractmethod
    def evaluate(self,
                 votes: Dict[str, Number],
                 options: Sequence[Option],
                 seed: Any = None,
                 ) -> ProportionalResults:
        raise NotImplementedError


def option_votes(votes: Mapping[str, Number],
                 options: Sequence[Option],
                 ) -> Dict[str, Number]:
    '''Return the votes of each option in option order, zero if absent.'''
    return {opt.id: votes.get(opt.id, 0) for opt in options}
