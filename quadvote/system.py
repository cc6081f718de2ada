"""Decision frameworks: how an event turns votes into a decision.

An event uses one of two frameworks, identified by a type tag:

-   ``binary_selection`` - every option is either selected or not
    (:class:`quadvote.evaluate.binary.BinarySelection`),
-   ``proportional_distribution`` - a resource pool is divided among the
    options (:class:`quadvote.evaluate.proportional.ProportionalDistribution`).

Each type carries its own configuration class. :class:`DecisionFramework`
pairs the tag with a configuration of the matching class, so a framework
with a mismatched or incomplete configuration cannot be constructed.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Union

import quadvote.evaluate.binary
import quadvote.evaluate.proportional
from quadvote.evaluate.core import (
    BINARY_SELECTION, PROPORTIONAL_DISTRIBUTION,
    BinarySelectionConfig, ProportionalDistributionConfig,
    ConfigError, UnknownFrameworkTypeError, Evaluator,
)

FrameworkConfig = Union[BinarySelectionConfig, ProportionalDistributionConfig]

CONFIG_CLASSES = {
    BINARY_SELECTION: BinarySelectionConfig,
    PROPORTIONAL_DISTRIBUTION: ProportionalDistributionConfig,
}
EVALUATOR_CLASSES = {
    BINARY_SELECTION: quadvote.evaluate.binary.BinarySelection,
    PROPORTIONAL_DISTRIBUTION:
        quadvote.evaluate.proportional.ProportionalDistribution,
}


class DecisionFramework:
    """A decision framework of an event, with its configuration.

    :param framework_type: The type tag.
    :param config: Configuration matching the type.
    :raises UnknownFrameworkTypeError: If the type is unknown.
    :raises ConfigError: If the configuration does not match the type.
    """
    def __init__(self, framework_type: str, config: FrameworkConfig):
        if framework_type not in CONFIG_CLASSES:
            raise UnknownFrameworkTypeError(framework_type)
        if not isinstance(config, CONFIG_CLASSES[framework_type]):
            raise ConfigError(
                f'{framework_type} framework needs a '
                f'{CONFIG_CLASSES[framework_type].__name__},'
                f' got {type(config).__name__}',
                field='config',
            )
        self.framework_type = framework_type
        self.config = config

    def __repr__(self):
        return f'DecisionFramework({self.framework_type!r}, {self.config!r})'

    def __eq__(self, other):
        if not isinstance(other, DecisionFramework):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @classmethod
    def binary(cls, **kwargs) -> DecisionFramework:
        """Create a binary selection framework from config fields."""
        return cls(BINARY_SELECTION, BinarySelectionConfig(**kwargs))

    @classmethod
    def proportional(cls, **kwargs) -> DecisionFramework:
        """Create a proportional distribution framework from config fields."""
        return cls(
            PROPORTIONAL_DISTRIBUTION, ProportionalDistributionConfig(**kwargs)
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DecisionFramework:
        """Parse a framework from its plain dictionary form.

        :param data: A mapping with the ``framework_type`` tag and a
            ``config`` mapping of configuration fields.
        :raises UnknownFrameworkTypeError: If the type is unknown.
        :raises ConfigError: If the configuration is missing or invalid.
        """
        if not isinstance(data, Mapping):
            raise ConfigError(
                f'decision framework must be a mapping, got {data!r}'
            )
        framework_type = data.get('framework_type')
        if framework_type not in CONFIG_CLASSES:
            raise UnknownFrameworkTypeError(framework_type)
        config = data.get('config')
        if not isinstance(config, Mapping):
            raise ConfigError(
                f'{framework_type} framework needs a config mapping',
                field='config',
            )
        return cls(
            framework_type,
            CONFIG_CLASSES[framework_type].from_dict(config),
        )

    @classmethod
    def coerce(cls,
               value: Union[DecisionFramework, Mapping[str, Any]],
               ) -> DecisionFramework:
        """Return the value as a framework, parsing it if it is a mapping."""
        if isinstance(value, cls):
            return value
        return cls.from_dict(value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'framework_type': self.framework_type,
            'config': {
                param: getattr(self.config, param)
                for param in self.config.serialize_params
                if getattr(self.config, param) is not None
            },
        }

    @property
    def evaluator(self) -> Evaluator:
        """The evaluator implementing this framework."""
        if self.framework_type not in EVALUATOR_CLASSES:
            raise UnknownFrameworkTypeError(self.framework_type)
        return EVALUATOR_CLASSES[self.framework_type](self.config)

    def evaluate(self, *args, **kwargs):
        """Return the evaluator's results for the votes given."""
        return self.evaluator.evaluate(*args, **kwargs)
