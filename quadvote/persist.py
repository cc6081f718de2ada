'''Serialization of Quadvote objects to JSON-ready structures and back.

Framework configurations, converters, tiebreakers and threshold selectors
get a ``to_dict()`` method through the :func:`simple_serialization`
decorator. The method records the scoped class name under the ``class`` key
together with the constructor arguments, so :func:`from_dict` can rebuild
the object later. Results objects and records define their own
``to_dict()``; :func:`serialize_value` turns anything they contain
(timestamps, tuples, nested objects) into plain JSON types.
'''

import datetime
import importlib
import inspect
from typing import Any, Dict, List, Mapping

PACKAGE_NAME = 'quadvote'

JSON_SCALARS = (str, int, float, bool)


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The method serializes the object attributes named like the constructor
    parameters, or the names listed in the ``serialize_params`` class
    attribute if there is one. The class must therefore keep its
    constructor arguments as attributes of the same name.

    :param class_: The class to add the method to.
    '''
    param_names = _serialized_params(class_)

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': scoped_class_name(self)}
        out_dict.update(
            (name, serialize_value(getattr(self, name)))
            for name in param_names
        )
        return out_dict

    class_.to_dict = to_dict
    return class_


def _serialized_params(class_: type) -> List[str]:
    if hasattr(class_, 'serialize_params'):
        return list(class_.serialize_params)
    if class_.__init__ is object.__init__:
        return []
    return [
        name for name, param in inspect.signature(
            class_.__init__
        ).parameters.items()
        if name != 'self' and param.kind not in (
            inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD
        )
    ]


def serialize_value(value: Any) -> Any:
    '''Convert a value to a structure of plain JSON types.

    :raises ValueError: If the value has no JSON representation.
    '''
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif value is None or isinstance(value, JSON_SCALARS):
        return value
    elif isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    elif isinstance(value, Mapping):
        return {str(key): serialize_value(val) for key, val in value.items()}
    elif isinstance(value, (list, tuple, set, frozenset)):
        return [serialize_value(val) for val in value]
    else:
        raise ValueError(f'cannot serialize {value!r} to dict format')


def to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize a Quadvote object to a JSON-ready dictionary.

    :param obj: A configuration, evaluator or results object providing a
        `to_dict()` method (courtesy of the simple_serialization decorator
        for most of them).
    """
    return serialize_value(obj)


def from_dict(data: Mapping[str, Any]) -> Any:
    """Rebuild an object serialized by the simple_serialization method.

    Nested serialized objects among the arguments are rebuilt as well. Only
    classes from the Quadvote package are accepted.

    :param data: The serialized form, with the scoped class name under the
        ``class`` key and the constructor arguments under the other keys.
    :raises ValueError: If the class is missing or not a Quadvote class.
    """
    name = data.get('class') if isinstance(data, Mapping) else None
    if not isinstance(name, str):
        raise ValueError(f'no class to deserialize in {data!r}')
    cls = get_class(name)
    params = {
        key: _deserialize_value(val)
        for key, val in data.items() if key != 'class'
    }
    if hasattr(cls, 'from_dict'):
        return cls.from_dict(params)
    return cls(**params)


def _deserialize_value(value: Any) -> Any:
    if isinstance(value, Mapping) and 'class' in value:
        return from_dict(value)
    return value


def get_class(name: str) -> type:
    '''Return the Quadvote class with the given scoped name.

    :raises ValueError: If the name does not refer to a Quadvote class.
    '''
    module_name, _, class_name = name.rpartition('.')
    if module_name.split('.')[0] != PACKAGE_NAME:
        raise ValueError(f'refusing to deserialize non-Quadvote class {name}')
    try:
        cls = getattr(importlib.import_module(module_name), class_name)
    except (ImportError, AttributeError) as e:
        raise ValueError(f'unknown class {name}') from e
    if not isinstance(cls, type):
        raise ValueError(f'{name} is not a class')
    return cls


def scoped_class_name(value: Any) -> str:
    cls = value.__class__
    return '.'.join((cls.__module__, cls.__name__))
