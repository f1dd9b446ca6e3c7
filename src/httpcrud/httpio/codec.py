"""
=============================================================================
VALUE BINDING
=============================================================================

The body codecs decode a payload into plain Python data (dicts, lists,
strings, numbers) and then *bind* that data into the value the handler
supplied. Encoding runs the other way.

=============================================================================
SUPPORTED TARGETS
=============================================================================

    ┌───────────────────┬────────────────────────────────────────────────┐
    │ Target            │ Binding                                        │
    ├───────────────────┼────────────────────────────────────────────────┤
    │ dataclass object  │ fields set in place, coerced to annotations    │
    │ dict              │ updated in place                               │
    │ list              │ contents replaced in place                     │
    └───────────────────┴────────────────────────────────────────────────┘

A field's wire name is its attribute name unless the field declares one:

    @dataclass
    class Signup:
        email: str = ""
        accept_terms: bool = field(default=False, metadata={"name": "terms"})

=============================================================================
COERCION
=============================================================================

JSON carries types, so a JSON string never becomes an int. Form and XML
carry only text, so their values are parsed:

    annotation   JSON accepts          text accepts
    ──────────   ───────────────────   ──────────────────────────────
    str          str                   anything
    int          int (not bool)        "-12", "+7"
    float        int, float            "0.004", "1e3"
    bool         bool                  1 t T TRUE true True
                                       0 f F FALSE false False

Anything else raises ``TypeError``/``ValueError``; the body readers turn
that into a ``ReadError``.

=============================================================================
"""

import dataclasses
import typing
from typing import Any, Dict, List, Mapping

TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(text: str) -> bool:
    """
    Strictly parse a boolean string.

    Raises:
        ValueError: If ``text`` is not one of the accepted spellings.
    """
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError(f"invalid boolean syntax: {text!r}")


def wire_name(f: dataclasses.Field) -> str:
    return f.metadata.get("name", f.name)


# =============================================================================
# ENCODING
# =============================================================================

def to_plain(value: Any) -> Any:
    """
    Convert ``value`` to JSON-compatible plain data.

    Dataclasses become dicts keyed by wire name; lists, tuples and dicts
    are converted recursively.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {wire_name(f): to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def to_text(value: Any) -> str:
    """Render a scalar the way form and XML bodies carry it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# =============================================================================
# DECODING
# =============================================================================

def bind(target: Any, data: Any, from_text: bool = False) -> None:
    """
    Bind decoded ``data`` into ``target`` in place.

    Args:
        target: Dataclass instance, dict or list owned by the caller.
        data: Decoded payload.
        from_text: Values are strings to be parsed (form, XML).

    Raises:
        TypeError: Unsupported target or data of the wrong shape.
        ValueError: A value could not be parsed for its field.
    """
    if dataclasses.is_dataclass(target) and not isinstance(target, type):
        if not isinstance(data, Mapping):
            raise TypeError(f"cannot bind {type(data).__name__} into {type(target).__name__}")
        hints = typing.get_type_hints(type(target))
        for f in dataclasses.fields(target):
            name = wire_name(f)
            if name not in data:
                continue
            setattr(target, f.name, coerce(data[name], hints.get(f.name, Any), from_text))
    elif isinstance(target, dict):
        if not isinstance(data, Mapping):
            raise TypeError(f"cannot bind {type(data).__name__} into dict")
        target.update(data)
    elif isinstance(target, list):
        if not isinstance(data, list):
            raise TypeError(f"cannot bind {type(data).__name__} into list")
        target[:] = data
    else:
        raise TypeError(f"unsupported bind target: {type(target).__name__}")


def coerce(value: Any, annotation: Any, from_text: bool = False) -> Any:
    """Convert one decoded value to ``annotation``."""
    if annotation is Any:
        return value

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin is typing.Union:
        if value is None and type(None) in args:
            return None
        members = [a for a in args if a is not type(None)]
        if len(members) == 1:
            return coerce(value, members[0], from_text)
        return value

    if origin in (list, List):
        item_type = args[0] if args else Any
        items = value if isinstance(value, list) else [value]
        return [coerce(v, item_type, from_text) for v in items]

    if origin in (dict, Dict):
        if not isinstance(value, Mapping):
            raise TypeError(f"expected object, got {type(value).__name__}")
        return dict(value)

    if from_text and isinstance(value, list):
        value = value[0] if value else ""

    if dataclasses.is_dataclass(annotation):
        if not isinstance(value, Mapping):
            raise TypeError(f"expected object for {annotation.__name__}")
        instance = _construct(annotation)
        bind(instance, value, from_text)
        return instance

    if annotation is bool:
        if isinstance(value, bool):
            return value
        if from_text and isinstance(value, str):
            return parse_bool(value)
        raise TypeError(f"cannot use {value!r} as bool")

    if annotation is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if from_text and isinstance(value, str):
            return int(value)
        raise TypeError(f"cannot use {value!r} as int")

    if annotation is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if from_text and isinstance(value, str):
            return float(value)
        raise TypeError(f"cannot use {value!r} as float")

    if annotation is str:
        if isinstance(value, str):
            return value
        raise TypeError(f"cannot use {value!r} as string")

    return value


def _construct(cls: type) -> Any:
    """Create an instance of dataclass ``cls`` from its field defaults."""
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = None
    return cls(**kwargs)
