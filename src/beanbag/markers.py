"""Decorators and annotations that mark classes, methods and fields for the container.

Markers only stamp metadata on their target; the container reads it back with
the ``is_*`` queries and :func:`bean_metadata`.

Example:
    >>> @singleton
    ... class Clock:
    ...     pass
    >>>
    >>> class Scheduler:
    ...     clock: Inject[Clock]
    >>>
    >>> class AppConfig:
    ...     @bean_provider
    ...     def make_settings(self) -> Settings:
    ...         return Settings(debug=True)
"""

from typing import Annotated, Any, Callable

__all__ = [
    "INJECT",
    "Inject",
    "bean_metadata",
    "bean_provider",
    "constructor",
    "is_bean_provider",
    "is_constructor",
    "is_singleton",
    "set_metadata",
    "singleton",
]

METADATA_ATTRIBUTE = "__bean_metadata__"


class _InjectMarker:
    def __repr__(self):
        return "INJECT"


INJECT = _InjectMarker()


class Inject:
    """Annotation alias marking a field as an injection point.

    ``Inject[Database]`` is ``Annotated[Database, INJECT]``.
    """

    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, INJECT]


def set_metadata(target: Any, **kwargs) -> Any:
    # Copy rather than update in place so a subclass never writes into its base's metadata.
    metadata = dict(vars(target).get(METADATA_ATTRIBUTE, {}))
    metadata.update(kwargs)
    setattr(target, METADATA_ATTRIBUTE, metadata)
    return target


def bean_metadata(target: Any) -> dict[str, Any]:
    """Return the metadata declared on ``target`` itself, ignoring base classes."""
    if isinstance(target, (classmethod, staticmethod)):
        target = target.__func__
    try:
        return vars(target).get(METADATA_ATTRIBUTE, {})
    except TypeError:
        return {}


def singleton(cls: type) -> type:
    """Class decorator: the container caches and reuses a single instance."""
    return set_metadata(cls, singleton=True)


def bean_provider(func: Callable) -> Callable:
    """Method decorator: called with no arguments, produces its declared return type.

    Accepts plain, static and class methods, applied above or below the
    ``staticmethod`` / ``classmethod`` wrapper.
    """
    if isinstance(func, (classmethod, staticmethod)):
        set_metadata(func.__func__, bean_provider=True)
        return func
    return set_metadata(func, bean_provider=True)


def constructor(func: Callable) -> classmethod:
    """Declare an alternative constructor, selected by exact argument types.

    The function is wrapped as a classmethod.

    Example:
        >>> class Money:
        ...     def __init__(self, cents: int, currency: str): ...
        ...
        ...     @constructor
        ...     def from_float(cls, amount: float, currency: str) -> "Money":
        ...         return cls(round(amount * 100), currency)
    """
    if isinstance(func, classmethod):
        set_metadata(func.__func__, constructor=True)
        return func
    return classmethod(set_metadata(func, constructor=True))


def is_singleton(target: Any) -> bool:
    return bool(bean_metadata(target).get("singleton"))


def is_bean_provider(target: Any) -> bool:
    return bool(bean_metadata(target).get("bean_provider"))


def is_constructor(target: Any) -> bool:
    return bool(bean_metadata(target).get("constructor"))
