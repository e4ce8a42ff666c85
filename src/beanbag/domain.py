"""Domain models used throughout the container."""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Hashable

TypeKey = Hashable


def type_name(bean_type: TypeKey) -> str:
    """Render a type key for log and error messages.

    Example:
        >>> type_name(OrderService)          # "shop.services.OrderService"
        >>> type_name(Callable[[str], str])  # "typing.Callable[[str], str]"
    """
    if inspect.isclass(bean_type):
        return f"{bean_type.__module__}.{bean_type.__qualname__}"
    return repr(bean_type)


@dataclass(frozen=True)
class InjectionPoint:
    """A field whose value the container populates by resolving its type.

    Attributes:
        name: The attribute name on the instance.
        declared_type: The type to resolve, with the ``Inject`` marker stripped.
        final: Whether the field was declared ``Final`` and so cannot be written.
    """

    name: str
    declared_type: TypeKey
    final: bool


@dataclass(frozen=True)
class ConstructorCandidate:
    """One way of building an instance from explicit arguments.

    Attributes:
        name: ``"__init__"`` or the name of a ``@constructor`` classmethod.
        parameter_types: Annotated types of the positional parameters, in order.
        build: Callable taking the positional arguments and returning the instance.
    """

    name: str
    parameter_types: tuple[Any, ...]
    build: Callable[..., Any]

    def accepts_exactly(self, arguments: tuple[Any, ...]) -> bool:
        return len(arguments) == len(self.parameter_types) and all(
            type(argument) is parameter_type
            for argument, parameter_type in zip(arguments, self.parameter_types)
        )
