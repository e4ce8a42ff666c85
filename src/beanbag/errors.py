"""Exceptions raised and reported by the container.

Only :class:`CircularDependencyError` and :class:`NullResolutionError` ever
escape :meth:`beanbag.container.Container.get_bean`. The others are raised
while a bean is being constructed, reported through logging and absorbed
into a "no instance produced" outcome.
"""

from typing import Any

from beanbag.domain import TypeKey, type_name

__all__ = [
    "DependencyError",
    "CircularDependencyError",
    "NullResolutionError",
    "ConstructorError",
    "MissingConstructorError",
    "InaccessibleConstructorError",
    "ProviderInvocationError",
    "FinalFieldError",
]


class DependencyError(Exception):
    """Raised when a bean's dependency cannot be resolved or is misdeclared."""

    pass


class CircularDependencyError(DependencyError):
    """Raised when a type is requested while it is already being resolved.

    Attributes:
        chain: The types on the calling thread's resolution stack, first
            pushed first, followed by the type that closed the cycle.
    """

    def __init__(self, chain: tuple[TypeKey, ...]):
        self.chain = chain
        super().__init__(
            "Circular dependency: " + " -> ".join(type_name(t) for t in chain)
        )


class NullResolutionError(DependencyError):
    """Raised when resolution of ``bean_type`` completed without an instance."""

    def __init__(self, bean_type: TypeKey):
        self.bean_type = bean_type
        super().__init__(f"Instantiation of {type_name(bean_type)} produced no result")


class ConstructorError(DependencyError):
    def __init__(self, bean_type: TypeKey, reason: str):
        self.bean_type = bean_type
        super().__init__(f"{reason}: {type_name(bean_type)}")


class MissingConstructorError(ConstructorError):
    """No constructor accepts the supplied arguments (or no arguments at all)."""

    def __init__(self, bean_type: TypeKey):
        super().__init__(bean_type, "No suitable constructor")


class InaccessibleConstructorError(ConstructorError):
    """The type cannot be instantiated directly, e.g. it is abstract."""

    def __init__(self, bean_type: TypeKey):
        super().__init__(bean_type, "Constructor not accessible")


class ProviderInvocationError(DependencyError):
    def __init__(self, provided_type: TypeKey, provider_name: str, config: Any):
        self.provided_type = provided_type
        self.config = config
        super().__init__(
            f"Provider {provider_name} of {type(config).__qualname__} "
            f"failed to produce {type_name(provided_type)}"
        )


class FinalFieldError(DependencyError):
    def __init__(self, bean_type: TypeKey, field_name: str):
        self.bean_type = bean_type
        self.field_name = field_name
        super().__init__(
            f"Cannot inject final field '{field_name}' of {type_name(bean_type)}"
        )
