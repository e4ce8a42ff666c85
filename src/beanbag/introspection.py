"""Introspection of the members a type declares itself.

Everything the resolver and registry need to know about a type comes from
here: its provider methods, its injection points and the constructors that
can be called with explicit arguments. Only members declared directly on the
inspected class are considered, never inherited ones.
"""

import inspect
import logging
from typing import (
    Annotated,
    Any,
    Callable,
    Final,
    Iterator,
    Optional,
    get_args,
    get_origin,
    get_type_hints,
)

from beanbag.domain import ConstructorCandidate, InjectionPoint, TypeKey
from beanbag.markers import INJECT, is_bean_provider, is_constructor

__all__ = [
    "configuration_classes",
    "constructor_candidates",
    "declared_provider_methods",
    "injection_points",
    "provided_type",
]

logger = logging.getLogger(__name__)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def configuration_classes(config_class: type) -> list[type]:
    """The classes scanned for providers when a configuration object is registered.

    The object's own class comes first, followed by each direct base class
    other than ``object``. Grandparents are not visited.
    """
    return [config_class] + [
        base for base in config_class.__bases__ if base is not object
    ]


def declared_provider_methods(cls: type) -> Iterator[tuple[str, Callable]]:
    """Yield ``(name, function)`` for each ``@bean_provider`` declared on ``cls`` itself.

    Static and class methods are unwrapped to their underlying function.
    """
    for name, member in vars(cls).items():
        if isinstance(member, (staticmethod, classmethod)):
            member = member.__func__
        if inspect.isfunction(member) and is_bean_provider(member):
            yield name, member


def provided_type(func: Callable) -> Optional[TypeKey]:
    return get_type_hints(func).get("return", None)


def injection_points(bean_type: TypeKey) -> list[InjectionPoint]:
    """Find the fields declared on ``bean_type`` that are annotated with ``Inject``.

    Args:
        bean_type: The type being resolved. Non-class keys have no fields.

    Returns:
        The injection points in declaration order.

    Example:
        >>> class Checkout:
        ...     payments: Inject[PaymentGateway]
        ...     audit: Final[Inject[AuditLog]]
        ...     retries: int = 3
        >>> injection_points(Checkout)
        [InjectionPoint('payments', PaymentGateway, False),
         InjectionPoint('audit', AuditLog, True)]
    """
    if not inspect.isclass(bean_type):
        return []

    declared = inspect.get_annotations(bean_type)
    if not declared:
        return []

    hints = _resolved_annotations(bean_type, declared)
    points = (
        _make_injection_point(name, hints[name]) for name in declared if name in hints
    )
    return [point for point in points if point is not None]


def _resolved_annotations(bean_type: type, declared: dict[str, Any]) -> dict[str, Any]:
    # get_type_hints resolves forward references nested inside Inject[...],
    # but it also merges in base class annotations, which are not ours.
    try:
        return get_type_hints(bean_type, include_extras=True)
    except NameError:
        pass

    # Some annotation names a type that only exists for type checkers.
    # Resolve one field at a time and drop the unresolvable ones that
    # cannot be injection points.
    namespace = dict(vars(bean_type))
    hints = {}
    for name, annotation in declared.items():
        try:
            hints[name] = _resolve_annotation(bean_type, name, annotation, namespace)
        except NameError:
            if _may_be_injection_point(name, annotation):
                raise
            logger.debug(
                "Skipping unresolvable annotation %s.%s", bean_type.__qualname__, name
            )
    return hints


def _resolve_annotation(
    bean_type: type, name: str, annotation: Any, namespace: dict[str, Any]
) -> Any:
    carrier = type(
        bean_type.__name__,
        (),
        {"__module__": bean_type.__module__, "__annotations__": {name: annotation}},
    )
    return get_type_hints(carrier, localns=namespace, include_extras=True)[name]


def _may_be_injection_point(name: str, annotation: Any) -> bool:
    if isinstance(annotation, str):
        return "Inject" in annotation or "INJECT" in annotation
    return _make_injection_point(name, annotation) is not None


def _make_injection_point(name: str, annotation: Any) -> Optional[InjectionPoint]:
    final = False
    if get_origin(annotation) is Final:
        final = True
        annotation = get_args(annotation)[0]

    if get_origin(annotation) is not Annotated:
        return None

    base_type, *metadata = get_args(annotation)
    if not any(m is INJECT for m in metadata):
        return None

    if get_origin(base_type) is Final:
        final = True
        base_type = get_args(base_type)[0]

    return InjectionPoint(name, base_type, final)


def constructor_candidates(cls: type) -> list[ConstructorCandidate]:
    """List the ways ``cls`` can be built from explicit positional arguments.

    ``__init__`` comes first, then every ``@constructor`` classmethod declared
    on ``cls``, in declaration order.
    """
    candidates = []
    init_types = _init_parameter_types(cls)
    if init_types is not None:
        candidates.append(ConstructorCandidate("__init__", init_types, cls))

    for name, member in vars(cls).items():
        if isinstance(member, classmethod) and is_constructor(member):
            candidates.append(
                ConstructorCandidate(
                    name, _parameter_types(member.__func__), getattr(cls, name)
                )
            )

    return candidates


def _init_parameter_types(cls: type) -> Optional[tuple[Any, ...]]:
    init = cls.__init__
    if init is object.__init__:
        return ()
    if not inspect.isfunction(init):
        # Builtin initialisers have no annotations to match against.
        return None
    return _parameter_types(init)


def _parameter_types(func: Callable) -> tuple[Any, ...]:
    hints = get_type_hints(func)
    # Drop the leading self / cls parameter.
    parameters = list(inspect.signature(func).parameters.values())[1:]
    return tuple(
        hints.get(parameter.name, inspect.Parameter.empty)
        for parameter in parameters
        if parameter.kind in _POSITIONAL
    )
