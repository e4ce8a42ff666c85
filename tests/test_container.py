import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final

import pytest

from beanbag.container import Container
from beanbag.errors import CircularDependencyError, NullResolutionError
from beanbag.markers import Inject, bean_provider, constructor, singleton

if TYPE_CHECKING:
    from decimal import Decimal

Greeter = Callable[[str], str]


@singleton
class Database:
    pass


class Clock:
    pass


class Repository:
    db: Inject[Database]
    clock: Inject[Clock]


class Service:
    repository: Inject[Repository]
    greeter: Inject[Greeter]


class CycleA:
    b: Inject["CycleB"]


class CycleB:
    a: Inject[CycleA]


@singleton
class SelfReferencing:
    me: Inject["SelfReferencing"]


class NeedsArguments:
    def __init__(self, name: str):
        self.name = name


class Port(ABC):
    @abstractmethod
    def send(self, message: str):
        pass


class RecordingPort(Port):
    def __init__(self):
        self.sent = []

    def send(self, message: str):
        self.sent.append(message)


class Notifier:
    port: Inject[Port]


class HasFinalField:
    clock: Final[Inject[Clock]]


@dataclass(frozen=True)
class Report:
    clock: Inject[Clock] = None
    title: str = "daily"


class Money:
    def __init__(self, cents: int, currency: str):
        self.cents = cents
        self.currency = currency

    @constructor
    def from_float(cls, amount: float, currency: str) -> "Money":
        return cls(round(amount * 100), currency)


class GreeterConfig:
    @bean_provider
    def make_greeter(self) -> Greeter:
        return lambda name: f"Hello {name}"


class ShoutingGreeterConfig:
    @bean_provider
    def make_greeter(self) -> Greeter:
        return lambda name: f"HELLO {name.upper()}"


class PortConfig:
    @bean_provider
    def make_port(self) -> Port:
        return RecordingPort()


class BrokenConfig:
    @bean_provider
    def make_clock(self) -> Clock:
        raise RuntimeError("no time")


class EmptyConfig:
    @bean_provider
    def make_clock(self) -> Clock:
        return None


@singleton
class SingletonConfig:
    @bean_provider
    def make_port(self) -> Port:
        return RecordingPort()


class ConfigWithDependency:
    db: Inject[Database]

    @bean_provider
    def make_clock(self) -> Clock:
        clock = Clock()
        clock.db = self.db
        return clock


class Invoice:
    clock: Inject[Clock]
    total: "Decimal | None" = None


class Node:
    pass


class Holder:
    node: Inject[Node]


class NodeConfig:
    def __init__(self, container):
        self.container = container

    @bean_provider
    def make_node(self) -> Node:
        node = Node()
        node.holder = self.container.get_bean(Holder)
        return node


class StaticClockConfig:
    @bean_provider
    @staticmethod
    def make_clock() -> Clock:
        clock = Clock()
        clock.source = "static"
        return clock


@pytest.fixture
def container() -> Container:
    return Container()


def test_resolves_class_with_no_argument_constructor(container):
    assert isinstance(container.get_bean(Clock), Clock)


def test_singleton_is_cached(container):
    first = container.get_bean(Database)

    assert container.get_bean(Database) is first
    assert container.singletons.get(Database) is first


def test_non_singletons_are_distinct(container):
    assert container.get_bean(Clock) is not container.get_bean(Clock)


def test_fields_are_injected_recursively(container):
    container.register_bean_config(GreeterConfig())
    service = container.get_bean(Service)

    assert isinstance(service.repository, Repository)
    assert service.repository.db is container.get_bean(Database)
    assert isinstance(service.repository.clock, Clock)
    assert service.greeter("Dominic") == "Hello Dominic"


def test_circular_dependency_reports_chain(container):
    with pytest.raises(CircularDependencyError) as error:
        container.get_bean(CycleA)

    assert error.value.chain == (CycleA, CycleB, CycleA)
    assert error.match(r"^Circular dependency: \S+\.CycleA -> \S+\.CycleB -> \S+\.CycleA$")


def test_circular_dependency_on_self(container):
    with pytest.raises(CircularDependencyError, match="SelfReferencing -> .*SelfReferencing"):
        container.get_bean(SelfReferencing)

    assert SelfReferencing not in container.singletons


def test_stack_is_empty_after_cycle(container):
    with pytest.raises(CircularDependencyError):
        container.get_bean(CycleB)

    assert container.resolution_stack() == ()
    assert isinstance(container.get_bean(Clock), Clock)
    with pytest.raises(CircularDependencyError) as error:
        container.get_bean(CycleB)
    assert error.value.chain == (CycleB, CycleA, CycleB)


def test_stack_is_empty_after_failed_resolution(container):
    with pytest.raises(NullResolutionError):
        container.get_bean(NeedsArguments)

    assert container.resolution_stack() == ()
    with pytest.raises(NullResolutionError, match="NeedsArguments produced no result"):
        container.get_bean(NeedsArguments)


def test_missing_no_argument_constructor_is_reported(container, caplog):
    with caplog.at_level(logging.WARNING, logger="beanbag.resolver"):
        with pytest.raises(NullResolutionError):
            container.get_bean(NeedsArguments)

    assert "No suitable constructor" in caplog.text


def test_abstract_class_without_provider_is_reported(container, caplog):
    with caplog.at_level(logging.WARNING, logger="beanbag.resolver"):
        with pytest.raises(NullResolutionError):
            container.get_bean(Port)

    assert "Constructor not accessible" in caplog.text


def test_unresolvable_field_fails_the_owner(container):
    with pytest.raises(NullResolutionError, match="Notifier produced no result"):
        container.get_bean(Notifier)


def test_provider_is_preferred_over_construction(container):
    container.register_bean_config(PortConfig())
    notifier = container.get_bean(Notifier)
    notifier.port.send("hi")

    assert notifier.port.sent == ["hi"]


def test_second_provider_wins(container):
    container.register_bean_config(GreeterConfig())
    conflicts = container.register_bean_config(ShoutingGreeterConfig())

    assert [c.provided_type for c in conflicts] == [Greeter]
    assert container.get_bean(Greeter)("Ann") == "HELLO ANN"


def test_failing_provider_surfaces_as_null_result(container):
    container.register_bean_config(BrokenConfig())

    with pytest.raises(NullResolutionError):
        container.get_bean(Clock)
    assert container.resolution_stack() == ()


def test_provider_returning_none_surfaces_as_null_result(container):
    container.register_bean_config(EmptyConfig())

    with pytest.raises(NullResolutionError):
        container.get_bean(Clock)


def test_unregistered_provider_falls_back_to_construction(container):
    config = PortConfig()
    container.register_bean_config(config)
    container.unregister_bean_config(config)

    with pytest.raises(NullResolutionError):
        container.get_bean(Port)


def test_register_config_by_type(container):
    conflicts = container.register_bean_config(SingletonConfig)

    assert conflicts == []
    config = container.get_bean(SingletonConfig)
    assert container.registry.lookup(Port).config is config
    assert isinstance(container.get_bean(Port), RecordingPort)


def test_config_registered_by_type_is_injected(container):
    container.register_bean_config(ConfigWithDependency)

    assert container.get_bean(Clock).db is container.get_bean(Database)


def test_final_injectable_field_fails(container, caplog):
    with caplog.at_level(logging.ERROR, logger="beanbag.resolver"):
        with pytest.raises(NullResolutionError, match="HasFinalField"):
            container.get_bean(HasFinalField)

    assert "Cannot inject final field 'clock'" in caplog.text


def test_frozen_dataclass_is_injected(container):
    report = container.get_bean(Report)

    assert isinstance(report.clock, Clock)
    assert report.title == "daily"


def test_constructor_arguments_select_exact_match(container):
    money = container.get_bean(Money, 150, "EUR")

    assert (money.cents, money.currency) == (150, "EUR")


def test_constructor_arguments_select_alternative_constructor(container):
    money = container.get_bean(Money, 1.5, "EUR")

    assert (money.cents, money.currency) == (150, "EUR")


def test_constructor_arguments_are_not_widened(container):
    with pytest.raises(NullResolutionError):
        container.get_bean(Money, True, "EUR")
    with pytest.raises(NullResolutionError):
        container.get_bean(Money, 150)


def test_constructor_arguments_bypass_providers(container):
    container.register_bean_config(PortConfig())

    with pytest.raises(NullResolutionError):
        container.get_bean(Port, "unused")


def test_singleton_cache_wins_over_constructor_arguments(container):
    db = container.get_bean(Database)

    assert container.get_bean(Database, "ignored") is db


def test_containers_are_isolated():
    first, second = Container(), Container()

    assert first.get_bean(Database) is not second.get_bean(Database)


def test_containers_can_share_singletons():
    first = Container()
    second = Container(singletons=first.singletons)

    assert first.get_bean(Database) is second.get_bean(Database)


def test_annotation_known_only_to_type_checkers_does_not_break_injection(container):
    invoice = container.get_bean(Invoice)

    assert isinstance(invoice.clock, Clock)
    assert invoice.total is None


def test_cycle_through_provider_reports_chain(container):
    container.register_bean_config(NodeConfig(container))

    with pytest.raises(CircularDependencyError) as error:
        container.get_bean(Node)

    assert error.value.chain == (Node, Holder, Node)
    assert container.resolution_stack() == ()


def test_static_method_provider_is_used(container):
    container.register_bean_config(StaticClockConfig())

    assert container.get_bean(Clock).source == "static"
