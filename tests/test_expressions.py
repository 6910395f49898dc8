import logging

import pytest

from ustx.constants import DEFAULT_EXPRESSIONS
from ustx.expressions import DescriptorRegistry, ParameterDescriptor, ParameterValue


def test_create_uses_descriptor_default() -> None:
    velocity = ParameterDescriptor("velocity", "vel", 0, 200, 100)
    value = ParameterValue.create(velocity)
    assert value.value == 100
    assert value.descriptor is velocity
    assert value.is_bound
    assert value.abbr == "vel"


def test_create_override_is_not_clamped() -> None:
    velocity = ParameterDescriptor("velocity", "vel", 0, 200, 100)
    assert ParameterValue.create(velocity, 500).value == 500
    assert velocity.clamp(500) == 200
    assert velocity.clamp(-5) == 0


def test_unbound_value() -> None:
    value = ParameterValue(value=42.0)
    assert not value.is_bound
    assert value.abbr is None


def test_descriptor_is_immutable() -> None:
    velocity = ParameterDescriptor("velocity", "vel", 0, 200, 100)
    with pytest.raises(AttributeError):
        velocity.max = 300


@pytest.mark.parametrize(
    "args,message",
    [
        (("", "vel", 0, 200, 100), "name is required"),
        (("velocity", "", 0, 200, 100), "abbreviation is required"),
        (("velocity", "vel", 200, 0, 100), "min must be <= max"),
        (("velocity", "vel", 0, 200, 300), "default must be within"),
    ],
)
def test_descriptor_validation(args, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        ParameterDescriptor(*args)


def test_default_registry() -> None:
    registry = DescriptorRegistry.default()
    assert len(registry) == len(DEFAULT_EXPRESSIONS)
    assert "vel" in registry
    assert registry.get("gen").min == -100
    assert registry.get("nope") is None
    assert [d.abbr for d in registry][:2] == ["vel", "vol"]


def test_register_rejects_duplicates() -> None:
    registry = DescriptorRegistry.default()
    with pytest.raises(ValueError, match="Duplicate"):
        registry.register(ParameterDescriptor("velocity 2", "vel", 0, 100, 0))


def test_create_value() -> None:
    registry = DescriptorRegistry.default()
    assert registry.create_value("dec").value == 0
    assert registry.create_value("vol", 150).value == 150
    with pytest.raises(KeyError):
        registry.create_value("nope")


def test_bind_mapping_keeps_unknown_unbound(caplog: pytest.LogCaptureFixture) -> None:
    registry = DescriptorRegistry.default()
    entries = {"vel": ParameterValue(value=123.0), "xyz": 7}

    with caplog.at_level(logging.DEBUG, logger="ustx.expressions"):
        bound = registry.bind(entries)

    assert bound["vel"].descriptor is registry.get("vel")
    assert bound["vel"].value == 123.0
    assert bound["xyz"].descriptor is None
    assert bound["xyz"].value == 7
    assert "xyz" in caplog.text
    # Input is left untouched
    assert entries["vel"].descriptor is None


def test_bind_drop_unknown() -> None:
    bound = DescriptorRegistry.default().bind([("vel", 1.0), ("xyz", 2.0)], drop_unknown=True)
    assert list(bound) == ["vel"]


def test_bind_does_not_clamp() -> None:
    bound = DescriptorRegistry.default().bind({"vel": 999.0})
    assert bound["vel"].value == 999.0
