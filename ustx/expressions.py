"""
Expression parameters attached to notes.

- ParameterDescriptor: static schema (name, abbreviation, bounds, default)
- ParameterValue: a number, optionally bound to its descriptor
- DescriptorRegistry: looks up descriptors by abbreviation and re-binds
  decoded values, which never carry a descriptor
"""
import logging
from collections import abc
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from ustx.constants import DEFAULT_EXPRESSIONS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterDescriptor:
    """
    Schema for one expression parameter.

    Attributes:
        name: Display name (e.g., "velocity")
        abbr: Short unique key used in note expression maps (e.g., "vel")
        min: Lower bound (advisory, enforced by the editor UI)
        max: Upper bound (advisory, enforced by the editor UI)
        default_value: Value given to newly created parameter values
    """
    name: str
    abbr: str
    min: float
    max: float
    default_value: float

    def __post_init__(self):
        """Validate descriptor."""
        if not self.name:
            raise ValueError("Descriptor name is required")
        if not self.abbr:
            raise ValueError(f"Descriptor {self.name}: abbreviation is required")
        if self.min > self.max:
            raise ValueError(f"Descriptor {self.abbr}: min must be <= max")
        if not (self.min <= self.default_value <= self.max):
            raise ValueError(f"Descriptor {self.abbr}: default must be within min/max range")

    def clamp(self, value: float) -> float:
        """Limit a value to this descriptor's bounds."""
        return max(self.min, min(self.max, value))


@dataclass
class ParameterValue:
    """
    Expression value held by a note.

    Values decoded from the wire format have no descriptor; the key they
    are stored under in Note.expressions identifies them until the host
    re-binds them through a DescriptorRegistry.
    """
    descriptor: Optional[ParameterDescriptor] = None
    value: float = 0.0

    @classmethod
    def create(cls, descriptor: ParameterDescriptor,
               value: Optional[float] = None) -> "ParameterValue":
        """
        Create a value bound to a descriptor.

        Args:
            descriptor: Originating descriptor
            value: Explicit value (not clamped). Defaults to the descriptor default.
        """
        if value is None:
            value = descriptor.default_value
        return cls(descriptor=descriptor, value=value)

    @property
    def is_bound(self) -> bool:
        return self.descriptor is not None

    @property
    def abbr(self) -> Optional[str]:
        return self.descriptor.abbr if self.descriptor is not None else None

    def clone(self) -> "ParameterValue":
        # Descriptor is shared, never copied
        return ParameterValue(descriptor=self.descriptor, value=self.value)


ExpressionEntries = Union[
    Mapping[str, Union[ParameterValue, float]],
    Iterable[Tuple[str, float]],
]


class DescriptorRegistry:
    """
    Descriptors keyed by abbreviation.

    Used by the host after decoding to turn descriptor-less values back
    into schema-bound ones.
    """

    def __init__(self, descriptors: Iterable[ParameterDescriptor] = ()):
        self._descriptors: Dict[str, ParameterDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    @classmethod
    def default(cls) -> "DescriptorRegistry":
        """Registry preloaded with the standard expressions."""
        return cls(ParameterDescriptor(*entry) for entry in DEFAULT_EXPRESSIONS)

    def register(self, descriptor: ParameterDescriptor):
        """
        Add a descriptor.

        Raises:
            ValueError: If the abbreviation is already registered
        """
        if descriptor.abbr in self._descriptors:
            raise ValueError(f"Duplicate expression abbreviation: {descriptor.abbr}")
        self._descriptors[descriptor.abbr] = descriptor

    def get(self, abbr: str) -> Optional[ParameterDescriptor]:
        return self._descriptors.get(abbr)

    def __contains__(self, abbr: object) -> bool:
        return abbr in self._descriptors

    def __iter__(self) -> Iterator[ParameterDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def create_value(self, abbr: str, value: Optional[float] = None) -> ParameterValue:
        """
        Create a bound value for a registered abbreviation.

        Raises:
            KeyError: If the abbreviation is unknown
        """
        descriptor = self._descriptors.get(abbr)
        if descriptor is None:
            raise KeyError(f"Unknown expression: {abbr}")
        return ParameterValue.create(descriptor, value)

    def bind(self, entries: ExpressionEntries,
             drop_unknown: bool = False) -> Dict[str, ParameterValue]:
        """
        Bind raw expression entries to their descriptors.

        Args:
            entries: Mapping of abbreviation to ParameterValue or number,
                or an iterable of (abbreviation, number) pairs
            drop_unknown: Leave out keys with no registered descriptor
                instead of keeping them unbound

        Returns:
            New dict of abbreviation -> ParameterValue. Values are preserved
            exactly; known keys carry their descriptor.
        """
        items = entries.items() if isinstance(entries, abc.Mapping) else entries

        bound: Dict[str, ParameterValue] = {}
        for abbr, entry in items:
            value = entry.value if isinstance(entry, ParameterValue) else entry
            descriptor = self._descriptors.get(abbr)
            if descriptor is None:
                if drop_unknown:
                    logger.debug("Dropping unknown expression %r", abbr)
                    continue
                logger.debug("No descriptor for expression %r, keeping it unbound", abbr)
            bound[abbr] = ParameterValue(descriptor=descriptor, value=value)
        return bound
