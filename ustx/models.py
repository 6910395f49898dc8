"""
Data models for a single piano-roll note.

Note is the aggregate root: it owns its phonemes (each with an envelope),
its pitch curve, its vibrato and its expression values. Models are plain
mutable dataclasses edited in place by the host; serialization lives in
ustx.codec.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ustx.constants import (
    DEFAULT_DURATION,
    DEFAULT_ENVELOPE_POINTS,
    DEFAULT_LYRIC,
    DEFAULT_NOTE_NUM,
    DEFAULT_PHONEME,
    ENVELOPE_SIZE,
)
from ustx.expressions import DescriptorRegistry, ParameterValue


@dataclass(frozen=True)
class Point:
    """Curve control point (x in ms or ticks, y in curve units)."""
    x: float
    y: float


def _default_envelope_points() -> Tuple[Point, Point, Point, Point, Point]:
    return tuple(Point(x, y) for x, y in DEFAULT_ENVELOPE_POINTS)


@dataclass(frozen=True)
class Envelope:
    """
    Five-point amplitude envelope for a phoneme.

    Default is a flat full-amplitude plateau with x offsets left at zero
    until the renderer computes phoneme timing.
    """
    points: Tuple[Point, Point, Point, Point, Point] = field(
        default_factory=_default_envelope_points
    )

    def __post_init__(self):
        """Validate envelope."""
        if len(self.points) != ENVELOPE_SIZE:
            raise ValueError(
                f"Envelope must have exactly {ENVELOPE_SIZE} points, got {len(self.points)}"
            )
        # Accept any sequence, store as tuple
        object.__setattr__(self, 'points', tuple(self.points))


@dataclass
class PitchCurve:
    """
    User-drawn pitch bend control points.

    Attributes:
        points: Control points ordered by x
        snap_first: Snap the first point to the previous note's pitch
    """
    points: List[Point] = field(default_factory=list)
    snap_first: bool = True

    def clone(self) -> "PitchCurve":
        return PitchCurve(points=list(self.points), snap_first=self.snap_first)


@dataclass
class Vibrato:
    """
    Periodic pitch oscillation. All zero means no vibrato.

    Attributes:
        length: Portion of the note covered, in percent
        period: Oscillation period in ms
        depth: Depth in cents
        fade_in: Fade-in, in percent of the vibrato length
        fade_out: Fade-out, in percent of the vibrato length
        shift: Phase shift in percent
        drift: Vertical offset in percent
    """
    length: float = 0.0
    period: float = 0.0
    depth: float = 0.0
    fade_in: float = 0.0
    fade_out: float = 0.0
    shift: float = 0.0
    drift: float = 0.0

    def clone(self) -> "Vibrato":
        return Vibrato(
            length=self.length,
            period=self.period,
            depth=self.depth,
            fade_in=self.fade_in,
            fade_out=self.fade_out,
            shift=self.shift,
            drift=self.drift,
        )


@dataclass
class Phoneme:
    """
    One speech unit rendered within a note.

    Attributes:
        position: Offset from the note start in ticks
        phoneme: Phoneme symbol
        preutterance: Pre-utterance in ms
        overlap: Overlap with the previous phoneme in ms
        envelope: Amplitude envelope (owned)
    """
    position: int = 0
    phoneme: str = DEFAULT_PHONEME
    preutterance: float = 0.0
    overlap: float = 0.0
    envelope: Envelope = field(default_factory=Envelope)

    @classmethod
    def create(cls, phoneme: str = DEFAULT_PHONEME, position: int = 0) -> "Phoneme":
        """Create a phoneme with zero timings and the default envelope."""
        return cls(position=position, phoneme=phoneme)

    def clone(self) -> "Phoneme":
        # Envelope is immutable, safe to share
        return Phoneme(
            position=self.position,
            phoneme=self.phoneme,
            preutterance=self.preutterance,
            overlap=self.overlap,
            envelope=self.envelope,
        )


@dataclass
class Note:
    """
    A single note in the piano roll.

    Attributes:
        position: Start in ticks
        duration: Length in ticks (positive)
        note_num: MIDI note number
        lyric: Lyric text
        phonemes: Phonemes in order (owned)
        pitch: Pitch bend curve (owned)
        vibrato: Vibrato parameters (owned)
        expressions: Expression abbreviation -> value
    """
    position: int = 0
    duration: int = DEFAULT_DURATION
    note_num: int = DEFAULT_NOTE_NUM
    lyric: str = DEFAULT_LYRIC
    phonemes: List[Phoneme] = field(default_factory=list)
    pitch: PitchCurve = field(default_factory=PitchCurve)
    vibrato: Vibrato = field(default_factory=Vibrato)
    expressions: Dict[str, ParameterValue] = field(default_factory=dict)

    @classmethod
    def create(cls, position: int = 0, duration: int = DEFAULT_DURATION,
               note_num: int = DEFAULT_NOTE_NUM, lyric: str = DEFAULT_LYRIC) -> "Note":
        """
        Create a note seeded with one default phoneme.

        Args:
            position: Start in ticks
            duration: Length in ticks
            note_num: MIDI note number
            lyric: Lyric text

        Raises:
            ValueError: If duration is not positive
        """
        if duration <= 0:
            raise ValueError(f"Duration must be positive, got {duration}")
        return cls(
            position=position,
            duration=duration,
            note_num=note_num,
            lyric=lyric,
            phonemes=[Phoneme.create()],
        )

    @property
    def end(self) -> int:
        return self.position + self.duration

    def set_expression(self, value: ParameterValue):
        """
        Store a bound value under its descriptor's abbreviation.

        Raises:
            ValueError: If the value has no descriptor
        """
        if value.descriptor is None:
            raise ValueError("Cannot key an unbound expression value; assign expressions[abbr] directly")
        self.expressions[value.descriptor.abbr] = value

    def get_expression_value(self, abbr: str, default: Optional[float] = None) -> Optional[float]:
        """Raw number stored under an abbreviation, or default."""
        entry = self.expressions.get(abbr)
        return entry.value if entry is not None else default

    def bind_expressions(self, registry: DescriptorRegistry, drop_unknown: bool = False):
        """Re-attach descriptors to every expression, in place."""
        self.expressions = registry.bind(self.expressions, drop_unknown=drop_unknown)

    def clone(self) -> "Note":
        """Deep copy of owned parts; descriptors stay shared."""
        return Note(
            position=self.position,
            duration=self.duration,
            note_num=self.note_num,
            lyric=self.lyric,
            phonemes=[p.clone() for p in self.phonemes],
            pitch=self.pitch.clone(),
            vibrato=self.vibrato.clone(),
            expressions={k: v.clone() for k, v in self.expressions.items()},
        )
