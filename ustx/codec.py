"""
Wire codec for notes and expression values.

Encoders turn model objects into a tree of primitives (dict, list, str,
int, float, bool); decoders turn such a tree back into model objects. The
same tree is written as JSON text (project files) or MessagePack bytes
(clipboard and IPC).

Encoding rules are registered per type on a ModelCodec, so the models carry
no serialization code. ParameterValue is written as a bare number and read
back without its descriptor; the host re-binds it via DescriptorRegistry.
"""
import json
import logging
import math
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

import msgpack

from ustx.config import CodecConfig
from ustx.constants import (
    KEY_DATA,
    KEY_DURATION,
    KEY_ENVELOPE,
    KEY_EXPRESSIONS,
    KEY_LYRIC,
    KEY_NOTE_NUM,
    KEY_OVERLAP,
    KEY_PHONEME_POSITION,
    KEY_PHONEME_SYMBOL,
    KEY_PHONEMES,
    KEY_PITCH,
    KEY_POSITION,
    KEY_PREUTTER,
    KEY_SNAP_FIRST,
    KEY_VIBRATO,
    KEY_X,
    KEY_Y,
    ENVELOPE_SIZE,
    VIBRATO_FIELDS,
)
from ustx.expressions import ParameterValue
from ustx.models import Envelope, Note, Phoneme, PitchCurve, Point, Vibrato

logger = logging.getLogger(__name__)

T = TypeVar("T")

ROOT_PATH = "<root>"

_MISSING = object()

_TYPE_NAMES = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "boolean",
    int: "integer",
    float: "number",
    type(None): "null",
}


class DecodeError(ValueError):
    """
    Malformed or type-mismatched wire data.

    Attributes:
        path: Offending field (e.g. "pho[0].envelope.data[2].X")
    """

    def __init__(self, path: str, message: str):
        self.path = path or ROOT_PATH
        self.message = message
        super().__init__(f"{self.path}: {message}")


# ---------------------------------------------------------------------------
# Tree readers
# ---------------------------------------------------------------------------

def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _index(path: str, index: int) -> str:
    return f"{path}[{index}]"


def _type_name(node: Any) -> str:
    return _TYPE_NAMES.get(type(node), type(node).__name__)


def _as_mapping(node: Any, path: str) -> Dict[str, Any]:
    if not isinstance(node, dict):
        raise DecodeError(path, f"expected object, got {_type_name(node)}")
    return node


def _as_list(node: Any, path: str) -> List[Any]:
    if not isinstance(node, list):
        raise DecodeError(path, f"expected array, got {_type_name(node)}")
    return node


def _as_str(node: Any, path: str) -> str:
    if not isinstance(node, str):
        raise DecodeError(path, f"expected string, got {_type_name(node)}")
    return node


def _as_bool(node: Any, path: str) -> bool:
    if not isinstance(node, bool):
        raise DecodeError(path, f"expected boolean, got {_type_name(node)}")
    return node


def _as_float(node: Any, path: str) -> float:
    # bool is an int subclass, reject it explicitly
    if isinstance(node, bool) or not isinstance(node, (int, float)):
        raise DecodeError(path, f"expected number, got {_type_name(node)}")
    try:
        value = float(node)
    except OverflowError as e:
        raise DecodeError(path, "number out of range") from e
    # NaN/Infinity are not JSON numbers
    if not math.isfinite(value):
        raise DecodeError(path, f"expected finite number, got {value!r}")
    return value


def _as_int(node: Any, path: str) -> int:
    if isinstance(node, bool) or not isinstance(node, (int, float)):
        raise DecodeError(path, f"expected integer, got {_type_name(node)}")
    if isinstance(node, float):
        if not node.is_integer():
            raise DecodeError(path, f"expected integer, got {node!r}")
        return int(node)
    return node


def _read(node: Dict[str, Any], key: str, path: str,
          reader: Callable[[Any, str], T], default: Any = _MISSING) -> T:
    """Read node[key] through reader; missing keys use default or fail."""
    field_path = _join(path, key)
    if key not in node:
        if default is _MISSING:
            raise DecodeError(field_path, "missing required field")
        return default
    return reader(node[key], field_path)


def decode_expression_pairs(tree: Any, path: str = KEY_EXPRESSIONS) -> List[Tuple[str, float]]:
    """
    Read an "exp" object as raw (abbreviation, number) pairs.

    Args:
        tree: The "exp" object from a note tree
        path: Field path used in error messages

    Returns:
        Pairs in wire order, ready for DescriptorRegistry.bind()

    Raises:
        DecodeError: If the object or any value is malformed
    """
    node = _as_mapping(tree, path)
    pairs = []
    for key, raw in node.items():
        if not isinstance(key, str):
            raise DecodeError(path, f"expected string key, got {_type_name(key)}")
        pairs.append((key, _as_float(raw, _join(path, key))))
    return pairs


# ---------------------------------------------------------------------------
# Codec registry
# ---------------------------------------------------------------------------

Encoder = Callable[["ModelCodec", Any], Any]
Decoder = Callable[["ModelCodec", Any, str], Any]


class ModelCodec:
    """
    Per-type encoder/decoder registry.

    Encoders receive (codec, obj) and return a primitive tree. Decoders
    receive (codec, tree, path) and return the object, raising DecodeError
    with the field path on bad input. Nested objects go back through the
    codec so any registered type can be overridden.
    """

    def __init__(self):
        self._encoders: Dict[type, Encoder] = {}
        self._decoders: Dict[type, Decoder] = {}

    def register(self, cls: type, encoder: Encoder, decoder: Decoder):
        """Register (or replace) the encode/decode pair for a type."""
        self._encoders[cls] = encoder
        self._decoders[cls] = decoder

    def is_registered(self, cls: type) -> bool:
        return cls in self._encoders

    def encode(self, obj: Any) -> Any:
        """
        Encode a registered object to a primitive tree.

        Raises:
            TypeError: If no encoder is registered for the object's type
        """
        encoder = self._encoders.get(type(obj))
        if encoder is None:
            raise TypeError(f"No encoder registered for {type(obj).__name__}")
        return encoder(self, obj)

    def decode(self, tree: Any, cls: Type[T], path: str = "") -> T:
        """
        Decode a primitive tree into an instance of cls.

        Raises:
            TypeError: If no decoder is registered for cls
            DecodeError: If the tree is malformed
        """
        decoder = self._decoders.get(cls)
        if decoder is None:
            raise TypeError(f"No decoder registered for {cls.__name__}")
        return decoder(self, tree, path)

    def dumps(self, obj: Any, config: Optional[CodecConfig] = None) -> str:
        """Encode to JSON text."""
        config = config or CodecConfig()
        return json.dumps(self.encode(obj), indent=config.indent,
                          ensure_ascii=config.ensure_ascii)

    def loads(self, text, cls: Type[T]) -> T:
        """
        Decode JSON text (str or UTF-8 bytes).

        Raises:
            DecodeError: If the text is not valid JSON or the tree is malformed
        """
        try:
            tree = json.loads(text)
        except ValueError as e:
            raise DecodeError(ROOT_PATH, f"invalid JSON: {e}") from e
        return self.decode(tree, cls)

    def packb(self, obj: Any, config: Optional[CodecConfig] = None) -> bytes:
        """Encode to MessagePack bytes."""
        config = config or CodecConfig()
        return msgpack.packb(self.encode(obj), use_bin_type=config.use_bin_type)

    def unpackb(self, data: bytes, cls: Type[T]) -> T:
        """
        Decode MessagePack bytes.

        Raises:
            DecodeError: If the data is corrupt, truncated, has trailing bytes,
                or the tree is malformed
        """
        try:
            tree = msgpack.unpackb(data, raw=False)
        except msgpack.exceptions.ExtraData as e:
            raise DecodeError(ROOT_PATH, f"trailing data after message: {e}") from e
        except (msgpack.exceptions.UnpackException, ValueError) as e:
            raise DecodeError(ROOT_PATH, f"invalid MessagePack data: {e}") from e
        return self.decode(tree, cls)


# ---------------------------------------------------------------------------
# Encoders / decoders
# ---------------------------------------------------------------------------

def _encode_point(codec: ModelCodec, point: Point) -> Dict[str, Any]:
    return {KEY_X: float(point.x), KEY_Y: float(point.y)}


def _decode_point(codec: ModelCodec, tree: Any, path: str) -> Point:
    node = _as_mapping(tree, path)
    return Point(
        x=_read(node, KEY_X, path, _as_float),
        y=_read(node, KEY_Y, path, _as_float),
    )


def _decode_points(codec: ModelCodec, tree: Any, path: str) -> List[Point]:
    items = _as_list(tree, path)
    return [codec.decode(item, Point, _index(path, i)) for i, item in enumerate(items)]


def _encode_envelope(codec: ModelCodec, envelope: Envelope) -> Dict[str, Any]:
    return {KEY_DATA: [codec.encode(p) for p in envelope.points]}


def _decode_envelope(codec: ModelCodec, tree: Any, path: str) -> Envelope:
    node = _as_mapping(tree, path)
    points = _read(node, KEY_DATA, path, lambda t, p: _decode_points(codec, t, p))
    if len(points) != ENVELOPE_SIZE:
        raise DecodeError(_join(path, KEY_DATA),
                          f"expected {ENVELOPE_SIZE} points, got {len(points)}")
    return Envelope(points=tuple(points))


def _encode_pitch(codec: ModelCodec, pitch: PitchCurve) -> Dict[str, Any]:
    return {
        KEY_DATA: [codec.encode(p) for p in pitch.points],
        KEY_SNAP_FIRST: bool(pitch.snap_first),
    }


def _decode_pitch(codec: ModelCodec, tree: Any, path: str) -> PitchCurve:
    node = _as_mapping(tree, path)
    return PitchCurve(
        points=_read(node, KEY_DATA, path, lambda t, p: _decode_points(codec, t, p), []),
        snap_first=_read(node, KEY_SNAP_FIRST, path, _as_bool, True),
    )


def _encode_vibrato(codec: ModelCodec, vibrato: Vibrato) -> Dict[str, Any]:
    return {key: float(getattr(vibrato, attr)) for key, attr in VIBRATO_FIELDS}


def _decode_vibrato(codec: ModelCodec, tree: Any, path: str) -> Vibrato:
    node = _as_mapping(tree, path)
    return Vibrato(**{attr: _read(node, key, path, _as_float, 0.0) for key, attr in VIBRATO_FIELDS})


def _encode_phoneme(codec: ModelCodec, phoneme: Phoneme) -> Dict[str, Any]:
    return {
        KEY_PHONEME_POSITION: int(phoneme.position),
        KEY_PHONEME_SYMBOL: phoneme.phoneme,
        KEY_PREUTTER: float(phoneme.preutterance),
        KEY_OVERLAP: float(phoneme.overlap),
        KEY_ENVELOPE: codec.encode(phoneme.envelope),
    }


def _decode_phoneme(codec: ModelCodec, tree: Any, path: str) -> Phoneme:
    node = _as_mapping(tree, path)
    envelope = Envelope()
    if KEY_ENVELOPE in node:
        envelope = codec.decode(node[KEY_ENVELOPE], Envelope, _join(path, KEY_ENVELOPE))
    return Phoneme(
        position=_read(node, KEY_PHONEME_POSITION, path, _as_int),
        phoneme=_read(node, KEY_PHONEME_SYMBOL, path, _as_str),
        preutterance=_read(node, KEY_PREUTTER, path, _as_float, 0.0),
        overlap=_read(node, KEY_OVERLAP, path, _as_float, 0.0),
        envelope=envelope,
    )


def _encode_value(codec: ModelCodec, value: ParameterValue) -> float:
    # Bare number only; the descriptor is never written
    return float(value.value)


def _decode_value(codec: ModelCodec, tree: Any, path: str) -> ParameterValue:
    return ParameterValue(descriptor=None, value=_as_float(tree, path))


def _encode_note(codec: ModelCodec, note: Note) -> Dict[str, Any]:
    return {
        KEY_POSITION: int(note.position),
        KEY_DURATION: int(note.duration),
        KEY_NOTE_NUM: int(note.note_num),
        KEY_LYRIC: note.lyric,
        KEY_PHONEMES: [codec.encode(p) for p in note.phonemes],
        KEY_PITCH: codec.encode(note.pitch),
        KEY_VIBRATO: codec.encode(note.vibrato),
        KEY_EXPRESSIONS: {abbr: codec.encode(v) for abbr, v in note.expressions.items()},
    }


def _decode_note(codec: ModelCodec, tree: Any, path: str) -> Note:
    node = _as_mapping(tree, path)

    # Absent and empty "pho" both give an empty list; seeding is Note.create()'s job
    phonemes_path = _join(path, KEY_PHONEMES)
    phonemes = [
        codec.decode(item, Phoneme, _index(phonemes_path, i))
        for i, item in enumerate(_read(node, KEY_PHONEMES, path, _as_list, []))
    ]

    pitch = PitchCurve()
    if KEY_PITCH in node:
        pitch = codec.decode(node[KEY_PITCH], PitchCurve, _join(path, KEY_PITCH))

    vibrato = Vibrato()
    if KEY_VIBRATO in node:
        vibrato = codec.decode(node[KEY_VIBRATO], Vibrato, _join(path, KEY_VIBRATO))

    expressions: Dict[str, ParameterValue] = {}
    if KEY_EXPRESSIONS in node:
        exp_path = _join(path, KEY_EXPRESSIONS)
        for abbr, raw in _as_mapping(node[KEY_EXPRESSIONS], exp_path).items():
            if not isinstance(abbr, str):
                raise DecodeError(exp_path, f"expected string key, got {_type_name(abbr)}")
            expressions[abbr] = codec.decode(raw, ParameterValue, _join(exp_path, abbr))

    note = Note(
        position=_read(node, KEY_POSITION, path, _as_int),
        duration=_read(node, KEY_DURATION, path, _as_int),
        note_num=_read(node, KEY_NOTE_NUM, path, _as_int),
        lyric=_read(node, KEY_LYRIC, path, _as_str),
        phonemes=phonemes,
        pitch=pitch,
        vibrato=vibrato,
        expressions=expressions,
    )
    logger.debug("Decoded note at tick %d (%d phonemes, %d expressions)",
                 note.position, len(note.phonemes), len(note.expressions))
    return note


def build_default_codec() -> ModelCodec:
    """Codec with every note model type registered."""
    codec = ModelCodec()
    codec.register(Point, _encode_point, _decode_point)
    codec.register(Envelope, _encode_envelope, _decode_envelope)
    codec.register(PitchCurve, _encode_pitch, _decode_pitch)
    codec.register(Vibrato, _encode_vibrato, _decode_vibrato)
    codec.register(Phoneme, _encode_phoneme, _decode_phoneme)
    codec.register(ParameterValue, _encode_value, _decode_value)
    codec.register(Note, _encode_note, _decode_note)
    return codec


default_codec = build_default_codec()

encode = default_codec.encode
decode = default_codec.decode
dumps = default_codec.dumps
loads = default_codec.loads
packb = default_codec.packb
unpackb = default_codec.unpackb
