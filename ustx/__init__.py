"""
Note data model and wire codec for USTx singing-voice projects.

Modules:
- models: Note, Phoneme, Envelope, PitchCurve, Vibrato
- expressions: Expression descriptors, values and the re-binding registry
- codec: JSON / MessagePack encoding (DecodeError, ModelCodec)
- config: Codec formatting options
- constants: Wire keys, default shapes, standard expressions
"""
from ustx.codec import DecodeError, ModelCodec, decode, dumps, encode, loads, packb, unpackb
from ustx.config import CodecConfig
from ustx.expressions import DescriptorRegistry, ParameterDescriptor, ParameterValue
from ustx.models import Envelope, Note, Phoneme, PitchCurve, Point, Vibrato

__all__ = [
    "CodecConfig",
    "DecodeError",
    "DescriptorRegistry",
    "Envelope",
    "ModelCodec",
    "Note",
    "ParameterDescriptor",
    "ParameterValue",
    "Phoneme",
    "PitchCurve",
    "Point",
    "Vibrato",
    "decode",
    "dumps",
    "encode",
    "loads",
    "packb",
    "unpackb",
]
