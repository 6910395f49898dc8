import pytest

from ustx.expressions import DescriptorRegistry, ParameterDescriptor, ParameterValue
from ustx.models import Envelope, Note, Phoneme, PitchCurve, Point, Vibrato


def test_default_note_has_one_default_phoneme() -> None:
    note = Note.create()
    assert len(note.phonemes) == 1
    phoneme = note.phonemes[0]
    assert phoneme.phoneme == "a"
    assert phoneme.position == 0
    assert phoneme.preutterance == 0
    assert phoneme.overlap == 0
    assert [(p.x, p.y) for p in phoneme.envelope.points] == [
        (0, 0), (0, 100), (0, 100), (0, 100), (0, 0),
    ]


def test_default_note_pitch_and_vibrato() -> None:
    note = Note.create()
    assert note.pitch.points == []
    assert note.pitch.snap_first is True
    vibrato = note.vibrato
    assert (vibrato.length, vibrato.period, vibrato.depth, vibrato.fade_in,
            vibrato.fade_out, vibrato.shift, vibrato.drift) == (0, 0, 0, 0, 0, 0, 0)
    assert note.expressions == {}


def test_create_rejects_non_positive_duration() -> None:
    with pytest.raises(ValueError, match="Duration must be positive"):
        Note.create(duration=0)


def test_end() -> None:
    assert Note.create(position=120, duration=60).end == 180


def test_notes_do_not_share_defaults() -> None:
    a = Note.create()
    b = Note.create()
    a.pitch.points.append(Point(0, 10))
    a.phonemes.append(Phoneme.create("n"))
    assert b.pitch.points == []
    assert len(b.phonemes) == 1


@pytest.mark.parametrize("count", [0, 4, 6])
def test_envelope_requires_five_points(count: int) -> None:
    with pytest.raises(ValueError, match="exactly 5 points"):
        Envelope(points=tuple(Point(0, 0) for _ in range(count)))


def test_envelope_accepts_list_and_stores_tuple() -> None:
    envelope = Envelope(points=[Point(0, 0)] * 5)
    assert isinstance(envelope.points, tuple)


def test_envelope_is_immutable() -> None:
    envelope = Envelope()
    with pytest.raises(AttributeError):
        envelope.points = ()


def test_set_expression_keys_by_abbreviation() -> None:
    velocity = ParameterDescriptor("velocity", "vel", 0, 200, 100)
    note = Note.create()
    note.set_expression(ParameterValue.create(velocity, 150))
    assert note.get_expression_value("vel") == 150
    assert note.get_expression_value("vol") is None
    assert note.get_expression_value("vol", 100) == 100


def test_set_expression_rejects_unbound_value() -> None:
    with pytest.raises(ValueError, match="unbound"):
        Note.create().set_expression(ParameterValue(value=1.0))


def test_bind_expressions_in_place() -> None:
    note = Note.create()
    note.expressions = {"vel": ParameterValue(value=80.0), "zzz": ParameterValue(value=1.0)}

    note.bind_expressions(DescriptorRegistry.default(), drop_unknown=True)

    assert list(note.expressions) == ["vel"]
    assert note.expressions["vel"].descriptor.name == "velocity"
    assert note.expressions["vel"].value == 80.0


def test_clone_copies_owned_parts_and_shares_descriptors() -> None:
    velocity = ParameterDescriptor("velocity", "vel", 0, 200, 100)
    note = Note.create(lyric="ka")
    note.phonemes = [Phoneme.create("k"), Phoneme.create("a", position=30)]
    note.pitch = PitchCurve(points=[Point(0, 0)], snap_first=False)
    note.vibrato = Vibrato(depth=20)
    note.set_expression(ParameterValue.create(velocity))

    copy = note.clone()

    assert copy == note
    assert copy.phonemes is not note.phonemes
    assert copy.phonemes[0] is not note.phonemes[0]
    assert copy.pitch.points is not note.pitch.points
    assert copy.vibrato is not note.vibrato
    assert copy.expressions["vel"] is not note.expressions["vel"]
    assert copy.expressions["vel"].descriptor is velocity

    copy.expressions["vel"].value = 1
    copy.pitch.points.append(Point(10, 10))
    assert note.expressions["vel"].value == 100
    assert len(note.pitch.points) == 1
