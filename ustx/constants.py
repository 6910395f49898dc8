"""
Constants for the USTx note format.

Wire key names, default note shapes and the standard expression table.
"""

# Note keys (written in this order)
KEY_POSITION = "pos"
KEY_DURATION = "dur"
KEY_NOTE_NUM = "num"
KEY_LYRIC = "lrc"
KEY_PHONEMES = "pho"
KEY_PITCH = "pit"
KEY_VIBRATO = "vbr"
KEY_EXPRESSIONS = "exp"

# Phoneme keys
KEY_PHONEME_POSITION = "position"
KEY_PHONEME_SYMBOL = "phoneme"
KEY_PREUTTER = "preutter"
KEY_OVERLAP = "overlap"
KEY_ENVELOPE = "envelope"

# Curve keys (envelope and pitch share "data" and X/Y points)
KEY_DATA = "data"
KEY_X = "X"
KEY_Y = "Y"
KEY_SNAP_FIRST = "snapFirst"

# Vibrato keys, paired with the model attribute they map to
VIBRATO_FIELDS = (
    ("length", "length"),
    ("period", "period"),
    ("depth", "depth"),
    ("in", "fade_in"),
    ("out", "fade_out"),
    ("shift", "shift"),
    ("drift", "drift"),
)

# Phoneme defaults
DEFAULT_PHONEME = "a"
ENVELOPE_SIZE = 5
DEFAULT_ENVELOPE_POINTS = (
    (0.0, 0.0),
    (0.0, 100.0),
    (0.0, 100.0),
    (0.0, 100.0),
    (0.0, 0.0),
)

# Note defaults (ticks at 480 TPQN)
DEFAULT_DURATION = 480
DEFAULT_NOTE_NUM = 60
DEFAULT_LYRIC = "a"

# Standard expressions: (name, abbr, min, max, default)
DEFAULT_EXPRESSIONS = (
    ("velocity", "vel", 0, 200, 100),
    ("volume", "vol", 0, 200, 100),
    ("attack", "atk", 0, 200, 100),
    ("decay", "dec", 0, 100, 0),
    ("gender", "gen", -100, 100, 0),
    ("breathiness", "bre", 0, 100, 0),
    ("lowpass", "lpf", 0, 100, 0),
    ("modulation", "mod", 0, 100, 0),
)
