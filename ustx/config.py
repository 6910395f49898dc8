from dataclasses import dataclass


@dataclass
class CodecConfig:
    indent: int = 2             # JSON indentation (matches saved projects)
    ensure_ascii: bool = False  # write lyrics as-is, not as \u escapes
    use_bin_type: bool = True   # msgpack: str and bytes stay distinct
