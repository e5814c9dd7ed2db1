from .decode import ConfigError, DecodeOptions, Extensions, Index, StructuralError
from .mesh import (
    VALID_MODES,
    VALID_MORPH_TARGETS,
    Mesh,
    Mode,
    MorphTarget,
    Namespace,
    Primitive,
    Semantic,
    decode_mesh,
    decode_meshes,
    decode_mode,
    decode_morph_target,
    decode_primitive,
    decode_semantic,
    display_semantic,
    encode_semantic,
)
from .path import Path
from .validation import INVALID, Checked, Diagnostic, Error, Invalid, Valid, collect_diagnostics, decode_checked
