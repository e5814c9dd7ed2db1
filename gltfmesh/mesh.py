from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .decode import (
    DEFAULT_OPTIONS,
    INDEX_MAX,
    DecodeOptions,
    Extensions,
    Index,
    decode_extensions,
    decode_extras,
    decode_index,
    decode_name,
    decode_optional_index,
    expect_float,
    expect_int,
    expect_list,
    expect_object,
    expect_str,
    log_unknown_fields,
    optional,
    require,
)
from .path import Path
from .validation import Checked, Report, Valid, decode_checked, validate_checked

log = logging.getLogger(__name__)

# GL primitive topology codes
POINTS = 0
LINES = 1
LINE_LOOP = 2
LINE_STRIP = 3
TRIANGLES = 4
TRIANGLE_STRIP = 5
TRIANGLE_FAN = 6

VALID_MODES: tuple[int, ...] = (
    POINTS,
    LINES,
    LINE_LOOP,
    LINE_STRIP,
    TRIANGLES,
    TRIANGLE_STRIP,
    TRIANGLE_FAN,
)

VALID_MORPH_TARGETS: tuple[str, ...] = ("POSITION", "NORMAL", "TANGENT")

INVALID_SEMANTIC_NAME = "<invalid semantic name>"

_SET_INDEX_RE = re.compile(r"[0-9]+")


class Mode(enum.IntEnum):
    """The type of primitives to render."""

    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


DEFAULT_MODE: Checked[Mode] = Valid(Mode.TRIANGLES)


def _recognize_mode(code: int) -> Mode | None:
    if code not in VALID_MODES:
        return None
    return Mode(code)


def decode_mode(value: Any, path: Path | None = None) -> Checked[Mode]:
    """Decode a primitive ``mode``.

    ``None`` (field absent) gives the default, triangles. Integers outside
    ``VALID_MODES`` give ``INVALID``; anything that is not an integer is a
    structural error.
    """
    if value is None:
        return DEFAULT_MODE
    code = expect_int(value, path or Path.root().field("mode"))
    return decode_checked(code, _recognize_mode)


class Namespace(enum.Enum):
    POSITIONS = "POSITION"
    NORMALS = "NORMAL"
    TANGENTS = "TANGENT"
    COLORS = "COLOR_"
    TEX_COORDS = "TEXCOORD_"
    JOINTS = "JOINTS_"
    WEIGHTS = "WEIGHTS_"
    EXTRAS = "_"


_PLAIN = (Namespace.POSITIONS, Namespace.NORMALS, Namespace.TANGENTS)
_INDEXED = (Namespace.COLORS, Namespace.TEX_COORDS, Namespace.JOINTS, Namespace.WEIGHTS)


@dataclass(frozen=True)
class Semantic:
    """Vertex attribute semantic name.

    Colors, texture coordinates, joints and weights carry a set index;
    application-specific (``_NAME``) semantics carry their name.
    """

    namespace: Namespace
    set_index: Optional[int] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        indexed = self.namespace in _INDEXED
        if indexed and self.set_index is None:
            raise ValueError(f"{self.namespace.name} needs a set index")
        if not indexed and self.set_index is not None:
            raise ValueError(f"{self.namespace.name} takes no set index")
        named = self.namespace is Namespace.EXTRAS
        if named and self.name is None:
            raise ValueError(f"{self.namespace.name} needs a name")
        if not named and self.name is not None:
            raise ValueError(f"{self.namespace.name} takes no name")

    @staticmethod
    def colors(set_index: int) -> "Semantic":
        return Semantic(Namespace.COLORS, set_index)

    @staticmethod
    def tex_coords(set_index: int) -> "Semantic":
        return Semantic(Namespace.TEX_COORDS, set_index)

    @staticmethod
    def joints(set_index: int) -> "Semantic":
        return Semantic(Namespace.JOINTS, set_index)

    @staticmethod
    def weights(set_index: int) -> "Semantic":
        return Semantic(Namespace.WEIGHTS, set_index)

    @staticmethod
    def extras(name: str) -> "Semantic":
        return Semantic(Namespace.EXTRAS, name=name)

    @staticmethod
    def parse(s: str, extra_semantics: bool = False) -> "Semantic | None":
        for namespace in _PLAIN:
            if s == namespace.value:
                return Semantic(namespace)
        if extra_semantics and s.startswith(Namespace.EXTRAS.value):
            return Semantic.extras(s[len(Namespace.EXTRAS.value):])
        for namespace in _INDEXED:
            if s.startswith(namespace.value):
                set_index = _parse_set_index(s[len(namespace.value):])
                if set_index is None:
                    return None
                return Semantic(namespace, set_index)
        return None

    def encode(self) -> str:
        if self.namespace in _INDEXED:
            return f"{self.namespace.value}{self.set_index}"
        if self.namespace is Namespace.EXTRAS:
            return f"{self.namespace.value}{self.name}"
        return self.namespace.value

    def __str__(self) -> str:
        return self.encode()


POSITIONS = Semantic(Namespace.POSITIONS)
NORMALS = Semantic(Namespace.NORMALS)
TANGENTS = Semantic(Namespace.TANGENTS)


def _parse_set_index(text: str) -> int | None:
    # ASCII digits only: no sign, no whitespace
    if not _SET_INDEX_RE.fullmatch(text):
        return None
    n = int(text)
    if n > INDEX_MAX:
        return None
    return n


def decode_semantic(
    s: Any, options: DecodeOptions | None = None, path: Path | None = None
) -> Checked[Semantic]:
    s = expect_str(s, path or Path.root().field("attributes"))
    extra_semantics = (options or DEFAULT_OPTIONS).extra_semantics
    return decode_checked(s, lambda raw: Semantic.parse(raw, extra_semantics))


def encode_semantic(semantic: Semantic) -> str:
    return semantic.encode()


def display_semantic(checked: Checked[Semantic]) -> str:
    """Name to show in diagnostics. The placeholder is not a parseable name."""
    if checked.is_valid():
        return checked.unwrap().encode()
    return INVALID_SEMANTIC_NAME


@dataclass(frozen=True)
class MorphTarget:
    """Per-vertex displacements for one morph target."""

    positions: Index | None = None
    normals: Index | None = None
    tangents: Index | None = None

    def validate(self, path: Path, report: Report, table_sizes: Mapping[str, int] | None = None) -> None:
        for name, ref in zip(VALID_MORPH_TARGETS, (self.positions, self.normals, self.tangents)):
            if ref is not None:
                ref.validate(path.field(name), report, table_sizes)


def decode_morph_target(value: Any, path: Path) -> MorphTarget:
    data = expect_object(value, path)
    log_unknown_fields(data, VALID_MORPH_TARGETS, path)
    return MorphTarget(
        positions=decode_optional_index(data, "POSITION", "accessors", path),
        normals=decode_optional_index(data, "NORMAL", "accessors", path),
        tangents=decode_optional_index(data, "TANGENT", "accessors", path),
    )


_PRIMITIVE_FIELDS = ("attributes", "extensions", "extras", "indices", "material", "mode", "targets")


@dataclass(frozen=True)
class Primitive:
    """Geometry to be rendered with the given material."""

    attributes: Mapping[Checked[Semantic], Index]
    extensions: Extensions = field(default_factory=Extensions)
    extras: Any = None
    indices: Index | None = None
    material: Index | None = None
    mode: Checked[Mode] = DEFAULT_MODE
    targets: tuple[MorphTarget, ...] | None = None

    def get(self, semantic: Semantic) -> Index | None:
        return self.attributes.get(Valid(semantic))

    def validate(self, path: Path, report: Report, table_sizes: Mapping[str, int] | None = None) -> None:
        for key, ref in self.attributes.items():
            key_path = path.field("attributes").key(display_semantic(key))
            validate_checked(key, key_path, report)
            ref.validate(key_path, report, table_sizes)
        if self.indices is not None:
            self.indices.validate(path.field("indices"), report, table_sizes)
        if self.material is not None:
            self.material.validate(path.field("material"), report, table_sizes)
        validate_checked(self.mode, path.field("mode"), report)
        for i, target in enumerate(self.targets or ()):
            target.validate(path.field("targets").index(i), report, table_sizes)


def decode_attributes(value: Any, path: Path, options: DecodeOptions) -> dict[Checked[Semantic], Index]:
    data = expect_object(value, path)
    attributes: dict[Checked[Semantic], Index] = {}
    for name, ref in data.items():
        key = decode_semantic(name, options, path)
        if not key.is_valid():
            log.debug("%s: unrecognized attribute semantic %r", path, name)
        # duplicates after decoding: last one wins
        attributes[key] = decode_index(ref, "accessors", path.key(name))
    return attributes


def decode_primitive(value: Any, path: Path | None = None, options: DecodeOptions | None = None) -> Primitive:
    path = path or Path.root()
    options = options or DEFAULT_OPTIONS
    data = expect_object(value, path)
    log_unknown_fields(data, _PRIMITIVE_FIELDS, path)

    attributes = decode_attributes(require(data, "attributes", path), path.field("attributes"), options)

    targets = None
    raw_targets = optional(data, "targets")
    if raw_targets is not None:
        targets_path = path.field("targets")
        targets = tuple(
            decode_morph_target(item, targets_path.index(i))
            for i, item in enumerate(expect_list(raw_targets, targets_path))
        )

    return Primitive(
        attributes=MappingProxyType(attributes),
        extensions=decode_extensions(data, path),
        extras=decode_extras(data, options),
        indices=decode_optional_index(data, "indices", "accessors", path),
        material=decode_optional_index(data, "material", "materials", path),
        mode=decode_mode(optional(data, "mode"), path.field("mode")),
        targets=targets,
    )


_MESH_FIELDS = ("extensions", "extras", "name", "primitives", "weights")


@dataclass(frozen=True)
class Mesh:
    """A set of primitives to be rendered.

    A node can contain one or more meshes and its transform places the meshes
    in the scene.
    """

    primitives: tuple[Primitive, ...]
    extensions: Extensions = field(default_factory=Extensions)
    extras: Any = None
    name: str | None = None
    weights: tuple[float, ...] | None = None

    def validate(self, path: Path, report: Report, table_sizes: Mapping[str, int] | None = None) -> None:
        for i, primitive in enumerate(self.primitives):
            primitive.validate(path.field("primitives").index(i), report, table_sizes)


def decode_mesh(value: Any, path: Path | None = None, options: DecodeOptions | None = None) -> Mesh:
    """Decode one entry of the document's ``meshes`` array.

    Raises ``StructuralError`` at the first field with the wrong shape.
    Unrecognized modes and attribute semantics are kept as ``INVALID`` and
    surface later through ``Mesh.validate``.
    """
    path = path or Path.root()
    options = options or DEFAULT_OPTIONS
    data = expect_object(value, path)
    log_unknown_fields(data, _MESH_FIELDS, path)

    primitives_path = path.field("primitives")
    primitives = tuple(
        decode_primitive(item, primitives_path.index(i), options)
        for i, item in enumerate(expect_list(require(data, "primitives", path), primitives_path))
    )

    weights = None
    raw_weights = optional(data, "weights")
    if raw_weights is not None:
        weights_path = path.field("weights")
        weights = tuple(
            expect_float(w, weights_path.index(i)) for i, w in enumerate(expect_list(raw_weights, weights_path))
        )

    return Mesh(
        primitives=primitives,
        extensions=decode_extensions(data, path),
        extras=decode_extras(data, options),
        name=decode_name(data, path, options),
        weights=weights,
    )


def decode_meshes(value: Any, path: Path | None = None, options: DecodeOptions | None = None) -> tuple[Mesh, ...]:
    path = path or Path.root().field("meshes")
    return tuple(decode_mesh(item, path.index(i), options) for i, item in enumerate(expect_list(value, path)))
