"""Tests for the checked-value wrapper and diagnostic collection."""

import pytest

from gltfmesh import INVALID, Diagnostic, Error, Invalid, Path, Valid, collect_diagnostics, decode_checked


def _small_int(raw):
    return raw if 0 <= raw < 3 else None


class TestChecked:

    def test_recognized_is_valid(self):
        assert decode_checked(2, _small_int) == Valid(2)

    def test_unrecognized_is_invalid(self):
        result = decode_checked(7, _small_int)
        assert result is INVALID
        assert not result.is_valid()

    def test_invalid_instances_are_equal(self):
        assert Invalid() == INVALID
        assert hash(Invalid()) == hash(INVALID)

    def test_unwrap(self):
        assert Valid("x").unwrap() == "x"
        with pytest.raises(ValueError):
            INVALID.unwrap()

    def test_value_or(self):
        assert Valid(1).value_or(5) == 1
        assert INVALID.value_or(5) == 5


class TestPath:

    def test_builds_dotted_path(self):
        path = Path.root().field("meshes").index(0).field("primitives").index(2).field("mode")
        assert str(path) == "meshes[0].primitives[2].mode"

    def test_key_is_quoted(self):
        path = Path.root().field("attributes").key("COLOR_0")
        assert str(path) == 'attributes["COLOR_0"]'

    def test_root(self):
        assert str(Path.root()) == "<root>"


class _Node:
    def __init__(self, *values):
        self.values = values

    def validate(self, path, report, table_sizes=None):
        for i, value in enumerate(self.values):
            if not value.is_valid():
                report(path.index(i), Error.INVALID)


class TestCollectDiagnostics:

    def test_collects_every_invalid(self):
        node = _Node(Valid(1), INVALID, INVALID)
        diagnostics = collect_diagnostics(node, Path.root().field("items"))
        assert diagnostics == [
            Diagnostic(Path("items[1]"), Error.INVALID),
            Diagnostic(Path("items[2]"), Error.INVALID),
        ]

    def test_str(self):
        assert str(Diagnostic(Path("a.b"), Error.INVALID)) == "a.b: invalid value"
