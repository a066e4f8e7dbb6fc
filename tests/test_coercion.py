# tests/test_coercion.py
import pytest

from scenegraph.core.values import Color, Quaternion, TypeTag, Vector2, Vector3
from scenepilot.core.coercion import coerce, register_converter, unregister_converter
from scenepilot.core.errors import ConversionError


@pytest.mark.parametrize("text, expected", [
    ("10", 10.0),
    ("-2.5", -2.5),
    ("3.5f", 3.5),
    (" .25 ", 0.25),
    ("1e3", 1000.0),
])
def test_float(text, expected):
    assert coerce(text, TypeTag.FLOAT) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["abc", "1,5", "1.000,0", ""])
def test_float_rejects_locale_and_garbage(text):
    with pytest.raises(ConversionError):
        coerce(text, TypeTag.FLOAT)


def test_int():
    assert coerce("42", TypeTag.INT) == 42
    with pytest.raises(ConversionError):
        coerce("4.2", TypeTag.INT)


@pytest.mark.parametrize("text, expected", [("true", True), ("False", False), (" TRUE ", True)])
def test_bool(text, expected):
    assert coerce(text, TypeTag.BOOL) is expected


def test_bool_rejects_numbers():
    with pytest.raises(ConversionError) as exc:
        coerce("1", TypeTag.BOOL)
    assert "expected 'true' or 'false'" in str(exc.value)


def test_string_is_passed_through():
    assert coerce("Hello world", TypeTag.STRING) == "Hello world"


def test_vectors_with_and_without_parentheses():
    assert coerce("(1,2,3)", TypeTag.VECTOR3) == Vector3(1.0, 2.0, 3.0)
    assert coerce("1, 2.5, -3", TypeTag.VECTOR3) == Vector3(1.0, 2.5, -3.0)
    assert coerce("(4,5)", TypeTag.VECTOR2) == Vector2(4.0, 5.0)


def test_vector_arity_must_match():
    with pytest.raises(ConversionError) as exc:
        coerce("(1,2)", TypeTag.VECTOR3)
    assert "expected 3 components, got 2" in str(exc.value)


def test_vector_components_must_be_numbers():
    with pytest.raises(ConversionError) as exc:
        coerce("(1,x,3)", TypeTag.VECTOR3)
    assert str(exc.value) == "Cannot convert '(1,x,3)' to Vector3: components must be numbers"


def test_color_is_zero_to_one():
    assert coerce("(1,0,0)", TypeTag.COLOR) == Color(1.0, 0.0, 0.0, 1.0)
    assert coerce("(0.5,0.5,0.5,0.25)", TypeTag.COLOR) == Color(0.5, 0.5, 0.5, 0.25)


def test_color_arity():
    with pytest.raises(ConversionError):
        coerce("(1,0)", TypeTag.COLOR)


def test_quaternion_is_registered():
    assert coerce("(0,0,0,1)", TypeTag.QUATERNION) == Quaternion(0.0, 0.0, 0.0, 1.0)


def test_unsupported_type():
    with pytest.raises(ConversionError) as exc:
        coerce("Player", TypeTag.ENTITY_REF)
    assert "unsupported type" in str(exc.value)


def test_register_custom_converter():
    register_converter(TypeTag.MATERIAL, lambda text: text.upper())
    try:
        assert coerce("metal", TypeTag.MATERIAL) == "METAL"
    finally:
        unregister_converter(TypeTag.MATERIAL)
    with pytest.raises(ConversionError):
        coerce("metal", TypeTag.MATERIAL)


def test_custom_converter_value_error_becomes_conversion_error():
    def strict(text):
        raise ValueError("not a known material")

    register_converter(TypeTag.MATERIAL, strict)
    try:
        with pytest.raises(ConversionError) as exc:
            coerce("wood", TypeTag.MATERIAL)
        assert "not a known material" in str(exc.value)
    finally:
        unregister_converter(TypeTag.MATERIAL)
