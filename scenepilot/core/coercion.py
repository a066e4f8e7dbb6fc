# scenepilot/core/coercion.py
"""
值转换：把指令中的文本按成员声明的 TypeTag 转成强类型值。

- 数字与区域设置无关：小数点为 "."，不接受千位分隔符
- 向量 / 颜色：可选括号，逗号分隔，分量个数必须完全一致
- 颜色分量按 0-1 浮点数处理
- 其他类型通过 register_converter 注册的转换函数处理
"""

import re
from typing import Any, Callable, Dict, List

from scenegraph.core.values import Color, Quaternion, TypeTag, Vector2, Vector3

from .errors import ConversionError

Converter = Callable[[str], Any]

_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?[fF]?$")
_INT_RE = re.compile(r"^[+-]?\d+$")

_converters: Dict[TypeTag, Converter] = {}


def register_converter(type_tag: TypeTag, converter: Converter) -> None:
    """为其他类型注册 文本 -> 值 的转换函数；同一 TypeTag 重复注册会覆盖"""
    _converters[type_tag] = converter


def unregister_converter(type_tag: TypeTag) -> None:
    _converters.pop(type_tag, None)


def parse_float(text: str) -> float:
    s = text.strip()
    if not _FLOAT_RE.match(s):
        raise ConversionError(text, "float")
    return float(s.rstrip("fF"))


def parse_int(text: str) -> int:
    s = text.strip()
    if not _INT_RE.match(s):
        raise ConversionError(text, "int")
    return int(s)


def parse_bool(text: str) -> bool:
    s = text.strip().lower()
    if s == "true":
        return True
    if s == "false":
        return False
    raise ConversionError(text, "bool", "expected 'true' or 'false'")


def parse_components(text: str, type_name: str, arity: List[int]) -> List[float]:
    s = text.strip()
    if s.startswith("(") and s.endswith(")"):
        s = s[1:-1]
    parts = s.split(",")
    if len(parts) not in arity:
        expected = " or ".join(str(n) for n in arity)
        raise ConversionError(text, type_name, f"expected {expected} components, got {len(parts)}")
    try:
        return [parse_float(p) for p in parts]
    except ConversionError:
        raise ConversionError(text, type_name, "components must be numbers") from None


def _vector2(text: str) -> Vector2:
    return Vector2(*parse_components(text, "Vector2", [2]))


def _vector3(text: str) -> Vector3:
    return Vector3(*parse_components(text, "Vector3", [3]))


def _color(text: str) -> Color:
    return Color(*parse_components(text, "Color", [3, 4]))


def _quaternion(text: str) -> Quaternion:
    return Quaternion(*parse_components(text, "Quaternion", [4]))


_BUILTIN: Dict[TypeTag, Converter] = {
    TypeTag.FLOAT: parse_float,
    TypeTag.INT: parse_int,
    TypeTag.BOOL: parse_bool,
    TypeTag.STRING: lambda text: text,
    TypeTag.VECTOR2: _vector2,
    TypeTag.VECTOR3: _vector3,
    TypeTag.COLOR: _color,
}


def coerce(text: str, type_tag: TypeTag) -> Any:
    """
    把 text 转换为 type_tag 对应的值。

    Raises:
        ConversionError: 文本格式不符合目标类型，或该类型没有可用的转换函数。
    """
    converter = _BUILTIN.get(type_tag) or _converters.get(type_tag)
    if converter is None:
        raise ConversionError(text, type_tag.value, "unsupported type")
    try:
        return converter(text)
    except ConversionError:
        raise
    except (TypeError, ValueError) as e:
        raise ConversionError(text, type_tag.value, str(e)) from e


register_converter(TypeTag.QUATERNION, _quaternion)
