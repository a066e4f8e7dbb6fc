# scenepilot/core/intent.py
"""
自然语言创建请求，例如 "create a red cube at (0, 1, 2) named Crate"。

只识别基础几何体；位置缺省为相机前方 3 个单位。
这里的 color(r,g,b) 使用 0-255 的分量，换算并截断到 0-1。
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional

from scenegraph.core.values import Color, Vector3

CREATION_VERBS = (
    "create", "add", "make", "place", "spawn", "generate", "put",
    "instantiate", "build", "construct", "new",
)

PRIMITIVE_NOUNS = ("cube", "sphere", "cylinder", "plane", "capsule", "quad")

# 同义词 -> 几何体
PRIMITIVE_SYNONYMS: Dict[str, str] = {
    "cube": "Cube", "box": "Cube", "square": "Cube",
    "sphere": "Sphere", "ball": "Sphere", "globe": "Sphere",
    "cylinder": "Cylinder", "tube": "Cylinder", "pipe": "Cylinder",
    "capsule": "Capsule", "pill": "Capsule",
    "plane": "Plane", "floor": "Plane", "ground": "Plane",
    "quad": "Quad", "panel": "Quad",
}

NAMED_COLORS: Dict[str, Color] = {
    "red": Color.RED,
    "green": Color.GREEN,
    "blue": Color.BLUE,
    "yellow": Color.YELLOW,
    "cyan": Color.CYAN,
    "magenta": Color.MAGENTA,
    "white": Color.WHITE,
    "black": Color.BLACK,
    "grey": Color.GREY,
    "gray": Color.GREY,
}

_NUM = r"(-?\d+\.?\d*)"
RE_POSITION = re.compile(r"\b(?:at|position|pos)\s*\(?" + _NUM + r"\s*,?\s*" + _NUM + r"\s*,?\s*" + _NUM + r"\)?")
RE_AXIS = re.compile(r"\b([xyz])\s*=?\s*" + _NUM)
RE_SCALE = re.compile(r"\b(?:scale|size)\s*\(?" + _NUM + r"\s*,?\s*" + _NUM + r"\s*,?\s*" + _NUM + r"\)?")
RE_UNIFORM_SCALE = re.compile(r"\b(?:scale|size)\s*" + _NUM)
RE_RGB = re.compile(r"\bcolou?r\s*\(?(\d+\.?\d*)\s*,?\s*(\d+\.?\d*)\s*,?\s*(\d+\.?\d*)\)?")
RE_NAME = re.compile(r"\b(?:named|called|name|call)\s+(?:it\s+|the\s+)?(?:\"([^\"]+)\"|'([^']+)'|([A-Za-z0-9_]+))",
                     re.IGNORECASE)


@dataclass
class CreationRequest:
    primitive: str
    position: Optional[Vector3] = None  # None 表示使用默认位置
    scale: Vector3 = Vector3.ONE
    color: Color = Color.WHITE
    name: Optional[str] = None

    @property
    def object_name(self) -> str:
        return self.name or self.primitive


def has_creation_intent(query: str) -> bool:
    """
    含有创建动词 (整词)，并且提到了基础几何体，
    或者出现 "<动词> object" / "<动词> a" / "<动词> an" 这类明确说法。
    """
    q = query.lower().strip()
    for verb in CREATION_VERBS:
        if not re.search(rf"\b{verb}\b", q):
            continue
        if any(noun in q for noun in PRIMITIVE_NOUNS):
            return True
        if f"{verb} object" in q or f"{verb} a" in q or f"{verb} an" in q:
            return True
    return False


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def parse_primitive(query: str) -> Optional[str]:
    q = query.lower()
    for word, primitive in PRIMITIVE_SYNONYMS.items():
        if word in q:
            return primitive
    return None


def parse_position(query: str, default: Optional[Vector3] = None) -> Optional[Vector3]:
    q = query.lower()
    match = RE_POSITION.search(q)
    if match:
        return Vector3(*(float(g) for g in match.groups()))

    axes = RE_AXIS.findall(q)
    if axes:
        values = dict(zip("xyz", (default or Vector3.ZERO).as_tuple()))
        for axis, number in axes:
            values[axis] = float(number)
        return Vector3(values["x"], values["y"], values["z"])
    return default


def parse_scale(query: str) -> Vector3:
    q = query.lower()
    match = RE_SCALE.search(q)
    if match:
        return Vector3(*(float(g) for g in match.groups()))
    match = RE_UNIFORM_SCALE.search(q)
    if match:
        s = float(match.group(1))
        return Vector3(s, s, s)
    return Vector3.ONE


def parse_color(query: str) -> Color:
    q = query.lower()
    for word, color in NAMED_COLORS.items():
        if re.search(rf"\b{word}\b", q):
            return color
    match = RE_RGB.search(q)
    if match:
        r, g, b = (_clamp01(float(v) / 255.0) for v in match.groups())
        return Color(r, g, b)
    return Color.WHITE


def parse_name(query: str) -> Optional[str]:
    match = RE_NAME.search(query)
    if not match:
        return None
    name = next((g for g in match.groups() if g), "").strip()
    return name or None


def parse_creation_request(query: str, default_position: Optional[Vector3] = None) -> Optional[CreationRequest]:
    """
    解析创建请求；找不到几何体时返回 None。
    default_position 是未指定位置时的落点，x= / y= / z= 只覆盖对应分量。
    """
    primitive = parse_primitive(query)
    if primitive is None:
        return None
    return CreationRequest(
        primitive=primitive,
        position=parse_position(query, default_position),
        scale=parse_scale(query),
        color=parse_color(query),
        name=parse_name(query),
    )
