# scenegraph/core/values.py
"""
场景图中使用的值类型。
Vector2 / Vector3 / Color / Quaternion 以及成员声明所用的 TypeTag。
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class TypeTag(Enum):
    """组件成员声明的值类型"""
    FLOAT = "float"
    INT = "int"
    BOOL = "bool"
    STRING = "string"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    COLOR = "color"
    QUATERNION = "quaternion"
    MATERIAL = "material"
    ENTITY_REF = "entity"        # 引用场景中的 GameObject
    COMPONENT_REF = "component"  # 引用某种类型的组件
    ASSET_REF = "asset"          # 引用项目资源 (prefab 等)

    @property
    def is_reference(self) -> bool:
        return self in (TypeTag.ENTITY_REF, TypeTag.COMPONENT_REF, TypeTag.ASSET_REF)


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g})"


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def scaled(self, factor: float) -> "Vector3":
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g}, {self.z:g})"


Vector3.ZERO = Vector3(0.0, 0.0, 0.0)
Vector3.ONE = Vector3(1.0, 1.0, 1.0)
Vector3.FORWARD = Vector3(0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Color:
    """RGBA 颜色，分量均为 0-1 浮点数"""
    r: float
    g: float
    b: float
    a: float = 1.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)

    def __str__(self) -> str:
        return f"RGBA({self.r:.3f}, {self.g:.3f}, {self.b:.3f}, {self.a:.3f})"


Color.WHITE = Color(1.0, 1.0, 1.0)
Color.BLACK = Color(0.0, 0.0, 0.0)
Color.RED = Color(1.0, 0.0, 0.0)
Color.GREEN = Color(0.0, 1.0, 0.0)
Color.BLUE = Color(0.0, 0.0, 1.0)
Color.YELLOW = Color(1.0, 0.92, 0.016)
Color.CYAN = Color(0.0, 1.0, 1.0)
Color.MAGENTA = Color(1.0, 0.0, 1.0)
Color.GREY = Color(0.5, 0.5, 0.5)


@dataclass(frozen=True)
class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls(0.0, 0.0, 0.0, 1.0)

    @classmethod
    def from_euler(cls, euler: Vector3) -> "Quaternion":
        """
        由欧拉角 (度) 构造旋转。
        与编辑器约定一致：先绕 z，再绕 x，最后绕 y。
        """
        def axis(angle_deg: float, ax: float, ay: float, az: float) -> "Quaternion":
            half = math.radians(angle_deg) / 2.0
            s = math.sin(half)
            return cls(ax * s, ay * s, az * s, math.cos(half))

        qx = axis(euler.x, 1.0, 0.0, 0.0)
        qy = axis(euler.y, 0.0, 1.0, 0.0)
        qz = axis(euler.z, 0.0, 0.0, 1.0)
        return qy * qx * qz

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        return Quaternion(
            self.w * other.x + self.x * other.w + self.y * other.z - self.z * other.y,
            self.w * other.y - self.x * other.z + self.y * other.w + self.z * other.x,
            self.w * other.z + self.x * other.y - self.y * other.x + self.z * other.w,
            self.w * other.w - self.x * other.x - self.y * other.y - self.z * other.z,
        )

    def rotate(self, v: Vector3) -> Vector3:
        """用该四元数旋转向量"""
        p = Quaternion(v.x, v.y, v.z, 0.0)
        conj = Quaternion(-self.x, -self.y, -self.z, self.w)
        r = self * p * conj
        return Vector3(r.x, r.y, r.z)

    @property
    def euler_angles(self) -> Vector3:
        """from_euler 的逆运算，各分量归一到 [0, 360)"""
        x, y, z, w = self.x, self.y, self.z, self.w
        sin_x = max(-1.0, min(1.0, -2.0 * (y * z - w * x)))
        ex = math.degrees(math.asin(sin_x))
        ey = math.degrees(math.atan2(2.0 * (x * z + w * y), 1.0 - 2.0 * (x * x + y * y)))
        ez = math.degrees(math.atan2(2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z)))
        return Vector3(*(round(a % 360.0, 4) % 360.0 for a in (ex, ey, ez)))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.z, self.w)

    def __str__(self) -> str:
        return f"({self.x:.4f}, {self.y:.4f}, {self.z:.4f}, {self.w:.4f})"
