# scenegraph/core/scripts.py
"""
从 C# 脚本源码中提取可序列化字段，生成 ScriptSchema。

只识别挂载型脚本 (class X : MonoBehaviour)。字段需为 public 或带
[SerializeField]；static / const / readonly、[HideInInspector]、
[NonSerialized] 以及数组 / 泛型集合都会被忽略。
"""

import re
from typing import Optional

from .components import ComponentRegistry, ScriptField, ScriptSchema
from .values import TypeTag

RE_MONO = re.compile(r'class\s+([A-Za-z_]\w*)\s*:\s*MonoBehaviour\b')
RE_LINE_COMMENT = re.compile(r'//[^\n]*')
RE_BLOCK_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)
RE_FIELD = re.compile(
    r'(?P<attrs>(?:\[[^\]]*\]\s*)*)'
    r'(?P<access>\b(?:public|private|protected|internal)\s+)?'
    r'(?P<mods>(?:(?:static|const|readonly|new)\s+)*)'
    r'(?P<type>[A-Za-z_][\w.]*(?:<[^;=()]*>|\[\])?)\s+'
    r'(?P<name>[A-Za-z_]\w*)\s*(?:=[^;{}]*)?;'
)
RE_TOOLTIP = re.compile(r'Tooltip\(\s*"([^"]*)"\s*\)')

VALUE_TYPES = {
    "float": TypeTag.FLOAT, "double": TypeTag.FLOAT,
    "int": TypeTag.INT, "long": TypeTag.INT, "short": TypeTag.INT,
    "byte": TypeTag.INT, "uint": TypeTag.INT,
    "bool": TypeTag.BOOL,
    "string": TypeTag.STRING,
    "Vector2": TypeTag.VECTOR2,
    "Vector3": TypeTag.VECTOR3,
    "Color": TypeTag.COLOR,
    "Quaternion": TypeTag.QUATERNION,
}

# C# 资源类型 -> 资源索引中的资源类别
ASSET_TYPES = {
    "Material": "material",
    "AudioClip": "audio",
    "Sprite": "texture",
    "Texture": "texture",
    "Texture2D": "texture",
    "Mesh": "mesh",
    "AnimationClip": "animation",
    "RuntimeAnimatorController": "controller",
}

# 不在注册表中、但可作为组件引用类型的基类
COMPONENT_BASES = {"Component", "Behaviour", "MonoBehaviour", "Collider", "Renderer"}


def _strip_comments(source: str) -> str:
    return RE_LINE_COMMENT.sub("", RE_BLOCK_COMMENT.sub("", source))


def _classify(type_name: str, field_name: str, registry: ComponentRegistry) -> Optional[ScriptField]:
    short_type = type_name.split(".")[-1]
    is_prefab_slot = "prefab" in field_name.lower()

    if short_type in VALUE_TYPES:
        return ScriptField(field_name, VALUE_TYPES[short_type])
    if short_type in ASSET_TYPES:
        return ScriptField(field_name, TypeTag.ASSET_REF, ref_type=ASSET_TYPES[short_type])
    if short_type == "GameObject":
        if is_prefab_slot:
            return ScriptField(field_name, TypeTag.ASSET_REF, ref_type="prefab")
        return ScriptField(field_name, TypeTag.ENTITY_REF)
    if registry.lookup(short_type) is not None or short_type in COMPONENT_BASES:
        if is_prefab_slot:
            return ScriptField(field_name, TypeTag.ASSET_REF, ref_type="prefab")
        return ScriptField(field_name, TypeTag.COMPONENT_REF, ref_type=short_type)
    return None


def parse_csharp_script(source: str, registry: Optional[ComponentRegistry] = None) -> Optional[ScriptSchema]:
    """
    解析 C# 源码。

    Args:
        source: 脚本全文。
        registry: 用于判断字段类型是否为组件的注册表，默认使用内置组件。

    Returns:
        ScriptSchema；源码中没有 MonoBehaviour 子类时返回 None。
    """
    registry = registry or ComponentRegistry.default()
    code = _strip_comments(source)
    mono = RE_MONO.search(code)
    if not mono:
        return None

    schema = ScriptSchema(name=mono.group(1))
    # 同一文件中 MonoBehaviour 自身也可能被其他字段引用
    known = ComponentRegistry()
    for name in registry.names():
        known.register(registry.lookup(name))
    known.register_script(ScriptSchema(name=schema.name))

    body = code[mono.end():]
    for match in RE_FIELD.finditer(body):
        attrs = match.group("attrs") or ""
        access = (match.group("access") or "").strip()
        mods = match.group("mods") or ""
        type_name = match.group("type")

        if mods.strip() or "HideInInspector" in attrs or "NonSerialized" in attrs:
            continue
        if access != "public" and "SerializeField" not in attrs:
            continue
        if type_name.endswith("[]") or "<" in type_name or type_name in ("return", "var"):
            continue

        script_field = _classify(type_name, match.group("name"), known)
        if script_field is None:
            continue
        tooltip = RE_TOOLTIP.search(attrs)
        if tooltip:
            script_field.tooltip = tooltip.group(1)
        schema.fields.append(script_field)

    return schema
