# scenepilot/core/extractor.py
"""
从助手回复文本中提取编辑指令。

两种语法：
    ```csharp:Assets/Scripts/Player.cs      文件修改块，正文为整个文件内容
    ...
    ```
    scene:Player/Rigidbody/mass=10          场景修改 (可被 ``` 包裹)
    scene:Create/Enemy/Rigidbody            创建节点 / 添加组件

提取是纯函数：不修改任何状态，同一输入总是得到相同结果。
"""

import re
from typing import Iterable, List, Tuple

from ..utils.console import trace
from .models import (
    CreateEntityDirective, Directive, FileEditDirective, InvalidDirective, SetPropertyDirective,
)

DEFAULT_LANGUAGES = ("csharp", "cs")

SCENE_EDIT_PATTERN = re.compile(r"(?:```)?scene:([^\n]+)(?:```)?")
PATH_SEPARATORS = re.compile(r"[/:]")


def file_edit_pattern(languages: Iterable[str] = DEFAULT_LANGUAGES) -> "re.Pattern":
    langs = "|".join(re.escape(lang) for lang in languages)
    return re.compile(r"```(?:" + langs + r"):([^\n]+)\n([\s\S]+?)```")


def _split_path(text: str) -> List[str]:
    return [part.strip() for part in PATH_SEPARATORS.split(text) if part.strip()]


def parse_scene_instruction(instruction: str) -> Directive:
    """解析 scene: 之后的一条指令"""
    instruction = instruction.strip().rstrip("`").strip()

    # 只有 "对象/组件" 时视为创建
    if "=" not in instruction and not instruction.startswith("Create"):
        instruction = "Create/" + instruction

    if instruction.startswith("Create/") or instruction.startswith("Create:"):
        parts = _split_path(instruction)
        if len(parts) != 3:
            return InvalidDirective(instruction, f"Invalid create command format: {instruction}")
        return CreateEntityDirective(object_name=parts[1], component_name=parts[2])

    pieces = instruction.split("=")
    if len(pieces) != 2:
        return InvalidDirective(instruction, f"Invalid scene edit format: {instruction}")
    path, value = pieces

    parts = _split_path(path)
    if len(parts) < 2:
        return InvalidDirective(instruction, f"Invalid object path: {path}")

    return SetPropertyDirective(
        object_path=parts[0],
        component_name=parts[-2],
        property_name=parts[-1],
        raw_value=value.strip(),
    )


def extract(text: str, languages: Iterable[str] = DEFAULT_LANGUAGES) -> List[Directive]:
    """
    按出现顺序返回文本中的全部指令。

    空的文件块会被跳过；格式错误的场景指令以 InvalidDirective 返回，
    不影响后续指令的提取。
    """
    found: List[Tuple[int, Directive]] = []

    for match in file_edit_pattern(languages).finditer(text):
        path = match.group(1).strip()
        body = match.group(2).strip()
        if not body:
            continue
        language = text[match.start() + 3:match.start(1) - 1]
        found.append((match.start(), FileEditDirective(path, body, language)))

    for match in SCENE_EDIT_PATTERN.finditer(text):
        instruction = match.group(1).strip()
        if not instruction.rstrip("`").strip():
            continue
        directive = parse_scene_instruction(instruction)
        trace("Scene Edit", f"Parsed instruction: {instruction} -> {directive}")
        found.append((match.start(), directive))

    found.sort(key=lambda item: item[0])
    return [directive for _, directive in found]
