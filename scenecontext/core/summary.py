# scenecontext/core/summary.py
"""
场景结构摘要 (SceneSummaryProvider)

生成发送给助手的场景描述：节点总数、层级 (含组件)、相机与灯光。
结果按 scene.revision 缓存；场景任何修改都会使缓存失效，
也可以显式调用 invalidate()。
"""

from typing import List, Optional

from scenegraph.core.components import Camera, Light, Transform
from scenegraph.core.entity import Entity
from scenegraph.core.scene import Scene

NO_SCENE_SUMMARY = "No scene is currently loaded."


class SceneSummaryProvider:

    def __init__(self, scene: Optional[Scene] = None):
        self.scene = scene
        self._cached: Optional[str] = None
        self._cached_revision: Optional[int] = None

    @property
    def name(self) -> str:
        return "SceneSummaryProvider"

    def invalidate(self) -> None:
        self._cached = None
        self._cached_revision = None

    def summary(self) -> str:
        if self.scene is None or not self.scene.is_loaded:
            return NO_SCENE_SUMMARY
        if self._cached is not None and self._cached_revision == self.scene.revision:
            return self._cached
        self._cached = self._build()
        self._cached_revision = self.scene.revision
        return self._cached

    # ------------------------------
    # 生成
    # ------------------------------

    def _build(self) -> str:
        lines: List[str] = ["# Scene Structure Analysis"]
        lines.append(f"Total objects in scene: {self.scene.count()}")

        lines.append("\n## Hierarchy:")
        for root in self.scene.roots:
            self._describe(root, 0, lines)

        cameras = [e for e in self.scene.iter_entities() if e.get_component(Camera) is not None]
        if cameras:
            lines.append("\n## Cameras:")
            for entity in cameras:
                t = entity.transform
                lines.append(f"- {entity.name}: Position {t.position}, Rotation {t.rotation.euler_angles}")

        lights = [e for e in self.scene.iter_entities() if e.get_component(Light) is not None]
        if lights:
            lines.append("\n## Lights:")
            for entity in lights:
                light = entity.get_component(Light)
                lines.append(f"- {entity.name}: Type {light.get('type')}, Position {entity.transform.position}")

        return "\n".join(lines) + "\n"

    def _describe(self, entity: Entity, depth: int, lines: List[str]) -> None:
        indent = "  " * depth
        state = "Active" if entity.active else "Inactive"
        lines.append(f"{indent}- {entity.name} ({state})")
        for component in entity.components:
            if isinstance(component, Transform):
                continue
            lines.append(f"{indent}  * {component.type_name}")
        for child in entity.children:
            self._describe(child, depth + 1, lines)
