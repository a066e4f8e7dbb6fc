# scenepilot/core/autowire.py
"""
自动装配：脚本组件挂载后，为其引用类字段寻找 / 创建目标，
并按脚本名称中的关键词补充常用组件。

评分函数 (score_asset) 与关键词规则 (DEFAULT_RULES) 都是独立的、
可替换的部分，AutoWirer 只负责调用它们并记录每一次修改。
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from scenegraph.core.components import Component, Member
from scenegraph.core.entity import Entity
from scenegraph.core.interfaces import AssetRef, IAssetIndex, IScene
from scenegraph.core.values import TypeTag, Vector3

from ..utils.console import trace
from .ledger import UndoLedger
from .models import ChatSession

DEFAULT_MIN_SCORE = 30
MAX_DEPTH = 8

# 抽象基类无法直接添加，创建时使用的具体类型
CONCRETE_TYPES: Dict[str, str] = {
    "Collider": "BoxCollider",
    "Renderer": "MeshRenderer",
}

AssetScorer = Callable[[str, str, str, str, str], int]


# ------------------------------
# 资源匹配
# ------------------------------

def search_terms(field_name: str, tooltip: str, script_name: str) -> List[str]:
    """按优先级生成资源搜索词，去重并去掉空串"""
    candidates = [
        field_name,
        field_name.replace("Prefab", ""),
        field_name.replace("prefab", ""),
        tooltip,
        tooltip.lower(),
        script_name,
        script_name.lower(),
        field_name.lower(),
        field_name.replace("Prefab", "").lower(),
    ]
    terms: List[str] = []
    for term in candidates:
        if term and term not in terms:
            terms.append(term)
    return terms


def score_asset(asset_name: str, field_name: str, term: str, tooltip: str, script_name: str) -> int:
    """
    名称相似度评分 (忽略大小写)：
    完全等于字段名 100，包含字段名 50，包含搜索词 30，包含提示文本 20，包含脚本名 10。
    """
    name = asset_name.lower()
    score = 0
    if name == field_name.lower():
        score += 100
    if field_name and field_name.lower() in name:
        score += 50
    if term and term.lower() in name:
        score += 30
    if tooltip and tooltip.lower() in name:
        score += 20
    if script_name and script_name.lower() in name:
        score += 10
    return score


def find_best_asset(index: IAssetIndex, field_name: str, tooltip: str, script_name: str,
                    asset_type: str = "prefab",
                    scorer: AssetScorer = score_asset) -> Tuple[Optional[AssetRef], int]:
    """依次用每个搜索词查询资源索引，返回得分最高的候选及其得分"""
    best: Optional[AssetRef] = None
    best_score = 0
    for term in search_terms(field_name, tooltip, script_name):
        candidates = index.search(term, asset_type)
        trace("Auto Wire", f"Found {len(candidates)} {asset_type}(s) matching pattern: {term}")
        for asset in candidates:
            score = scorer(asset.name, field_name, term, tooltip, script_name)
            trace("Auto Wire", f"Match score for {asset.name}: {score}")
            if score > best_score:
                best, best_score = asset, score
    return best, best_score


# ------------------------------
# 关键词规则
# ------------------------------

def _freeze_rotation(component: Component) -> None:
    component.set("constraints", "FreezeRotation")


def _unit_box(component: Component) -> None:
    component.set("size", Vector3(1.0, 1.0, 1.0))


@dataclass(frozen=True)
class KeywordRule:
    """脚本名 (小写) 包含任一关键词时，若节点上没有 present 类型的组件则添加 component"""
    keywords: Tuple[str, ...]
    component: str
    reason: str
    present: Optional[str] = None
    configure: Optional[Callable[[Component], None]] = None

    def matches(self, script_name: str) -> bool:
        name = script_name.lower()
        return any(keyword in name for keyword in self.keywords)


DEFAULT_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(("player", "character", "movement", "physics"), "Rigidbody",
                "for physics-based movement", configure=_freeze_rotation),
    KeywordRule(("player", "character", "collision", "physics"), "BoxCollider",
                "for collision detection", present="Collider", configure=_unit_box),
    KeywordRule(("audio", "sound", "music", "player"), "AudioSource",
                "for audio playback"),
    KeywordRule(("animation", "animator", "player", "character"), "Animator",
                "for animations"),
)


def matching_rules(script_name: str, rules: Sequence[KeywordRule] = DEFAULT_RULES) -> List[KeywordRule]:
    return [rule for rule in rules if rule.matches(script_name)]


# ------------------------------
# 装配
# ------------------------------

class AutoWirer:

    def __init__(self, scene: IScene, ledger: UndoLedger, session: ChatSession,
                 asset_index: Optional[IAssetIndex] = None,
                 min_score: int = DEFAULT_MIN_SCORE,
                 asset_types: Sequence[str] = ("prefab",),
                 rules: Sequence[KeywordRule] = DEFAULT_RULES,
                 scorer: AssetScorer = score_asset):
        self.scene = scene
        self.ledger = ledger
        self.session = session
        self.asset_index = asset_index
        self.min_score = min_score
        self.asset_types = list(asset_types)
        self.rules = list(rules)
        self.scorer = scorer

    # ---- recorded mutations ----

    def _assign(self, component: Component, member: Member, value) -> None:
        old = member.get(component)
        member.set(component, value)
        self.scene.mark_dirty(component)

        def inverse():
            member.set(component, old)
            self.scene.mark_dirty(component)

        self.ledger.record_mutation(
            f"reverted {member.name} on {component.type_name} of {component.entity.name}", inverse)

    def _add_component(self, entity: Entity, component_type) -> Component:
        component = entity.add_component(component_type)
        self.scene.mark_dirty(entity)

        def inverse():
            if component in entity.components:
                entity.remove_component(component)
            self.scene.mark_dirty(entity)

        self.ledger.record_mutation(f"removed {component.type_name} from {entity.name}", inverse)
        return component

    def _create_entity(self, name: str) -> Entity:
        entity = self.scene.create_entity(name)

        def inverse():
            self.scene.destroy_entity(entity)
            self.scene.mark_dirty()

        self.ledger.record_mutation(f"removed GameObject '{name}'", inverse)
        return entity

    # ---- fields ----

    def initialize_component(self, component: Component, depth: int = 0) -> None:
        """为引用字段赋值；脚本组件再按脚本名关键词补充常用组件"""
        if depth > MAX_DEPTH:
            trace("Auto Wire", f"Stopped at depth {depth} on {component.type_name}")
            return
        for member in component.members().values():
            if member.get(component) is not None:
                continue
            if member.type_tag is TypeTag.COMPONENT_REF:
                self.wire_component_reference(component, member, depth)
            elif member.type_tag is TypeTag.ENTITY_REF:
                self.wire_entity_reference(component, member)
        self.assign_assets(component)
        if self.scene.registry.is_script(component.type_name):
            self.add_common_components(component.entity, component.type_name)

    def wire_component_reference(self, component: Component, member: Member, depth: int = 0) -> None:
        entity = component.entity
        ref_type = member.ref_type or "Component"

        existing = entity.get_component(ref_type)
        if existing is not None and existing is not component:
            self._assign(component, member, existing)
            self.session.system(f"Assigned existing {ref_type} to {member.name} on {entity.name}")
            return

        for other in self.scene.iter_entities():
            found = other.get_component(ref_type)
            if found is not None and found is not component:
                self._assign(component, member, found)
                self.session.system(f"Assigned scene {ref_type} to {member.name} on {entity.name}")
                return

        component_type = self.scene.registry.lookup(CONCRETE_TYPES.get(ref_type, ref_type))
        if component_type is None:
            self.session.system(f"Could not create {ref_type} for {member.name} on {entity.name}. Please assign manually.")
            return
        created = self._add_component(entity, component_type)
        self._assign(component, member, created)
        self.session.system(f"Created and assigned new {ref_type} to {member.name} on {entity.name}")
        self.initialize_component(created, depth + 1)

    def wire_entity_reference(self, component: Component, member: Member) -> None:
        entity = component.entity
        target = self.scene.find(member.name)
        if target is not None:
            self._assign(component, member, target)
            self.session.system(
                f"Assigned existing GameObject '{member.name}' to {member.name} on {entity.name}")
            return
        target = self._create_entity(member.name)
        self._assign(component, member, target)
        self.session.system(
            f"Created and assigned new GameObject '{member.name}' to {member.name} on {entity.name}")

    def assign_assets(self, component: Component) -> None:
        """为尚未赋值的资源字段挑选得分最高的资源"""
        if self.asset_index is None:
            return
        script_name = component.type_name
        for member in component.members().values():
            if member.type_tag is not TypeTag.ASSET_REF or member.get(component) is not None:
                continue
            asset_type = member.ref_type or "prefab"
            if asset_type not in self.asset_types:
                continue
            trace("Auto Wire", f"Looking for {asset_type} for field: {member.name}")
            best, score = find_best_asset(self.asset_index, member.name, member.tooltip,
                                          script_name, asset_type, self.scorer)
            if best is not None and score >= self.min_score:
                trace("Auto Wire", f"Best match found: {best.name} with score {score}")
                self._assign(component, member, best)
                self.session.system(
                    f"Assigned {asset_type} '{best.name}' to field '{member.name}' in '{script_name}'")
            else:
                trace("Auto Wire", f"No suitable {asset_type} found for field {member.name} (best score: {score})")
                self.session.system(
                    f"No suitable {asset_type} found for field '{member.name}' in '{script_name}'. "
                    f"Please assign manually.")

    # ---- heuristics ----

    def add_common_components(self, entity: Entity, script_name: str) -> None:
        for rule in matching_rules(script_name, self.rules):
            if entity.get_component(rule.present or rule.component) is not None:
                continue
            component_type = self.scene.registry.lookup(rule.component)
            if component_type is None:
                continue
            component = self._add_component(entity, component_type)
            if rule.configure is not None:
                rule.configure(component)
            self.session.system(f"Added {rule.component} to {entity.name} {rule.reason}")
