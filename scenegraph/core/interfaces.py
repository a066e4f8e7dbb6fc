# scenegraph/core/interfaces.py
"""
scenegraph 核心接口
定义编辑流水线所依赖的外部协作者：文件系统、场景图、资源索引。
任何宿主 (编辑器桥接、内存模型、测试替身) 实现这些接口即可接入。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Type

from .components import Component, ComponentRegistry
from .entity import Entity


class IFileSystem(ABC):

    @abstractmethod
    def resolve(self, path: str) -> Path:
        """把相对路径解析为项目内的绝对路径"""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def read_text(self, path: str) -> str:
        pass

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        pass

    @abstractmethod
    def write_text(self, path: str, content: str) -> None:
        pass

    @abstractmethod
    def write_bytes(self, path: str, content: bytes) -> None:
        """按原始字节写入，撤销时用于逐字节还原"""
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        pass

    def refresh(self) -> None:
        """通知宿主重新索引项目 (默认无操作)"""
        pass


class IScene(ABC):
    name: str
    registry: ComponentRegistry

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        pass

    @abstractmethod
    def iter_entities(self) -> Iterator[Entity]:
        pass

    @abstractmethod
    def find(self, name: str) -> Optional[Entity]:
        """按名称 (或从根开始的 "A/B" 路径) 查找"""
        pass

    @abstractmethod
    def find_in_hierarchies(self, name: str) -> Optional[Entity]:
        """在所有节点的子层级中按相对路径查找"""
        pass

    @abstractmethod
    def create_entity(self, name: str, parent: Optional[Entity] = None) -> Entity:
        pass

    @abstractmethod
    def destroy_entity(self, entity: Entity) -> None:
        pass

    @abstractmethod
    def find_component_of_type(self, component_type: Type[Component]) -> Optional[Component]:
        pass

    @abstractmethod
    def mark_dirty(self, obj=None) -> None:
        pass


@dataclass(frozen=True)
class AssetRef:
    name: str
    path: str
    asset_type: str


class IAssetIndex(ABC):

    @abstractmethod
    def search(self, term: str, asset_type: str = "prefab") -> List[AssetRef]:
        pass

    def invalidate(self) -> None:
        pass
