# scenegraph/storage/asset_index.py
"""
项目资源索引：扫描项目目录下的资源文件，按名称片段查询。
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..core.interfaces import AssetRef, IAssetIndex

# 资源类别 -> 文件后缀
ASSET_SUFFIXES: Dict[str, tuple] = {
    "prefab": (".prefab",),
    "material": (".mat",),
    "asset": (".asset",),
    "audio": (".wav", ".mp3", ".ogg"),
    "texture": (".png", ".jpg", ".jpeg", ".psd", ".tga"),
    "mesh": (".fbx", ".obj"),
    "animation": (".anim",),
    "controller": (".controller",),
}

# 扫描时跳过的目录
SKIP_DIRS = {".git", ".scenepilot", "Library", "Temp", "node_modules", "__pycache__"}


class ProjectAssetIndex(IAssetIndex):
    """
    基于文件名的资源索引。首次查询时扫描，invalidate() 后下次查询重新扫描。
    """

    def __init__(self, root: Union[str, Path] = ".", asset_types: Optional[Iterable[str]] = None):
        self.root = Path(root).resolve()
        self.asset_types = list(asset_types) if asset_types else list(ASSET_SUFFIXES)
        self._entries: Optional[List[AssetRef]] = None

    def _suffix_map(self) -> Dict[str, str]:
        mapping = {}
        for asset_type in self.asset_types:
            for suffix in ASSET_SUFFIXES.get(asset_type, ()):
                mapping[suffix] = asset_type
        return mapping

    def _scan(self) -> List[AssetRef]:
        suffixes = self._suffix_map()
        entries = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in suffixes:
                continue
            relative = path.relative_to(self.root)
            if any(part in SKIP_DIRS for part in relative.parts[:-1]):
                continue
            entries.append(AssetRef(
                name=path.stem,
                path=relative.as_posix(),
                asset_type=suffixes[path.suffix.lower()],
            ))
        return entries

    @property
    def entries(self) -> List[AssetRef]:
        if self._entries is None:
            self._entries = self._scan()
        return self._entries

    def search(self, term: str, asset_type: str = "prefab") -> List[AssetRef]:
        """名称包含 term (忽略大小写) 且类别匹配的资源"""
        needle = term.strip().lower()
        if not needle:
            return []
        return [
            entry for entry in self.entries
            if entry.asset_type == asset_type and needle in entry.name.lower()
        ]

    def invalidate(self) -> None:
        self._entries = None
