# scenepilot/core/config.py
"""
项目配置 (.scenepilot/config.yaml)

文件不存在时使用默认值；YAML 语法错误或字段类型不对时抛出 ConfigError。
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .errors import ConfigError, MissingCredentialError

STATE_DIR = Path(".scenepilot")
CONFIG_FILE = STATE_DIR / "config.yaml"
UNDO_FILE = STATE_DIR / "undo.json"

FILE_EDIT_MODES = ("full", "partial")


@dataclass
class ProviderConfig:
    model: str
    api_key_env: str


def _default_providers() -> Dict[str, ProviderConfig]:
    return {
        "openai": ProviderConfig(model="gpt-4o", api_key_env="OPENAI_API_KEY"),
        "claude": ProviderConfig(model="claude-3-5-sonnet", api_key_env="ANTHROPIC_API_KEY"),
    }


@dataclass
class PilotConfig:
    project_root: str = "."
    scene: Optional[str] = None
    verbose: bool = False
    languages: List[str] = field(default_factory=lambda: ["csharp", "cs"])
    file_edit_mode: str = "full"
    autowire_enabled: bool = True
    autowire_min_score: int = 30
    autowire_asset_types: List[str] = field(default_factory=lambda: ["prefab"])
    component_aliases: Dict[str, str] = field(default_factory=dict)
    providers: Dict[str, ProviderConfig] = field(default_factory=_default_providers)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PilotConfig":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("Configuration must be a YAML mapping")

        config = cls()
        config.project_root = _expect(data, "project_root", str, config.project_root)
        config.scene = _expect(data, "scene", str, config.scene)
        config.verbose = _expect(data, "verbose", bool, config.verbose)

        file_edits = _expect(data, "file_edits", dict, {})
        config.languages = _expect_list(file_edits, "file_edits.languages", "languages", config.languages)
        config.file_edit_mode = _expect(file_edits, "mode", str, config.file_edit_mode, "file_edits.mode")
        if config.file_edit_mode not in FILE_EDIT_MODES:
            raise ConfigError(f"file_edits.mode must be one of {', '.join(FILE_EDIT_MODES)}")

        autowire = _expect(data, "autowire", dict, {})
        config.autowire_enabled = _expect(autowire, "enabled", bool, config.autowire_enabled, "autowire.enabled")
        config.autowire_min_score = _expect(autowire, "min_score", int, config.autowire_min_score,
                                            "autowire.min_score")
        config.autowire_asset_types = _expect_list(autowire, "autowire.asset_types", "asset_types",
                                                   config.autowire_asset_types)

        aliases = _expect(data, "component_aliases", dict, {})
        for key, value in aliases.items():
            if not isinstance(value, str):
                raise ConfigError(f"component_aliases.{key} must be a string")
        config.component_aliases = dict(aliases)

        providers = _expect(data, "providers", dict, {})
        for name, item in providers.items():
            if not isinstance(item, dict):
                raise ConfigError(f"providers.{name} must be a mapping")
            current = config.providers.get(name)
            model = _expect(item, "model", str, current.model if current else None, f"providers.{name}.model")
            env = _expect(item, "api_key_env", str, current.api_key_env if current else None,
                          f"providers.{name}.api_key_env")
            if not model or not env:
                raise ConfigError(f"providers.{name} needs both 'model' and 'api_key_env'")
            config.providers[name] = ProviderConfig(model=model, api_key_env=env)
        return config

    def provider(self, name: str) -> ProviderConfig:
        if name not in self.providers:
            raise ConfigError(f"Unknown provider '{name}'. Available: {', '.join(sorted(self.providers))}")
        return self.providers[name]

    def api_key_for(self, name: str, environ: Optional[Mapping[str, str]] = None) -> str:
        """读取 provider 的 API Key；未设置时抛出 MissingCredentialError"""
        provider = self.provider(name)
        environ = os.environ if environ is None else environ
        key = environ.get(provider.api_key_env, "").strip()
        if not key:
            raise MissingCredentialError(
                f"{name} API key not set. Export {provider.api_key_env} to use this provider.")
        return key


def _expect(data: Mapping[str, Any], key: str, kind: type, default: Any, label: Optional[str] = None) -> Any:
    if key not in data or data[key] is None:
        return default
    value = data[key]
    # bool 是 int 的子类
    if kind is int and isinstance(value, bool) or not isinstance(value, kind):
        raise ConfigError(f"{label or key} must be of type {kind.__name__}, got {type(value).__name__}")
    return value


def _expect_list(data: Mapping[str, Any], label: str, key: str, default: List[str]) -> List[str]:
    value = _expect(data, key, list, default, label)
    if not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{label} must be a list of strings")
    return list(value)


def parse_config(content: str) -> PilotConfig:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML syntax error: {e}") from e
    return PilotConfig.from_dict(data)


def load_config(path: Union[str, Path] = CONFIG_FILE) -> PilotConfig:
    path = Path(path)
    if not path.exists():
        return PilotConfig()
    return parse_config(path.read_text(encoding="utf-8"))
