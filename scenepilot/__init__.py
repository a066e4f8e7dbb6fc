# scenepilot/__init__.py
"""
ScenePilot - 把 AI 助手回复中的修改指令应用到项目文件与场景图上，并支持撤销。
"""

from .core.config import PilotConfig, load_config
from .core.errors import (
    ApplicationError, ConfigError, ConversionError, MissingCredentialError,
    ParseError, ReentrantBatchError, ResolutionError, ScenePilotError,
)
from .core.extractor import extract
from .core.ledger import UndoLedger
from .core.models import ChatSession
from .core.pipeline import EditPipeline

__version__ = "0.1.0"

__all__ = [
    'EditPipeline', 'UndoLedger', 'ChatSession', 'PilotConfig', 'load_config', 'extract',
    'ScenePilotError', 'ParseError', 'ResolutionError', 'ConversionError',
    'ApplicationError', 'MissingCredentialError', 'ReentrantBatchError', 'ConfigError',
]
