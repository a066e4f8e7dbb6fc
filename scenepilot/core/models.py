# scenepilot/core/models.py
"""
ScenePilot 核心数据模型
指令 (Directive)、撤销记录 (UndoEntry) 与会话消息。
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Union


# ------------------------------
# 指令
# ------------------------------

@dataclass(frozen=True)
class FileEditDirective:
    target_path: str
    new_content: str
    language: str = "csharp"


@dataclass(frozen=True)
class CreateEntityDirective:
    object_name: str
    component_name: str


@dataclass(frozen=True)
class SetPropertyDirective:
    """object_path 只保留实体名；component / property 取路径的最后两段"""
    object_path: str
    component_name: str
    property_name: str
    raw_value: str


@dataclass(frozen=True)
class InvalidDirective:
    """无法解析的指令，作为非致命结果返回"""
    raw: str
    reason: str


Directive = Union[FileEditDirective, CreateEntityDirective, SetPropertyDirective, InvalidDirective]


# ------------------------------
# 撤销记录
# ------------------------------

@dataclass
class FileSnapshot:
    """
    文件修改前的原始字节。prior_content 为 None (is_new_entity=True)
    表示该文件由本次修改创建，撤销时删除。持久化时字节以 base64 保存。
    """
    target_path: str
    prior_content: Optional[bytes]
    is_new_entity: bool = False
    batch_id: Optional[str] = None
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())

    def to_dict(self) -> dict:
        return {
            "target_path": self.target_path,
            "prior_content": (
                base64.b64encode(self.prior_content).decode("ascii")
                if self.prior_content is not None else None
            ),
            "is_new_entity": self.is_new_entity,
            "batch_id": self.batch_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FileSnapshot":
        prior = data.get("prior_content")
        return cls(
            target_path=data["target_path"],
            prior_content=base64.b64decode(prior) if prior is not None else None,
            is_new_entity=bool(data.get("is_new_entity", False)),
            batch_id=data.get("batch_id"),
            timestamp=data.get("timestamp", datetime.now().timestamp()),
        )


@dataclass
class SceneMutation:
    """场景修改；inverse 在修改发生时捕获，执行即可还原"""
    description: str
    inverse: Callable[[], None]
    batch_id: Optional[str] = None
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())


UndoEntry = Union[FileSnapshot, SceneMutation]


# ------------------------------
# 会话
# ------------------------------

@dataclass
class ChatMessage:
    sender: str
    text: str
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())


@dataclass
class ChatSession:
    """消息记录；流水线把系统消息追加到这里"""
    messages: List[ChatMessage] = field(default_factory=list)
    last_loaded_file: Optional[str] = None
    last_loaded_scene: Optional[str] = None
    listeners: List[Callable[[ChatMessage], None]] = field(default_factory=list, repr=False)

    def add(self, sender: str, text: str) -> ChatMessage:
        message = ChatMessage(sender, text)
        self.messages.append(message)
        for listener in self.listeners:
            listener(message)
        return message

    def system(self, text: str) -> ChatMessage:
        return self.add("System", text)

    def system_messages(self) -> List[str]:
        return [m.text for m in self.messages if m.sender == "System"]
