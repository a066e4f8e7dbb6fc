# scenecontext/core/prompt.py
"""
助手请求构建 (PromptBuilder)

渲染系统提示词与上下文消息，并组装 openai / claude 的请求体。
这里只负责构建请求，不发送网络请求。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jinja2

from scenepilot.core.config import PilotConfig
from scenepilot.core.models import ChatSession

from .summary import SceneSummaryProvider

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

SYSTEM_TEMPLATE = "system_prompt.md.j2"
CONTEXT_TEMPLATE = "context_message.md.j2"

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
CLAUDE_URL = "https://api.anthropic.com/v1/messages"
CLAUDE_VERSION = "2023-06-01"
CLAUDE_MAX_TOKENS = 1024

SET_EXAMPLES = [
    {"label": "Add a Rigidbody", "directive": "Player/Rigidbody/mass=10"},
    {"label": "Change camera field of view", "directive": "Main Camera/Camera/fieldOfView=60"},
    {"label": "Set transform position", "directive": "Player/Transform/position=(1,2,3)"},
    {"label": "Enable/disable components", "directive": "Player/Camera/enabled=true"},
]

CREATE_EXAMPLES = [
    {"label": "Create empty GameObject", "directive": "Create/NewObject/Transform"},
    {"label": "Create with component", "directive": "Create/Player/Rigidbody"},
]


@dataclass
class ProviderRequest:
    """一次待发送的请求：地址、请求头与 JSON 请求体"""
    provider: str
    url: str
    headers: Dict[str, str]
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "url": self.url,
            "headers": dict(self.headers),
            "payload": self.payload,
        }


class PromptBuilder:

    def __init__(self, config: Optional[PilotConfig] = None,
                 summary: Optional[SceneSummaryProvider] = None,
                 session: Optional[ChatSession] = None,
                 extra_instructions: str = ""):
        self.config = config or PilotConfig()
        self.summary = summary or SceneSummaryProvider()
        self.session = session or ChatSession()
        self.extra_instructions = extra_instructions
        self.env = self._create_jinja_env()

    def _create_jinja_env(self) -> jinja2.Environment:
        loader = jinja2.FileSystemLoader(str(TEMPLATES_DIR))
        return jinja2.Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)

    def _render(self, template_name: str, **context) -> str:
        try:
            template = self.env.get_template(template_name)
        except jinja2.TemplateNotFound:
            raise FileNotFoundError(f"Template not found: {template_name}")
        return template.render(**context).strip()

    @property
    def language(self) -> str:
        return self.config.languages[0] if self.config.languages else "csharp"

    # ------------------------------
    # 渲染
    # ------------------------------

    def system_prompt(self) -> str:
        return self._render(
            SYSTEM_TEMPLATE,
            language=self.language,
            set_examples=SET_EXAMPLES,
            create_examples=CREATE_EXAMPLES,
            extra_instructions=self.extra_instructions,
        )

    def user_message(self, message: str, file_content: Optional[str] = None) -> str:
        """
        用户消息前拼接上下文：最近加载的脚本 (需要传入内容) 与当前场景摘要。
        """
        scene = self.summary.scene
        scene_name = Path(scene.path).name if scene is not None and scene.is_loaded else ""
        return self._render(
            CONTEXT_TEMPLATE,
            language=self.language,
            file_path=self.session.last_loaded_file,
            file_content=file_content,
            scene_name=scene_name,
            scene_summary=self.summary.summary() if scene_name else "",
            message=message,
        )

    def messages(self, message: str, file_content: Optional[str] = None) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt()},
            {"role": "user", "content": self.user_message(message, file_content)},
        ]

    # ------------------------------
    # 请求构建
    # ------------------------------

    def build_request(self, provider: str, message: str, file_content: Optional[str] = None,
                      environ: Optional[Mapping[str, str]] = None) -> ProviderRequest:
        """
        Raises:
            ConfigError: 未知的 provider。
            MissingCredentialError: 未设置 API Key (在构建任何请求内容之前检查)。
        """
        api_key = self.config.api_key_for(provider, environ)
        model = self.config.provider(provider).model

        if provider == "claude":
            return ProviderRequest(
                provider=provider,
                url=CLAUDE_URL,
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": api_key,
                    "anthropic-version": CLAUDE_VERSION,
                },
                payload={
                    "model": model,
                    "max_tokens": CLAUDE_MAX_TOKENS,
                    "system": self.system_prompt(),
                    "messages": [{"role": "user", "content": self.user_message(message, file_content)}],
                },
            )

        return ProviderRequest(
            provider=provider,
            url=OPENAI_URL,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            payload={
                "model": model,
                "messages": self.messages(message, file_content),
            },
        )
