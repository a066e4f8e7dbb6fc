# tests/test_prompt.py
import pytest
from unittest.mock import patch, MagicMock

from scenecontext.core.prompt import (
    CLAUDE_MAX_TOKENS, CLAUDE_URL, CLAUDE_VERSION, OPENAI_URL, PromptBuilder,
)
from scenecontext.core.summary import SceneSummaryProvider
from scenepilot.core.config import PilotConfig
from scenepilot.core.errors import ConfigError, MissingCredentialError
from scenepilot.core.models import ChatSession

KEYS = {"OPENAI_API_KEY": "sk-openai", "ANTHROPIC_API_KEY": "sk-claude"}


@pytest.fixture
def builder(sample_scene):
    session = ChatSession(last_loaded_file="Assets/Scripts/Player.cs")
    return PromptBuilder(PilotConfig(), SceneSummaryProvider(sample_scene), session)


def test_system_prompt_lists_directive_formats(builder):
    prompt = builder.system_prompt()
    assert prompt.startswith("You are a Unity development assistant")
    assert "```csharp:Assets/Scripts/FileName.cs" in prompt
    assert "- Add a Rigidbody: ```scene:Player/Rigidbody/mass=10```" in prompt
    assert "- Create with component: ```scene:Create/Player/Rigidbody```" in prompt
    assert "between 0 and 1" in prompt


def test_system_prompt_uses_first_configured_language():
    builder = PromptBuilder(PilotConfig(languages=["cs"]))
    assert "```cs:Assets/Scripts/FileName.cs" in builder.system_prompt()


def test_extra_instructions_are_appended():
    builder = PromptBuilder(extra_instructions="Always answer in French.")
    assert builder.system_prompt().endswith("Always answer in French.")


def test_user_message_with_file_and_scene(builder, sample_scene):
    text = builder.user_message("Make the player jump higher", file_content="class Player {}")

    assert text.startswith("I'm working with this file: Assets/Scripts/Player.cs\n```csharp\nclass Player {}\n```")
    assert "I'm working with the Unity scene: Main.yaml\n# Scene Structure Analysis" in text
    assert SceneSummaryProvider(sample_scene).summary().strip() in text
    assert text.endswith("My question is: Make the player jump higher")


def test_user_message_without_context():
    assert PromptBuilder().user_message("Hello") == "Hello"


def test_file_context_needs_content(builder):
    text = builder.user_message("Hello")
    assert "I'm working with this file" not in text
    assert "I'm working with the Unity scene" in text


def test_messages_roles(builder):
    messages = builder.messages("Hi")
    assert [m["role"] for m in messages] == ["system", "user"]


# ------------------------------
# 请求构建
# ------------------------------

def test_openai_request(builder):
    request = builder.build_request("openai", "Hi", environ=KEYS)
    assert request.url == OPENAI_URL
    assert request.headers["Authorization"] == "Bearer sk-openai"
    assert request.payload["model"] == "gpt-4o"
    assert request.payload["messages"] == builder.messages("Hi")


def test_claude_request_puts_system_prompt_at_top_level(builder):
    request = builder.build_request("claude", "Hi", environ=KEYS)
    assert request.url == CLAUDE_URL
    assert request.headers["x-api-key"] == "sk-claude"
    assert request.headers["anthropic-version"] == CLAUDE_VERSION
    assert request.payload["max_tokens"] == CLAUDE_MAX_TOKENS
    assert request.payload["system"] == builder.system_prompt()
    assert request.payload["messages"] == [{"role": "user", "content": builder.user_message("Hi")}]
    assert request.to_dict()["provider"] == "claude"


def test_custom_provider_is_openai_compatible():
    config = PilotConfig.from_dict({"providers": {"local": {"model": "llama3", "api_key_env": "LOCAL_KEY"}}})
    request = PromptBuilder(config).build_request("local", "Hi", environ={"LOCAL_KEY": "abc"})
    assert request.url == OPENAI_URL
    assert request.payload["model"] == "llama3"


def test_missing_key_is_checked_before_rendering(builder):
    with patch.object(builder, "_render", MagicMock()) as render:
        with pytest.raises(MissingCredentialError) as exc:
            builder.build_request("openai", "Hi", environ={"OPENAI_API_KEY": "   "})
    render.assert_not_called()
    assert str(exc.value) == "openai API key not set. Export OPENAI_API_KEY to use this provider."


def test_unknown_provider(builder):
    with pytest.raises(ConfigError):
        builder.build_request("gemini", "Hi", environ=KEYS)


def test_missing_template_is_file_not_found(builder):
    with pytest.raises(FileNotFoundError):
        builder._render("missing.md.j2")
