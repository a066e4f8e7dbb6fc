"""
统一的控制台输出工具，基于 rich 实现 CLI 交互与调试追踪。
"""
from typing import Any

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.theme import Theme

# 自定义主题
CUSTOM_THEME = Theme({
    "info": "cyan bold",
    "success": "green bold",
    "warning": "yellow bold",
    "error": "red bold",
    "heading": "bold underline",
    "path": "magenta",
    "system": "blue",
    "trace": "dim",
    "prompt": "green",
})

# 全局控制台实例（单例）
console = RichConsole(theme=CUSTOM_THEME, soft_wrap=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    """打开 / 关闭 trace 输出"""
    global _verbose
    _verbose = bool(enabled)


# --- 便捷输出函数 ---

def info(message: str):
    """蓝色信息提示"""
    console.print(f"💡 [info]INFO[/info]: {message}")


def success(message: str):
    """绿色成功提示"""
    console.print(f"✅ [success]SUCCESS[/success]: {message}")


def warning(message: str):
    """黄色警告提示"""
    console.print(f"⚠️  [warning]WARNING[/warning]: {message}")


def error(message: str):
    """红色错误提示"""
    console.print(f"❌ [error]ERROR[/error]: {message}")


def heading(title: str):
    """标题输出"""
    console.print(f"\n🎯 [heading]{title}[/heading]\n")


def system(message: str):
    """流水线产生的系统消息"""
    console.print(f"[system]System[/system]: {escape(message)}", highlight=False)


def trace(tag: str, message: str):
    """
    调试追踪，只在 verbose 模式下输出。
    tag 如 "Scene Edit" / "Undo System" / "Auto Wire"。
    """
    if _verbose:
        console.print(f"[trace]\\[{tag}] {escape(message)}[/trace]", highlight=False)


# --- 交互式输入 ---

def confirm(prompt: str, default: bool = True) -> bool:
    """确认对话（Y/N）"""
    yes_no = "[Y/n]" if default else "[y/N]"
    full_prompt = f"❓ {escape(prompt)} {escape(yes_no)}: "
    response = console.input(full_prompt).strip().lower()

    if not response:
        return default
    return response in ("y", "yes", "是")


# --- 结构化输出 ---

def print_json(data: Any):
    """美化输出 JSON/字典数据"""
    console.print_json(data=data)


def show_welcome():
    """显示欢迎横幅"""
    console.print("\n" + "═" * 50, style="bold blue")
    console.print("🚀 [bold green]ScenePilot CLI[/bold green] - AI 场景编辑助手", end="")
    console.print(" 🤖", emoji=True)
    console.print("═" * 50 + "\n", style="bold blue")
