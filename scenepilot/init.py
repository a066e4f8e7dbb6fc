# scenepilot/init.py
"""
项目初始化模块 (CLI 层交互与渲染)
此模块负责通过 CLI 交互收集信息并渲染配置文件内容。
文件的实际创建操作由 CLI 层 (scenepilot/cli.py) 执行。
"""

from pathlib import Path

import click
import jinja2

from .core.config import FILE_EDIT_MODES, PilotConfig, parse_config
from .core.errors import ConfigError

# ------------------------------
# 常量定义
# ------------------------------

TEMPLATE_DIR = Path(__file__).parent / "templates"
CONFIG_TEMPLATE = "config.yaml.j2"


def render_template(template_name: str, **values) -> str:
    """渲染 templates/ 下的模板"""
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    try:
        template = env.get_template(template_name)
    except jinja2.TemplateNotFound:
        raise FileNotFoundError(f"未找到模板: {TEMPLATE_DIR / template_name}")
    return template.render(**values)


def render_config(**overrides) -> str:
    """使用默认值 (可被 overrides 覆盖) 渲染配置内容"""
    defaults = PilotConfig()
    values = {
        "project_root": defaults.project_root,
        "scene": defaults.scene,
        "languages": defaults.languages,
        "file_edit_mode": defaults.file_edit_mode,
        "autowire_enabled": defaults.autowire_enabled,
        "min_score": defaults.autowire_min_score,
        "openai_model": defaults.providers["openai"].model,
        "claude_model": defaults.providers["claude"].model,
    }
    values.update(overrides)
    return render_template(CONFIG_TEMPLATE, **values)


def init_project() -> str:
    """
    交互式初始化项目，返回渲染好的 config 内容字符串。
    文件创建操作由调用者 (cli.py) 负责。
    """
    scene = click.prompt("场景文件 (可选)", default="", show_default=False)
    mode = click.prompt(
        "代码修改方式",
        type=click.Choice(list(FILE_EDIT_MODES)),
        default="full",
    )
    autowire = click.confirm("挂载脚本后自动装配资源引用?", default=True)

    try:
        return render_config(scene=scene or None, file_edit_mode=mode, autowire_enabled=autowire)
    except jinja2.TemplateError as e:
        click.echo(f"❌ config 模板渲染失败: {e}")
        raise


def validate_config_content(content: str) -> PilotConfig:
    """验证配置内容字符串的合法性"""
    click.echo("🔍 正在验证配置内容... ")
    try:
        config = parse_config(content)
    except ConfigError as e:
        click.echo(click.style("❌ 配置无效！", fg="red"))
        click.echo(f"   {e}")
        raise click.Abort()

    if not content.strip():
        click.echo(click.style("⚠️ 警告：配置内容为空，将使用默认值。", fg="yellow"))
        return config

    click.echo(f"📄 代码块语言: {', '.join(config.languages)} / 修改方式: {config.file_edit_mode}")
    if config.scene:
        click.echo(f"🎬 场景文件: {config.scene}")
    if config.autowire_enabled:
        click.echo(click.style(f"✅ autowire: 最低匹配分 {config.autowire_min_score}", fg="green"))
    if config.component_aliases:
        click.echo(click.style(f"✅ component_aliases: {len(config.component_aliases)} 个别名", fg="green"))

    click.echo(click.style("🎉 配置内容验证通过！", fg="green"))
    return config
