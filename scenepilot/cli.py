# scenepilot/cli.py
"""
ScenePilot CLI 主入口
"""
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from scenecontext.core.prompt import PromptBuilder
from scenecontext.core.summary import SceneSummaryProvider
from scenegraph.core.scene import Scene
from scenegraph.storage.asset_index import ProjectAssetIndex
from scenegraph.storage.file_lock import FileLockError
from scenegraph.storage.file_system import LocalFileSystem, PathOutsideRootError
from scenegraph.storage.scene_store import SceneFormatError, YamlSceneStore

from scenepilot.core.config import CONFIG_FILE, STATE_DIR, UNDO_FILE, PilotConfig, load_config
from scenepilot.core.errors import ScenePilotError
from scenepilot.core.extractor import extract
from scenepilot.core.ledger import UndoLedger
from scenepilot.core.models import (
    ChatSession, CreateEntityDirective, FileEditDirective, InvalidDirective, SetPropertyDirective,
)
from scenepilot.core.pipeline import EditPipeline
from scenepilot.init import init_project as perform_init_project, validate_config_content
from scenepilot.utils.console import (
    console, info, success, warning, error,
    heading, show_welcome, confirm, system, set_verbose, print_json
)

# ------------------------------
# CLI 主入口
# ------------------------------

@click.group(invoke_without_command=True)
@click.version_option("0.1.0", message="ScenePilot CLI v%(version)s")
@click.option("--verbose", "-v", is_flag=True, help="Show [Scene Edit] / [Undo System] / [Auto Wire] traces")
@click.pass_context
def cli(ctx, verbose: bool):
    """🎬 ScenePilot - apply AI assistant edits to scripts and scenes"""
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose
    set_verbose(verbose)
    show_welcome()
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())

# ------------------------------
# 命令 1: init
# ------------------------------

@cli.command()
@click.pass_context
def init(ctx):
    """🔧 Initialize project configuration"""
    heading("Project Initialization")
    if CONFIG_FILE.exists():
        if not confirm(f"{CONFIG_FILE} already exists. Overwrite?", default=False):
            info("Cancelled.")
            return
    try:
        config_content = perform_init_project()
        STATE_DIR.mkdir(exist_ok=True)
        CONFIG_FILE.write_text(config_content, encoding="utf-8")
        success(f"Generated: {CONFIG_FILE}")
        success("Initialization complete!")
    except OSError as e:
        error(f"Initialization failed: {e}")
        raise click.Abort()


@cli.command()
@click.argument("config_file", type=click.Path(exists=True), default=str(CONFIG_FILE))
def validate(config_file: str):
    """🔍 Validate a configuration file"""
    heading(f"Validating {config_file}")
    validate_config_content(Path(config_file).read_text(encoding="utf-8"))

# ------------------------------
# 辅助函数：加载配置 / 场景 / 流水线
# ------------------------------

def _load_config(ctx) -> PilotConfig:
    """读取 .scenepilot/config.yaml；文件不存在时使用默认值"""
    try:
        config = load_config(CONFIG_FILE)
    except ScenePilotError as e:
        error(f"Failed to read {CONFIG_FILE}: {e}")
        raise click.Abort()
    set_verbose(config.verbose or ctx.obj.get("VERBOSE", False))
    return config


def _load_scene(config: PilotConfig, file_system: LocalFileSystem, scene_path: Optional[str]) -> Optional[Scene]:
    path = scene_path or config.scene
    if not path:
        return None
    try:
        target = file_system.resolve(path)
    except PathOutsideRootError as e:
        error(str(e))
        raise click.Abort()
    if not target.exists():
        error(f"Scene file not found: {path}")
        raise click.Abort()
    try:
        return YamlSceneStore().load(target)
    except SceneFormatError as e:
        error(str(e))
        raise click.Abort()
    except (KeyError, TypeError, ValueError) as e:
        error(f"Invalid scene file {path}: {e}")
        raise click.Abort()


def _load_pipeline(ctx, scene_path: Optional[str] = None,
                   assume_yes: bool = False) -> Tuple[EditPipeline, PilotConfig]:
    config = _load_config(ctx)
    file_system = LocalFileSystem(config.project_root)
    scene = _load_scene(config, file_system, scene_path)

    ledger = UndoLedger(file_system, scene=scene, store_path=UNDO_FILE)
    try:
        ledger.load()
    except (ValueError, KeyError, FileLockError) as e:
        error(f"Failed to read undo history {UNDO_FILE}: {e}")
        raise click.Abort()

    session = ChatSession()
    session.listeners.append(lambda message: system(message.text) if message.sender == "System" else None)
    if scene is not None:
        session.last_loaded_scene = scene.path

    pipeline = EditPipeline(
        scene,
        file_system,
        asset_index=ProjectAssetIndex(file_system.root, config.autowire_asset_types),
        config=config,
        session=session,
        ledger=ledger,
        confirm=(lambda question: True) if assume_yes else (lambda question: confirm(question, default=True)),
    )
    return pipeline, config


def _save_scene(pipeline: EditPipeline) -> None:
    if pipeline.scene is None or not pipeline.has_unsaved_changes():
        pipeline.ledger.save()
        return
    try:
        target = pipeline.save_scene(YamlSceneStore(pipeline.scene.registry))
    except (OSError, FileLockError) as e:
        error(f"Failed to save scene: {e}")
        raise click.Abort()
    success(f"Saved scene: {target}")

# ------------------------------
# 命令 2: extract
# ------------------------------

@cli.command(name="extract")
@click.argument("response_file", type=click.File("r", encoding="utf-8"))
@click.pass_context
def extract_directives(ctx, response_file):
    """📋 List the edit directives found in an assistant response"""
    config = _load_config(ctx)
    directives = extract(response_file.read(), config.languages)
    heading("Directives")
    if not directives:
        console.print("No directives found.", style="yellow")
        return

    table = Table(title=f"{len(directives)} directive(s)")
    table.add_column("#", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Target", style="magenta")
    table.add_column("Detail", style="white")

    for i, directive in enumerate(directives, 1):
        if isinstance(directive, FileEditDirective):
            lines = directive.new_content.count("\n") + 1
            table.add_row(str(i), "file", directive.target_path, f"{directive.language}, {lines} line(s)")
        elif isinstance(directive, CreateEntityDirective):
            table.add_row(str(i), "create", directive.object_name, directive.component_name)
        elif isinstance(directive, SetPropertyDirective):
            table.add_row(str(i), "set", directive.object_path,
                          escape(f"{directive.component_name}.{directive.property_name} = {directive.raw_value}"))
        elif isinstance(directive, InvalidDirective):
            table.add_row(str(i), "[red]invalid[/red]", escape(directive.raw), escape(directive.reason))
    console.print(table)

# ------------------------------
# 命令 3: apply
# ------------------------------

@cli.command()
@click.argument("response_file", type=click.File("r", encoding="utf-8"))
@click.option("--scene", "scene_path", help="Scene file (overrides config)")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to every confirmation")
@click.pass_context
def apply(ctx, response_file, scene_path: Optional[str], assume_yes: bool):
    """💾 Apply an assistant response to the project"""
    pipeline, _ = _load_pipeline(ctx, scene_path, assume_yes)
    heading("Applying assistant response")
    try:
        messages = pipeline.apply_response(response_file.read())
    except ScenePilotError as e:
        error(f"Failed to apply response: {e}")
        raise click.Abort()

    if not messages:
        warning("No directives were applied.")
    _save_scene(pipeline)

# ------------------------------
# 命令 4: undo
# ------------------------------

@cli.command()
@click.option("--batch", "whole_batch", is_flag=True, help="Revert every entry of the last batch")
@click.option("--scene", "scene_path", help="Scene file (overrides config)")
@click.pass_context
def undo(ctx, whole_batch: bool, scene_path: Optional[str]):
    """↩️ Revert the last recorded modification"""
    pipeline, _ = _load_pipeline(ctx, scene_path)
    heading("Undo")
    if whole_batch:
        pipeline.undo_last_batch()
    else:
        pipeline.undo_last()
    info(f"{len(pipeline.ledger)} entr{'y' if len(pipeline.ledger) == 1 else 'ies'} left in undo history")

# ------------------------------
# 命令 5: create
# ------------------------------

@cli.command()
@click.argument("query")
@click.option("--scene", "scene_path", help="Scene file (overrides config)")
@click.pass_context
def create(ctx, query: str, scene_path: Optional[str]):
    """🧱 Create a primitive from a natural-language request"""
    pipeline, _ = _load_pipeline(ctx, scene_path)
    heading("Create object")
    pipeline.create_from_query(query)
    _save_scene(pipeline)

# ------------------------------
# scene 命令组
# ------------------------------

@cli.group()
def scene():
    """🎬 Inspect the scene"""
    pass


@scene.command(name="show")
@click.option("--scene", "scene_path", help="Scene file (overrides config)")
@click.pass_context
def scene_show(ctx, scene_path: Optional[str]):
    """🌳 Print the scene structure summary"""
    config = _load_config(ctx)
    loaded = _load_scene(config, LocalFileSystem(config.project_root), scene_path)
    if loaded is None:
        warning("No scene configured. Pass --scene or set 'scene' in config.yaml.")
        return
    heading(f"Scene: {loaded.name}")
    console.print(SceneSummaryProvider(loaded).summary(), markup=False, highlight=False)

# ------------------------------
# 命令 6: prompt
# ------------------------------

@cli.command()
@click.argument("message")
@click.option("--provider", "-p", default="openai", help="Provider name from config.yaml")
@click.option("--scene", "scene_path", help="Scene file (overrides config)")
@click.option("--file", "file_path", type=click.Path(exists=True), help="Script to include as context")
@click.option("--json", "as_json", is_flag=True, help="Print the request body as JSON (headers omitted)")
@click.pass_context
def prompt(ctx, message: str, provider: str, scene_path: Optional[str], file_path: Optional[str],
           as_json: bool):
    """🧾 Render the request that would be sent to the provider"""
    config = _load_config(ctx)
    loaded = _load_scene(config, LocalFileSystem(config.project_root), scene_path)

    session = ChatSession()
    file_content = None
    if file_path:
        session.last_loaded_file = file_path
        file_content = Path(file_path).read_text(encoding="utf-8")

    builder = PromptBuilder(config, SceneSummaryProvider(loaded), session)
    try:
        request = builder.build_request(provider, message, file_content)
    except ScenePilotError as e:
        error(str(e))
        raise click.Abort()

    if as_json:
        data = request.to_dict()
        data.pop("headers")
        print_json(data)
        return

    heading(f"Request for {provider} ({config.provider(provider).model})")
    console.print(f"[dim]POST[/dim] [path]{request.url}[/path]")
    for role_message in builder.messages(message, file_content):
        console.print(Panel(Text(role_message["content"]), title=role_message["role"], border_style="blue"))
