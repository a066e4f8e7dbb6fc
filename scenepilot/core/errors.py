# scenepilot/core/errors.py
"""ScenePilot 异常层次"""


class ScenePilotError(Exception):
    """所有 ScenePilot 异常的基类"""
    pass


class ParseError(ScenePilotError):
    """指令文本格式不合法"""
    pass


class ResolutionError(ScenePilotError):
    """找不到目标节点 / 组件类型 / 组件"""
    pass


class ConversionError(ScenePilotError):
    """值文本无法转换为目标类型"""

    def __init__(self, text: str, type_name: str, reason: str = ""):
        self.text = text
        self.type_name = type_name
        message = f"Cannot convert '{text}' to {type_name}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ApplicationError(ScenePilotError):
    """应用修改时的 I/O 或赋值失败"""
    pass


class MissingCredentialError(ScenePilotError):
    """未配置模型服务的 API Key"""
    pass


class ReentrantBatchError(ScenePilotError):
    """上一批修改尚未结束时再次触发"""
    pass


class ConfigError(ScenePilotError):
    """配置文件不合法"""
    pass
