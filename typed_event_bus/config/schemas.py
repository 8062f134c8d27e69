"""
配置 Schema

定义日志与事件总线的配置结构。
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """日志配置"""

    model_config = {"extra": "ignore"}

    enabled: bool = Field(default=False, description="启用文件日志")
    format: Literal["jsonl", "text"] = Field(
        default="jsonl", description="日志格式：jsonl（每行一个JSON对象）或 text（纯文本）"
    )
    directory: str = Field(default="logs", description="日志目录")
    level: str = Field(default="INFO", description="文件日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL）")
    console_level: str = Field(default="INFO", description="控制台日志级别")
    rotation: str = Field(default="10 MB", description="日志轮转触发条件（仅 text 格式）")
    retention: str = Field(default="7 days", description="日志保留时间（仅 text 格式）")
    compression: str = Field(default="zip", description="压缩格式（仅 text 格式）")
    filter: Optional[List[str]] = Field(default=None, description="控制台只显示这些模块的日志")

    @classmethod
    def generate_toml(cls) -> str:
        """生成 TOML 配置模板

        Returns:
            TOML 格式的配置字符串
        """
        return """# 日志配置
[logging]
# 启用文件日志
enabled = false
# 日志格式：jsonl（每行一个JSON对象）或 text（纯文本）
format = "jsonl"
# 日志目录
directory = "logs"
# 文件日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL）
level = "INFO"
# 控制台日志级别
console_level = "INFO"
# 以下三项仅对 text 格式生效
rotation = "10 MB"
retention = "7 days"
compression = "zip"
"""


class EventBusConfig(BaseModel):
    """事件总线配置"""

    model_config = {"extra": "ignore"}

    validation: Literal["off", "warn", "strict"] = Field(
        default="off",
        description="payload 校验模式：off 不校验，warn 记录警告后照常分发，strict 校验失败时抛出异常",
    )
    error_isolate: bool = Field(
        default=False,
        description="emit 的默认错误策略：False 时第一个异常直接抛出，True 时记录错误并继续执行其他处理器",
    )
    enable_stats: bool = Field(default=False, description="是否记录每个事件的统计信息")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def generate_toml(cls) -> str:
        """生成完整的 TOML 配置模板（含 [logging] 表）"""
        return (
            """# 事件总线配置
[event_bus]
# payload 校验模式：off / warn / strict
validation = "off"
# 处理器出错时是否继续执行其他处理器
error_isolate = false
# 是否记录事件统计
enable_stats = false

"""
            + LoggingConfig.generate_toml()
        )
