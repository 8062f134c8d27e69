"""日志配置模块。

基于 loguru，延迟初始化：导入时不添加任何处理器。
应用入口应调用一次 configure_from_config()；未配置时 get_logger() 会自动挂一个默认 stderr 处理器。
"""

import json
import os
import sys
import time
from pathlib import Path

from loguru import logger as loguru_logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan> - <level>{message}</level>"
)

# 模块级状态
_CONFIGURED = False
_HANDLER_IDS: list[int] = []
_DEFAULT_HANDLER_ID: int | None = None


def _ensure_default_handler():
    """若尚未调用 configure_from_config()，创建默认的 stderr 处理器。"""
    global _DEFAULT_HANDLER_ID
    if _DEFAULT_HANDLER_ID is None and not _CONFIGURED:
        _DEFAULT_HANDLER_ID = loguru_logger.add(
            sys.stderr,
            level="INFO",
            colorize=True,
            format=CONSOLE_FORMAT,
        )
    return _DEFAULT_HANDLER_ID


def _build_module_filter(filter_config):
    """根据配置构造模块过滤器。

    Args:
        filter_config: 模块名列表，或直接传入的可调用过滤器

    Returns:
        loguru 过滤函数，未配置时返回 None
    """
    if not filter_config:
        return None
    if callable(filter_config):
        return filter_config

    filter_modules = set(filter_config)
    warning_no = loguru_logger.level("WARNING").no

    def module_filter(record):
        """只放行指定模块的日志，WARNING 及以上级别总是放行"""
        module = record["extra"].get("module", "unknown")
        return module in filter_modules or record["level"].no >= warning_no

    return module_filter


def configure_from_config(config_dict: dict | None = None) -> None:
    """从配置字典配置日志。

    Args:
        config_dict: 日志配置字典（通常来自 LoggingConfig.model_dump()），支持的键：
            - enabled: bool - 启用文件日志（默认：False）
            - format: "jsonl" | "text" - 文件日志格式（默认："jsonl"）
            - directory: str - 日志目录（默认："logs"）
            - level: str - 文件日志级别（默认："INFO"）
            - console_level: str - 控制台日志级别（默认："INFO"）
            - rotation / retention / compression: text 格式下的 loguru 轮转参数
            - filter: list[str] - 控制台只显示这些模块的日志

    若 config_dict 为 None，只输出到控制台。
    """
    global _CONFIGURED, _DEFAULT_HANDLER_ID

    _CONFIGURED = True
    config_dict = config_dict or {}

    enabled = config_dict.get("enabled", False)
    log_format = config_dict.get("format", "jsonl")
    directory = config_dict.get("directory", "logs")
    level = config_dict.get("level", "INFO")
    console_level = config_dict.get("console_level", "INFO")
    rotation = config_dict.get("rotation", "10 MB")
    retention = config_dict.get("retention", "7 days")
    compression = config_dict.get("compression", "zip")

    # loguru 自带一个默认 stderr 处理器，全部移除以免重复输出
    loguru_logger.remove()
    _DEFAULT_HANDLER_ID = None
    _HANDLER_IDS.clear()

    stderr_handler_id = loguru_logger.add(
        sys.stderr,
        level=console_level,
        colorize=True,
        format=CONSOLE_FORMAT,
        filter=_build_module_filter(config_dict.get("filter")),
    )
    _HANDLER_IDS.append(stderr_handler_id)

    if not enabled:
        return

    if not os.path.exists(directory):
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            loguru_logger.bind(module="Logging").warning(f"无法创建日志目录 {directory}，将仅使用控制台输出: {e}")
            return

    if log_format == "jsonl":
        file_path = str(Path(directory) / f"typed_event_bus_{time.strftime('%Y-%m-%d')}.jsonl")

        def json_sink(message):
            """每行写入一个 JSON 对象"""
            record = json.loads(message)["record"]
            log_obj = {
                "timestamp": record["time"]["repr"],
                "level": record["level"]["name"],
                "module": record["extra"].get("module", "unknown"),
                "message": record["message"],
            }
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(log_obj, ensure_ascii=False) + "\n")

        _HANDLER_IDS.append(loguru_logger.add(json_sink, level=level, serialize=True))
    else:
        _HANDLER_IDS.append(
            loguru_logger.add(
                os.path.join(directory, "typed_event_bus_{time}.log"),
                level=level,
                format=CONSOLE_FORMAT,
                rotation=rotation,
                retention=retention,
                compression=compression,
                encoding="utf-8",
            )
        )


def get_logger(module_name: str):
    """获取绑定了模块名的 logger 实例。

    Args:
        module_name: 模块名称，用于标识日志来源

    Returns:
        绑定了 module 的 loguru logger
    """
    _ensure_default_handler()
    return loguru_logger.bind(module=module_name)


__all__ = ["get_logger", "configure_from_config"]
