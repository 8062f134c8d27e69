"""TOML 配置加载

使用 tomlkit 解析配置文件，并用 Pydantic Schema 校验。
"""

import os
from typing import Any, Dict

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from typed_event_bus.config.schemas import EventBusConfig
from typed_event_bus.logging import get_logger

logger = get_logger("ConfigLoader")


class ConfigError(ValueError):
    """配置文件缺失或格式错误"""


def _build_config(data: Dict[str, Any], origin: str) -> EventBusConfig:
    section = data.get("event_bus", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[event_bus] 必须是表 ({origin})，收到: {type(section).__name__}")
    section = dict(section)
    if "logging" in data:
        section["logging"] = data["logging"]
    try:
        return EventBusConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"配置校验失败 ({origin}): {e.error_count()} 个错误\n{e}") from e


def load_config_from_string(text: str, origin: str = "<string>") -> EventBusConfig:
    """从 TOML 文本加载配置

    Args:
        text: TOML 文本，可包含 [event_bus] 与 [logging] 表
        origin: 出错时用于提示的来源名

    Returns:
        EventBusConfig 实例（缺失的表使用默认值）

    Raises:
        ConfigError: TOML 语法错误或字段校验失败
    """
    try:
        data = tomlkit.parse(text).unwrap()
    except TOMLKitError as e:
        raise ConfigError(f"TOML 解析失败 ({origin}): {e}") from e
    return _build_config(data, origin)


def load_config(path: str) -> EventBusConfig:
    """从 TOML 文件加载配置

    Raises:
        ConfigError: 文件不存在、TOML 语法错误或字段校验失败
    """
    if not os.path.exists(path):
        raise ConfigError(f"配置文件不存在: {path}")

    with open(path, "r", encoding="utf-8") as f:
        text = f.read()

    config = load_config_from_string(text, origin=path)
    logger.debug(f"已加载配置: {path} (validation={config.validation}, error_isolate={config.error_isolate})")
    return config


def write_default_config(path: str) -> None:
    """写出带注释的默认配置模板"""
    with open(path, "w", encoding="utf-8") as f:
        f.write(EventBusConfig.generate_toml())
    logger.info(f"已生成默认配置: {path}")
