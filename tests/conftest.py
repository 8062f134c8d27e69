"""
Pytest 全局共享 fixtures
"""

from typing import Generator, List

import pytest
from loguru import logger

from typed_event_bus import EventBus


@pytest.fixture
def event_bus() -> EventBus:
    """
    创建干净的 EventBus 实例

    每个测试获得独立的事件总线，避免测试间相互干扰。
    """
    return EventBus()


@pytest.fixture
def event_bus_with_stats() -> EventBus:
    """创建启用统计的 EventBus 实例"""
    return EventBus(enable_stats=True)


@pytest.fixture
def log_records() -> Generator[List[dict], None, None]:
    """
    捕获 loguru 日志记录

    Yields:
        记录列表，每项包含 level、module、message
    """
    records: List[dict] = []

    def sink(message):
        record = message.record
        records.append(
            {
                "level": record["level"].name,
                "module": record["extra"].get("module"),
                "message": record["message"],
                "exception": record["exception"],
            }
        )

    handler_id = logger.add(sink, level="DEBUG")
    yield records
    logger.remove(handler_id)
