"""日志系统单元测试。

测试 typed_event_bus.logging 模块的功能，包括：
- JSONL 和文本格式输出
- 控制台专用模式
- 模块过滤
- 默认行为和延迟初始化
"""

import json
from pathlib import Path

import pytest
from loguru import logger


@pytest.fixture
def temp_log_dir(tmp_path):
    """测试期间的临时日志目录。"""
    log_dir = tmp_path / "logs"
    log_dir.mkdir(exist_ok=True)
    return str(log_dir)


@pytest.fixture(autouse=True)
def reset_logger_state():
    """测试间重置 logger 状态。"""
    from typed_event_bus.logging import logger as logger_module

    yield

    for handler_id in list(logger._core.handlers.keys()):
        logger.remove(handler_id)

    # 处理器已全部移除，回到未配置状态，下次 get_logger() 会重新挂默认处理器
    logger_module._CONFIGURED = False
    logger_module._HANDLER_IDS.clear()
    logger_module._DEFAULT_HANDLER_ID = None


class TestJSONLFormat:
    """测试 JSONL 格式输出。"""

    def test_jsonl_format(self, temp_log_dir):
        """验证每行是一个包含固定字段的 JSON 对象。"""
        from typed_event_bus.logging import configure_from_config, get_logger

        configure_from_config({"enabled": True, "format": "jsonl", "directory": temp_log_dir, "level": "INFO"})

        get_logger("test_module").info("Test message")

        log_files = list(Path(temp_log_dir).glob("*.jsonl"))
        assert len(log_files) == 1, "应创建一个 JSONL 日志文件"

        with open(log_files[0], "r", encoding="utf-8") as f:
            log_obj = json.loads(f.readline())

        assert log_obj["level"] == "INFO"
        assert log_obj["module"] == "test_module"
        assert log_obj["message"] == "Test message"
        assert "timestamp" in log_obj

    def test_jsonl_respects_level(self, temp_log_dir):
        """验证低于配置级别的日志不写入文件。"""
        from typed_event_bus.logging import configure_from_config, get_logger

        configure_from_config({"enabled": True, "format": "jsonl", "directory": temp_log_dir, "level": "WARNING"})

        test_logger = get_logger("test_module")
        test_logger.info("dropped")
        test_logger.warning("kept")

        lines = Path(next(Path(temp_log_dir).glob("*.jsonl"))).read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["kept"]


class TestTextFormat:
    """测试文本格式输出。"""

    def test_text_format(self, temp_log_dir):
        from typed_event_bus.logging import configure_from_config, get_logger

        configure_from_config({"enabled": True, "format": "text", "directory": temp_log_dir})

        get_logger("text_module").info("Plain message")
        logger.complete()

        log_files = list(Path(temp_log_dir).glob("*.log"))
        assert len(log_files) == 1
        content = log_files[0].read_text(encoding="utf-8")
        assert "text_module" in content
        assert "Plain message" in content


class TestConsoleOnly:
    """测试仅控制台模式。"""

    def test_disabled_file_logging_creates_no_files(self, tmp_path):
        from typed_event_bus.logging import configure_from_config, get_logger

        log_dir = tmp_path / "never_created"
        configure_from_config({"enabled": False, "directory": str(log_dir)})
        get_logger("test_module").info("console only")

        assert not log_dir.exists()

    def test_none_config_is_console_only(self):
        from typed_event_bus.logging import configure_from_config
        from typed_event_bus.logging import logger as logger_module

        configure_from_config(None)

        assert logger_module._CONFIGURED is True
        assert len(logger_module._HANDLER_IDS) == 1

    def test_creates_missing_directory(self, tmp_path):
        from typed_event_bus.logging import configure_from_config, get_logger

        log_dir = tmp_path / "nested" / "logs"
        configure_from_config({"enabled": True, "directory": str(log_dir)})
        get_logger("test_module").info("hello")

        assert log_dir.exists()


class TestModuleFilter:
    """测试模块过滤器。"""

    def test_filter_list(self, capsys):
        from typed_event_bus.logging import configure_from_config, get_logger

        configure_from_config({"filter": ["EventBus"]})

        get_logger("EventBus").info("from bus")
        get_logger("Other").info("from other")
        get_logger("Other").warning("other warning")

        err = capsys.readouterr().err
        assert "from bus" in err
        assert "from other" not in err
        assert "other warning" in err


class TestDefaultBehavior:
    """测试默认行为与延迟初始化。"""

    def test_get_logger_before_configure(self):
        from typed_event_bus.logging import get_logger
        from typed_event_bus.logging import logger as logger_module

        logger_module._CONFIGURED = False
        logger_module._DEFAULT_HANDLER_ID = None

        get_logger("early").info("before configure")

        assert logger_module._DEFAULT_HANDLER_ID is not None

    def test_default_handler_is_live(self):
        """验证默认处理器 ID 总是指向一个仍然存在的处理器。"""
        from typed_event_bus.logging import get_logger
        from typed_event_bus.logging import logger as logger_module

        get_logger("live")

        assert logger_module._DEFAULT_HANDLER_ID in logger._core.handlers

    def test_default_handler_created_once(self):
        from typed_event_bus.logging import get_logger
        from typed_event_bus.logging import logger as logger_module

        logger_module._CONFIGURED = False
        logger_module._DEFAULT_HANDLER_ID = None

        get_logger("a")
        first_id = logger_module._DEFAULT_HANDLER_ID
        get_logger("b")

        assert logger_module._DEFAULT_HANDLER_ID == first_id
