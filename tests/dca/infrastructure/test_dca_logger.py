"""
组件记录器测试
"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from src.dca.infrastructure.logging.logging_utils import setup_dca_logger


@pytest.fixture
def fresh_name(request):
    """每个用例独立的记录器名，结束时关闭挂上的文件处理器"""
    name = f"Test{request.node.name}"
    yield name
    logger = logging.getLogger(f"dca.{name}")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupDcaLogger:

    def test_without_dir_only_propagates(self, fresh_name):
        logger = setup_dca_logger(fresh_name)

        assert logger.name == f"dca.{fresh_name}"
        assert logger.handlers == []
        assert logger.propagate

    def test_ledger_file_attached_once(self, fresh_name, tmp_path):
        first = setup_dca_logger(fresh_name, "batch/executor.log", str(tmp_path))
        second = setup_dca_logger(fresh_name, "batch/executor.log", str(tmp_path))

        assert first is second
        handlers = [h for h in second.handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
        assert Path(handlers[0].baseFilename) == (tmp_path / "batch" / "executor.log").resolve()
        assert second.propagate

    def test_records_reach_ledger_file(self, fresh_name, tmp_path):
        logger = setup_dca_logger(fresh_name, "ledger.log", str(tmp_path))
        logger.warning("批次失败 [buy]: no eligible candidates")
        for handler in logger.handlers:
            handler.flush()

        content = (tmp_path / "ledger.log").read_text(encoding="utf-8")
        assert f"[WARNING] dca.{fresh_name}: 批次失败 [buy]" in content

    def test_records_still_reach_root(self, fresh_name, tmp_path, caplog):
        logger = setup_dca_logger(fresh_name, "ledger.log", str(tmp_path))
        with caplog.at_level(logging.INFO):
            logger.info("批次完成")
        assert any(r.name == f"dca.{fresh_name}" and r.message == "批次完成" for r in caplog.records)
