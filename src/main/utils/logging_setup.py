"""
logging_setup.py - 入口日志配置

CLI 与 Web 入口各调用一次：根记录器写控制台和按天轮转的主日志文件。
组件级日志 (dca.*) 通过传播汇入这里。
"""
import logging
import logging.handlers
from pathlib import Path

from src.dca.infrastructure.logging.logging_utils import LEDGER_FORMAT


def setup_logging(log_level: str, log_dir: str, log_name: str = "dca.log") -> Path:
    """
    配置根记录器，返回主日志文件路径

    Raises:
        ValueError: 日志级别不是 DEBUG / INFO / WARNING / ERROR / CRITICAL
    """
    level = logging.getLevelName(str(log_level).upper())
    if not isinstance(level, int):
        raise ValueError(f"未知的日志级别: {log_level}")

    log_file = Path(log_dir) / log_name
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # 每天一个文件，保留 30 天
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_file),
        when="midnight",
        backupCount=30,
        encoding="utf-8",
        delay=True,
    )
    file_handler.suffix = "%Y%m%d"

    # force 会关闭并替换根记录器上已有的处理器，重复调用不叠加输出
    logging.basicConfig(
        level=level,
        format=LEDGER_FORMAT,
        handlers=[file_handler, logging.StreamHandler()],
        force=True,
    )
    return log_file
