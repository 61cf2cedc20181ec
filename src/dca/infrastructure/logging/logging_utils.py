import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAMESPACE = "dca"
LEDGER_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_dca_logger(
    name: str,
    log_file: str = "dca.log",
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    获取 DCA 组件记录器 (dca.<name>)

    记录始终传播到根记录器，控制台与主日志由入口的 setup_logging 负责。
    给出 log_dir 时额外挂一个按大小轮转的组件日志文件，
    重复调用不会叠加处理器。

    参数:
        name: 组件名 (例如 "BatchExecutor")
        log_file: 相对 log_dir 的文件路径，可含子目录 (例如 "batch/batch_executor.log")
        log_dir: 组件日志目录，None 时不写独立文件
    """
    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
    logger.propagate = True
    if log_dir is None:
        return logger

    log_path = (Path(log_dir) / log_file).resolve()
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_path:
            return logger

    log_path.parent.mkdir(parents=True, exist_ok=True)
    # 最大 10MB，保留 10 个备份
    file_handler = RotatingFileHandler(
        log_path, maxBytes=10 * 1024 * 1024, backupCount=10, encoding="utf-8", delay=True
    )
    file_handler.setFormatter(logging.Formatter(LEDGER_FORMAT))
    logger.addHandler(file_handler)
    return logger
