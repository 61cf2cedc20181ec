"""
config_loader.py - 配置加载器

支持:
1. YAML 配置文件 (DCA 参数、权限、模拟流动性池)
2. 环境变量 (数据库路径、日志、默认操作方)
3. 配置验证
"""
import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv

from src.dca.domain.value_object.dca_settings import (
    EGLD_IDENTIFIER,
    MAX_PERCENTAGE,
    USDC_IDENTIFIER,
    WEGLD_IDENTIFIER,
    DcaSettings,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
DEFAULT_CONFIG_PATH = "config/dca_config.yaml"


class ConfigLoader:
    """
    配置加载器

    - DCA 配置: 从 YAML 文件加载
    - 运行环境: 从环境变量加载 (.env)
    """

    @staticmethod
    def resolve_path(path: str) -> str:
        """相对路径按项目根目录解析"""
        if os.path.isabs(path):
            return path
        return str(PROJECT_ROOT / path)

    @staticmethod
    def load_yaml(path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
        """加载 YAML 配置文件"""
        with open(ConfigLoader.resolve_path(path), "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def load_env() -> Dict[str, str]:
        """
        从环境变量加载运行配置

        Returns:
            包含 database_path / log_level / log_dir / operator 的字典
        """
        env_path = PROJECT_ROOT / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)
        else:
            load_dotenv()

        return {
            "database_path": os.getenv("DCA_DATABASE_PATH", "data/dca.sqlite3"),
            "log_level": os.getenv("DCA_LOG_LEVEL", "INFO"),
            "log_dir": os.getenv("DCA_LOG_DIR", "data/logs"),
            "operator": os.getenv("DCA_OPERATOR", ""),
        }

    @staticmethod
    def validate_dca_config(config: Dict[str, Any]) -> bool:
        """
        验证 DCA 配置

        Args:
            config: 完整配置字典

        Returns:
            True 如果配置有效
        """
        dca = config.get("dca")
        if not dca:
            raise ValueError("DCA 配置为空")

        for field in ("target_token", "min_amount_per_cycle", "profit_fee_bps", "allowed_frequencies"):
            if field not in dca:
                raise ValueError(f"DCA 配置缺少必填字段: {field}")

        fee = dca["profit_fee_bps"]
        if not isinstance(fee, int) or not 0 <= fee <= MAX_PERCENTAGE:
            raise ValueError(f"profit_fee_bps 必须在 0..{MAX_PERCENTAGE} 之间: {fee}")

        slippage = dca.get("custom_slippage_bps")
        if slippage is not None and (not isinstance(slippage, int) or not 0 <= slippage < MAX_PERCENTAGE):
            raise ValueError(f"custom_slippage_bps 必须在 0..{MAX_PERCENTAGE - 1} 之间: {slippage}")

        frequencies = dca["allowed_frequencies"]
        if not isinstance(frequencies, dict) or not frequencies:
            raise ValueError("allowed_frequencies 不能为空")
        for label, duration in frequencies.items():
            if not isinstance(duration, int) or duration <= 0:
                raise ValueError(f"周期 {label} 的时长必须为正整数 (毫秒): {duration}")

        for pool in config.get("venue", {}).get("pools", []) or []:
            for field in ("token_a", "token_b", "reserve_a", "reserve_b"):
                if field not in pool:
                    raise ValueError(f"流动性池缺少必填字段: {field}")

        return True

    @staticmethod
    def load_dca_settings(config: Dict[str, Any]) -> DcaSettings:
        """从配置字典构建 DcaSettings (先验证)"""
        ConfigLoader.validate_dca_config(config)
        dca = config["dca"]
        return DcaSettings(
            target_token=dca["target_token"],
            min_amount_per_cycle=int(dca["min_amount_per_cycle"]),
            profit_fee_bps=int(dca["profit_fee_bps"]),
            allowed_frequencies={str(k): int(v) for k, v in dca["allowed_frequencies"].items()},
            custom_slippage_bps=dca.get("custom_slippage_bps"),
            stable_token=dca.get("stable_token", USDC_IDENTIFIER),
            wrapped_native_token=dca.get("wrapped_native_token", WEGLD_IDENTIFIER),
            native_token=dca.get("native_token", EGLD_IDENTIFIER),
            strategy_token_id=dca.get("strategy_token_id", ""),
        )

    @staticmethod
    def load_venue_pools(config: Dict[str, Any]) -> List[Dict[str, Any]]:
        """模拟流动性池列表，未配置时为空"""
        pools = (config.get("venue") or {}).get("pools") or []
        return [
            {
                "token_a": pool["token_a"],
                "token_b": pool["token_b"],
                "reserve_a": int(pool["reserve_a"]),
                "reserve_b": int(pool["reserve_b"]),
                "fee_bps": int(pool.get("fee_bps", 30)),
            }
            for pool in pools
        ]

    @staticmethod
    def load_access(config: Dict[str, Any]) -> Dict[str, Any]:
        access = config.get("access") or {}
        return {
            "admins": list(access.get("admins") or []),
            "bot_address": access.get("bot_address", ""),
        }
