"""
DCA 命令行入口

提供 argparse CLI，对配置的策略存储执行查询与批量操作 (流动性场所为模拟池)。

子命令:
    list                      列出所有存活策略
    show <nonce>              显示单个策略及成交明细
    create <amount> <label>   创建策略
    deposit <nonce> <amount>  存入稳定币
    buy <nonce...>            执行买入批次
    take-profit <nonce...>    执行止盈批次
"""

import argparse
import logging
import sys
from typing import List, Optional

from src.dca.domain.exceptions import DcaError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DCA 批量执行引擎")
    parser.add_argument("--config", type=str, default=None, help="DCA 配置文件路径")
    parser.add_argument("--database", type=str, default=None, help="SQLite 数据库路径")
    parser.add_argument("--caller", type=str, default=None, help="调用方地址 (默认 DCA_OPERATOR)")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="列出所有策略")

    show = sub.add_parser("show", help="显示单个策略")
    show.add_argument("nonce", type=int)

    create = sub.add_parser("create", help="创建策略")
    create.add_argument("amount", type=int, help="每期稳定币金额")
    create.add_argument("label", type=str, help="周期标签")
    create.add_argument("--take-profit", type=int, default=0, dest="take_profit", help="止盈阈值 (bps)")

    deposit = sub.add_parser("deposit", help="存入稳定币")
    deposit.add_argument("nonce", type=int)
    deposit.add_argument("amount", type=int)

    buy = sub.add_parser("buy", help="执行买入批次")
    buy.add_argument("nonces", type=int, nargs="+")

    take_profit = sub.add_parser("take-profit", help="执行止盈批次")
    take_profit.add_argument("nonces", type=int, nargs="+")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI 入口：解析参数 → 加载配置 → 初始化日志与服务 → 执行子命令。"""
    args = build_parser().parse_args(argv)

    # 1. 加载配置与环境变量
    from src.main.utils.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader

    env = ConfigLoader.load_env()
    config = ConfigLoader.load_yaml(args.config or DEFAULT_CONFIG_PATH)

    # 2. 初始化日志
    from src.main.utils.logging_setup import setup_logging

    setup_logging(env["log_level"], ConfigLoader.resolve_path(env["log_dir"]), "dca_cli.log")

    # 3. 装配服务
    from src.main.bootstrap.service_factory import build_services

    bundle = build_services(
        config,
        database_path=args.database or env["database_path"],
        log_dir=ConfigLoader.resolve_path(env["log_dir"]),
    )
    caller = args.caller or env["operator"]

    from src.dca.infrastructure.reporting.strategy_report import StrategyReport

    try:
        if args.command == "list":
            df = StrategyReport.summary(bundle.strategy_service.list_strategies())
            print(StrategyReport.to_text(df))

        elif args.command == "show":
            snapshot = bundle.strategy_service.get_strategy(args.nonce)
            if snapshot is None:
                print(f"策略不存在: #{args.nonce}")
                return 1
            print(StrategyReport.to_text(StrategyReport.summary([snapshot])))
            print(StrategyReport.to_text(StrategyReport.trade_history(snapshot)))

        elif args.command == "create":
            nonce = bundle.strategy_service.create_strategy(
                caller, args.amount, args.label, args.take_profit
            )
            print(f"策略已创建: #{nonce}")

        elif args.command == "deposit":
            settings = bundle.setup.require_settings()
            bundle.strategy_service.deposit(caller, args.nonce, settings.stable_token, args.amount)
            print(f"已存入: #{args.nonce} +{args.amount}")

        elif args.command == "buy":
            report = bundle.batch_executor.run_buy_cycle(caller, args.nonces)
            print(f"买入完成: {report.executed_nonces}, out={report.aggregate_output}, dust={report.dust}")

        elif args.command == "take-profit":
            report = bundle.batch_executor.run_take_profit_cycle(caller, args.nonces)
            print(
                f"止盈完成: {report.executed_nonces}, out={report.aggregate_output}, "
                f"fee={report.total_fee}, dust={report.dust}"
            )
    except DcaError as e:
        logging.getLogger(__name__).error(f"命令失败 [{args.command}]: {e.reason}")
        print(f"失败: {e.reason}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
