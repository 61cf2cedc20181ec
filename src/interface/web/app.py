"""
只读 HTTP 接口

GET /api/strategies            所有存活策略快照
GET /api/strategies/<nonce>    单个策略快照，未知 nonce 返回 404
GET /api/setup                 当前 DCA 配置与暂停状态

以应用工厂方式创建，便于测试时注入内存服务。
"""
import os
from typing import Optional

from flask import Flask, jsonify

from src.dca.application.setup_saga import SetupCoordinator
from src.dca.application.strategy_service import StrategyService
from src.dca.domain.demand_interface.collaborator_interface import IAccessControl


def create_app(
    strategy_service: StrategyService,
    setup: SetupCoordinator,
    access_control: Optional[IAccessControl] = None,
) -> Flask:
    app = Flask(__name__)
    app.config["JSON_SORT_KEYS"] = False

    @app.route("/api/strategies")
    def api_strategies():
        return jsonify([s.to_dict() for s in strategy_service.list_strategies()])

    @app.route("/api/strategies/<int:nonce>")
    def api_strategy(nonce: int):
        snapshot = strategy_service.get_strategy(nonce)
        if snapshot is None:
            return jsonify({"error": "Not found"}), 404
        return jsonify(snapshot.to_dict())

    @app.route("/api/setup")
    def api_setup():
        settings = setup.settings
        return jsonify({
            "configured": setup.is_configured,
            "pending": setup.pending is not None,
            "paused": access_control.is_paused() if access_control is not None else False,
            "settings": settings.to_dict() if settings is not None else None,
        })

    return app


def main() -> None:
    from src.main.bootstrap.service_factory import build_services
    from src.main.utils.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
    from src.main.utils.logging_setup import setup_logging

    env = ConfigLoader.load_env()
    setup_logging(env["log_level"], ConfigLoader.resolve_path(env["log_dir"]), "dca_web.log")
    config = ConfigLoader.load_yaml(os.getenv("DCA_CONFIG", DEFAULT_CONFIG_PATH))
    bundle = build_services(
        config,
        database_path=env["database_path"],
        log_dir=ConfigLoader.resolve_path(env["log_dir"]),
    )

    app = create_app(bundle.strategy_service, bundle.setup, bundle.access_control)
    app.run(
        host=os.getenv("DCA_WEB_HOST", "127.0.0.1"),
        port=int(os.getenv("DCA_WEB_PORT", "5000")),
    )


if __name__ == "__main__":
    main()
