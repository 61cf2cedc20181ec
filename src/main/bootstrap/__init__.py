"""
src/main/bootstrap/ - 服务装配与共享启动逻辑

CLI 与只读 HTTP 接口共用的装配入口。

导出:
    - build_services: 根据配置装配仓库、协作方、领域服务和应用服务
    - ServiceBundle: 装配结果数据类
    - create_repository: 按 SQLite 路径创建策略仓库
"""
from src.main.bootstrap.service_factory import ServiceBundle, build_services, create_repository

__all__ = [
    "build_services",
    "ServiceBundle",
    "create_repository",
]
