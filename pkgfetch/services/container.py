"""服务容器 — 统一依赖注入

CLI 和 Web 层均通过 get_container() 获取取包编排器与包清单，
同一容器内的实例共享配置与暂存根目录。

用法:
    container = ServiceContainer()
    pkg = container.acquirer.acquire("left-pad@^1.0.0", "/tmp/pkgs")

    # 显式注入配置
    cfg = Config.from_file("configs/pkgfetch.yml")
    container = ServiceContainer(config=cfg)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkgfetch.core.config import Config
    from pkgfetch.services.acquire.inventory import PackageInventory
    from pkgfetch.services.acquire.orchestrator import PackageAcquirer

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from pkgfetch.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def acquirer(self) -> PackageAcquirer:
        if "acquirer" not in self._instances:
            from pkgfetch.services.acquire.orchestrator import PackageAcquirer
            self._instances["acquirer"] = PackageAcquirer(self._config)
        return self._instances["acquirer"]  # type: ignore[return-value]

    @property
    def inventory(self) -> PackageInventory:
        if "inventory" not in self._instances:
            from pkgfetch.services.acquire.inventory import PackageInventory
            self._instances["inventory"] = PackageInventory(
                packages_dir=self._config.packages_dir,
                staging_dir=self._config.staging_dir,
                manifest_name=self._config.manifest_name,
                info_file=self._config.info_file,
            )
        return self._instances["inventory"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
