"""集中配置管理

所有默认目录、registry 地址、重试参数集中在 Config 中。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field

from pkgfetch.core.exceptions import ConfigError
from pkgfetch.utils.fileio import load_yaml

logger = logging.getLogger(__name__)

RETRY_POLICIES = ("uniform", "classified")


def _default_staging_dir() -> str:
    return os.path.join(tempfile.gettempdir(), "package_install_tmp")


@dataclass
class Config:
    """全局配置"""

    # 目录
    packages_dir: str = "packages"
    staging_dir: str = field(default_factory=_default_staging_dir)

    # registry
    registry_url: str = "https://registry.npmjs.org/"
    request_timeout: int = 60

    # git
    default_branch: str = "master"
    git_timeout: int = 600

    # 重试
    max_retries: int = 3
    retry_policy: str = "uniform"  # "uniform" | "classified"

    # 文件名
    manifest_name: str = "package.json"
    info_file: str = ".pkgfetch-info.json"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.retry_policy not in RETRY_POLICIES:
            raise ConfigError(
                f"不支持的重试策略: {self.retry_policy}，可选: {', '.join(RETRY_POLICIES)}"
            )
        if int(self.max_retries) < 0:
            raise ConfigError(f"max_retries 不能为负数: {self.max_retries}")

    @classmethod
    def from_file(cls, path: str = "configs/pkgfetch.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        from dataclasses import asdict
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化时若设置了 PKGFETCH_CONFIG 则从该文件加载）"""
    global _current  # noqa: PLW0603
    if _current is None:
        env_path = os.getenv("PKGFETCH_CONFIG", "")
        _current = Config.from_file(env_path) if env_path else Config()
    return _current


def init_config(path: str = "configs/pkgfetch.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
