"""pkgfetch 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os
from typing import Any

import click

from pkgfetch import __version__
from pkgfetch.services.container import get_container
from pkgfetch.utils.logger import setup_logging


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="配置文件路径（YAML）")
def main(config_path: str | None) -> None:
    """pkgfetch - 按说明符获取 npm 兼容包（git / registry）"""
    setup_logging(
        level=os.getenv("PKGFETCH_LOG_LEVEL", "INFO"),
        json_output=os.getenv("PKGFETCH_LOG_JSON", "") == "1",
    )
    if config_path:
        from pkgfetch.core.config import init_config
        from pkgfetch.services.container import reset_container
        init_config(config_path)
        reset_container()


# 注册各领域子命令
from pkgfetch.cli.cmd_acquire import register as _reg_acquire  # noqa: E402
from pkgfetch.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_acquire(main)
_reg_misc(main)
