"""取包策略 - git clone / registry 下载

两种策略产出相同形态的结果：staging_root/package 下的包源码目录。
策略只写暂存区，从不触碰最终目标目录；包名只参与校验，不参与拼接暂存路径。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pkgfetch.core.exceptions import ValidationError
from pkgfetch.core.location import is_safe_relative
from pkgfetch.utils.logger import step_level

if TYPE_CHECKING:
    from pkgfetch.core.models import TargetSpec
    from pkgfetch.core.protocols import Extractor, RegistryBackend, VcsClient

logger = logging.getLogger(__name__)

STAGED_DIR_NAME = "package"


def _check_name(target: TargetSpec) -> None:
    if not is_safe_relative(target.name):
        raise ValidationError(f"包名不合法: {target.name!r}")


class GitRetrieval:
    """git 来源：clone 到 staging_root/package/"""

    def __init__(self, client: VcsClient) -> None:
        self.client = client

    def retrieve(self, target: TargetSpec, staging_root: Path, *, verbose: bool = False) -> Path:
        if target.git is None:
            raise ValidationError(f"不是 git 说明符: {target.raw}")
        _check_name(target)
        locator = target.git
        dest = staging_root / STAGED_DIR_NAME
        logger.log(
            step_level(verbose), "git clone %s (branch=%s) -> %s",
            locator.url, locator.branch, dest,
        )
        return self.client.clone(locator.url, dest, locator.branch)


class RegistryRetrieval:
    """registry 来源：下载 tarball 后解压到 staging_root/package/"""

    def __init__(self, client: RegistryBackend, extractor: Extractor) -> None:
        self.client = client
        self.extractor = extractor

    def retrieve(self, target: TargetSpec, staging_root: Path, *, verbose: bool = False) -> Path:
        _check_name(target)
        logger.log(
            step_level(verbose), "registry 下载 %s@%s",
            target.name, target.version_token or "*",
        )
        info = self.client.download_archive(target.name, target.version_token, staging_root)
        logger.log(step_level(verbose), "  选中版本 %s@%s", info.name, info.version)
        return self.extractor.extract(info.archive_path, staging_root, STAGED_DIR_NAME)
