"""已落位包查看与暂存区清理

职责：
- 列出 packages_dir/<name>/ 下已落位的各版本目录及其安装元信息
- 手动清理暂存根目录（编排器从不自动清理暂存根）
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from pkgfetch.core.exceptions import ManifestMissingError, ManifestParseError
from pkgfetch.core.models import ResolvedPackage, decode_dir_segment

logger = logging.getLogger(__name__)


class PackageInventory:
    """已落位包清单"""

    def __init__(
        self,
        packages_dir: str | Path,
        staging_dir: str | Path,
        *,
        manifest_name: str = "package.json",
        info_file: str = ".pkgfetch-info.json",
    ) -> None:
        self.packages_dir = Path(packages_dir)
        self.staging_dir = Path(staging_dir)
        self.manifest_name = manifest_name
        self.info_file = info_file

    def load(self, path: str | Path) -> ResolvedPackage:
        return ResolvedPackage.from_dir(
            path, manifest_name=self.manifest_name, info_file=self.info_file,
        )

    def list_versions(self, name: str) -> list[dict[str, Any]]:
        """列出某个包已落位的所有版本目录"""
        base = self.packages_dir / name
        result: list[dict[str, Any]] = []
        if not base.is_dir():
            return result
        for ver_dir in sorted(base.iterdir()):
            if not ver_dir.is_dir() or ver_dir.name.startswith("."):
                continue
            try:
                pkg = self.load(ver_dir)
            except (ManifestMissingError, ManifestParseError) as e:
                logger.warning("跳过无效包目录 %s: %s", ver_dir, e)
                continue
            entry = pkg.to_dict()
            # git 包目录名是编码后的定位串，超长截断过的以元信息中的 git_url 为准
            entry["dir"] = ver_dir.name
            if pkg.metadata is not None and pkg.metadata.git_url:
                entry["source"] = pkg.metadata.git_url
            else:
                entry["source"] = decode_dir_segment(ver_dir.name) if "%" in ver_dir.name else ""
            result.append(entry)
        return result

    def clean_staging(self) -> int:
        """删除暂存根下的全部内容，返回清理的条目数"""
        if not self.staging_dir.exists():
            return 0
        count = 0
        for child in self.staging_dir.iterdir():
            if child.is_dir():
                shutil.rmtree(child, ignore_errors=True)
            else:
                child.unlink(missing_ok=True)
            count += 1
        logger.info("已清理暂存目录 %s 的 %d 个条目", self.staging_dir, count)
        return count
