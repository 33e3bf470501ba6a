"""领域协议定义

集中定义取包流水线各层之间的接口契约（Protocol），
编排器只依赖这些抽象，测试时可直接注入 fake 实现。

使用 typing.Protocol 而非 ABC，使得现有类无需修改继承关系即可满足协议。
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pkgfetch.core.fetch.registry import ArchiveInfo
    from pkgfetch.core.models import TargetSpec


# =========================================================================
# 外部协作者
# =========================================================================

class VcsClient(Protocol):
    """版本库客户端协议"""

    def clone(self, url: str, target_dir: Path, branch: str) -> Path:
        """把 url 的 branch clone 到 target_dir，失败抛 RetrievalError"""
        ...

    def head_commit(self, repo_dir: Path) -> str:
        """返回当前 HEAD 的 commit（取不到时返回空串）"""
        ...


class RegistryBackend(Protocol):
    """包 registry 客户端协议"""

    def download_archive(
        self, name: str, version_range: str, target_dir: Path,
    ) -> ArchiveInfo:
        """下载满足区间的最佳版本归档，失败抛 RetrievalError"""
        ...


class Extractor(Protocol):
    """归档解压协议"""

    def extract(self, archive_path: Path, target_dir: Path, expected_name: str) -> Path:
        """解压到 target_dir/expected_name 并返回该目录"""
        ...


# =========================================================================
# 取包策略
# =========================================================================

class RetrievalStrategy(Protocol):
    """取包策略协议 —— git clone 与 registry 下载两种实现"""

    def retrieve(self, target: TargetSpec, staging_root: Path, *, verbose: bool = False) -> Path:
        """把包源码取到 staging_root 下，返回暂存目录"""
        ...
