"""核心数据模型

说明符解析结果、暂存包、安装元信息、最终产物集中定义，
解析器 / 取包策略 / 编排器统一从此处导入。
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

# 目录段编码时保留的字符，其余全部百分号转义（含 / : + # @）
_DIR_SAFE_CHARS = "-._~"

# 单个目录名的长度上限（常见文件系统 NAME_MAX 为 255 字节，留出余量）
MAX_SEGMENT_LEN = 200
# quote 的输出里 "%" 后面总是两位十六进制，"%~" 只会出现在截断标记处
_TRUNCATED_MARK = "%~"


def encode_dir_segment(text: str) -> str:
    """把 git 定位串编码成单个目录名

    编码结果不超过 MAX_SEGMENT_LEN 时可由 decode_dir_segment 完整还原；
    超长时截断为 "<前缀>%~<sha256 前 16 位>"，前缀只能还原出原文开头，
    完整定位串以安装元信息中的 git_url 为准。
    """
    encoded = quote(text, safe=_DIR_SAFE_CHARS)
    if len(encoded) <= MAX_SEGMENT_LEN:
        return encoded
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
    prefix = encoded[:MAX_SEGMENT_LEN - len(_TRUNCATED_MARK) - len(digest)]
    # 不在 %XX 中间截断
    pct = prefix.rfind("%", len(prefix) - 2)
    if pct >= 0:
        prefix = prefix[:pct]
    return f"{prefix}{_TRUNCATED_MARK}{digest}"


def is_truncated_segment(segment: str) -> bool:
    return _TRUNCATED_MARK in segment


def decode_dir_segment(segment: str) -> str:
    """encode_dir_segment 的逆操作（截断过的目录段只还原前缀部分）"""
    prefix, _, _ = segment.partition(_TRUNCATED_MARK)
    return unquote(prefix)


@dataclass(frozen=True)
class GitLocator:
    """git 来源定位

    url:    可直接 clone 的地址（git+https:// 已规整为 https://，#ref 已去掉）
    branch: 分支 / tag / commit，缺省为 master
    source: 用户写的仓库地址原文（去掉 #ref，协议前缀保持原样）
    """

    url: str
    branch: str = "master"
    source: str = ""

    @property
    def git_url(self) -> str:
        """带 #branch 的完整定位串，写入 _from 和安装元信息"""
        return f"{self.source or self.url}#{self.branch}"

    @property
    def dir_segment(self) -> str:
        return encode_dir_segment(self.git_url)


@dataclass(frozen=True)
class TargetSpec:
    """说明符解析结果 —— git 与 semver 区间二选一"""

    name: str
    version_token: str
    git: GitLocator | None = None
    raw: str = ""

    @property
    def is_git(self) -> bool:
        return self.git is not None


@dataclass
class StagedPackage:
    """刚取回、尚未落位的包（仅编排器持有）"""

    staging_path: Path
    manifest_path: Path
    manifest: dict[str, Any]

    @property
    def name(self) -> str:
        return str(self.manifest.get("name", ""))

    @property
    def version(self) -> str:
        return str(self.manifest.get("version", ""))


@dataclass
class InstallMetadata:
    """包的来源记录，落位后写入包目录，供后续查看 / 重新构建"""

    name: str
    version: str
    location: str
    requested: str = ""
    git_url: str = ""
    branch: str = ""
    commit: str = ""
    build: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        # registry 包不带 git 字段
        if not self.git_url:
            for key in ("git_url", "branch", "commit"):
                data.pop(key)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstallMetadata:
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ResolvedPackage:
    """最终产物：已落位到 <destination>/<name>/<版本段> 的包"""

    name: str
    version: str
    final_path: Path
    manifest: dict[str, Any] = field(default_factory=dict)
    metadata: InstallMetadata | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "path": str(self.final_path),
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }

    @classmethod
    def from_dir(
        cls, path: str | Path, *,
        manifest_name: str = "package.json",
        info_file: str = ".pkgfetch-info.json",
    ) -> ResolvedPackage:
        """从已落位的包目录重新读取 manifest 与安装元信息"""
        from pkgfetch.core.manifest import read_manifest
        from pkgfetch.utils.fileio import load_json

        pkg_dir = Path(path)
        manifest = read_manifest(pkg_dir, manifest_name=manifest_name)
        info_path = pkg_dir / info_file
        metadata = None
        if info_path.exists():
            metadata = InstallMetadata.from_dict(load_json(info_path))
        return cls(
            name=str(manifest.get("name", "")),
            version=str(manifest.get("version", "")),
            final_path=pkg_dir,
            manifest=manifest,
            metadata=metadata,
        )
