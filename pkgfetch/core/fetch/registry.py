"""npm 兼容 registry 客户端

职责:
- 拉取 packument（包的全部版本元数据）
- 按 dist-tag / semver 区间挑选版本
- 下载 tarball 并校验 integrity / shasum
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import shutil
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

from pkgfetch.core.exceptions import RetrievalError
from pkgfetch.core.semver import select_version
from pkgfetch.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "https://registry.npmjs.org/"
_PACKUMENT_ACCEPT = (
    "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8, */*"
)
_SRI_ALGORITHMS = ("sha512", "sha384", "sha256", "sha1")


@dataclass
class ArchiveInfo:
    """下载结果"""

    archive_path: Path
    name: str
    version: str


def verify_integrity(path: Path, dist: dict[str, Any]) -> None:
    """按 dist.integrity（SRI）优先、dist.shasum 次之校验归档，都没有时跳过"""
    integrity = str(dist.get("integrity") or "")
    expected_hex = ""
    algo = ""
    for entry in integrity.split():
        name, _, digest = entry.partition("-")
        if name in _SRI_ALGORITHMS and digest:
            algo = name
            try:
                expected_hex = base64.b64decode(digest).hex()
            except ValueError as e:
                raise RetrievalError(f"integrity 字段格式错误: {entry}") from e
            break
    if not algo and dist.get("shasum"):
        algo, expected_hex = "sha1", str(dist["shasum"]).lower()
    if not algo:
        logger.debug("  无校验信息，跳过校验: %s", path.name)
        return

    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    actual = h.hexdigest()
    if actual != expected_hex:
        raise RetrievalError(
            f"校验和不匹配 {path.name} ({algo}): 期望 {expected_hex}, 实际 {actual}"
        )
    logger.debug("  校验和通过 (%s): %s", algo, path.name)


class RegistryClient:
    """registry 客户端 —— packument 查询 + tarball 下载"""

    def __init__(self, registry_url: str = DEFAULT_REGISTRY, timeout: int = 60) -> None:
        self.registry_url = registry_url.rstrip("/") + "/"
        self.timeout = timeout

    def packument_url(self, name: str) -> str:
        # scoped 包: @scope/name -> @scope%2Fname
        return self.registry_url + quote(name, safe="@")

    def packument(self, name: str) -> dict[str, Any]:
        """查询包的全部版本元数据"""
        url = self.packument_url(name)
        validate_url_scheme(url, context=f"registry {name}")
        req = urllib.request.Request(url, headers={"Accept": _PACKUMENT_ACCEPT})
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                data = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise RetrievalError(f"registry 中不存在包: {name}") from e
            raise RetrievalError(f"查询 registry 失败: {url} - HTTP {e.code}") from e
        except (urllib.error.URLError, OSError) as e:
            raise RetrievalError(f"查询 registry 失败: {url} - {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RetrievalError(f"registry 返回内容不是合法 JSON: {url}") from e
        if not isinstance(data, dict):
            raise RetrievalError(f"registry 返回内容格式错误: {url}")
        return data

    @staticmethod
    def pick_version(name: str, packument: dict[str, Any], token: str) -> str:
        """dist-tag 优先；latest 满足区间时选 latest；否则选满足区间的最高版本"""
        versions = packument.get("versions") or {}
        tags = packument.get("dist-tags") or {}
        token = (token or "").strip()

        if token in tags and tags[token] in versions:
            return tags[token]

        latest = tags.get("latest")
        if latest in versions and select_version([latest], token) == latest:
            return latest

        version = select_version(versions.keys(), token)
        if version is None:
            raise RetrievalError(
                f"没有满足 {name}@{token or '*'} 的版本"
                f"（共 {len(versions)} 个候选）"
            )
        return version

    def download_archive(
        self, name: str, version_range: str, target_dir: Path,
    ) -> ArchiveInfo:
        """下载满足区间的最佳版本 tarball 到 target_dir"""
        doc = self.packument(name)
        version = self.pick_version(name, doc, version_range)
        meta = doc["versions"][version]
        dist = meta.get("dist") or {}
        tarball = dist.get("tarball", "")
        if not tarball:
            raise RetrievalError(f"{name}@{version} 缺少 dist.tarball")

        target_dir.mkdir(parents=True, exist_ok=True)
        dest = target_dir / f"{name.lstrip('@').replace('/', '-')}-{version}.tgz"
        logger.debug("  下载: %s", tarball)
        validate_url_scheme(tarball, context=f"tarball {name}")
        try:
            with urllib.request.urlopen(tarball, timeout=self.timeout) as resp, \
                    open(dest, "wb") as f:  # nosec B310
                shutil.copyfileobj(resp, f)
        except (urllib.error.HTTPError, urllib.error.URLError, OSError) as e:
            dest.unlink(missing_ok=True)
            raise RetrievalError(f"下载失败: {tarball} - {e}") from e

        try:
            verify_integrity(dest, dist)
        except RetrievalError:
            dest.unlink(missing_ok=True)
            raise

        logger.debug("  已保存: %s", dest)
        return ArchiveInfo(archive_path=dest, name=meta.get("name", name), version=version)
