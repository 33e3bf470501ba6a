"""测试共享 fixture — fake git / registry 客户端 + 临时配置

整体思路:
  - FakeGitClient: clone 时直接在目标目录写出 package.json，记录调用
  - FakeRegistry:  按内置版本表选版本，现场打一个 npm 风格 tarball（package/ 顶层目录），
                   真实的 ArchiveExtractor 负责解压
  - fail_times:    前 N 次调用抛 RetrievalError，用于验证整体重试
"""

from __future__ import annotations

import io
import json
import tarfile
from pathlib import Path
from typing import Any

import pytest

from pkgfetch.core.config import Config
from pkgfetch.core.exceptions import RetrievalError
from pkgfetch.core.fetch.archive import ArchiveExtractor
from pkgfetch.core.fetch.registry import ArchiveInfo, RegistryClient


def make_tarball(
    path: Path, files: dict[str, str | bytes], root: str = "package",
) -> Path:
    """生成 tgz，files 的 key 为相对 root 的路径"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tf:
        for rel, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(name=f"{root}/{rel}" if root else rel)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return path


class FakeGitClient:
    """clone 时写出 package.json 的 fake git 客户端"""

    def __init__(
        self,
        manifest: dict[str, Any] | None = None,
        *,
        raw_manifest: str | None = None,
        with_manifest: bool = True,
        fail_times: int = 0,
    ) -> None:
        self.manifest = manifest if manifest is not None else {"name": "mylib", "version": "0.1.0"}
        self.raw_manifest = raw_manifest
        self.with_manifest = with_manifest
        self.fail_times = fail_times
        self.calls: list[tuple[str, Path, str]] = []

    def clone(self, url: str, target_dir: Path, branch: str) -> Path:
        self.calls.append((url, target_dir, branch))
        if len(self.calls) <= self.fail_times:
            raise RetrievalError(f"git clone 失败 (rc=128) {url}: unreachable")
        target_dir.mkdir(parents=True)
        (target_dir / "index.js").write_text("module.exports = 1;\n")
        if self.with_manifest:
            text = self.raw_manifest if self.raw_manifest is not None else json.dumps(self.manifest)
            (target_dir / "package.json").write_text(text)
        return target_dir

    def head_commit(self, repo_dir: Path) -> str:
        return "deadbeef1234"


class FakeRegistry:
    """内置版本表的 fake registry，download_archive 现场生成 tarball"""

    def __init__(
        self,
        packages: dict[str, dict[str, dict[str, Any]]] | None = None,
        *,
        fail_times: int = 0,
        dist_tags: dict[str, dict[str, str]] | None = None,
    ) -> None:
        self.packages = packages or {}
        self.fail_times = fail_times
        self.dist_tags = dist_tags or {}
        self.calls: list[tuple[str, str]] = []

    def packument(self, name: str) -> dict[str, Any]:
        versions = self.packages.get(name)
        if versions is None:
            raise RetrievalError(f"registry 中不存在包: {name}")
        return {"versions": versions, "dist-tags": self.dist_tags.get(name, {})}

    def download_archive(self, name: str, version_range: str, target_dir: Path) -> ArchiveInfo:
        self.calls.append((name, version_range))
        if len(self.calls) <= self.fail_times:
            raise RetrievalError(f"下载失败: https://registry.example.com/{name} - timed out")
        doc = self.packument(name)
        version = RegistryClient.pick_version(name, doc, version_range)
        manifest = {"name": name, "version": version, **doc["versions"][version]}
        archive = make_tarball(
            target_dir / f"{name.lstrip('@').replace('/', '-')}-{version}.tgz",
            {"package.json": json.dumps(manifest), "index.js": "module.exports = 1;\n"},
        )
        return ArchiveInfo(archive_path=archive, name=name, version=version)


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(
        packages_dir=str(tmp_path / "pkgs"),
        staging_dir=str(tmp_path / "staging"),
    )


@pytest.fixture()
def registry() -> FakeRegistry:
    return FakeRegistry({
        "left-pad": {
            "1.0.0": {"description": "old"},
            "1.3.0": {"description": "String left pad", "license": "WTFPL"},
            "2.0.0": {"description": "major bump"},
        },
        "foo": {"0.1.0": {}, "0.2.0": {}},
        "@scope/pkg": {"1.0.0": {}},
    })


@pytest.fixture()
def git_client() -> FakeGitClient:
    return FakeGitClient()


@pytest.fixture()
def make_acquirer(config: Config, registry: FakeRegistry, git_client: FakeGitClient):
    """按需构造 PackageAcquirer，可覆盖客户端或配置字段"""
    from pkgfetch.services.acquire.orchestrator import PackageAcquirer

    def _make(
        *, registry_client: Any = None, git: Any = None, **overrides: Any,
    ) -> PackageAcquirer:
        cfg = Config(**{**config.to_dict(), **overrides})
        return PackageAcquirer(
            cfg,
            git_client=git or git_client,
            registry_client=registry_client or registry,
            extractor=ArchiveExtractor(),
        )

    return _make
