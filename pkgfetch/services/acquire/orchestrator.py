"""取包编排器

一次 acquire 的完整流水线:

  说明符规整 (补 @*) → 解析 → 暂存 (git / registry) → 校验 package.json
    → 计算最终目录 → 补写 _id/_from → 写安装元信息 → rename 到最终目录

流水线任一步失败都会整体重跑（解析开始，新的暂存目录），最多重试
max_retries 次；重试耗尽抛 AcquisitionError。

重试策略:
  - uniform:    默认，所有异常一律重试（包括 manifest 缺失或损坏）
  - classified: 只重试网络 / 子进程 / IO 类异常，manifest 缺失或损坏、
                目录冲突、校验失败等确定性错误直接失败
"""

from __future__ import annotations

import logging
import re
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from pkgfetch.core.exceptions import (
    AcquisitionError,
    ManifestParseError,
    is_retryable,
)
from pkgfetch.core.location import (
    Destination,
    ensure_dir,
    is_safe_relative,
    move_dir,
    remove_tree,
    resolve_destination,
)
from pkgfetch.core.manifest import enrich, read_manifest
from pkgfetch.core.models import (
    InstallMetadata,
    ResolvedPackage,
    StagedPackage,
    TargetSpec,
)
from pkgfetch.core.specifier import normalize_specifier, parse
from pkgfetch.services.acquire.strategies import GitRetrieval, RegistryRetrieval
from pkgfetch.utils.fileio import save_json
from pkgfetch.utils.logger import step_level

if TYPE_CHECKING:
    from pkgfetch.core.config import Config
    from pkgfetch.core.protocols import (
        Extractor,
        RegistryBackend,
        RetrievalStrategy,
        VcsClient,
    )

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^\w.-]")


def _check_segment(value: str, field: str) -> str:
    """校验 manifest 中用于拼路径的字段，防止 ../ 之类逃出目标目录"""
    if not is_safe_relative(value):
        raise ManifestParseError(f"package.json 中 {field} 不能用作目录名: {value!r}")
    return value


class PackageAcquirer:
    """取包编排器 —— 持有暂存根目录与两种取包策略"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        staging_root: str | Path | None = None,
        git_client: VcsClient | None = None,
        registry_client: RegistryBackend | None = None,
        extractor: Extractor | None = None,
    ) -> None:
        if config is None:
            from pkgfetch.core.config import get_config
            config = get_config()
        self.config = config
        self.staging_root = Path(staging_root or config.staging_dir)

        if git_client is None:
            from pkgfetch.core.fetch.git import GitClient
            git_client = GitClient(timeout=config.git_timeout)
        if registry_client is None:
            from pkgfetch.core.fetch.registry import RegistryClient
            registry_client = RegistryClient(config.registry_url, timeout=config.request_timeout)
        if extractor is None:
            from pkgfetch.core.fetch.archive import ArchiveExtractor
            extractor = ArchiveExtractor()

        self.git_client = git_client
        self._git = GitRetrieval(git_client)
        self._registry = RegistryRetrieval(registry_client, extractor)

    # ------------------------------------------------------------------
    # 对外入口
    # ------------------------------------------------------------------

    def acquire(
        self, specifier: str, destination: Destination, verbose: bool = False,
    ) -> ResolvedPackage:
        """获取一个包并落位到 destination/<name>/<版本段>

        Raises:
            ValidationError: destination 不合法（不重试）
            AcquisitionError: 流水线失败且不再重试
        """
        specifier = normalize_specifier(specifier)
        dest_root = resolve_destination(destination)
        max_retries = int(self.config.max_retries)

        attempt = 0
        while True:
            attempt += 1
            ctx = {"specifier": specifier, "attempt": attempt, "destination": str(dest_root)}
            try:
                return self._run_once(specifier, dest_root, verbose)
            except Exception as exc:  # noqa: BLE001  整条流水线的重试边界
                if attempt <= max_retries and self._should_retry(exc):
                    logger.warning(
                        "重试下载 %s (第 %d/%d 次重试): %s",
                        specifier, attempt, max_retries, exc, extra=ctx,
                    )
                    continue
                logger.error(
                    "下载 %s 失败 (共尝试 %d 次)", specifier, attempt,
                    exc_info=exc, extra=ctx,
                )
                raise AcquisitionError(specifier, attempt, exc) from exc

    def select_strategy(self, target: TargetSpec) -> RetrievalStrategy:
        """按是否为 git 说明符分派取包策略"""
        return self._git if target.is_git else self._registry

    def final_name(self, target: TargetSpec, staged: StagedPackage) -> str:
        """最终目录相对 destination 的路径: <name>/<版本段>"""
        name = _check_segment(staged.name or target.name, "name")
        if target.git is not None:
            return f"{name}/{target.git.dir_segment}"
        if not staged.version:
            raise ManifestParseError(f"package.json 缺少 version: {staged.manifest_path}")
        return f"{name}/{_check_segment(staged.version, 'version')}"

    # ------------------------------------------------------------------
    # 单次流水线
    # ------------------------------------------------------------------

    def _should_retry(self, exc: BaseException) -> bool:
        if self.config.retry_policy == "classified":
            return is_retryable(exc)
        return True

    def _new_attempt_dir(self, target: TargetSpec) -> Path:
        """每次尝试一个独立暂存目录，跨尝试 / 并发调用互不干扰"""
        ensure_dir(self.staging_root)
        prefix = _SLUG_RE.sub("_", target.name or "package") + "-"
        return Path(tempfile.mkdtemp(dir=str(self.staging_root), prefix=prefix))

    def _stage(self, staged_dir: Path) -> StagedPackage:
        manifest_path = staged_dir / self.config.manifest_name
        manifest = read_manifest(staged_dir, manifest_name=self.config.manifest_name)
        return StagedPackage(
            staging_path=staged_dir, manifest_path=manifest_path, manifest=manifest,
        )

    def _run_once(self, specifier: str, dest_root: Path, verbose: bool) -> ResolvedPackage:
        target = parse(specifier, self.config.default_branch)
        attempt_dir = self._new_attempt_dir(target)
        try:
            staged_dir = self.select_strategy(target).retrieve(
                target, attempt_dir, verbose=verbose,
            )
            staged = self._stage(staged_dir)
            final_path = dest_root / self.final_name(target, staged)

            git_url = target.git.git_url if target.git else None
            manifest = enrich(staged.manifest_path, staged.manifest, specifier, git_url)
            metadata = self._metadata(target, staged, final_path)
            # 元信息随暂存目录一起 rename，最终目录出现时内容已完整
            save_json(staged_dir / self.config.info_file, metadata.to_dict())

            move_dir(staged_dir, final_path)
            logger.log(
                step_level(verbose), "就绪: %s@%s -> %s",
                staged.name, metadata.version, final_path,
            )
            return ResolvedPackage(
                name=staged.name or target.name,
                version=staged.version,
                final_path=final_path,
                manifest=manifest,
                metadata=metadata,
            )
        finally:
            remove_tree(attempt_dir)

    def _metadata(
        self, target: TargetSpec, staged: StagedPackage, final_path: Path,
    ) -> InstallMetadata:
        name = staged.name or target.name
        if target.git is None:
            return InstallMetadata(
                name=name,
                version=staged.version,
                location=str(final_path),
                requested=target.version_token,
            )
        return InstallMetadata(
            name=name,
            version=target.git.git_url,
            location=str(final_path),
            requested=target.version_token,
            git_url=target.git.git_url,
            branch=target.git.branch,
            commit=self.git_client.head_commit(staged.staging_path),
        )


def acquire(
    specifier: str, destination: Destination | None = None, verbose: bool = False,
) -> ResolvedPackage:
    """使用全局服务容器获取包，destination 缺省为配置中的 packages_dir"""
    from pkgfetch.services.container import get_container
    container = get_container()
    return container.acquirer.acquire(
        specifier, destination or container.config.packages_dir, verbose,
    )
