"""git 客户端

先尝试浅 clone 指定分支；失败时（ref 是 commit 而非分支等）回退为
完整 clone + checkout。所有子进程调用走 CommandExecutor 协议。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pkgfetch.core.exceptions import RetrievalError, ValidationError
from pkgfetch.core.location import remove_tree
from pkgfetch.utils.net import GIT_SCHEMES, validate_url_scheme
from pkgfetch.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)

_SAFE_REF_RE = re.compile(r"^[a-zA-Z0-9_./@\-]+$")
_SCP_URL_RE = re.compile(r"^[\w.-]+@[\w.-]+:")


def _tail(r: CommandResult) -> str:
    return (r.stderr or r.stdout).strip()[-300:]


class GitClient:
    """通过 git 命令行 clone 仓库"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        timeout: int = 600,
    ) -> None:
        self._executor = executor
        self.timeout = timeout

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def _check(self, url: str, branch: str) -> None:
        if not branch or not _SAFE_REF_RE.match(branch) or branch.startswith("-"):
            raise ValidationError(f"ref 包含非法字符: {branch}")
        if not _SCP_URL_RE.match(url):
            validate_url_scheme(url, context="git clone", allowed=GIT_SCHEMES)

    def _run(self, cmd: list[str], cwd: str = ".") -> CommandResult:
        logger.debug("  git: %s (cwd=%s)", " ".join(cmd[1:]), cwd)
        return self.executor.execute(cmd, cwd=cwd, timeout=self.timeout)

    def clone(self, url: str, target_dir: Path, branch: str) -> Path:
        """clone url 的 branch 到 target_dir，失败抛 RetrievalError

        target_dir 必须不存在；失败时只清理本次 clone 创建的目录。
        """
        self._check(url, branch)
        if target_dir.exists():
            raise RetrievalError(f"clone 目标已存在: {target_dir}")
        target_dir.parent.mkdir(parents=True, exist_ok=True)

        r = self._run([
            "git", "clone", "--depth", "1", "--branch", branch,
            "--", url, str(target_dir),
        ])
        if r.success:
            return target_dir

        # 回退: 完整 clone + checkout
        logger.debug("浅 clone 失败，回退完整 clone: %s", _tail(r))
        remove_tree(target_dir)
        r2 = self._run(["git", "clone", "--", url, str(target_dir)])
        if not r2.success:
            remove_tree(target_dir)
            raise RetrievalError(
                f"git clone 失败 (rc={r2.returncode}) {url}: {_tail(r2)}"
            )
        r3 = self._run(["git", "checkout", branch], cwd=str(target_dir))
        if not r3.success:
            remove_tree(target_dir)
            raise RetrievalError(
                f"git checkout {branch} 失败 (rc={r3.returncode}) {url}: {_tail(r3)}"
            )
        return target_dir

    def head_commit(self, repo_dir: Path) -> str:
        """获取当前 commit SHA"""
        r = self._run(["git", "rev-parse", "HEAD"], cwd=str(repo_dir))
        return r.stdout.strip()[:12] if r.success else ""
