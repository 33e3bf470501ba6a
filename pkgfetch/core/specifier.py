"""包说明符解析

"name@version-or-url" → TargetSpec。纯函数，不做 IO，对格式怪异的输入
宽松透传（按字面 name / version 处理），交给下游决定是否失败。

识别为 git 来源的写法:
  - git+https://host/org/repo#ref、git+ssh://...、git://...
  - https://github.com/org/repo、https://host/org/repo.git、https://host/x#ref
  - git@github.com:org/repo.git
  - github:org/repo、gitlab:org/repo、bitbucket:org/repo
  - org/repo（GitHub 简写）
"""

from __future__ import annotations

import re

from pkgfetch.core.models import GitLocator, TargetSpec

ANY_VERSION = "*"
DEFAULT_BRANCH = "master"

_GIT_SCHEME_RE = re.compile(r"^git(\+[a-z][a-z0-9+.-]*)?://", re.IGNORECASE)
_URL_RE = re.compile(r"^[a-z][a-z0-9+.-]*://(?P<host>[^/:#]+)", re.IGNORECASE)
_SCP_RE = re.compile(r"^[\w.-]+@[\w.-]+:[^/\d][^#]*$")
_HOSTED_RE = re.compile(r"^(?P<host>github|gitlab|bitbucket):(?P<path>[\w.-]+/[\w.-]+)$")
_SHORTHAND_RE = re.compile(r"^[A-Za-z0-9][\w.-]*/[\w.-]+$")

_GIT_HOSTS = frozenset(("github.com", "gitlab.com", "bitbucket.org"))
_HOSTED_DOMAINS = {
    "github": "github.com",
    "gitlab": "gitlab.com",
    "bitbucket": "bitbucket.org",
}


def split_specifier(specifier: str) -> tuple[str, str | None]:
    """按第一个 '@' 切分为 (name, version)，scoped 包名开头的 '@' 不算"""
    start = 1 if specifier.startswith("@") else 0
    idx = specifier.find("@", start)
    if idx < 0:
        return specifier, None
    return specifier[:idx], specifier[idx + 1:]


def normalize_specifier(specifier: str) -> str:
    """没有版本部分的说明符补成 name@*"""
    specifier = specifier.strip()
    _, version = split_specifier(specifier)
    if version is None:
        return f"{specifier}@{ANY_VERSION}"
    return specifier


def _clone_url(source: str, has_ref: bool) -> str | None:
    """把用户写的仓库地址规整成可 clone 的 URL，不是 git 地址时返回 None"""
    if _GIT_SCHEME_RE.match(source):
        # git+https:// → https://，git:// 保持原样
        return source[4:] if source[:4].lower() == "git+" else source

    m = _URL_RE.match(source)
    if m:
        host = m.group("host").lower().rsplit("@", 1)[-1]
        if has_ref or source.endswith(".git") or host in _GIT_HOSTS:
            return source
        return None

    if _SCP_RE.match(source):
        return source

    m = _HOSTED_RE.match(source)
    if m:
        return f"https://{_HOSTED_DOMAINS[m.group('host')]}/{m.group('path')}"

    if _SHORTHAND_RE.match(source):
        return f"https://github.com/{source}"

    return None


def parse_git_locator(
    version: str, default_branch: str = DEFAULT_BRANCH,
) -> GitLocator | None:
    """识别 git 定位串，非 git 写法返回 None"""
    if not version:
        return None
    source, sep, ref = version.rpartition("#")
    if not sep:
        source, ref = version, ""
    url = _clone_url(source, bool(sep))
    if url is None:
        return None
    return GitLocator(url=url, branch=ref or default_branch, source=source)


def parse(specifier: str, default_branch: str = DEFAULT_BRANCH) -> TargetSpec:
    """解析说明符

    调用方负责先用 normalize_specifier 补全 '@*'；
    此处没有 '@' 时 version_token 为空串。
    """
    name, version = split_specifier(specifier)
    version = version if version is not None else ""
    return TargetSpec(
        name=name,
        version_token=version,
        git=parse_git_locator(version, default_branch),
        raw=specifier,
    )
