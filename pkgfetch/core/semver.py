"""npm 语义化版本区间工具

normalize_range: 把 ^ / ~ / x-range / 连字符区间展开成只含比较符的规范写法，
                 与 npm semver.validRange 一致（无效区间返回 None）。
select_version:  在候选版本中挑选满足区间的最高版本（semantic_version.NpmSpec）。

    normalize_range("^1.2.3")       -> ">=1.2.3 <2.0.0"
    normalize_range("1.2.x || 2")   -> ">=1.2.0 <1.3.0||>=2.0.0 <3.0.0"
    normalize_range("*")            -> "*"
    normalize_range("latest")       -> None
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

import semantic_version

logger = logging.getLogger(__name__)

ANY = "*"

_PARTIAL_RE = re.compile(
    r"^[vV]?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*]))?"
    r"(?:\.(?P<patch>\d+|[xX*]))?"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?"
    r"(?:\+[0-9A-Za-z.-]+)?$"
)
_COMPARATOR_RE = re.compile(r"^(?P<op><=|>=|<|>|=|\^|~>?|)(?P<version>.*)$")
_HYPHEN_RE = re.compile(r"^\s*(?P<low>\S+)\s+-\s+(?P<high>\S+)\s*$")
_OP_SPACE_RE = re.compile(r"(<=|>=|<|>|=|\^|~>?)\s+")

Partial = tuple[int | None, int | None, int | None, str | None]


def _num(text: str | None) -> int | None:
    if text is None or text in ("x", "X", "*"):
        return None
    return int(text)


def _parse_partial(text: str) -> Partial | None:
    m = _PARTIAL_RE.match(text)
    if not m:
        return None
    major, minor, patch = _num(m.group("major")), _num(m.group("minor")), _num(m.group("patch"))
    # 通配符之后的段一律视为通配
    if major is None:
        minor = None
    if minor is None:
        patch = None
    pre = m.group("pre") if patch is not None else None
    return major, minor, patch, pre


def _fmt(major: int, minor: int, patch: int, pre: str | None = None) -> str:
    base = f"{major}.{minor}.{patch}"
    return f"{base}-{pre}" if pre else base


def _desugar(op: str, partial: Partial) -> list[str]:
    """单个比较项 → 规范比较符列表（空列表表示任意版本）"""
    major, minor, patch, pre = partial

    if major is None:
        return ["<0.0.0"] if op in ("<", ">") else []

    if op in ("", "=", "~", "~>", "^") and minor is None:
        return [f">={major}.0.0", f"<{major + 1}.0.0"]

    if op in ("", "=", "~", "~>"):
        if patch is None:
            return [f">={major}.{minor}.0", f"<{major}.{minor + 1}.0"]
        if op in ("", "="):
            return [_fmt(major, minor, patch, pre)]
        return [f">={_fmt(major, minor, patch, pre)}", f"<{major}.{minor + 1}.0"]

    if op == "^":
        if patch is None:
            if major == 0:
                return [f">=0.{minor}.0", f"<0.{minor + 1}.0"]
            return [f">={major}.{minor}.0", f"<{major + 1}.0.0"]
        lower = f">={_fmt(major, minor, patch, pre)}"
        if major != 0:
            return [lower, f"<{major + 1}.0.0"]
        if minor != 0:
            return [lower, f"<0.{minor + 1}.0"]
        return [lower, f"<0.0.{patch + 1}"]

    if op == ">":
        if minor is None:
            return [f">={major + 1}.0.0"]
        if patch is None:
            return [f">={major}.{minor + 1}.0"]
        return [f">{_fmt(major, minor, patch, pre)}"]

    if op == "<=":
        if minor is None:
            return [f"<{major + 1}.0.0"]
        if patch is None:
            return [f"<{major}.{minor + 1}.0"]
        return [f"<={_fmt(major, minor, patch, pre)}"]

    # ">=" / "<"：缺省段补 0
    return [f"{op}{_fmt(major, minor or 0, patch or 0, pre)}"]


def _desugar_hyphen(low: Partial, high: Partial) -> list[str]:
    result: list[str] = []
    if low[0] is not None:
        result.extend(_desugar(">=", low))
    major, minor, patch, pre = high
    if major is not None:
        if minor is None:
            result.append(f"<{major + 1}.0.0")
        elif patch is None:
            result.append(f"<{major}.{minor + 1}.0")
        else:
            result.append(f"<={_fmt(major, minor, patch, pre)}")
    return result


def _normalize_set(text: str) -> str | None:
    text = text.strip()
    m = _HYPHEN_RE.match(text)
    if m:
        low, high = _parse_partial(m.group("low")), _parse_partial(m.group("high"))
        if low is None or high is None:
            return None
        comparators = _desugar_hyphen(low, high)
    else:
        comparators = []
        for item in _OP_SPACE_RE.sub(r"\1", text).split():
            cm = _COMPARATOR_RE.match(item)
            partial = _parse_partial(cm.group("version")) if cm else None
            if cm is None or partial is None:
                return None
            comparators.extend(_desugar(cm.group("op"), partial))
    return " ".join(comparators) or ANY


def normalize_range(token: str | None) -> str | None:
    """npm validRange 等价实现：返回规范区间串，无效时返回 None"""
    token = (token or "").strip()
    if not token or token in ("*", "x", "X"):
        return ANY
    sets = []
    for part in token.split("||"):
        normalized = _normalize_set(part) if part.strip() else ANY
        if normalized is None:
            return None
        sets.append(normalized)
    if ANY in sets:
        return ANY
    return "||".join(sets)


def is_valid_range(token: str | None) -> bool:
    return normalize_range(token) is not None


def select_version(candidates: Iterable[str], token: str | None) -> str | None:
    """从候选版本中选出满足区间的最高版本，没有匹配返回 None"""
    normalized = normalize_range(token)
    if normalized is None:
        return None
    try:
        spec = semantic_version.NpmSpec(normalized.replace("||", " || "))
    except ValueError as e:
        logger.warning("无法解析版本区间 %r (%s): %s", token, normalized, e)
        return None

    parsed = []
    for v in candidates:
        try:
            parsed.append(semantic_version.Version(v))
        except ValueError:
            continue  # 跳过非法版本号
    best = spec.select(parsed)
    return str(best) if best is not None else None
