"""目标位置与文件系统原语

destination 入参只接受三种形态，在流水线开始前统一规整为 Path：
  - Path 对象
  - 本地路径字符串（绝对或相对）
  - file:// URL 字符串
其他协议（http:// 等远程资源）直接拒绝。
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path
from urllib.parse import unquote, urlparse

from pkgfetch.core.exceptions import PlacementError, ValidationError

logger = logging.getLogger(__name__)

Destination = str | os.PathLike


def resolve_destination(destination: Destination) -> Path:
    """把 destination 入参规整为绝对路径"""
    if isinstance(destination, os.PathLike):
        return Path(destination).expanduser().resolve()
    if not isinstance(destination, str) or not destination.strip():
        raise ValidationError(f"无效的目标目录: {destination!r}")

    text = destination.strip()
    if "://" in text:
        parsed = urlparse(text)
        if parsed.scheme != "file":
            raise ValidationError(
                f"不支持的目标位置协议 '{parsed.scheme}'，仅支持本地路径或 file:// URL: {text}"
            )
        if parsed.netloc not in ("", "localhost"):
            raise ValidationError(f"file:// URL 不能指向远程主机: {text}")
        text = unquote(parsed.path)
    return Path(text).expanduser().resolve()


def is_safe_relative(value: str) -> bool:
    """value 能否安全地拼在某个根目录下（非绝对路径，不含 ../ 与空段）"""
    if not value or value.startswith(("/", "\\")):
        return False
    parts = value.replace("\\", "/").split("/")
    return not any(p in ("", ".", "..") for p in parts)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def move_dir(src: Path, dst: Path) -> Path:
    """把暂存目录整体移动到 dst（同文件系统为原子 rename）

    dst 已存在时报 PlacementError，不做覆盖或合并。
    """
    if dst.exists():
        raise PlacementError(f"目标目录已存在: {dst}")
    ensure_dir(dst.parent)
    try:
        os.rename(src, dst)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise PlacementError(f"移动失败 {src} -> {dst}: {e}") from e
        # 跨文件系统无法 rename，退化为复制 + 删除
        logger.debug("跨文件系统移动: %s -> %s", src, dst)
        try:
            shutil.move(str(src), str(dst))
        except (OSError, shutil.Error) as e2:
            shutil.rmtree(dst, ignore_errors=True)
            raise PlacementError(f"移动失败 {src} -> {dst}: {e2}") from e2
    return dst


def remove_tree(path: Path) -> None:
    """删除目录树，目录不存在或删除失败只记日志"""
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning("清理目录失败 %s: %s", path, e)
