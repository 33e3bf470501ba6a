"""包获取 API Blueprint

目标根目录固定为配置中的 packages_dir，不接受客户端传入路径。
"""

from __future__ import annotations

import re

from flask import Blueprint, Response, request

from pkgfetch.core.exceptions import PkgFetchError
from pkgfetch.web.responses import bad_request, from_error, not_found, ok

packages_bp = Blueprint("packages", __name__, url_prefix="/api/packages")

_SAFE_PKG_NAME_RE = re.compile(r"^(@[a-z0-9][\w.-]*/)?[a-z0-9][\w.-]*$", re.IGNORECASE)


def _svc():  # type: ignore[no-untyped-def]
    from pkgfetch.services.container import get_container
    return get_container()


@packages_bp.route("", methods=["POST"])
def acquire() -> tuple[Response, int] | Response:
    body = request.get_json(silent=True) or {}
    specifier = str(body.get("specifier", "")).strip()
    if not specifier:
        return bad_request("需要提供 specifier")
    svc = _svc()
    try:
        pkg = svc.acquirer.acquire(
            specifier, svc.config.packages_dir, bool(body.get("verbose", False)),
        )
    except PkgFetchError as e:
        return from_error(e)
    return ok({"message": f"已获取 {pkg.name}@{pkg.version}", "package": pkg.to_dict()}, 201)


@packages_bp.route("/parse", methods=["GET"])
def parse() -> tuple[Response, int] | Response:
    from pkgfetch.core.semver import normalize_range
    from pkgfetch.core.specifier import normalize_specifier
    from pkgfetch.core.specifier import parse as parse_specifier

    specifier = request.args.get("specifier", "").strip()
    if not specifier:
        return bad_request("需要提供 specifier")
    target = parse_specifier(normalize_specifier(specifier), _svc().config.default_branch)
    data: dict = {
        "name": target.name,
        "version": target.version_token,
        "source": "git" if target.git else "registry",
    }
    if target.git is not None:
        data.update(
            url=target.git.url, branch=target.git.branch,
            git_url=target.git.git_url, dir=target.git.dir_segment,
        )
    else:
        data["range"] = normalize_range(target.version_token)
    return ok(data)


@packages_bp.route("/<path:name>", methods=["GET"])
def versions(name: str) -> tuple[Response, int] | Response:
    if not _SAFE_PKG_NAME_RE.match(name):
        return bad_request(f"包名不合法: {name}")
    entries = _svc().inventory.list_versions(name)
    if not entries:
        return not_found(f"包 {name} ")
    return ok({"name": name, "versions": entries})
