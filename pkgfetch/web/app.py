"""HTTP 取包服务（基于 Flask）

提供：按说明符获取包、说明符解析、已落位版本查询。

启动方式: pkgfetch serve --port 8888
WSGI 入口: pkgfetch.web.app:app
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from pkgfetch import __version__
from pkgfetch.web.blueprints.packages_bp import packages_bp

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1024 * 1024  # 1 MB，请求体只有说明符

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH
app.register_blueprint(packages_bp)


# =========================================================================
# 全局 JSON 错误处理
# =========================================================================


@app.errorhandler(HTTPException)
def handle_http_exception(exc):
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


@app.route("/api/health")
def health():
    from pkgfetch.services.container import get_container
    cfg = get_container().config
    return jsonify(
        status="ok", version=__version__,
        registry=cfg.registry_url, packages_dir=cfg.packages_dir,
    )


def run_server(port: int = 8888, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("pkgfetch 服务已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug)
