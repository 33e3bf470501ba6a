"""CLI — 杂项命令（暂存区清理、HTTP 服务）"""

from __future__ import annotations

import click

from pkgfetch.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(clean_staging)
    group.add_command(serve)


@click.command(name="clean-staging")
@click.confirmation_option(prompt="确认清理暂存目录？")
def clean_staging() -> None:
    """清理暂存根目录（取包过程从不自动清理）"""
    count = _svc().inventory.clean_staging()
    click.echo(f"已清理 {count} 个条目")


@click.command()
@click.option("--host", default="127.0.0.1", help="监听地址")
@click.option("--port", default=8888, help="监听端口")
def serve(host: str, port: int) -> None:
    """启动 HTTP 取包服务"""
    from pkgfetch.web.app import run_server
    run_server(port=port, host=host)
