"""CLI — 取包 / 解析 / 查看命令"""

from __future__ import annotations

import click

from pkgfetch.cli import _svc
from pkgfetch.core.exceptions import PkgFetchError


def register(group: click.Group) -> None:
    group.add_command(acquire_cmd)
    group.add_command(parse_cmd)
    group.add_command(info)
    group.add_command(versions)


@click.command(name="acquire")
@click.argument("specifier")
@click.option("--dest", "-d", default=None, help="目标根目录（默认取配置 packages_dir）")
@click.option("--verbose", "-v", is_flag=True, help="输出每一步的详细日志")
def acquire_cmd(specifier: str, dest: str | None, verbose: bool) -> None:
    """获取一个包，如 left-pad@^1.0.0 或 mylib@git+https://host/org/mylib#dev"""
    svc = _svc()
    try:
        pkg = svc.acquirer.acquire(specifier, dest or svc.config.packages_dir, verbose)
    except PkgFetchError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"就绪: {pkg.name}@{pkg.version} -> {pkg.final_path}")


@click.command(name="parse")
@click.argument("specifier")
def parse_cmd(specifier: str) -> None:
    """解析说明符（不下载）"""
    from pkgfetch.core.specifier import normalize_specifier, parse

    target = parse(normalize_specifier(specifier), _svc().config.default_branch)
    click.echo(f"  name:    {target.name}")
    click.echo(f"  version: {target.version_token}")
    if target.git is None:
        from pkgfetch.core.semver import normalize_range
        click.echo("  source:  registry")
        click.echo(f"  range:   {normalize_range(target.version_token) or '(无效区间)'}")
        return
    click.echo("  source:  git")
    click.echo(f"  url:     {target.git.url}")
    click.echo(f"  branch:  {target.git.branch}")
    click.echo(f"  dir:     {target.git.dir_segment}")


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def info(path: str) -> None:
    """查看已落位包的安装元信息"""
    try:
        pkg = _svc().inventory.load(path)
    except PkgFetchError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"{pkg.name}@{pkg.version}")
    if pkg.metadata is None:
        click.echo("  （没有安装元信息）")
        return
    for key, value in pkg.metadata.to_dict().items():
        click.echo(f"  {key}: {value}")


@click.command()
@click.argument("name")
def versions(name: str) -> None:
    """列出某个包在 packages_dir 下已落位的版本"""
    entries = _svc().inventory.list_versions(name)
    if not entries:
        click.echo(f"没有已落位的版本: {name}")
        return
    for e in entries:
        source = f"  ({e['source']})" if e["source"] else ""
        click.echo(f"  {e['version']:16s} {e['path']}{source}")
