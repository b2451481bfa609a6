# === FILE: site_search/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска поисковой системы SiteSearch через командную строку.

Команды:
  index       Полная индексация всех сайтов из конфига
  index-page  Переиндексировать сайт, начиная с указанной страницы
  search      Поиск по индексу
  stats       Статистика по проиндексированным сайтам
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования (e.g. "%(asctime)s %(levelname)s %(message)s")

Дополнительно:
  --version, -v       Показать версию SiteSearch

Пример:
  site_search --config configs/default.yaml search "купить ноутбук" --limit 10 --pretty
"""
import asyncio
import sys
from pathlib import Path

import click

from site_search import __version__
from site_search.config import load_config
from site_search.engine import Engine
from site_search.errors import SiteSearchError
from site_search.logger import configure

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteSearch, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteSearch CLI."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format,
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


def _engine(ctx) -> Engine:
    if 'engine' not in ctx.obj:
        engine = ctx.obj['engine'] = build_engine(ctx.obj['config'])
        ctx.call_on_close(engine.close)
    return ctx.obj['engine']


@cli.command('index', context_settings=CONTEXT_SETTINGS)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def index(ctx, pretty):
    """Запустить полную индексацию и вывести статистику."""
    cfg = ctx.obj['config']
    click.echo(f'Starting indexing of {len(cfg.sites)} site(s)')
    try:
        report = _engine(ctx).run_full_indexing()
    except Exception as e:
        print_error(f'Ошибка при индексации: {e}')
    click.echo(report.json(pretty=pretty))


@cli.command('index-page', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.pass_context
def index_page(ctx, url):
    """Переиндексировать сайт, начиная со страницы URL."""
    try:
        site = asyncio.run(_engine(ctx).index_single_page(url))
    except SiteSearchError as e:
        print_error(str(e))
    except Exception as e:
        print_error(f'Ошибка при индексации страницы: {e}')
    click.echo(f'{site.url}: {site.status.value}' + (f' ({site.last_error})' if site.last_error else ''))


@cli.command('search', context_settings=CONTEXT_SETTINGS)
@click.argument('query')
@click.option('--site', '-s', 'site', default=None, help='Искать только на этом сайте')
@click.option('--offset', type=click.IntRange(min=0), default=0, show_default=True)
@click.option('--limit', type=click.IntRange(min=1), default=None, help='Размер страницы выдачи')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def search(ctx, query, site, offset, limit, pretty):
    """Найти страницы, содержащие все слова запроса."""
    response = _engine(ctx).search(query, site=site, offset=offset, limit=limit)
    if not response.result:
        print_error(response.error)
    click.echo(response.json(pretty=pretty))


@cli.command('stats', context_settings=CONTEXT_SETTINGS)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def stats(ctx, pretty):
    """Показать статистику по сайтам."""
    click.echo(_engine(ctx).statistics().json(pretty=pretty))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


# expose at module level for test monkey-patching
build_engine = Engine

if __name__ == "__main__":
    cli()
