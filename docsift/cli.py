# === FILE: docsift/cli.py ===
#!/usr/bin/env python3
"""
Точка входа DocSift для командной строки.

Команды:
  discover URL   Найти sitemap сайта и вывести ранжированный список URL
  extract URL    Извлечь основной текст страницы
  config         Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда discover опции:
  --include RE        Оставить только URL, совпадающие с RE (можно повторять)
  --exclude RE        Отбросить URL, совпадающие с RE (можно повторять)
  --limit INT         Макс. число записей (override sitemap.max_entries)
  --json PATH         Сохранить JSON-отчёт в файл
  --pretty            Преформатировать JSON-вывод (отступ 2)

Пример:
  docsift discover https://docs.example.com --include /docs/ --limit 100 --pretty
"""
import asyncio
import sys
from pathlib import Path
from urllib.parse import urlparse

import click

from docsift import __version__
from docsift.config import load_config
from docsift.crawler.fetcher import FetchError
from docsift.engine import discover_site, extract_page
from docsift.logger import init_logging
from docsift.report.json_report import content_to_data, dumps, entries_to_data, render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def _require_http_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        print_error(f"Ожидается абсолютный http(s) URL, получено: {url}")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="DocSift, version %(version)s")
@click.option(
    "--config", "-c", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Путь к файлу конфигурации YAML/JSON.",
)
@click.option(
    "--log-level", "log_level",
    default="WARNING", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Уровень логирования",
)
@click.option(
    "--log-file", "log_file",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Путь к файлу логов (stderr, если не указан)",
)
@click.option(
    "--log-format", "log_format",
    default="%(asctime)s %(levelname)s %(message)s",
    show_default=True,
    help="Строка формата для логов",
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд DocSift CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format,
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f"Ошибка загрузки конфигурации: {e}")
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command("discover", context_settings=CONTEXT_SETTINGS)
@click.argument("url")
@click.option("--include", "-i", "include", multiple=True, help="Regex: оставить совпадающие URL")
@click.option("--exclude", "-e", "exclude", multiple=True, help="Regex: отбросить совпадающие URL")
@click.option("--limit", "-l", "limit", type=click.IntRange(min=0), default=None, help="Макс. число записей")
@click.option(
    "--json", "-j", "json_output",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Сохранить JSON-отчёт в файл",
)
@click.option("--pretty", is_flag=True, help="Преформатировать JSON-вывод (отступ 2)")
@click.pass_context
def discover(ctx, url, include, exclude, limit, json_output, pretty):
    """Найти sitemap и вывести ранжированные URL."""
    _require_http_url(url)
    cfg = ctx.obj["config"]
    try:
        entries = asyncio.run(
            discover_site(cfg, url, list(include) or None, list(exclude) or None, limit)
        )
    except Exception as e:
        print_error(f"Ошибка при поиске sitemap: {e}")

    if json_output:
        try:
            saved = render_json(entries, json_output, pretty=pretty)
        except OSError as e:
            print_error(f"Ошибка при сохранении JSON: {e}")
        click.echo(f"JSON report: {saved} ({len(entries)} entries)")
        return

    click.echo(dumps(entries_to_data(entries), pretty=pretty))


@cli.command("extract", context_settings=CONTEXT_SETTINGS)
@click.argument("url")
@click.option("--pretty", is_flag=True, help="Преформатировать JSON-вывод (отступ 2)")
@click.pass_context
def extract(ctx, url, pretty):
    """Извлечь основной текст страницы в JSON."""
    _require_http_url(url)
    cfg = ctx.obj["config"]
    try:
        content = asyncio.run(extract_page(cfg, url))
    except FetchError as e:
        print_error(f"Не удалось загрузить страницу: {e}")
    if content is None:
        print_error(f"Не найдено содержимое для извлечения: {url}")
    click.echo(dumps(content_to_data(content), pretty=pretty))


@cli.command("config", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj["config"]
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
