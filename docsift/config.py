# === FILE: docsift/config.py ===
"""
Загрузка и валидация конфигурации DocSift.

Схема описана моделями Pydantic: настройки HTTP-клиента, обработки sitemap,
извлечения контента и весов ранжирования. Каждая секция имеет значения по
умолчанию, поэтому пустой YAML-файл даёт рабочую конфигурацию.
"""
from __future__ import annotations

import errno
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USER_AGENT = "DocSift-Bot/1.0 (+https://github.com/docsift/docsift)"
BROWSER_USER_AGENT = "Mozilla/5.0 (compatible; DocSift/1.0; +https://github.com/docsift/docsift)"

COMMON_SITEMAP_PATHS: tuple[str, ...] = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap.php",
    "/sitemap.json",
    "/sitemaps/sitemap.xml",
    "/docs/sitemap.xml",
    "/api/sitemap.xml",
    "/documentation/sitemap.xml",
    "/wp-sitemap.xml",
    "/sitemap/sitemap.xml",
    "/sitemap-index.xml",
)

INCLUDE_SELECTORS: tuple[str, ...] = (
    "main",
    "article",
    ".content",
    ".documentation",
    ".doc-content",
    ".markdown-body",
    ".post-content",
    "#content",
    "#main-content",
)

EXCLUDE_SELECTORS: tuple[str, ...] = (
    "nav",
    "header",
    "footer",
    ".navigation",
    ".nav",
    ".sidebar",
    ".menu",
    ".toc",
    ".table-of-contents",
    ".related",
    ".comments",
    ".ads",
    ".advertisement",
)


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class HttpSettings(_Section):
    """Параметры сетевого клиента."""

    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1)
    browser_user_agent: str = Field(BROWSER_USER_AGENT, min_length=1)
    default_timeout: float = Field(10.0, gt=0, description="Таймаут по умолчанию (секунд).")
    robots_timeout: float = Field(10.0, gt=0)
    location_timeout: float = Field(5.0, gt=0)
    page_timeout: float = Field(10.0, gt=0)
    sitemap_timeout: float = Field(30.0, gt=0)
    respect_robots_txt: bool = Field(True, description="Проверять Allow/Disallow и Crawl-delay.")
    max_crawl_delay: float = Field(10.0, ge=0, description="Верхняя граница Crawl-delay (секунд).")


class SitemapSettings(_Section):
    """Параметры обхода sitemap."""

    max_retries: int = Field(2, ge=0, description="Дополнительные попытки загрузки sitemap.")
    backoff_base: float = Field(2.0, ge=0, description="Задержка перед попыткой N: base ** N.")
    batch_size: int = Field(3, ge=1, description="Число sitemap, обрабатываемых параллельно.")
    max_index_depth: int = Field(5, ge=0, description="Максимальная вложенность sitemap index.")
    max_sitemaps: int = Field(200, ge=1, description="Лимит загружаемых sitemap за один вызов.")
    max_entries: int = Field(1000, ge=0, description="Лимит записей в ранжированном списке (0: без лимита).")
    common_paths: List[str] = Field(default_factory=lambda: list(COMMON_SITEMAP_PATHS))

    @field_validator("common_paths")
    def _paths_are_absolute(cls, v: List[str]) -> List[str]:
        bad = [p for p in v if not p.startswith("/")]
        if bad:
            raise ValueError(f"sitemap paths must start with '/': {bad}")
        return v


class ExtractorSettings(_Section):
    """Параметры извлечения основного текста."""

    include_selectors: List[str] = Field(default_factory=lambda: list(INCLUDE_SELECTORS))
    exclude_selectors: List[str] = Field(default_factory=lambda: list(EXCLUDE_SELECTORS))
    extract_metadata: bool = True
    min_content_length: int = Field(50, ge=0)


class ScoringOptions(_Section):
    """Настройки ранжирования URL."""

    priority_keywords: List[str] = Field(
        default_factory=lambda: ["doc", "guide", "api", "reference", "tutorial"]
    )
    priority_patterns: List[str] = Field(default_factory=list)
    deprioritize_patterns: List[str] = Field(default_factory=list)
    use_sitemap_priorities: bool = True
    recency_boost: float = Field(0.0, ge=0, description="Бонус за свежий lastmod (0: выключено).")
    reference_time: Optional[datetime] = Field(
        None, description="Момент, относительно которого считается свежесть lastmod."
    )


class DocsiftConfig(_Section):
    """Полная конфигурация одного запуска."""

    http: HttpSettings = Field(default_factory=HttpSettings)
    sitemap: SitemapSettings = Field(default_factory=SitemapSettings)
    extractor: ExtractorSettings = Field(default_factory=ExtractorSettings)
    scoring: ScoringOptions = Field(default_factory=ScoringOptions)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> DocsiftConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект DocsiftConfig.

    Без явного пути используется configs/default.yaml, а если его нет, то
    значения по умолчанию. Явно указанный, но отсутствующий файл даёт
    FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return DocsiftConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return DocsiftConfig(**data)


__all__ = [
    "DocsiftConfig",
    "ExtractorSettings",
    "HttpSettings",
    "ScoringOptions",
    "SitemapSettings",
    "load_config",
]
