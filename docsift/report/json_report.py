# docsift/report/json_report.py

"""
Генерация JSON-отчёта DocSift.

Сериализация ранжированных SitemapEntry и результатов извлечения контента.
"""
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from docsift.parser.html_parser import ExtractedContent
from docsift.sitemap.models import SitemapEntry


def entries_to_data(entries: Iterable[SitemapEntry]) -> List[Dict[str, Any]]:
    return [entry.to_dict() for entry in entries]


def content_to_data(content: ExtractedContent) -> Dict[str, Any]:
    return asdict(content)


def dumps(data: Any, pretty: bool = False) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2 if pretty else None)


def render_json(entries: Iterable[SitemapEntry], output_path: Path | str, pretty: Optional[bool] = True) -> Path:
    """
    Сохраняет список записей sitemap в JSON по указанному пути.

    :param entries: ранжированные SitemapEntry
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from docsift.report.json_report import render_json
    report_path = render_json(entries, 'reports/entries.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(dumps(entries_to_data(entries), pretty=bool(pretty)), encoding="utf-8")
    return output
