# === FILE: site_search/config.py ===
"""
Модуль для загрузки и валидации конфигурации поисковой системы SiteSearch.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Union
from urllib.parse import urlparse

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

_BROWSER_UA = (
    "Mozilla/5.0 (Windows; U; WindowsNT 5.1; en-US; rv1.8.1.6) "
    "Gecko/20070725 Firefox/2.0.0.6"
)


class SiteConfig(BaseModel):
    """Описание одного индексируемого сайта."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1, description="Отображаемое имя сайта.")
    url: str = Field(..., description="Корневой URL сайта.")

    @field_validator("url")
    def _check_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"URL сайта должен быть http(s): {v!r}")
        return v

    @property
    def host(self) -> str:
        return (urlparse(self.url).hostname or "").lower()


class AppConfig(BaseModel):
    """Конфигурация обхода, индексации и поиска."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    sites: List[SiteConfig] = Field(default_factory=list, description="Индексируемые сайты.")
    user_agent: str = Field(_BROWSER_UA, min_length=1, description="Заголовок User-Agent.")
    referrer: str = Field("http://www.google.com", description="Заголовок Referer.")
    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    delay_min: float = Field(0.5, ge=0, description="Минимальная пауза перед запросом (секунд).")
    delay_max: float = Field(2.0, ge=0, description="Максимальная пауза перед запросом (секунд).")
    concurrency: int = Field(4, ge=1, description="Число загрузчиков на один сайт.")
    stop_timeout: float = Field(5.0, ge=0, description="Ожидание завершения задач при остановке.")
    snippet_length: int = Field(200, ge=1, description="Длина сниппета (символов).")
    snippet_lead: int = Field(50, ge=0, description="Отступ сниппета до первого совпадения.")
    search_limit: int = Field(20, ge=1, description="Размер страницы выдачи по умолчанию.")
    database_url: str = Field("sqlite:///site_search.db", description="memory:// или URL SQLAlchemy.")

    @model_validator(mode="after")
    def _check_delays(self) -> AppConfig:
        if self.delay_min > self.delay_max:
            raise ValueError("delay_min не может быть больше delay_max")
        return self

    def site_for(self, url: str) -> Optional[SiteConfig]:
        """Возвращает сайт из конфигурации, которому принадлежит *url* (самый длинный префикс)."""
        matches = [s for s in self.sites if url == s.url or url.startswith(s.url + "/")]
        if not matches:
            return None
        return max(matches, key=lambda s: len(s.url))


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


def load_config(path: Union[str, Path, None]) -> AppConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AppConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
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

    try:
        return AppConfig(**data)
    except ValidationError:
        raise
