"""Контракт хранилища записей, поверх которого работает движок KPI.

Хранилище отвечает на фильтрованные, упорядоченные запросы с окном
offset/limit и поддерживает пакетные update/insert. Один запрос никогда не
возвращает больше ``max_rows`` строк (лимит Supabase/PostgREST), поэтому
полные выборки делаются только через ``engine.scanner.scan``.

Фильтры - это словарь ``{колонка: значение}``:
    * скаляр          -> колонка = значение
    * None            -> колонка IS NULL
    * list/tuple/set  -> колонка IN (...)
"""
import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

MAX_ROWS = 1000

Record = dict[str, Any]
Filters = Mapping[str, Any]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StoreError(RuntimeError):
    """Сбой чтения или записи в хранилище. Никогда не повторяется автоматически."""


class InvalidArgumentError(ValueError):
    """Некорректный аргумент вызова: имя таблицы/колонки, окно offset/limit, размер страницы."""


def check_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise InvalidArgumentError(f"Недопустимое имя таблицы/колонки: {name!r}")
    return name


def is_multi(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


class RecordStore(ABC):
    max_rows: int = MAX_ROWS

    @abstractmethod
    async def query(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        columns: Optional[Sequence[str]] = None,
        order_by: Sequence[str] = ("id",),
        offset: int = 0,
        limit: int = MAX_ROWS,
    ) -> list[Record]:
        """Одна страница записей, отсортированная по возрастанию ``order_by``."""

    @abstractmethod
    async def count(self, table: str, filters: Optional[Filters] = None) -> int:
        """Точное количество записей без их выборки."""

    @abstractmethod
    async def update(self, table: str, ids: Sequence[str], patch: Mapping[str, Any]) -> None:
        """Один вызов: применить ``patch`` ко всем записям с id из ``ids``."""

    @abstractmethod
    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        """Один вызов: вставить все ``rows``."""

    async def close(self) -> None:
        pass

    def _window(self, offset: int, limit: int) -> tuple[int, int]:
        if offset < 0:
            raise InvalidArgumentError(f"offset должен быть >= 0, получено {offset}")
        if limit < 1:
            raise InvalidArgumentError(f"limit должен быть >= 1, получено {limit}")
        return offset, min(limit, self.max_rows)
