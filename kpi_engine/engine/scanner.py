"""Постраничная полная выборка из хранилища с ограничением на размер ответа."""
import logging
from typing import Optional, Sequence

from ..store.base import MAX_ROWS, Filters, InvalidArgumentError, Record, RecordStore

logger = logging.getLogger(__name__)


async def scan(
    store: RecordStore,
    table: str,
    filters: Optional[Filters] = None,
    *,
    page_size: int = MAX_ROWS,
    order_by: Sequence[str] = ("id",),
    columns: Optional[Sequence[str]] = None,
) -> list[Record]:
    """
    Выбирает все записи таблицы, подходящие под фильтр.

    Страницы запрашиваются по возрастанию стабильного ключа ``order_by`` со
    смещением 0, page_size, 2*page_size, ... до первой неполной (или пустой)
    страницы. Записи не переупорядочиваются и не дедуплицируются; каждый
    вызов заново читает текущее состояние. Любая ошибка хранилища прерывает
    выборку целиком, частичный результат не возвращается.

    Args:
        store: Хранилище записей
        table: Имя таблицы
        filters: Словарь фильтров (см. store.base)
        page_size: Размер страницы; больше лимита хранилища не бывает
        order_by: Стабильный монотонный ключ сортировки
        columns: Нужные колонки (None - все)

    Returns:
        Список всех подходящих записей
    """
    if page_size < 1:
        raise InvalidArgumentError(f"page_size должен быть >= 1, получено {page_size}")
    # A page capped by the store must not look like the last page
    page_size = min(page_size, store.max_rows)

    records: list[Record] = []
    offset = 0
    while True:
        page = await store.query(
            table, filters, columns=columns, order_by=order_by, offset=offset, limit=page_size
        )
        records.extend(page)
        logger.debug(f"📄 {table}: offset={offset}, получено {len(page)}")
        if len(page) < page_size:
            break
        offset += page_size
    return records
