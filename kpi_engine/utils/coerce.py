"""Мягкое приведение типов для данных, пришедших из импорта.

Счетчики постов и флаги в таблицах заполняются из разных источников
(ручной ввод, CSV, скрейпер), поэтому типы в них гуляют: "1 234", 12.0,
"true", 1, None. Движок KPI не падает на таких значениях, а трактует
нечисловое как 0.
"""
from decimal import Decimal, InvalidOperation
from typing import Any


def _clean_numeric_string(s: str) -> tuple[str, bool]:
    s = s.strip()
    neg = False
    if s.startswith("(") and s.endswith(")"):
        neg = True
        s = s[1:-1].strip()
    s = s.replace("Rp", "").replace("$", "").replace("\xa0", "").replace(" ", "")
    return s, neg


def _fix_separators(s: str) -> str:
    if "," in s and "." in s:
        if s.rfind(".") > s.rfind(","):
            s = s.replace(",", "")
        else:
            s = s.replace(".", "").replace(",", ".")
    elif "," in s:
        parts = s.split(",")
        if len(parts) == 2 and len(parts[1]) <= 2:
            s = s.replace(",", ".")
        else:
            s = s.replace(",", "")
    return s


def to_decimal(val: Any) -> Decimal | None:
    """Возвращает Decimal или None, если значение не похоже на число."""
    if val is None or val == "" or isinstance(val, bool):
        return None
    if isinstance(val, Decimal):
        return val if val.is_finite() else None
    if isinstance(val, (int, float)):
        result = Decimal(str(val))
        return result if result.is_finite() else None

    s, neg = _clean_numeric_string(str(val))
    if s == "":
        return None
    s = _fix_separators(s)
    try:
        result = Decimal(s)
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return -result if neg else result


def to_count(val: Any) -> int:
    """Целое для суммирования счетчиков: отсутствующее/нечисловое -> 0."""
    if isinstance(val, int) and not isinstance(val, bool):
        return val
    dec = to_decimal(val)
    return int(dec) if dec is not None else 0


def is_loose_true(val: Any) -> bool:
    # True, 1 and "true" all mean the flag is set
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float, Decimal)):
        return val == 1
    if isinstance(val, str):
        return val.strip().lower() == "true"
    return False
