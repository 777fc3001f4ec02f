"""
Утилиты разбора и форматирования для модуля предложений

Деньги и даты в бразильском формате: '.' - разделитель тысяч,
',' - десятичный разделитель, даты dd/mm/yyyy.
"""

import locale
import re
from datetime import date, datetime
from typing import Any, Optional, Union

from loguru import logger

# Локали pt_BR в порядке попыток (Linux/macOS, затем Windows)
PT_BR_LOCALES = ("pt_BR.UTF-8", "pt_BR.utf8", "pt_BR", "Portuguese_Brazil.1252")

_MONEY_JUNK = re.compile(r"[^\d.,-]")


def parse_money(raw: Any) -> float:
    """
    Разбор денежной суммы из произвольного текста

    Args:
        raw: Текст вида 'R$ 1.234,56' (или число)

    Returns:
        Неотрицательная сумма; 0 для пустого или нераспознанного ввода

    Examples:
        >>> parse_money("R$ 1.234,56")
        1234.56
        >>> parse_money("abc")
        0.0
    """
    if isinstance(raw, bool) or not raw:
        return 0.0
    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        cleaned = _MONEY_JUNK.sub("", str(raw)).replace(".", "").replace(",", ".", 1)
        if not cleaned:
            return 0.0
        try:
            number = float(cleaned)
        except ValueError:
            logger.debug(f"Не удалось разобрать сумму: {raw!r}")
            return 0.0
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return max(number, 0.0)


def _format_with_locale(amount: float) -> str:
    previous = locale.setlocale(locale.LC_MONETARY)
    try:
        for name in PT_BR_LOCALES:
            try:
                locale.setlocale(locale.LC_MONETARY, name)
                break
            except locale.Error:
                continue
        else:
            raise locale.Error("pt_BR locale not available")
        return locale.currency(amount, grouping=True)
    finally:
        locale.setlocale(locale.LC_MONETARY, previous)


def format_brl(value: Union[int, float, None]) -> str:
    """
    Форматирование суммы в реалах

    Использует локаль pt_BR; если она недоступна в системе,
    возвращает 'R$ 1234.50'.
    """
    amount = float(value or 0)
    try:
        return _format_with_locale(amount)
    except (locale.Error, ValueError):
        return f"R$ {amount:.2f}"


def parse_iso_date(raw: Any) -> Optional[date]:
    """Разбор даты ISO (YYYY-MM-DD); None для пустого или неверного значения"""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def format_date_br(value: Optional[date]) -> str:
    """Дата в формате dd/mm/yyyy ('-' для пустой даты)"""
    if not value:
        return "-"
    return value.strftime("%d/%m/%Y")
