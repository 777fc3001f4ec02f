"""
Тесты для утилит разбора и форматирования денег и дат
"""

import locale
from datetime import date, datetime

import pytest

from modules.crm.proposals import formatters
from modules.crm.proposals.formatters import (
    format_brl,
    format_date_br,
    parse_iso_date,
    parse_money,
)


class TestParseMoney:
    """Тесты разбора сумм"""

    @pytest.mark.parametrize("raw, expected", [
        ("R$ 1.234,56", 1234.56),
        ("1500", 1500.0),
        ("1.500", 1500.0),
        ("10,5", 10.5),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("1,2,3", 0.0),
        ("-50", 0.0),
        (99.5, 99.5),
        (0, 0.0),
    ])
    def test_parse_money(self, raw, expected):
        assert parse_money(raw) == pytest.approx(expected)


class TestFormatBrl:
    """Тесты форматирования в реалах"""

    def test_contains_currency_symbol(self):
        assert "R$" in format_brl(1234.5)

    def test_fallback_when_locale_unavailable(self, monkeypatch):
        """Без локали pt_BR - фиксированный формат с двумя знаками"""
        def raise_locale_error(amount):
            raise locale.Error("unsupported locale setting")

        monkeypatch.setattr(formatters, "_format_with_locale", raise_locale_error)
        assert format_brl(1234.5) == "R$ 1234.50"
        assert format_brl(None) == "R$ 0.00"

    def test_locale_is_restored(self):
        """Форматирование не меняет текущую локаль процесса"""
        before = locale.setlocale(locale.LC_MONETARY)
        format_brl(10)
        assert locale.setlocale(locale.LC_MONETARY) == before


class TestDates:
    """Тесты разбора и вывода дат"""

    def test_parse_iso_date(self):
        assert parse_iso_date("2024-05-31") == date(2024, 5, 31)
        assert parse_iso_date(" 2024-05-31T10:00:00.000Z ") == date(2024, 5, 31)
        assert parse_iso_date(datetime(2024, 5, 31, 8, 0)) == date(2024, 5, 31)
        assert parse_iso_date(date(2024, 5, 31)) == date(2024, 5, 31)

    @pytest.mark.parametrize("raw", ["", None, "31/05/2024", "2024-13-01", 20240531])
    def test_parse_iso_date_invalid(self, raw):
        assert parse_iso_date(raw) is None

    def test_format_date_br(self):
        assert format_date_br(date(2024, 5, 3)) == "03/05/2024"
        assert format_date_br(None) == "-"
