"""Отчет по предложениям в Excel.

Выгружает отфильтрованный список (как в таблице) и сводные показатели.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from modules.crm.proposals.formatters import format_date_br
from modules.crm.proposals.models import Proposal, current_date
from modules.crm.proposals.summary_service import summarize, value_breakdown

TABLE_HEADERS = (
    "Etapa", "Entrada", "Cliente", "Parceiro", "Serviço",
    "Cidade", "Valor", "Prazo", "Status",
)
MONEY_FORMAT = '"R$" #,##0.00'
TABLE_START_ROW = 6


def build_report_filename(today: Optional[date] = None) -> str:
    """Имя файла отчета вида crm_propostas_2024-05-31.xlsx"""
    return f"crm_propostas_{(today or current_date()).isoformat()}.xlsx"


class ProposalExcelExporter:
    """Экспорт списка предложений в Excel."""

    def __init__(self, output_directory: Path) -> None:
        """
        Args:
            output_directory: Каталог, в который будет сохранен Excel-файл.
        """
        self.output_directory = Path(output_directory)

    def export(
        self,
        proposals: Sequence[Proposal],
        filename: Optional[str] = None,
        filter_description: str = "",
        today: Optional[date] = None,
    ) -> Path:
        """
        Экспортирует список предложений в Excel-файл.

        Args:
            proposals: Предложения в порядке отображения.
            filename: Имя файла (без пути); по умолчанию с текущей датой.
            filter_description: Описание примененных фильтров для шапки.
            today: Дата отчета (для просрочки и имени файла).

        Returns:
            Путь к созданному файлу.
        """
        day = today or current_date()
        self.output_directory.mkdir(parents=True, exist_ok=True)
        output_path = self.output_directory / (filename or build_report_filename(day))

        wb = Workbook()
        ws = wb.active
        ws.title = "Propostas"

        self._write_header(ws, day, filter_description)
        self._write_table_headers(ws, TABLE_START_ROW)
        current_row = self._write_items(ws, proposals, TABLE_START_ROW + 1, day)
        self._write_summary(ws, proposals, current_row + 1, day)
        self._set_column_widths(ws)

        wb.save(output_path)
        logger.info(f"Отчет Excel сохранен: {output_path} ({len(proposals)} предложений)")
        return output_path

    def _write_header(self, ws, day: date, filter_description: str) -> None:
        """Запись шапки отчета"""
        ws["A1"] = "Propostas"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:I1")
        ws["A1"].alignment = Alignment(horizontal="center")

        ws["A3"] = "Gerado em:"
        ws["B3"] = format_date_br(day)
        ws["A4"] = "Filtros:"
        ws["B4"] = filter_description or "-"

    def _write_table_headers(self, ws, start_row: int) -> None:
        """Запись заголовков таблицы"""
        header_fill = PatternFill("solid", fgColor="BDD7EE")
        thin_border = self._get_thin_border()

        for col, header in enumerate(TABLE_HEADERS, start=1):
            cell = ws.cell(row=start_row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.fill = header_fill
            cell.border = thin_border

    def _write_items(self, ws, proposals: Sequence[Proposal], start_row: int, day: date) -> int:
        """Запись строк предложений"""
        thin_border = self._get_thin_border()
        current_row = start_row

        for proposal in proposals:
            values = (
                f"{proposal.stage.progress_label} {proposal.stage.value}",
                format_date_br(proposal.entry),
                proposal.client or "-",
                proposal.partner or "-",
                proposal.service or "-",
                proposal.city or "-",
                proposal.value or 0.0,
                format_date_br(proposal.due),
                proposal.display_status(day),
            )
            for col, value in enumerate(values, start=1):
                cell = ws.cell(row=current_row, column=col, value=value)
                cell.border = thin_border
                if col == 7:
                    cell.number_format = MONEY_FORMAT
                elif col in (2, 8):
                    cell.alignment = Alignment(horizontal="center")
            current_row += 1

        return current_row

    def _write_summary(self, ws, proposals: Sequence[Proposal], start_row: int, day: date) -> None:
        """Запись сводных показателей и сумм по статусам"""
        summary = summarize(proposals, today=day)
        breakdown = value_breakdown(proposals)

        rows = [
            ("Total", summary.total, None),
            ("Abertas", summary.open, None),
            ("Ganhas", summary.won, None),
            ("Atrasadas", summary.overdue, None),
            ("Valor em aberto", summary.open_value_total, MONEY_FORMAT),
        ]
        rows.extend((f"Valor: {label}", value, MONEY_FORMAT) for label, value in breakdown.chart_series())

        for offset, (label, value, number_format) in enumerate(rows, start=1):
            label_cell = ws.cell(row=start_row + offset, column=2, value=label)
            value_cell = ws.cell(row=start_row + offset, column=3, value=value)
            label_cell.font = Font(bold=True)
            if number_format:
                value_cell.number_format = number_format

    def _set_column_widths(self, ws) -> None:
        """Установка ширины колонок"""
        widths = {"A": 30, "B": 20, "C": 28, "D": 22, "E": 32, "F": 18, "G": 16, "H": 12, "I": 12}
        for col, width in widths.items():
            ws.column_dimensions[col].width = width

    @staticmethod
    def _get_thin_border() -> Border:
        """Создание тонкой рамки"""
        return Border(
            left=Side(style="thin", color="000000"),
            right=Side(style="thin", color="000000"),
            top=Side(style="thin", color="000000"),
            bottom=Side(style="thin", color="000000"),
        )
