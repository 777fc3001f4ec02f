"""
Сводные показатели по коллекции предложений
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from modules.crm.proposals.models import Proposal, ProposalStatus, current_date

# Подписи столбцов диаграммы сумм (порядок фиксирован)
CHART_LABELS = ("Ganhas", "Perdidas/Canceladas", "Em aberto")
CHART_DATASET_LABEL = "Valor (R$)"


@dataclass(frozen=True)
class ProposalSummary:
    """Счетчики для карточек над таблицей"""
    total: int = 0
    open: int = 0
    won: int = 0
    overdue: int = 0
    open_value_total: float = 0.0

    @property
    def needs_attention(self) -> bool:
        """Есть просроченные открытые предложения"""
        return self.overdue > 0


@dataclass(frozen=True)
class ValueBreakdown:
    """Суммы предложений по группам статусов"""
    won: float = 0.0
    lost_or_cancelled: float = 0.0
    open: float = 0.0

    def chart_series(self) -> List[Tuple[str, float]]:
        """Пары (подпись, сумма) для трех столбцов диаграммы"""
        return list(zip(CHART_LABELS, (self.won, self.lost_or_cancelled, self.open)))

    @property
    def total(self) -> float:
        return self.won + self.lost_or_cancelled + self.open


def summarize(proposals: Sequence[Proposal], today: Optional[date] = None) -> ProposalSummary:
    """Подсчет итогов: всего, открытых, выигранных, просроченных и суммы открытых"""
    day = today or current_date()
    open_items = [p for p in proposals if p.status == ProposalStatus.ABERTA]
    return ProposalSummary(
        total=len(proposals),
        open=len(open_items),
        won=sum(1 for p in proposals if p.status == ProposalStatus.GANHA),
        overdue=sum(1 for p in proposals if p.is_overdue(day)),
        open_value_total=sum((p.value or 0.0) for p in open_items),
    )


def value_breakdown(proposals: Sequence[Proposal]) -> ValueBreakdown:
    """Суммы по группам: выигранные, проигранные/отмененные, открытые"""
    won = lost_or_cancelled = open_total = 0.0
    for proposal in proposals:
        value = proposal.value or 0.0
        if proposal.status == ProposalStatus.GANHA:
            won += value
        elif proposal.status in (ProposalStatus.PERDIDA, ProposalStatus.CANCELADA):
            lost_or_cancelled += value
        elif proposal.status == ProposalStatus.ABERTA:
            open_total += value
    return ValueBreakdown(won=won, lost_or_cancelled=lost_or_cancelled, open=open_total)
