"""
Фильтрация и сортировка списка предложений для таблицы
"""

import math
import unicodedata
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from modules.crm.proposals.models import Proposal, Stage


class SortMode(Enum):
    """Режим сортировки таблицы"""
    UPDATED_DESC = "updated_desc"
    DUE_ASC = "due_asc"
    VALUE_DESC = "value_desc"
    CLIENT_ASC = "client_asc"
    NONE = "none"

    @classmethod
    def parse(cls, raw: Any) -> "SortMode":
        """Неизвестный режим означает 'без сортировки'"""
        if isinstance(raw, SortMode):
            return raw
        for mode in cls:
            if mode.value == raw:
                return mode
        return cls.NONE


def collation_key(text: str) -> Tuple[str, str]:
    """
    Ключ сравнения строк с учетом языка

    Без регистра и диакритики ('Álvaro' рядом с 'alvaro'),
    при равенстве - по исходному тексту.
    """
    decomposed = unicodedata.normalize("NFKD", text or "")
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), text or ""


# (ключ, по убыванию)
_SORT_KEYS: Dict[SortMode, Tuple[Callable[[Proposal], Any], bool]] = {
    SortMode.UPDATED_DESC: (lambda p: p.updated_at or 0, True),
    SortMode.DUE_ASC: (lambda p: p.due.toordinal() if p.due else math.inf, False),
    SortMode.VALUE_DESC: (lambda p: p.value or 0, True),
    SortMode.CLIENT_ASC: (lambda p: collation_key(p.client), False),
}


def _normalize_text_filter(text_filter: Any) -> str:
    if not isinstance(text_filter, str):
        return ""
    return text_filter.strip().lower()


def _normalize_stage_filter(stage_filter: Any) -> Optional[Stage]:
    if not stage_filter:
        return None
    stage = Stage.from_label(stage_filter)
    if stage is None:
        logger.debug(f"Неизвестный этап в фильтре: {stage_filter!r}, фильтр не применяется")
    return stage


def query_proposals(
    proposals: Sequence[Proposal],
    text_filter: Any = "",
    stage_filter: Any = "",
    sort_mode: Any = SortMode.UPDATED_DESC,
) -> List[Proposal]:
    """
    Отфильтрованный и отсортированный список предложений

    Args:
        proposals: Полная коллекция (не изменяется)
        text_filter: Подстрока для поиска по клиенту, партнеру, услуге,
            городу, контакту и заметкам (без учета регистра)
        stage_filter: Этап (Stage или его метка); пусто - все этапы
        sort_mode: SortMode или его строковое значение

    Returns:
        Новый список; сортировка устойчивая
    """
    query = _normalize_text_filter(text_filter)
    stage = _normalize_stage_filter(stage_filter)
    mode = SortMode.parse(sort_mode)

    result = list(proposals)
    if query:
        result = [proposal for proposal in result if query in proposal.search_text()]
    if stage is not None:
        result = [proposal for proposal in result if proposal.stage == stage]

    if mode in _SORT_KEYS:
        key, descending = _SORT_KEYS[mode]
        result.sort(key=key, reverse=descending)

    logger.debug(
        f"Выборка: {len(result)} из {len(proposals)} "
        f"(поиск='{query}', этап={stage.value if stage else '-'}, сортировка={mode.value})"
    )
    return result
