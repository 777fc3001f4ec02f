"""
Модели данных для коммерческих предложений (propostas)
"""

import math
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger

from core.exceptions import ValidationError
from modules.crm.proposals.formatters import parse_iso_date, parse_money


class Stage(Enum):
    """Этап воронки (порядок объявления = прогресс предложения)"""
    LEAD_RECEBIDO = "LEAD RECEBIDO"
    QUALIFICACAO = "QUALIFICAÇÃO"
    LEVANTAMENTO = "LEVANTAMENTO"
    PROPOSTA_EM_ELABORACAO = "PROPOSTA EM ELABORAÇÃO"
    PROPOSTA_ENVIADA = "PROPOSTA ENVIADA"
    NEGOCIACAO = "NEGOCIAÇÃO"
    FECHADO_GANHO = "FECHADO (GANHO)"
    PERDIDO_CANCELADO = "PERDIDO / CANCELADO"

    @classmethod
    def from_label(cls, label: Any) -> Optional["Stage"]:
        """Поиск этапа по текстовой метке (None, если метка неизвестна)"""
        if isinstance(label, Stage):
            return label
        for stage in cls:
            if stage.value == label:
                return stage
        return None

    @property
    def position(self) -> int:
        """Номер этапа в воронке, начиная с 1"""
        return STAGES.index(self) + 1

    @property
    def progress_label(self) -> str:
        """Метка прогресса вида '5/8'"""
        return f"{self.position}/{len(STAGES)}"


STAGES = tuple(Stage)


class ProposalStatus(Enum):
    """Статус предложения (не зависит от этапа)"""
    ABERTA = "ABERTA"
    GANHA = "GANHA"
    PERDIDA = "PERDIDA"
    CANCELADA = "CANCELADA"

    @classmethod
    def from_value(cls, value: Any) -> Optional["ProposalStatus"]:
        if isinstance(value, ProposalStatus):
            return value
        for status in cls:
            if status.value == value:
                return status
        return None


# Метка просроченного открытого предложения в таблице
OVERDUE_LABEL = "ATRASADA"

# Поля, которые меняются при редактировании через форму
EDITABLE_FIELDS = (
    "client", "contact", "service", "city", "partner", "entry",
    "value", "due", "stage", "status", "notes",
)

_JSON_KEYS = {
    "id", "client", "contact", "service", "city", "partner", "entry",
    "value", "due", "stage", "status", "notes", "createdAt", "updatedAt",
}


def current_date() -> date:
    """Текущая календарная дата"""
    return date.today()


def now_ms() -> int:
    """Текущий момент в миллисекундах от эпохи (формат createdAt/updatedAt)"""
    return int(time.time() * 1000)


def generate_id() -> str:
    return uuid.uuid4().hex


def _coerce_text(raw: Any) -> str:
    if raw is None:
        return ""
    return raw if isinstance(raw, str) else str(raw)


def _coerce_value(raw: Any) -> float:
    """Приведение суммы к неотрицательному числу (0 при ошибке)"""
    if isinstance(raw, bool) or raw is None:
        return 0.0
    if isinstance(raw, (int, float)):
        number = float(raw)
        if math.isnan(number) or math.isinf(number):
            return 0.0
        return max(number, 0.0)
    if isinstance(raw, str):
        return parse_money(raw)
    return 0.0


def _coerce_timestamp(raw: Any) -> Optional[int]:
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        return None if math.isnan(raw) or math.isinf(raw) else int(raw)
    if isinstance(raw, str):
        try:
            return int(float(raw))
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class Proposal:
    """Коммерческое предложение в воронке"""
    id: str
    client: str = ""
    contact: str = ""
    service: str = ""
    city: str = ""
    partner: str = ""
    entry: date = field(default_factory=current_date)
    value: float = 0.0
    due: Optional[date] = None
    stage: Stage = Stage.LEAD_RECEBIDO
    status: ProposalStatus = ProposalStatus.ABERTA
    notes: str = ""
    created_at: Optional[int] = None  # мс от эпохи
    updated_at: Optional[int] = None  # мс от эпохи
    extra: Dict[str, Any] = field(default_factory=dict)  # неизвестные ключи из JSON

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Открытое предложение, срок которого уже прошел"""
        if self.due is None or self.status != ProposalStatus.ABERTA:
            return False
        return self.due < (today or current_date())

    def display_status(self, today: Optional[date] = None) -> str:
        """Статус для отображения: просроченные открытые показываются как ATRASADA"""
        if self.status == ProposalStatus.ABERTA and self.is_overdue(today):
            return OVERDUE_LABEL
        return self.status.value

    def search_text(self) -> str:
        """Текст для поиска: непустые поля через пробел, в нижнем регистре"""
        parts = [self.client, self.partner, self.service, self.city, self.contact, self.notes]
        return " ".join(part for part in parts if part).lower()

    def with_changes(self, changes: Dict[str, Any], updated_at: Optional[int] = None) -> "Proposal":
        """
        Частичная замена полей (редактирование)

        Args:
            changes: Новые значения редактируемых полей
            updated_at: Метка обновления (по умолчанию - текущий момент)
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(sorted(unknown), f"Campos não editáveis: {', '.join(sorted(unknown))}")
        return replace(self, **changes, updated_at=updated_at if updated_at is not None else now_ms())

    def duplicate(self, today: Optional[date] = None, timestamp: Optional[int] = None) -> "Proposal":
        """Копия с новым ID, датой входа сегодня и статусом ABERTA"""
        moment = timestamp if timestamp is not None else now_ms()
        return replace(
            self,
            id=generate_id(),
            entry=today or current_date(),
            created_at=moment,
            updated_at=moment,
            status=ProposalStatus.ABERTA,
            extra=dict(self.extra),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация в JSON-совместимый словарь (формат хранилища и экспорта)"""
        data: Dict[str, Any] = {
            "id": self.id,
            "client": self.client,
            "contact": self.contact,
            "service": self.service,
            "city": self.city,
            "partner": self.partner,
            "entry": self.entry.isoformat(),
            "value": self.value,
            "due": self.due.isoformat() if self.due else "",
            "stage": self.stage.value,
            "status": self.status.value,
            "notes": self.notes,
        }
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], today: Optional[date] = None) -> "Proposal":
        """
        Разбор словаря из хранилища или импорта

        Некорректные значения не вызывают ошибок: сумма становится 0,
        дата входа - сегодняшней, срок - пустым, неизвестные этап и статус -
        значениями по умолчанию.
        """
        proposal_id = _coerce_text(data.get("id"))

        entry = parse_iso_date(data.get("entry"))
        if entry is None:
            if data.get("entry"):
                logger.debug(f"Некорректная дата входа '{data.get('entry')}' у {proposal_id}, используем сегодня")
            entry = today or current_date()

        due = parse_iso_date(data.get("due"))
        if due is None and data.get("due"):
            logger.debug(f"Некорректный срок '{data.get('due')}' у {proposal_id}, срок сброшен")

        stage = Stage.from_label(data.get("stage"))
        if stage is None:
            if data.get("stage"):
                logger.warning(f"Неизвестный этап '{data.get('stage')}' у {proposal_id}, используем {STAGES[0].value}")
            stage = STAGES[0]

        status = ProposalStatus.from_value(data.get("status"))
        if status is None:
            if data.get("status"):
                logger.warning(f"Неизвестный статус '{data.get('status')}' у {proposal_id}, используем ABERTA")
            status = ProposalStatus.ABERTA

        return cls(
            id=proposal_id,
            client=_coerce_text(data.get("client")),
            contact=_coerce_text(data.get("contact")),
            service=_coerce_text(data.get("service")),
            city=_coerce_text(data.get("city")),
            partner=_coerce_text(data.get("partner")),
            entry=entry,
            value=_coerce_value(data.get("value")),
            due=due,
            stage=stage,
            status=status,
            notes=_coerce_text(data.get("notes")),
            created_at=_coerce_timestamp(data.get("createdAt")),
            updated_at=_coerce_timestamp(data.get("updatedAt")),
            extra={key: value for key, value in data.items() if key not in _JSON_KEYS},
        )
