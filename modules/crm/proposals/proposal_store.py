"""
Хранилище коллекции предложений

Единственный владелец коллекции: все изменения проходят через него
и сразу сохраняются в репозиторий целиком.
"""

from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from core.exceptions import RecordNotFoundError, ValidationError
from modules.crm.proposals.import_export_service import merge_proposals, read_import_file
from modules.crm.proposals.models import (
    EDITABLE_FIELDS,
    Proposal,
    ProposalStatus,
    Stage,
    current_date,
    generate_id,
    now_ms,
)
from modules.crm.proposals.proposal_repository import ProposalRepository


class ProposalStore:
    """Коллекция предложений в памяти с сохранением в репозиторий"""

    def __init__(self, repository: ProposalRepository):
        self.repository = repository
        self._items: List[Proposal] = []

    @property
    def items(self) -> List[Proposal]:
        """Копия текущей коллекции"""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def _commit(self, items: List[Proposal]) -> None:
        # Сначала запись: при ошибке коллекция в памяти не меняется
        self.repository.save(items)
        self._items = items

    def load(self) -> List[Proposal]:
        """Загрузка коллекции из репозитория (пустая при ошибке)"""
        self._items = self.repository.load()
        return self.items

    def seed_if_empty(self, today: Optional[date] = None) -> bool:
        """
        Добавление примера предложения в пустую коллекцию

        Returns:
            True, если пример был добавлен
        """
        if self._items:
            return False
        moment = now_ms()
        sample = Proposal(
            id=generate_id(),
            client="Exemplo Cliente",
            contact="65 9xxxx-xxxx",
            service="Projeto Elétrico / Medição Agrupada",
            city="Cuiabá/MT",
            partner="Parceiro Exemplo",
            entry=today or current_date(),
            value=5500.0,
            due=None,
            stage=Stage.PROPOSTA_ENVIADA,
            status=ProposalStatus.ABERTA,
            notes="Exemplo de observação.",
            created_at=moment,
            updated_at=moment,
        )
        self._commit([sample])
        logger.info("Коллекция пуста, добавлен пример предложения")
        return True

    def get(self, proposal_id: str) -> Proposal:
        """
        Raises:
            RecordNotFoundError: Если предложения с таким ID нет
        """
        for proposal in self._items:
            if proposal.id == proposal_id:
                return proposal
        raise RecordNotFoundError(proposal_id)

    def _index_of(self, proposal_id: str) -> int:
        for index, proposal in enumerate(self._items):
            if proposal.id == proposal_id:
                return index
        raise RecordNotFoundError(proposal_id)

    def add(self, fields: Dict[str, Any]) -> Proposal:
        """Создание предложения (новое встает в начало списка)"""
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(sorted(unknown), f"Campos desconhecidos: {', '.join(sorted(unknown))}")
        moment = now_ms()
        proposal = Proposal(id=generate_id(), **fields, created_at=moment, updated_at=moment)
        self._commit([proposal] + self._items)
        logger.info(f"Создано предложение {proposal.id} ({proposal.client})")
        return proposal

    def update(self, proposal_id: str, changes: Dict[str, Any]) -> Proposal:
        """Частичное обновление полей с обновлением updatedAt"""
        index = self._index_of(proposal_id)
        updated = self._items[index].with_changes(changes)
        items = list(self._items)
        items[index] = updated
        self._commit(items)
        logger.info(f"Обновлено предложение {proposal_id}: {', '.join(sorted(changes)) or '-'}")
        return updated

    def duplicate(self, proposal_id: str, today: Optional[date] = None) -> Proposal:
        """Дублирование предложения (копия встает в начало списка)"""
        copy = self.get(proposal_id).duplicate(today=today)
        self._commit([copy] + self._items)
        logger.info(f"Предложение {proposal_id} продублировано как {copy.id}")
        return copy

    def delete(self, proposal_id: str) -> Proposal:
        """Удаление предложения"""
        removed = self.get(proposal_id)
        self._commit([proposal for proposal in self._items if proposal.id != proposal_id])
        logger.info(f"Удалено предложение {proposal_id} ({removed.client})")
        return removed

    def import_payload(self, payload: Any, today: Optional[date] = None) -> List[Proposal]:
        """
        Импорт разобранного JSON с объединением по ID

        Raises:
            FormatError: Если формат неверный (коллекция не меняется)
        """
        merged = merge_proposals(self._items, payload, today=today)
        self._commit(merged)
        return self.items

    def import_file(self, path: Path, today: Optional[date] = None) -> List[Proposal]:
        """Импорт JSON-файла (бэкап экспорта или массив записей)"""
        logger.info(f"Импорт предложений из {path}")
        return self.import_payload(read_import_file(path), today=today)
