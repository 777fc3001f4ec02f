"""
Репозиторий предложений в локальном хранилище
"""

import json
from typing import List, Sequence

from loguru import logger

from core.exceptions import StorageError
from core.local_storage import LocalStorage
from modules.crm.proposals.models import Proposal


class ProposalRepository:
    """Загрузка и сохранение всей коллекции предложений под одним ключом"""

    def __init__(self, storage: LocalStorage, storage_key: str):
        self.storage = storage
        self.storage_key = storage_key

    def load(self) -> List[Proposal]:
        """
        Загрузка коллекции

        При отсутствии ключа, поврежденном JSON или ошибке чтения
        возвращает пустой список.
        """
        try:
            raw = self.storage.get_item(self.storage_key)
        except StorageError as e:
            logger.error(f"Хранилище недоступно, начинаем с пустой коллекции: {e}")
            return []

        if not raw:
            logger.debug(f"Ключ '{self.storage_key}' пуст, коллекция пустая")
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Поврежденные данные в ключе '{self.storage_key}': {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"В ключе '{self.storage_key}' ожидался список, получен {type(data).__name__}")
            return []

        proposals = [Proposal.from_dict(item) for item in data if isinstance(item, dict)]
        skipped = len(data) - len(proposals)
        if skipped:
            logger.warning(f"Пропущено записей неверного формата: {skipped}")
        logger.info(f"Загружено предложений: {len(proposals)}")
        return proposals

    def save(self, proposals: Sequence[Proposal]) -> None:
        """
        Сохранение коллекции целиком (JSON-массив записей)

        Raises:
            StorageError: Если записать не удалось
        """
        payload = json.dumps([proposal.to_dict() for proposal in proposals], ensure_ascii=False)
        self.storage.set_item(self.storage_key, payload)
        logger.debug(f"Сохранено предложений: {len(proposals)}")
