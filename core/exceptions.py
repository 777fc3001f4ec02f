"""
Исключения приложения CRM de propostas
"""

from typing import List, Optional


class CRMError(Exception):
    """Базовое исключение приложения"""


class StorageError(CRMError):
    """Ошибка чтения или записи локального хранилища"""


class FormatError(CRMError):
    """Неверный формат импортируемых данных"""


class RecordNotFoundError(CRMError):
    """Предложение с указанным ID не найдено"""

    def __init__(self, proposal_id: str):
        self.proposal_id = proposal_id
        super().__init__(f"Proposta não encontrada: {proposal_id}")


class ValidationError(CRMError):
    """Не заполнены обязательные поля формы"""

    def __init__(self, missing_fields: List[str], message: Optional[str] = None):
        self.missing_fields = list(missing_fields)
        super().__init__(message or f"Preencha os campos obrigatórios: {', '.join(self.missing_fields)}")
