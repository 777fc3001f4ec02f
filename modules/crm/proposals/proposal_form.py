"""
Сборка полей предложения из данных формы
"""

from datetime import date
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from core.exceptions import ValidationError
from modules.crm.proposals.formatters import parse_iso_date, parse_money
from modules.crm.proposals.models import STAGES, ProposalStatus, Stage, current_date

# Обязательные поля и их подписи в форме
REQUIRED_FIELDS = {
    "client": "Cliente",
    "service": "Serviço",
    "entry": "Data de entrada",
}

TEXT_FIELDS = ("client", "contact", "service", "city", "partner", "notes")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def build_proposal_fields(
    form: Mapping[str, Any],
    partial: bool = False,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Преобразование сырых значений формы в поля предложения

    Args:
        form: Значения формы (строки, как их ввел пользователь)
        partial: Только поля, присутствующие в форме (редактирование)
        today: Дата, подставляемая при нераспознанной дате входа

    Returns:
        Словарь полей для ProposalStore.add / ProposalStore.update

    Raises:
        ValidationError: Если не заполнены Cliente, Serviço или Data de entrada
    """
    missing = [
        name for name in REQUIRED_FIELDS
        if (not partial or name in form) and not _text(form.get(name))
    ]
    if missing:
        labels = [REQUIRED_FIELDS[name] for name in missing]
        raise ValidationError(missing, f"Preencha {' e '.join(labels)}.")

    fields: Dict[str, Any] = {}
    for name in TEXT_FIELDS:
        if not partial or name in form:
            fields[name] = _text(form.get(name))

    if not partial or "entry" in form:
        entry = parse_iso_date(_text(form.get("entry")))
        if entry is None:
            logger.debug(f"Дата входа '{form.get('entry')}' не распознана, используем сегодня")
            entry = today or current_date()
        fields["entry"] = entry

    if not partial or "value" in form:
        fields["value"] = parse_money(form.get("value"))

    if not partial or "due" in form:
        fields["due"] = parse_iso_date(_text(form.get("due")))

    if not partial or "stage" in form:
        fields["stage"] = Stage.from_label(_text(form.get("stage"))) or STAGES[0]

    if not partial or "status" in form:
        fields["status"] = ProposalStatus.from_value(_text(form.get("status")).upper()) or ProposalStatus.ABERTA

    return fields
