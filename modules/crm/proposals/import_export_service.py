"""
Импорт и экспорт коллекции предложений в JSON

Экспорт формирует документ {exportedAt, items}. Импорт принимает такой
документ или голый массив записей и объединяет его с текущей коллекцией
по ID: входящая запись полностью заменяет существующую.
"""

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from core.exceptions import FormatError, StorageError
from modules.crm.proposals.models import Proposal, current_date

EXPORT_FILENAME_TEMPLATE = "crm_propostas_backup_{day}.json"
IMPORT_ERROR_MESSAGE = "Não consegui importar esse arquivo. Verifique se é um JSON exportado do CRM."


def extract_incoming_items(payload: Any) -> List[Any]:
    """
    Извлечение списка записей из импортируемых данных

    Raises:
        FormatError: Если это не массив и не объект с массивом items
    """
    if isinstance(payload, (list, tuple)):
        return list(payload)
    if isinstance(payload, dict) and isinstance(payload.get("items"), (list, tuple)):
        return list(payload["items"])
    raise FormatError("Formato inválido: esperado um array de propostas ou um objeto com 'items'")


def merge_proposals(
    existing: Sequence[Proposal],
    incoming: Any,
    today: Optional[date] = None,
) -> List[Proposal]:
    """
    Объединение входящих записей с существующей коллекцией

    Args:
        existing: Текущая коллекция (не изменяется)
        incoming: Массив записей или объект с ключом items
        today: Дата для записей без даты входа

    Returns:
        Новая коллекция, отсортированная по updatedAt по убыванию

    Raises:
        FormatError: Если формат входящих данных неверный
    """
    items = extract_incoming_items(incoming)
    fill_date = today or current_date()

    by_id: Dict[str, Proposal] = {proposal.id: proposal for proposal in existing}
    replaced = added = skipped = 0

    for raw in items:
        if not isinstance(raw, dict) or not raw.get("id"):
            skipped += 1
            continue
        record = dict(raw)
        # совместимость со старыми бэкапами
        if not record.get("entry"):
            record["entry"] = fill_date.isoformat()
        if not record.get("partner"):
            record["partner"] = ""
        proposal = Proposal.from_dict(record, today=fill_date)
        if proposal.id in by_id:
            replaced += 1
        else:
            added += 1
        by_id[proposal.id] = proposal

    logger.info(f"Импорт: добавлено {added}, заменено {replaced}, пропущено без ID {skipped}")
    return sorted(by_id.values(), key=lambda proposal: proposal.updated_at or 0, reverse=True)


def _iso_timestamp(moment: datetime) -> str:
    # naive datetime считается UTC
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_export_document(proposals: Sequence[Proposal], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Документ экспорта: {'exportedAt': ISO-8601, 'items': [...]}"""
    return {
        "exportedAt": _iso_timestamp(now or datetime.now(timezone.utc)),
        "items": [proposal.to_dict() for proposal in proposals],
    }


def dump_export_document(document: Dict[str, Any]) -> str:
    return json.dumps(document, ensure_ascii=False, indent=2)


def build_export_filename(today: Optional[date] = None) -> str:
    """Имя файла бэкапа вида crm_propostas_backup_2024-05-31.json"""
    return EXPORT_FILENAME_TEMPLATE.format(day=(today or current_date()).isoformat())


def write_export_file(
    proposals: Sequence[Proposal],
    directory: Path,
    now: Optional[datetime] = None,
) -> Path:
    """
    Запись бэкапа коллекции в каталог

    Returns:
        Путь к созданному файлу

    Raises:
        StorageError: Если записать файл не удалось
    """
    moment = now or datetime.now().astimezone()
    output_path = Path(directory) / build_export_filename(moment.date())
    document = build_export_document(proposals, now=moment)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(dump_export_document(document), encoding="utf-8")
    except OSError as e:
        error_msg = f"Ошибка записи бэкапа {output_path}: {e}"
        logger.error(error_msg)
        raise StorageError(error_msg) from e
    logger.info(f"Экспортировано предложений: {len(proposals)} -> {output_path}")
    return output_path


def read_import_file(path: Path) -> Any:
    """
    Чтение и разбор JSON-файла для импорта

    Raises:
        FormatError: Если файл не читается или это не JSON
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
        return json.loads(text)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Не удалось прочитать файл импорта {path}: {e}")
        raise FormatError(IMPORT_ERROR_MESSAGE) from e
