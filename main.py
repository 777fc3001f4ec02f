"""
CRM de propostas: командная строка

Использование:
    python main.py list --q "cuiabá" --stage "PROPOSTA ENVIADA" --sort value_desc
    python main.py summary
    python main.py add --client "ACME" --service "Projeto" --value "1.500,00"
    python main.py edit <id> --status GANHA
    python main.py export --dir backups
    python main.py import backups/crm_propostas_backup_2024-05-31.json
    python main.py report --sort due_asc
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from config.settings import AppConfig, LoggingConfig, config as default_config
from core.exceptions import CRMError, StorageError, ValidationError
from core.local_storage import LocalStorage
from modules.crm.proposals.excel_report import ProposalExcelExporter
from modules.crm.proposals.formatters import format_brl, format_date_br
from modules.crm.proposals.import_export_service import write_export_file
from modules.crm.proposals.models import STAGES, Proposal, ProposalStatus, current_date
from modules.crm.proposals.proposal_form import build_proposal_fields
from modules.crm.proposals.proposal_repository import ProposalRepository
from modules.crm.proposals.proposal_store import ProposalStore
from modules.crm.proposals.query_service import SortMode, query_proposals
from modules.crm.proposals.summary_service import summarize, value_breakdown

FORM_OPTIONS = (
    "client", "contact", "service", "city", "partner",
    "entry", "value", "due", "stage", "status", "notes",
)


def setup_logging(logging_config: LoggingConfig) -> None:
    """Настройка логирования loguru"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=logging_config.level,
        format="{time:HH:mm:ss} | {level: <8} | {message}",
        colorize=True,
    )
    if logging_config.log_file:
        logger.add(
            str(logging_config.log_file),
            level="DEBUG",
            rotation="5 MB",
            retention=5,
            encoding="utf-8",
        )


def build_store(app_config: AppConfig, seed: bool = True) -> ProposalStore:
    """Создание и загрузка хранилища предложений"""
    storage = LocalStorage.from_config(app_config.storage)
    store = ProposalStore(ProposalRepository(storage, app_config.storage.storage_key))
    store.load()
    if seed:
        try:
            store.seed_if_empty()
        except StorageError as e:
            logger.warning(f"Не удалось сохранить пример предложения: {e}")
    return store


def format_row(proposal: Proposal) -> str:
    """Строка таблицы предложений"""
    return (
        f"{proposal.stage.progress_label:>4} {proposal.stage.value:<23} "
        f"{format_date_br(proposal.entry):<10} "
        f"{(proposal.client or '-')[:24]:<24} "
        f"{(proposal.partner or '-')[:18]:<18} "
        f"{(proposal.service or '-')[:28]:<28} "
        f"{(proposal.city or '-')[:16]:<16} "
        f"{format_brl(proposal.value):>16} "
        f"{format_date_br(proposal.due):<10} "
        f"{proposal.display_status():<9} {proposal.id}"
    )


def _form_from_args(args: argparse.Namespace) -> Dict[str, str]:
    return {name: getattr(args, name) for name in FORM_OPTIONS if getattr(args, name, None) is not None}


def _add_form_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--client', help='Cliente')
    parser.add_argument('--contact', help='Contato')
    parser.add_argument('--service', help='Serviço')
    parser.add_argument('--city', help='Cidade')
    parser.add_argument('--partner', help='Parceiro')
    parser.add_argument('--entry', help='Data de entrada (YYYY-MM-DD)')
    parser.add_argument('--value', help='Valor, ex.: "1.234,56"')
    parser.add_argument('--due', help='Prazo (YYYY-MM-DD)')
    parser.add_argument('--stage', choices=[stage.value for stage in STAGES], help='Etapa')
    parser.add_argument('--status', choices=[status.value for status in ProposalStatus], help='Status')
    parser.add_argument('--notes', help='Observações')


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--q', default='', help='Busca por cliente, parceiro, serviço, cidade, contato, notas')
    parser.add_argument('--stage', default='', help='Filtrar por etapa')
    parser.add_argument(
        '--sort',
        default=SortMode.UPDATED_DESC.value,
        choices=[mode.value for mode in SortMode],
        help='Ordenação (por padrão: updated_desc)'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Mini CRM de propostas')
    parser.add_argument('--no-seed', action='store_true', help='Não criar proposta de exemplo em coleção vazia')
    subparsers = parser.add_subparsers(dest='command', required=True)

    list_parser = subparsers.add_parser('list', help='Listar propostas')
    _add_query_arguments(list_parser)

    subparsers.add_parser('summary', help='Resumo e valores por status')
    subparsers.add_parser('stages', help='Etapas do funil')

    add_parser = subparsers.add_parser('add', help='Nova proposta')
    _add_form_arguments(add_parser)

    edit_parser = subparsers.add_parser('edit', help='Editar proposta')
    edit_parser.add_argument('id')
    _add_form_arguments(edit_parser)

    duplicate_parser = subparsers.add_parser('duplicate', help='Duplicar proposta')
    duplicate_parser.add_argument('id')

    delete_parser = subparsers.add_parser('delete', help='Excluir proposta')
    delete_parser.add_argument('id')

    export_parser = subparsers.add_parser('export', help='Exportar backup JSON')
    export_parser.add_argument('--dir', type=Path, default=None, help='Diretório de destino')

    import_parser = subparsers.add_parser('import', help='Importar backup JSON')
    import_parser.add_argument('file', type=Path)

    report_parser = subparsers.add_parser('report', help='Relatório Excel da listagem')
    _add_query_arguments(report_parser)
    report_parser.add_argument('--dir', type=Path, default=None, help='Diretório de destino')

    return parser


def run_command(args: argparse.Namespace, store: ProposalStore, app_config: AppConfig) -> None:
    """Выполнение команды над загруженным хранилищем"""
    if args.command == 'list':
        rows = query_proposals(store.items, args.q, args.stage, args.sort)
        for proposal in rows:
            print(format_row(proposal))
        print(f"{len(rows)} item(ns)")

    elif args.command == 'summary':
        summary = summarize(store.items)
        print(f"Total: {summary.total}")
        print(f"Abertas: {summary.open}")
        print(f"Ganhas: {summary.won}")
        print(f"Atrasadas: {summary.overdue} ({'atenção' if summary.needs_attention else 'ok'})")
        print(f"Valor em aberto: {format_brl(summary.open_value_total)}")
        for label, value in value_breakdown(store.items).chart_series():
            print(f"{label}: {format_brl(value)}")

    elif args.command == 'stages':
        for stage in STAGES:
            print(f"{stage.progress_label} {stage.value}")

    elif args.command == 'add':
        form = _form_from_args(args)
        # начальные значения формы новой proposta
        form.setdefault('entry', current_date().isoformat())
        form.setdefault('stage', STAGES[0].value)
        form.setdefault('status', ProposalStatus.ABERTA.value)
        proposal = store.add(build_proposal_fields(form))
        print(proposal.id)

    elif args.command == 'edit':
        proposal = store.update(args.id, build_proposal_fields(_form_from_args(args), partial=True))
        print(format_row(proposal))

    elif args.command == 'duplicate':
        print(store.duplicate(args.id).id)

    elif args.command == 'delete':
        removed = store.delete(args.id)
        print(f"Proposta de \"{removed.client}\" excluída")

    elif args.command == 'export':
        print(write_export_file(store.items, args.dir or app_config.export.export_dir))

    elif args.command == 'import':
        store.import_file(args.file)
        print("Importação concluída!")

    elif args.command == 'report':
        rows = query_proposals(store.items, args.q, args.stage, args.sort)
        description = ", ".join(
            part for part in (
                f"busca '{args.q}'" if args.q else "",
                f"etapa {args.stage}" if args.stage else "",
                f"ordenação {args.sort}",
            ) if part
        )
        exporter = ProposalExcelExporter(args.dir or app_config.export.export_dir)
        print(exporter.export(rows, filter_description=description))


def main(argv: Optional[List[str]] = None, app_config: Optional[AppConfig] = None) -> int:
    """Основная функция запуска"""
    app_config = app_config or default_config
    setup_logging(app_config.logging)

    args = build_parser().parse_args(argv)
    try:
        store = build_store(app_config, seed=not args.no_seed)
        run_command(args, store, app_config)
    except ValidationError as error:
        logger.error(f"Dados inválidos: {error}")
        return 1
    except CRMError as error:
        logger.error(str(error))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
