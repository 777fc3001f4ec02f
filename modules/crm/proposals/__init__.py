"""
Модуль коммерческих предложений: модели, хранилище, выборка, сводка, импорт/экспорт
"""

from modules.crm.proposals.models import (
    Stage,
    STAGES,
    ProposalStatus,
    Proposal,
)
from modules.crm.proposals.proposal_repository import ProposalRepository
from modules.crm.proposals.proposal_store import ProposalStore
from modules.crm.proposals.query_service import SortMode, query_proposals
from modules.crm.proposals.summary_service import (
    ProposalSummary,
    ValueBreakdown,
    summarize,
    value_breakdown,
)
from modules.crm.proposals.import_export_service import (
    merge_proposals,
    build_export_document,
)

__all__ = [
    'Stage',
    'STAGES',
    'ProposalStatus',
    'Proposal',
    'ProposalRepository',
    'ProposalStore',
    'SortMode',
    'query_proposals',
    'ProposalSummary',
    'ValueBreakdown',
    'summarize',
    'value_breakdown',
    'merge_proposals',
    'build_export_document',
]
