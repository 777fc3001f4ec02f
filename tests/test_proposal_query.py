"""
Тесты для фильтрации и сортировки предложений
"""

from datetime import date
from itertools import groupby

import pytest

from modules.crm.proposals.models import Proposal, ProposalStatus, Stage
from modules.crm.proposals.query_service import SortMode, collation_key, query_proposals


def make(proposal_id, **kwargs) -> Proposal:
    """Хелпер для создания тестового предложения"""
    kwargs.setdefault("entry", date(2024, 5, 1))
    return Proposal(id=proposal_id, **kwargs)


@pytest.fixture
def proposals():
    return [
        make("1", client="A", value=100.0, status=ProposalStatus.ABERTA, updated_at=10),
        make("2", client="B", value=50.0, status=ProposalStatus.GANHA, updated_at=20),
    ]


@pytest.fixture
def catalog():
    return [
        make("a", client="Construtora Sol", partner="Rede Norte", city="Cuiabá/MT",
             stage=Stage.PROPOSTA_ENVIADA, value=300.0, due=date(2024, 6, 10), updated_at=3),
        make("b", client="Mercado Central", service="Medição Agrupada", notes="Ligar segunda",
             stage=Stage.NEGOCIACAO, value=300.0, updated_at=None),
        make("c", client="álvaro Engenharia", contact="65 99999-0000",
             stage=Stage.PROPOSTA_ENVIADA, value=0.0, due=date(2024, 6, 1), updated_at=7),
        make("d", client="Beta Ltda", stage=Stage.LEAD_RECEBIDO, value=900.0, updated_at=3),
    ]


def ids(items):
    return [item.id for item in items]


class TestTextFilter:
    """Тесты текстового поиска"""

    def test_empty_filter_matches_all(self, catalog):
        assert ids(query_proposals(catalog, "", "", "none")) == ["a", "b", "c", "d"]

    def test_case_insensitive_across_fields(self, catalog):
        """Поиск по клиенту, партнеру, услуге, городу, контакту и заметкам"""
        assert ids(query_proposals(catalog, "REDE NORTE", "", "none")) == ["a"]
        assert ids(query_proposals(catalog, "medição", "", "none")) == ["b"]
        assert ids(query_proposals(catalog, "ligar", "", "none")) == ["b"]
        assert ids(query_proposals(catalog, "99999", "", "none")) == ["c"]
        assert ids(query_proposals(catalog, "cuiabá", "", "none")) == ["a"]

    def test_filter_is_stripped(self, catalog):
        assert ids(query_proposals(catalog, "  beta  ", "", "none")) == ["d"]

    def test_malformed_filter_is_ignored(self, catalog):
        assert len(query_proposals(catalog, None, None, None)) == 4
        assert len(query_proposals(catalog, 123, "", "none")) == 4


class TestStageFilter:
    """Тесты фильтра по этапу"""

    def test_by_label(self, catalog):
        assert ids(query_proposals(catalog, "", "PROPOSTA ENVIADA", "none")) == ["a", "c"]

    def test_by_enum(self, catalog):
        assert ids(query_proposals(catalog, "", Stage.NEGOCIACAO, "none")) == ["b"]

    def test_unknown_stage_means_no_restriction(self, catalog):
        assert len(query_proposals(catalog, "", "ARQUIVADO", "none")) == 4

    def test_combined_with_text(self, catalog):
        assert ids(query_proposals(catalog, "sol", "PROPOSTA ENVIADA", "none")) == ["a"]
        assert query_proposals(catalog, "sol", "NEGOCIAÇÃO", "none") == []


class TestSorting:
    """Тесты сортировки"""

    def test_updated_desc_scenario(self, proposals):
        """Сначала последние обновленные"""
        assert ids(query_proposals(proposals, "", "", "updated_desc")) == ["2", "1"]

    def test_updated_desc_missing_is_zero_and_stable(self, catalog):
        assert ids(query_proposals(catalog, "", "", SortMode.UPDATED_DESC)) == ["c", "a", "d", "b"]

    def test_due_asc_missing_last(self, catalog):
        assert ids(query_proposals(catalog, "", "", "due_asc")) == ["c", "a", "b", "d"]

    def test_value_desc_stable(self, catalog):
        """Равные суммы сохраняют исходный порядок"""
        assert ids(query_proposals(catalog, "", "", "value_desc")) == ["d", "a", "b", "c"]

    def test_value_desc_is_non_increasing_permutation(self, catalog):
        result = query_proposals(catalog, "", "", "value_desc")
        values = [item.value for item in result]
        assert values == sorted(values, reverse=True)
        assert sorted(ids(result)) == sorted(ids(catalog))
        for _, group in groupby(result, key=lambda item: item.value):
            group_ids = [item.id for item in group]
            assert group_ids == [i for i in ids(catalog) if i in group_ids]

    def test_client_asc_ignores_accents_and_case(self, catalog):
        assert ids(query_proposals(catalog, "", "", "client_asc")) == ["c", "d", "a", "b"]

    @pytest.mark.parametrize("mode", ["none", "bogus", None, 42])
    def test_no_reordering(self, catalog, mode):
        assert ids(query_proposals(catalog, "", "", mode)) == ["a", "b", "c", "d"]

    def test_input_not_mutated(self, catalog):
        before = list(catalog)
        result = query_proposals(catalog, "", "", "value_desc")
        assert catalog == before
        assert result is not catalog


class TestCollationKey:
    """Тесты ключа сравнения строк"""

    def test_accents_and_case(self):
        names = ["beta", "Álvaro", "alberto", "Alvaro"]
        assert sorted(names, key=collation_key) == ["alberto", "Alvaro", "Álvaro", "beta"]
