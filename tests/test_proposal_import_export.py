"""
Тесты для импорта (объединения по ID) и экспорта предложений
"""

import json
from datetime import date, datetime, timezone

import pytest

from core.exceptions import FormatError
from modules.crm.proposals.import_export_service import (
    build_export_document,
    build_export_filename,
    dump_export_document,
    merge_proposals,
    read_import_file,
    write_export_file,
)
from modules.crm.proposals.models import Proposal, ProposalStatus, Stage

TODAY = date(2024, 5, 10)


@pytest.fixture
def existing():
    return [
        Proposal(id="1", client="A", entry=date(2024, 1, 1), value=100.0),
        Proposal(id="2", client="B", entry=date(2024, 1, 2), value=50.0),
    ]


class TestMergeProposals:
    """Тесты объединения коллекций"""

    def test_incoming_replaces_by_id(self, existing):
        """Входящая запись заменяет существующую, остальные не меняются"""
        result = merge_proposals(existing, [{"id": 1, "value": 200, "updatedAt": 999}], today=TODAY)
        assert [p.id for p in result] == ["1", "2"]
        assert result[0].value == 200.0
        assert result[0].updated_at == 999
        assert result[1] == existing[1]

    def test_whole_record_replace(self, existing):
        """Замена целиком: поля существующей записи не сохраняются"""
        result = merge_proposals(existing, [{"id": "1", "value": 200}], today=TODAY)
        replaced = next(p for p in result if p.id == "1")
        assert replaced.client == ""
        assert replaced.entry == TODAY

    def test_wrapper_with_items(self, existing):
        payload = {"exportedAt": "2024-05-10T00:00:00.000Z", "items": [{"id": "3", "client": "C", "updatedAt": 5}]}
        result = merge_proposals(existing, payload, today=TODAY)
        assert [p.id for p in result] == ["3", "1", "2"]

    def test_sorted_by_updated_desc(self):
        existing = [Proposal(id="old", entry=TODAY, updated_at=1)]
        incoming = [
            {"id": "x", "updatedAt": 5},
            {"id": "y"},
            {"id": "z", "updatedAt": 50},
        ]
        result = merge_proposals(existing, incoming, today=TODAY)
        assert [p.id for p in result] == ["z", "x", "old", "y"]

    def test_compat_defaults(self):
        """Без даты входа - сегодня, без партнера - пустая строка"""
        result = merge_proposals([], [{"id": "n", "client": "Novo", "partner": None}], today=TODAY)
        assert result[0].entry == TODAY
        assert result[0].partner == ""
        assert result[0].client == "Novo"

    def test_records_without_id_are_skipped(self, existing):
        incoming = [{"client": "sem id"}, {"id": "", "client": "vazio"}, "lixo", None, {"id": "9"}]
        result = merge_proposals(existing, incoming, today=TODAY)
        assert sorted(p.id for p in result) == ["1", "2", "9"]

    def test_existing_not_mutated(self, existing):
        before = list(existing)
        merge_proposals(existing, [{"id": "1", "value": 1}], today=TODAY)
        assert existing == before
        assert existing[0].value == 100.0

    @pytest.mark.parametrize("payload", [
        {"notItems": []},
        {"items": "nope"},
        "texto",
        42,
        None,
    ])
    def test_invalid_shape_raises_format_error(self, existing, payload):
        before = list(existing)
        with pytest.raises(FormatError):
            merge_proposals(existing, payload, today=TODAY)
        assert existing == before

    def test_export_round_trip_is_idempotent(self):
        """Импорт собственного экспорта не меняет коллекцию"""
        collection = [
            Proposal(id="a", client="Á", entry=date(2024, 1, 1), value=10.0, due=date(2024, 2, 1),
                     stage=Stage.NEGOCIACAO, status=ProposalStatus.GANHA, created_at=1, updated_at=3,
                     extra={"origem": "site"}),
            Proposal(id="b", client="B", entry=date(2024, 1, 2), updated_at=8),
            Proposal(id="c", client="C", entry=date(2024, 1, 3)),
        ]
        document = json.loads(dump_export_document(build_export_document(collection)))
        result = merge_proposals(collection, document, today=TODAY)
        assert sorted(result, key=lambda p: p.id) == sorted(collection, key=lambda p: p.id)


class TestExport:
    """Тесты документа экспорта"""

    def test_document_shape(self):
        now = datetime(2024, 5, 31, 12, 30, 0, tzinfo=timezone.utc)
        proposal = Proposal(id="a", client="Cuiabá", entry=date(2024, 5, 1))
        document = build_export_document([proposal], now=now)
        assert document["exportedAt"] == "2024-05-31T12:30:00.000Z"
        assert document["items"] == [proposal.to_dict()]

    def test_dump_is_formatted_utf8(self):
        text = dump_export_document(build_export_document([Proposal(id="a", client="Cuiabá", entry=TODAY)]))
        assert "Cuiabá" in text
        assert '\n  "items": [' in text

    def test_filename(self):
        assert build_export_filename(date(2024, 5, 31)) == "crm_propostas_backup_2024-05-31.json"

    def test_write_and_read_file(self, tmp_path):
        proposals = [Proposal(id="a", client="ACME", entry=TODAY, updated_at=1)]
        path = write_export_file(proposals, tmp_path / "backups", now=datetime(2024, 5, 31, 9, 0))
        assert path.name == "crm_propostas_backup_2024-05-31.json"
        payload = read_import_file(path)
        assert payload["exportedAt"] == "2024-05-31T09:00:00.000Z"
        assert payload["items"][0]["client"] == "ACME"


class TestReadImportFile:
    """Тесты чтения файла импорта"""

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(FormatError):
            read_import_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FormatError):
            read_import_file(tmp_path / "missing.json")

    def test_bare_array(self, tmp_path):
        path = tmp_path / "array.json"
        path.write_text('[{"id": "1"}]', encoding="utf-8")
        assert read_import_file(path) == [{"id": "1"}]
