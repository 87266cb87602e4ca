"""Unit tests for domain entities: statuses, checklist items and automation rules."""
import uuid
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from frota.domain import (
    AlaServico, ChecklistStatus, InvalidStatusTransitionError, ItemChecklist, ItemStatus, Perfil,
    RegraAutomacao, SituacaoChecklist, SolicitacaoStatus, TemplateChecklist, TipoChecklist, TipoItem,
    ValidationError,
)
from frota.domain.entities import ensure_transition, require_motivo, validate_itens
from frota.domain.entities.checklist import NumberItem, PhotoItem, RatingItem, TemplateItem, TextItem
from frota.domain.value_objects import Foto, Horario


class TestPerfil:

    @pytest.mark.parametrize("perfil, allowed", [
        (Perfil.ADMINISTRADOR, True), (Perfil.COMANDANTE, True), (Perfil.CHEFE, True),
        (Perfil.AUXILIARES, False), (Perfil.OPERADOR, False),
    ])
    def test_manage_automacoes(self, perfil, allowed):
        assert perfil.can_manage_automacoes is allowed

    def test_only_operador_cannot_cancel_solicitacao(self):
        assert Perfil.AUXILIARES.can_cancel_solicitacao
        assert not Perfil.OPERADOR.can_cancel_solicitacao

    def test_delete_restricted_to_admin_and_chefe(self):
        assert Perfil.CHEFE.can_delete_checklist
        assert not Perfil.COMANDANTE.can_delete_checklist
        assert Perfil.ADMINISTRADOR.can_delete_solicitacao

    def test_only_admin_switches_unidade(self):
        assert Perfil.ADMINISTRADOR.can_switch_unidade
        assert not Perfil.CHEFE.can_switch_unidade


class TestSolicitacaoStatus:

    def test_pendente_transitions(self):
        assert SolicitacaoStatus.PENDENTE.can_transition_to == [
            SolicitacaoStatus.ATENDIDA, SolicitacaoStatus.CANCELADA,
        ]

    @pytest.mark.parametrize("status", [SolicitacaoStatus.ATENDIDA, SolicitacaoStatus.CANCELADA])
    def test_terminal_statuses(self, status):
        assert status.is_terminal
        assert status.can_transition_to == []

    def test_ensure_transition_rejects_cancelling_atendida(self):
        with pytest.raises(InvalidStatusTransitionError) as exc:
            ensure_transition("atendida", "cancelada")
        assert exc.value.code == "BUSINESS_RULE_STATUS_TRANSITION"

    def test_cancelled_does_not_occupy_occurrence(self):
        assert SolicitacaoStatus.PENDENTE.occupies_occurrence
        assert not SolicitacaoStatus.CANCELADA.occupies_occurrence

    def test_label(self):
        assert SolicitacaoStatus.ATENDIDA.label_pt == "Atendida"


class TestRequireMotivo:

    def test_trims(self):
        assert require_motivo("  viatura baixada ") == "viatura baixada"

    @pytest.mark.parametrize("motivo", [None, "", "   "])
    def test_blank_rejected(self, motivo):
        with pytest.raises(ValidationError) as exc:
            require_motivo(motivo)
        assert exc.value.field == "motivo"


class TestChecklistStatus:

    def test_only_em_andamento_is_editable(self):
        assert ChecklistStatus.EM_ANDAMENTO.is_editable
        assert not ChecklistStatus.FINALIZADO.is_editable

    def test_finalizado_can_be_cancelled(self):
        ChecklistStatus.FINALIZADO.ensure_can_transition_to(ChecklistStatus.CANCELADO)

    def test_cancelado_is_terminal(self):
        with pytest.raises(InvalidStatusTransitionError):
            ChecklistStatus.CANCELADO.ensure_can_transition_to(ChecklistStatus.FINALIZADO)

    def test_finalizado_cannot_reopen(self):
        with pytest.raises(InvalidStatusTransitionError):
            ChecklistStatus.FINALIZADO.ensure_can_transition_to(ChecklistStatus.EM_ANDAMENTO)


class TestSituacaoChecklist:

    def test_any_alteration_marks_checklist(self):
        assert SituacaoChecklist.from_statuses(["ok", "com_alteracao"]) == SituacaoChecklist.COM_ALTERACAO

    def test_all_ok(self):
        assert SituacaoChecklist.from_statuses([ItemStatus.OK]) == SituacaoChecklist.SEM_ALTERACAO

    def test_empty(self):
        assert SituacaoChecklist.from_statuses([]) == SituacaoChecklist.SEM_ALTERACAO


class TestEnumsParsing:

    @pytest.mark.parametrize("raw, expected", [
        ("alpha", AlaServico.ALPHA), ("BRAVO", AlaServico.BRAVO), ("adm", AlaServico.ADM),
    ])
    def test_ala_parse(self, raw, expected):
        assert AlaServico.parse(raw) == expected

    @pytest.mark.parametrize("raw", ["Echo", "", None])
    def test_ala_parse_invalid(self, raw):
        with pytest.raises(ValidationError) as exc:
            AlaServico.parse(raw)
        assert exc.value.field == "ala_servico"

    @pytest.mark.parametrize("raw, expected", [
        ("Diário", TipoChecklist.DIARIO),
        ("diario", TipoChecklist.DIARIO),
        ("pre-operacional", TipoChecklist.PRE_OPERACIONAL),
        ("Inspeção de Segurança", TipoChecklist.INSPECAO_SEGURANCA),
        ("manutencao_preventiva", TipoChecklist.MANUTENCAO_PREVENTIVA),
    ])
    def test_tipo_checklist_parse(self, raw, expected):
        assert TipoChecklist.parse(raw) == expected

    def test_tipo_checklist_invalid(self):
        with pytest.raises(ValidationError):
            TipoChecklist.parse("Anual")


class TestTemplateItems:

    def test_from_dict_accepts_english_keys(self):
        item = TemplateItem.from_dict({"name": "Pressão", "type": "number", "required": True})
        assert isinstance(item, NumberItem)
        assert item.obrigatorio

    def test_default_type_is_checkbox(self):
        assert TemplateItem.from_dict({"nome": "Faróis"}).tipo == TipoItem.CHECKBOX

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            TemplateItem.from_dict({"nome": "X", "tipo": "signature"})

    def test_required_text_needs_value(self):
        definicao = TextItem("Observação do motor", obrigatorio=True)
        item = ItemChecklist.from_template(definicao, "Motor", 0)
        assert item.problems() == ["Observação do motor: informe o texto"]
        assert item.with_valor("limpo").problems() == []

    def test_number_accepts_comma_decimal(self):
        item = ItemChecklist.from_template(NumberItem("Calibragem"), "Pneus", 0)
        assert item.with_valor("32,5").problems() == []
        assert item.with_valor("trinta").problems() == ["Calibragem: valor deve ser numérico"]

    def test_optional_number_may_be_empty(self):
        assert ItemChecklist.from_template(NumberItem("Calibragem"), "Pneus", 0).problems() == []

    def test_required_photo(self):
        item = ItemChecklist.from_template(PhotoItem("Lataria", obrigatorio=True), "Externo", 0)
        assert item.problems()
        assert item.with_fotos_added([Foto(url="https://cdn/1.jpg")]).problems() == []

    @pytest.mark.parametrize("valor, ok", [("1", True), ("5", True), ("0", False), ("6", False), ("bom", False)])
    def test_rating_range(self, valor, ok):
        item = ItemChecklist.from_template(RatingItem("Limpeza"), "Cabine", 0).with_valor(valor)
        assert (item.problems() == []) is ok


class TestTemplateChecklist:

    def test_from_dict(self):
        template = TemplateChecklist.from_dict({
            "id": "t1",
            "nome": "ABT diário",
            "categorias": [
                {"nome": "Motor", "itens": [{"nome": "Óleo"}, {"nome": "Água", "tipo": "text"}]},
                {"name": "Cabine", "items": [{"name": "Rádio"}]},
            ],
        })
        assert template.total_itens == 3
        assert template.categorias[1].nome == "Cabine"
        assert isinstance(template.categorias[0].itens[1], TextItem)

    def test_category_without_name(self):
        template = TemplateChecklist.from_dict({"categorias": [{"itens": [{"nome": "X"}]}]})
        assert template.categorias[0].nome == "Sem Categoria"


class TestItemChecklist:

    def test_alteration_requires_note(self):
        item = ItemChecklist("Freios").with_status(ItemStatus.COM_ALTERACAO)
        assert item.problems() == ["Freios: descreva a alteração"]
        assert item.with_observacoes("pastilha gasta").problems() == []

    def test_reverting_to_ok_clears_note(self):
        item = ItemChecklist("Freios").with_status("com_alteracao").with_observacoes("ruído")
        assert item.with_status("ok").observacoes == ""

    def test_from_payload_drops_note_of_ok_item(self):
        item = ItemChecklist.from_payload({"nome_item": "Faróis", "status": "ok", "observacoes": "queimado"})
        assert item.observacoes == ""

    def test_from_payload_invalid_status(self):
        with pytest.raises(ValidationError):
            ItemChecklist.from_payload({"nome_item": "Faróis", "status": "quebrado"})

    def test_from_payload_requires_name(self):
        with pytest.raises(ValidationError):
            ItemChecklist.from_payload({"status": "ok"})

    def test_from_payload_keeps_definition(self):
        item = ItemChecklist.from_payload({"nome_item": "Km", "tipo": "number", "obrigatorio": True})
        assert item.tipo == TipoItem.NUMBER
        assert item.obrigatorio
        assert item.problems() == ["Km: informe o valor"]

    def test_remove_photo(self):
        item = ItemChecklist("Pneu").with_fotos_added([Foto(url="a"), Foto(url="b")])
        assert [f.url for f in item.with_foto_removed(0).fotos] == ["b"]
        with pytest.raises(ValidationError):
            item.with_foto_removed(5)

    def test_payload_round(self):
        payload = ItemChecklist.from_payload({
            "nome_item": "Pneu", "categoria": "Rodas", "status": "com_alteracao",
            "observacoes": "careca", "fotos": [{"url": "https://cdn/p.jpg"}],
        }, ordem=3).to_payload()
        assert payload["ordem"] == 3
        assert payload["fotos"][0]["url"] == "https://cdn/p.jpg"
        assert "tipo" not in payload

    def test_validate_itens_joins_problems(self):
        itens = [
            ItemChecklist("Freios", status=ItemStatus.COM_ALTERACAO),
            ItemChecklist("Faróis", status=ItemStatus.COM_ALTERACAO),
        ]
        with pytest.raises(ValidationError) as exc:
            validate_itens(itens)
        assert exc.value.field == "itens"
        assert "Freios" in exc.value.message and "Faróis" in exc.value.message


def _model(**kwargs):
    defaults = dict(
        id=uuid.uuid4(), nome="Diário", ativo=True, unidade_id=uuid.uuid4(), viatura_id=uuid.uuid4(),
        template_id=None, horario="07:00", dias_semana=[0], ala_servico="Alpha", tipo_checklist="Diário",
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestRegraAutomacao:

    def test_from_model(self):
        regra = RegraAutomacao.from_model(_model())
        assert regra.horario == Horario(7, 0)
        assert regra.ala_servico == AlaServico.ALPHA
        assert regra.missing_fields() == []

    def test_malformed_stored_values_count_as_missing(self):
        regra = RegraAutomacao.from_model(_model(horario="7h", dias_semana=["feriado"]))
        assert regra.missing_fields() == ["horario", "dias_semana"]

    def test_validate_lists_missing_fields(self):
        regra = RegraAutomacao.from_model(_model(viatura_id=None, horario=None))
        with pytest.raises(ValidationError) as exc:
            regra.validate_for_generation()
        assert exc.value.field == "horario"
        assert "viatura" in exc.value.message

    def test_occurrence_on_matching_weekday(self):
        regra = RegraAutomacao.from_model(_model())
        ocorrencia = regra.occurrence_on(date(2024, 1, 1))
        assert ocorrencia.data == date(2024, 1, 1)
        assert ocorrencia.data_prevista == datetime(2024, 1, 1, 7, 0)

    def test_no_occurrence_on_other_weekday(self):
        assert RegraAutomacao.from_model(_model()).occurrence_on(date(2024, 1, 2)) is None

    def test_force_ignores_weekday(self):
        ocorrencia = RegraAutomacao.from_model(_model()).occurrence_on(date(2024, 1, 2), force=True)
        assert ocorrencia.data_prevista == datetime(2024, 1, 2, 7, 0)

    def test_parse_payload_normalizes(self):
        viatura_id = uuid.uuid4()
        values = RegraAutomacao.parse_payload({
            "nome": " Diário ABT ",
            "horario": "7:30",
            "dias_semana": ["sexta", 0],
            "viatura_id": str(viatura_id),
            "ala_servico": "bravo",
            "tipo_checklist": "semanal",
        })
        assert values == {
            "nome": "Diário ABT",
            "horario": "07:30",
            "dias_semana": [0, 4],
            "viatura_id": viatura_id,
            "template_id": None,
            "ala_servico": AlaServico.BRAVO,
            "tipo_checklist": TipoChecklist.SEMANAL,
        }

    def test_parse_payload_partial_only_present_keys(self):
        assert RegraAutomacao.parse_payload({"ativo": False, "horario": "08:00"}, partial=True) == {
            "horario": "08:00", "ativo": False,
        }

    def test_parse_payload_requires_name(self):
        with pytest.raises(ValidationError):
            RegraAutomacao.parse_payload({"nome": "  "})

    def test_parse_payload_invalid_viatura_id(self):
        with pytest.raises(ValidationError) as exc:
            RegraAutomacao.parse_payload({"nome": "x", "viatura_id": "nope"})
        assert exc.value.field == "viatura_id"
