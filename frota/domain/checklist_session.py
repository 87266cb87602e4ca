"""
Checklist fill-out session - the three-step wizard as an immutable value.

Every transition returns a new ChecklistSession; nothing is mutated in place,
so a half-finished submit can never leave the wizard in a mixed state.

    contexto -> inspecao (one page per template category) -> finalizacao -> finalizado

Usage:
    s = ChecklistSession.from_prefill(prefill)
    s = s.set_context(km_inicial="1200", combustivel_percentual=80).with_template(t)
    s = s.advance()                          # to the first category
    s = s.set_item_status(0, "com_alteracao").set_item_observacoes(0, "Pneu baixo")
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .entities.checklist import (
    AlaServico,
    ItemChecklist,
    ItemStatus,
    TemplateChecklist,
    TipoChecklist,
    validate_itens,
)
from .exceptions import BusinessRuleViolationError, ValidationError
from .value_objects import Foto, NivelCombustivel, Odometro


class Etapa(str, Enum):
    CONTEXTO = "contexto"
    INSPECAO = "inspecao"
    FINALIZACAO = "finalizacao"
    FINALIZADO = "finalizado"


CONTEXT_FIELDS = ("viatura_id", "km_inicial", "combustivel_percentual", "ala_servico", "tipo_checklist")


@dataclass(frozen=True)
class ChecklistSession:
    etapa: Etapa = Etapa.CONTEXTO
    solicitacao_id: Optional[str] = None
    checklist_id: Optional[str] = None

    viatura_id: Optional[str] = None
    km_inicial: Optional[Odometro] = None
    combustivel_percentual: Optional[NivelCombustivel] = None
    ala_servico: Optional[AlaServico] = None
    tipo_checklist: Optional[TipoChecklist] = None
    template_id: Optional[str] = None
    travado: bool = False

    template: Optional[TemplateChecklist] = None
    itens: Tuple[ItemChecklist, ...] = ()
    paginas: Tuple[str, ...] = ()
    pagina: int = 0

    observacoes_gerais: str = ""
    usuario_autenticacao: str = ""
    senha: str = ""
    erro: Optional[str] = None

    # --- construction ---------------------------------------------------

    @classmethod
    def ad_hoc(cls) -> 'ChecklistSession':
        return cls()

    @classmethod
    def from_prefill(cls, prefill: Dict[str, Any]) -> 'ChecklistSession':
        """Start from a solicitation: vehicle and checklist type are locked."""
        if not prefill.get("viatura_id"):
            raise ValidationError("Solicitação sem viatura", "viatura_id")
        return cls(
            solicitacao_id=_str_or_none(prefill.get("solicitacao_id")),
            checklist_id=_str_or_none(prefill.get("checklist_id")),
            viatura_id=str(prefill["viatura_id"]),
            ala_servico=AlaServico.parse(prefill["ala_servico"]) if prefill.get("ala_servico") else None,
            tipo_checklist=TipoChecklist.parse(prefill.get("tipo_checklist") or TipoChecklist.DIARIO.value),
            template_id=_str_or_none(prefill.get("template_id")),
            travado=True,
        )

    # --- step 1: context ------------------------------------------------

    def set_context(self, **values) -> 'ChecklistSession':
        """Set step-1 fields; each value is validated as it is entered."""
        self._require(Etapa.CONTEXTO)
        changes: Dict[str, Any] = {}
        for key, raw in values.items():
            if key == "viatura_id":
                changes[key] = _str_or_none(raw)
            elif key == "km_inicial":
                changes[key] = Odometro.parse(raw)
            elif key == "combustivel_percentual":
                changes[key] = NivelCombustivel.parse(raw)
            elif key == "ala_servico":
                changes[key] = AlaServico.parse(raw)
            elif key == "tipo_checklist":
                changes[key] = TipoChecklist.parse(raw)
            elif key == "template_id":
                changes[key] = _str_or_none(raw)
            elif key == "observacoes_gerais":
                changes[key] = raw or ""
            else:
                raise ValidationError(f"Campo desconhecido: {key}", key)

        if self.travado:
            for locked in ("viatura_id", "tipo_checklist"):
                if locked in changes and changes[locked] != getattr(self, locked):
                    raise ValidationError("Campo definido pela solicitação não pode ser alterado", locked)

        if "template_id" in changes and changes["template_id"] != self.template_id:
            changes.update(template=None, itens=(), paginas=(), pagina=0)
        return replace(self, erro=None, **changes)

    def with_template(
        self,
        template: TemplateChecklist,
        itens_salvos: Optional[Iterable[ItemChecklist]] = None,
    ) -> 'ChecklistSession':
        """
        Load the template: one working item per template item (status ok) and
        one page per non-empty category, in template order. Items already
        saved on a continued checklist keep their recorded state.
        """
        self._require(Etapa.CONTEXTO)
        if template.total_itens == 0:
            raise ValidationError("Template não possui itens", "template_id")

        salvos = {(i.categoria, i.nome_item): i for i in (itens_salvos or [])}
        itens: List[ItemChecklist] = []
        paginas: List[str] = []
        for categoria in template.categorias:
            if not categoria.itens:
                continue
            paginas.append(categoria.nome)
            for definicao in categoria.itens:
                novo = ItemChecklist.from_template(definicao, categoria.nome, len(itens))
                salvo = salvos.get((categoria.nome, definicao.nome))
                if salvo:
                    novo = replace(
                        novo, status=salvo.status, observacoes=salvo.observacoes,
                        fotos=salvo.fotos, valor=salvo.valor,
                    )
                itens.append(novo)

        return replace(
            self,
            template=template,
            template_id=_str_or_none(template.id) or self.template_id,
            itens=tuple(itens),
            paginas=tuple(paginas),
            pagina=0,
            erro=None,
        )

    def missing_context(self) -> List[str]:
        missing = [name for name in CONTEXT_FIELDS if getattr(self, name) is None]
        if self.template is None:
            missing.append("template_id")
        return missing

    # --- navigation -----------------------------------------------------

    def advance(self) -> 'ChecklistSession':
        if self.etapa == Etapa.CONTEXTO:
            missing = self.missing_context()
            if missing:
                raise ValidationError("Preencha os campos obrigatórios: " + ", ".join(missing), missing[0])
            return replace(self, etapa=Etapa.INSPECAO, pagina=0, erro=None)

        if self.etapa == Etapa.INSPECAO:
            validate_itens(self.itens_da_pagina())
            if self.pagina + 1 < len(self.paginas):
                return replace(self, pagina=self.pagina + 1, erro=None)
            return replace(self, etapa=Etapa.FINALIZACAO, erro=None)

        raise BusinessRuleViolationError(
            "SESSION_STEP", "Nesta etapa o checklist só avança pelo envio das credenciais"
        )

    def back(self) -> 'ChecklistSession':
        if self.etapa == Etapa.INSPECAO:
            if self.pagina == 0:
                return replace(self, etapa=Etapa.CONTEXTO, erro=None)
            return replace(self, pagina=self.pagina - 1, erro=None)
        if self.etapa == Etapa.FINALIZACAO:
            return replace(self, etapa=Etapa.INSPECAO, pagina=len(self.paginas) - 1, senha="", erro=None)
        return self

    @property
    def pagina_atual(self) -> Optional[str]:
        if self.etapa != Etapa.INSPECAO or not self.paginas:
            return None
        return self.paginas[self.pagina]

    def itens_da_pagina(self) -> List[ItemChecklist]:
        return self.itens_da_categoria(self.pagina_atual)

    def itens_da_categoria(self, categoria: Optional[str]) -> List[ItemChecklist]:
        return [item for item in self.itens if item.categoria == categoria]

    # --- step 2: items --------------------------------------------------

    def set_item_status(self, index: int, status) -> 'ChecklistSession':
        return self._with_item(index, lambda item: item.with_status(ItemStatus(status)))

    def set_item_observacoes(self, index: int, texto: str) -> 'ChecklistSession':
        return self._with_item(index, lambda item: item.with_observacoes(texto))

    def set_item_valor(self, index: int, valor) -> 'ChecklistSession':
        return self._with_item(index, lambda item: item.with_valor(valor))

    def add_item_fotos(self, index: int, fotos: Iterable[Foto]) -> 'ChecklistSession':
        fotos = tuple(fotos)
        return self._with_item(index, lambda item: item.with_fotos_added(fotos))

    def remove_item_foto(self, index: int, foto_index: int) -> 'ChecklistSession':
        return self._with_item(index, lambda item: item.with_foto_removed(foto_index))

    def _with_item(self, index: int, change) -> 'ChecklistSession':
        self._require(Etapa.INSPECAO)
        if not 0 <= index < len(self.itens):
            raise ValidationError("Item não encontrado", "itens")
        itens = list(self.itens)
        itens[index] = change(itens[index])
        return replace(self, itens=tuple(itens), erro=None)

    # --- step 3: credentials and submit outcome -------------------------

    def with_observacoes_gerais(self, texto: str) -> 'ChecklistSession':
        return replace(self, observacoes_gerais=texto or "")

    def with_credentials(self, usuario: str, senha: str) -> 'ChecklistSession':
        self._require(Etapa.FINALIZACAO)
        return replace(self, usuario_autenticacao=(usuario or "").strip(), senha=senha or "", erro=None)

    def ensure_ready_to_submit(self) -> None:
        self._require(Etapa.FINALIZACAO)
        if not self.usuario_autenticacao or not self.senha:
            raise ValidationError("Informe usuário e senha para finalizar", "usuario_autenticacao")
        validate_itens(self.itens)

    def on_auth_failure(self, message: str) -> 'ChecklistSession':
        """Only the password is cleared; everything else stays for a retry."""
        return replace(self, etapa=Etapa.FINALIZACAO, senha="", erro=message)

    def on_submit_error(self, message: str) -> 'ChecklistSession':
        return replace(self, erro=message)

    def with_checklist_id(self, checklist_id) -> 'ChecklistSession':
        return replace(self, checklist_id=_str_or_none(checklist_id))

    def on_finalized(self) -> 'ChecklistSession':
        return replace(self, etapa=Etapa.FINALIZADO, senha="", erro=None)

    def to_payload(self) -> Dict[str, Any]:
        """Create/update request body for the checklist."""
        return {
            "viatura_id": self.viatura_id,
            "template_id": self.template_id,
            "solicitacao_id": self.solicitacao_id,
            "km_inicial": int(self.km_inicial) if self.km_inicial is not None else None,
            "combustivel_percentual": (
                int(self.combustivel_percentual) if self.combustivel_percentual is not None else None
            ),
            "ala_servico": self.ala_servico.value if self.ala_servico else None,
            "tipo_checklist": self.tipo_checklist.value if self.tipo_checklist else None,
            "observacoes_gerais": self.observacoes_gerais,
            "itens": [item.to_payload() for item in self.itens],
        }

    def _require(self, etapa: Etapa) -> None:
        if self.etapa != etapa:
            raise BusinessRuleViolationError(
                "SESSION_STEP", f"Operação não permitida na etapa '{self.etapa.value}'"
            )


def _str_or_none(value) -> Optional[str]:
    return str(value) if value not in (None, "") else None
