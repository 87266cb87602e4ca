"""
Checklist entities - vehicle checklists, their items and the template structure
they are filled from.
"""

import re
import unicodedata
from abc import ABC
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Tuple

from ..exceptions import InvalidStatusTransitionError, ValidationError
from ..value_objects import Foto


class ChecklistStatus(str, Enum):
    """Checklist status workflow."""
    EM_ANDAMENTO = "em_andamento"
    FINALIZADO = "finalizado"
    CANCELADO = "cancelado"

    @property
    def label_pt(self) -> str:
        labels = {
            self.EM_ANDAMENTO: "Em andamento",
            self.FINALIZADO: "Finalizado",
            self.CANCELADO: "Cancelado",
        }
        return labels[self]

    @property
    def is_terminal(self) -> bool:
        return self == self.CANCELADO

    @property
    def is_editable(self) -> bool:
        return self == self.EM_ANDAMENTO

    @property
    def can_transition_to(self) -> List['ChecklistStatus']:
        transitions = {
            self.EM_ANDAMENTO: [self.FINALIZADO, self.CANCELADO],
            self.FINALIZADO: [self.CANCELADO],
            self.CANCELADO: [],
        }
        return transitions.get(self, [])

    def ensure_can_transition_to(self, target: 'ChecklistStatus') -> None:
        if target not in self.can_transition_to:
            raise InvalidStatusTransitionError(self.value, target.value, entity_type="Checklist")


class ItemStatus(str, Enum):
    OK = "ok"
    COM_ALTERACAO = "com_alteracao"


class SituacaoChecklist(str, Enum):
    """Summary shown in listings: whether any item was reported with alteration."""
    SEM_ALTERACAO = "Sem Alteração"
    COM_ALTERACAO = "Com Alteração"

    @classmethod
    def from_statuses(cls, statuses: Iterable) -> 'SituacaoChecklist':
        if any(ItemStatus(s) == ItemStatus.COM_ALTERACAO for s in statuses):
            return cls.COM_ALTERACAO
        return cls.SEM_ALTERACAO


class AlaServico(str, Enum):
    """Service shift (ala de serviço)."""
    ALPHA = "Alpha"
    BRAVO = "Bravo"
    CHARLIE = "Charlie"
    DELTA = "Delta"
    ADM = "ADM"

    @classmethod
    def parse(cls, raw: Any) -> 'AlaServico':
        """Accept the shift name in any casing or punctuation ('alpha', 'BRAVO.')."""
        cleaned = re.sub(r'[^a-zA-Z]', '', str(raw or '')).lower()
        for ala in cls:
            if ala.value.lower() == cleaned:
                return ala
        raise ValidationError(
            "Ala de serviço deve ser Alpha, Bravo, Charlie, Delta ou ADM", "ala_servico"
        )


class TipoChecklist(str, Enum):
    DIARIO = "Diário"
    SEMANAL = "Semanal"
    MENSAL = "Mensal"
    PRE_OPERACIONAL = "Pré-Operacional"
    POS_OPERACIONAL = "Pós-Operacional"
    MANUTENCAO_PREVENTIVA = "Manutenção Preventiva"
    INSPECAO_SEGURANCA = "Inspeção de Segurança"
    VISTORIA_TECNICA = "Vistoria Técnica"

    @classmethod
    def parse(cls, raw: Any) -> 'TipoChecklist':
        """Match the stored label ignoring accents, case and separators."""
        key = _normalize_label(raw)
        for tipo in cls:
            if _normalize_label(tipo.value) == key or tipo.name.lower() == key:
                return tipo
        raise ValidationError(f"Tipo de checklist inválido: {raw}", "tipo_checklist")


def _normalize_label(raw: Any) -> str:
    text = unicodedata.normalize("NFKD", str(raw or ""))
    text = "".join(c for c in text if not unicodedata.combining(c))
    return re.sub(r'[^a-z]', '', text.lower())


class TipoItem(str, Enum):
    CHECKBOX = "checkbox"
    TEXT = "text"
    NUMBER = "number"
    PHOTO = "photo"
    RATING = "rating"


# ---------------------------------------------------------------------------
# Template item variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TemplateItem(ABC):
    """
    One item definition of a checklist template.

    Each item type is its own class; `problems` holds the type-specific
    rules checked when the operator leaves the item's category.
    """
    nome: str
    obrigatorio: bool = False
    imagem_url: Optional[str] = None

    tipo: ClassVar[TipoItem]

    def problems(self, item: 'ItemChecklist') -> List[str]:
        return []

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'TemplateItem':
        nome = (data.get("nome") or data.get("name") or "").strip()
        if not nome:
            raise ValidationError("Nome do item do template é obrigatório", "itens")
        raw_tipo = data.get("tipo") or data.get("type") or TipoItem.CHECKBOX.value
        try:
            tipo = TipoItem(raw_tipo)
        except ValueError:
            raise ValidationError(f"Tipo de item inválido: {raw_tipo}", "tipo")
        item_cls = ITEM_TYPES[tipo]
        return item_cls(
            nome=nome,
            obrigatorio=bool(data.get("obrigatorio", data.get("required", False))),
            imagem_url=data.get("imagem_url") or data.get("imageUrl"),
        )


@dataclass(frozen=True)
class CheckboxItem(TemplateItem):
    tipo: ClassVar[TipoItem] = TipoItem.CHECKBOX


@dataclass(frozen=True)
class TextItem(TemplateItem):
    tipo: ClassVar[TipoItem] = TipoItem.TEXT

    def problems(self, item: 'ItemChecklist') -> List[str]:
        if self.obrigatorio and not (item.valor or "").strip():
            return [f"{self.nome}: informe o texto"]
        return []


@dataclass(frozen=True)
class NumberItem(TemplateItem):
    tipo: ClassVar[TipoItem] = TipoItem.NUMBER

    def problems(self, item: 'ItemChecklist') -> List[str]:
        valor = (item.valor or "").strip()
        if not valor:
            return [f"{self.nome}: informe o valor"] if self.obrigatorio else []
        try:
            float(valor.replace(",", "."))
        except ValueError:
            return [f"{self.nome}: valor deve ser numérico"]
        return []


@dataclass(frozen=True)
class PhotoItem(TemplateItem):
    tipo: ClassVar[TipoItem] = TipoItem.PHOTO

    def problems(self, item: 'ItemChecklist') -> List[str]:
        if self.obrigatorio and not item.fotos:
            return [f"{self.nome}: anexe ao menos uma foto"]
        return []


@dataclass(frozen=True)
class RatingItem(TemplateItem):
    tipo: ClassVar[TipoItem] = TipoItem.RATING
    MIN: ClassVar[int] = 1
    MAX: ClassVar[int] = 5

    def problems(self, item: 'ItemChecklist') -> List[str]:
        valor = (item.valor or "").strip()
        if not valor:
            return [f"{self.nome}: informe a avaliação"] if self.obrigatorio else []
        if not valor.isdigit() or not self.MIN <= int(valor) <= self.MAX:
            return [f"{self.nome}: avaliação deve ser de {self.MIN} a {self.MAX}"]
        return []


ITEM_TYPES = {
    item_cls.tipo: item_cls
    for item_cls in (CheckboxItem, TextItem, NumberItem, PhotoItem, RatingItem)
}


@dataclass(frozen=True)
class CategoriaTemplate:
    nome: str
    itens: Tuple[TemplateItem, ...] = ()


@dataclass(frozen=True)
class TemplateChecklist:
    """Full template structure: ordered categories of ordered items."""
    id: Any
    nome: str
    categorias: Tuple[CategoriaTemplate, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TemplateChecklist':
        """Build from the template lookup payload (Portuguese or English keys)."""
        categorias = []
        for cat in data.get("categorias") or data.get("categories") or []:
            itens = tuple(
                TemplateItem.from_dict(item)
                for item in (cat.get("itens") or cat.get("items") or [])
                if item
            )
            categorias.append(CategoriaTemplate(
                nome=cat.get("nome") or cat.get("name") or "Sem Categoria",
                itens=itens,
            ))
        return cls(
            id=data.get("id"),
            nome=data.get("nome") or data.get("name") or "",
            categorias=tuple(categorias),
        )

    @property
    def total_itens(self) -> int:
        return sum(len(c.itens) for c in self.categorias)


# ---------------------------------------------------------------------------
# Checklist items being inspected
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ItemChecklist:
    """
    State of one inspected item.

    The note is required while the status is `com_alteracao` and is cleared
    when the item reverts to `ok`.
    """
    nome_item: str
    categoria: Optional[str] = None
    status: ItemStatus = ItemStatus.OK
    observacoes: str = ""
    fotos: Tuple[Foto, ...] = ()
    ordem: int = 0
    valor: Optional[str] = None
    definicao: Optional[TemplateItem] = field(default=None, compare=False)

    @classmethod
    def from_template(cls, definicao: TemplateItem, categoria: str, ordem: int) -> 'ItemChecklist':
        return cls(nome_item=definicao.nome, categoria=categoria, ordem=ordem, definicao=definicao)

    @classmethod
    def from_payload(cls, data: Dict[str, Any], ordem: int = 0) -> 'ItemChecklist':
        """Parse one item of a create/update request."""
        if not isinstance(data, dict):
            raise ValidationError("Item do checklist inválido", "itens")
        nome = (data.get("nome_item") or "").strip()
        if not nome:
            raise ValidationError("Nome do item é obrigatório", "itens")
        try:
            status = ItemStatus(data.get("status") or ItemStatus.OK.value)
        except ValueError:
            raise ValidationError('Status deve ser "ok" ou "com_alteracao"', "itens")

        definicao = None
        if data.get("tipo"):
            definicao = TemplateItem.from_dict({
                "nome": nome,
                "tipo": data.get("tipo"),
                "obrigatorio": data.get("obrigatorio", False),
            })

        valor = data.get("valor")
        return cls(
            nome_item=nome,
            categoria=data.get("categoria") or None,
            status=status,
            observacoes=(data.get("observacoes") or "") if status == ItemStatus.COM_ALTERACAO else "",
            fotos=tuple(Foto.from_dict(f) for f in (data.get("fotos") or [])),
            ordem=data.get("ordem") if isinstance(data.get("ordem"), int) else ordem,
            valor=str(valor) if valor not in (None, "") else None,
            definicao=definicao,
        )

    @property
    def tipo(self) -> Optional[TipoItem]:
        return self.definicao.tipo if self.definicao else None

    @property
    def obrigatorio(self) -> bool:
        return bool(self.definicao and self.definicao.obrigatorio)

    def with_status(self, status: ItemStatus) -> 'ItemChecklist':
        status = ItemStatus(status)
        if status == ItemStatus.OK:
            return replace(self, status=status, observacoes="")
        return replace(self, status=status)

    def with_observacoes(self, texto: str) -> 'ItemChecklist':
        return replace(self, observacoes=texto or "")

    def with_valor(self, valor: Optional[str]) -> 'ItemChecklist':
        return replace(self, valor=None if valor in (None, "") else str(valor))

    def with_fotos_added(self, fotos: Iterable[Foto]) -> 'ItemChecklist':
        return replace(self, fotos=self.fotos + tuple(fotos))

    def with_foto_removed(self, index: int) -> 'ItemChecklist':
        if not 0 <= index < len(self.fotos):
            raise ValidationError("Foto não encontrada", "fotos")
        return replace(self, fotos=self.fotos[:index] + self.fotos[index + 1:])

    def problems(self) -> List[str]:
        """Everything preventing this item from being accepted."""
        problems = []
        if self.status == ItemStatus.COM_ALTERACAO and not self.observacoes.strip():
            problems.append(f"{self.nome_item}: descreva a alteração")
        if self.definicao:
            problems.extend(self.definicao.problems(self))
        return problems

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "nome_item": self.nome_item,
            "categoria": self.categoria,
            "status": self.status.value,
            "observacoes": self.observacoes,
            "fotos": [f.to_dict() for f in self.fotos],
            "ordem": self.ordem,
            "valor": self.valor,
        }
        if self.definicao:
            payload["tipo"] = self.definicao.tipo.value
            payload["obrigatorio"] = self.definicao.obrigatorio
        return payload


def validate_itens(itens: Iterable[ItemChecklist]) -> None:
    """Raise a single ValidationError listing every item problem."""
    problems = [p for item in itens for p in item.problems()]
    if problems:
        raise ValidationError("; ".join(problems), "itens")
