from datetime import date, datetime
from typing import Optional, List
import uuid

from flask_login import UserMixin
from sqlalchemy import (
    JSON, TIMESTAMP, Boolean, CheckConstraint, Date, Enum as SAEnum, ForeignKey, Index,
    Integer, String, Text, Uuid, text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .domain.entities import (
    AlaServico, ChecklistStatus, ItemStatus, Perfil, SituacaoChecklist, SolicitacaoStatus,
    TipoChecklist, TipoItem,
)


# 1. Declaração Base
class Base(DeclarativeBase):
    pass


def _enum(enum_cls, length: int = 40):
    """Enum columns store the value ('em_andamento', 'Diário'), not the member name."""
    return SAEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=length,
        validate_strings=True,
    )


def _utcnow() -> datetime:
    return datetime.utcnow()


# 2. Tabelas
class AppConfig(Base):
    """Chave/valor editável em produção; lido por config_helper.get_config."""
    __tablename__ = "app_config"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)


class Unidade(Base):
    __tablename__ = "unidades"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    sigla: Mapped[Optional[str]] = mapped_column(String(20))
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)

    usuarios: Mapped[List["Usuario"]] = relationship(back_populates="unidade")
    viaturas: Mapped[List["Viatura"]] = relationship(back_populates="unidade")


class Usuario(UserMixin, Base):
    __tablename__ = "usuarios"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    matricula: Mapped[Optional[str]] = mapped_column(String(50))
    senha_hash: Mapped[Optional[str]] = mapped_column(String(255))
    perfil: Mapped[Perfil] = mapped_column(_enum(Perfil), nullable=False, default=Perfil.OPERADOR)
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)
    unidade_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("unidades.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)

    unidade: Mapped[Optional["Unidade"]] = relationship(back_populates="usuarios")

    # Flask-Login: usuários inativos não autenticam
    @property
    def is_active(self) -> bool:
        return bool(self.ativo)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "nome": self.nome,
            "email": self.email,
            "matricula": self.matricula,
            "perfil": self.perfil.value,
            "unidade_id": str(self.unidade_id) if self.unidade_id else None,
        }


class Viatura(Base):
    __tablename__ = "viaturas"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unidade_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("unidades.id"), nullable=False, index=True)
    prefixo: Mapped[str] = mapped_column(String(50), nullable=False)
    modelo: Mapped[Optional[str]] = mapped_column(String(100))
    placa: Mapped[Optional[str]] = mapped_column(String(20))
    tipo: Mapped[Optional[str]] = mapped_column(String(50))  # ABT, UR, ASE...
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)

    unidade: Mapped["Unidade"] = relationship(back_populates="viaturas")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "prefixo": self.prefixo,
            "modelo": self.modelo,
            "placa": self.placa,
            "tipo": self.tipo,
            "ativo": self.ativo,
        }


class ChecklistTemplate(Base):
    __tablename__ = "checklist_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unidade_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("unidades.id"), nullable=True, index=True)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    tipo_viatura: Mapped[Optional[str]] = mapped_column(String(50))
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)

    categorias: Mapped[List["TemplateCategoria"]] = relationship(
        back_populates="template", cascade="all, delete-orphan", order_by="TemplateCategoria.ordem"
    )

    def to_dict(self, with_itens: bool = True) -> dict:
        data = {
            "id": str(self.id),
            "nome": self.nome,
            "tipo_viatura": self.tipo_viatura,
            "ativo": self.ativo,
        }
        if with_itens:
            data["categorias"] = [c.to_dict() for c in self.categorias]
        return data


class TemplateCategoria(Base):
    __tablename__ = "checklist_template_categorias"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    template_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("checklist_templates.id"), nullable=False)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    ordem: Mapped[int] = mapped_column(Integer, default=0)

    template: Mapped["ChecklistTemplate"] = relationship(back_populates="categorias")
    itens: Mapped[List["TemplateItem"]] = relationship(
        back_populates="categoria", cascade="all, delete-orphan", order_by="TemplateItem.ordem"
    )

    def to_dict(self) -> dict:
        return {"nome": self.nome, "ordem": self.ordem, "itens": [i.to_dict() for i in self.itens]}


class TemplateItem(Base):
    __tablename__ = "checklist_template_itens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    categoria_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("checklist_template_categorias.id"), nullable=False)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    tipo: Mapped[TipoItem] = mapped_column(_enum(TipoItem), default=TipoItem.CHECKBOX)
    obrigatorio: Mapped[bool] = mapped_column(Boolean, default=False)
    imagem_url: Mapped[Optional[str]] = mapped_column(String(500))
    ordem: Mapped[int] = mapped_column(Integer, default=0)

    categoria: Mapped["TemplateCategoria"] = relationship(back_populates="itens")

    def to_dict(self) -> dict:
        return {
            "nome": self.nome,
            "tipo": self.tipo.value,
            "obrigatorio": self.obrigatorio,
            "imagem_url": self.imagem_url,
            "ordem": self.ordem,
        }


class ChecklistAutomacao(Base):
    __tablename__ = "checklist_automacoes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unidade_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("unidades.id"), nullable=False, index=True)
    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    ativo: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    viatura_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("viaturas.id"), nullable=True)
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("checklist_templates.id"), nullable=True)
    horario: Mapped[Optional[str]] = mapped_column(String(8))  # "HH:MM"
    dias_semana: Mapped[Optional[list]] = mapped_column(JSON, default=list)  # 0=segunda ... 6=domingo
    ala_servico: Mapped[Optional[AlaServico]] = mapped_column(_enum(AlaServico), nullable=True)
    tipo_checklist: Mapped[TipoChecklist] = mapped_column(_enum(TipoChecklist), default=TipoChecklist.DIARIO)

    criado_por_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("usuarios.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    viatura: Mapped[Optional["Viatura"]] = relationship()
    template: Mapped[Optional["ChecklistTemplate"]] = relationship()

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "nome": self.nome,
            "ativo": self.ativo,
            "viatura_id": str(self.viatura_id) if self.viatura_id else None,
            "viatura_prefixo": self.viatura.prefixo if self.viatura else None,
            "template_id": str(self.template_id) if self.template_id else None,
            "horario": self.horario,
            "dias_semana": list(self.dias_semana or []),
            "ala_servico": self.ala_servico.value if self.ala_servico else None,
            "tipo_checklist": self.tipo_checklist.value if self.tipo_checklist else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ChecklistSolicitacao(Base):
    __tablename__ = "checklist_solicitacoes"
    __table_args__ = (
        # No máximo uma solicitação não cancelada por ocorrência (regra, data)
        Index(
            "uq_solicitacao_ocorrencia",
            "automacao_id", "data_referencia",
            unique=True,
            postgresql_where=text("status <> 'cancelada' AND automacao_id IS NOT NULL"),
            sqlite_where=text("status <> 'cancelada' AND automacao_id IS NOT NULL"),
        ),
        Index("ix_solicitacao_unidade_status", "unidade_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unidade_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("unidades.id"), nullable=False)
    viatura_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("viaturas.id"), nullable=False)
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("checklist_templates.id"), nullable=True)
    automacao_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("checklist_automacoes.id", ondelete="SET NULL"), nullable=True
    )
    tipo_checklist: Mapped[TipoChecklist] = mapped_column(_enum(TipoChecklist), default=TipoChecklist.DIARIO)
    ala_servico: Mapped[Optional[AlaServico]] = mapped_column(_enum(AlaServico), nullable=True)

    data_prevista: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), nullable=False)
    data_referencia: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[SolicitacaoStatus] = mapped_column(
        _enum(SolicitacaoStatus), default=SolicitacaoStatus.PENDENTE, nullable=False
    )

    # Checklist que atendeu (sem FK: ChecklistViatura já aponta para cá)
    checklist_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    atendida_em: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    motivo_cancelamento: Mapped[Optional[str]] = mapped_column(Text)
    cancelada_em: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    cancelada_por_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("usuarios.id"), nullable=True)

    # Marcador informativo, não é um status
    iniciada_em: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    iniciada_por_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("usuarios.id"), nullable=True)

    criada_por_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("usuarios.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    viatura: Mapped["Viatura"] = relationship()
    automacao: Mapped[Optional["ChecklistAutomacao"]] = relationship()

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "viatura_id": str(self.viatura_id),
            "viatura_prefixo": self.viatura.prefixo if self.viatura else None,
            "template_id": str(self.template_id) if self.template_id else None,
            "automacao_id": str(self.automacao_id) if self.automacao_id else None,
            "tipo_checklist": self.tipo_checklist.value,
            "ala_servico": self.ala_servico.value if self.ala_servico else None,
            "data_prevista": self.data_prevista.isoformat(),
            "data_referencia": self.data_referencia.isoformat(),
            "status": self.status.value,
            "status_label": self.status.label_pt,
            "checklist_id": str(self.checklist_id) if self.checklist_id else None,
            "atendida_em": self.atendida_em.isoformat() if self.atendida_em else None,
            "motivo_cancelamento": self.motivo_cancelamento,
            "cancelada_em": self.cancelada_em.isoformat() if self.cancelada_em else None,
            "iniciada_em": self.iniciada_em.isoformat() if self.iniciada_em else None,
        }


class ChecklistViatura(Base):
    __tablename__ = "checklist_viaturas"
    __table_args__ = (
        CheckConstraint(
            "combustivel_percentual >= 0 AND combustivel_percentual <= 100",
            name="ck_checklist_combustivel_percentual",
        ),
        CheckConstraint("km_inicial >= 0", name="ck_checklist_km_inicial"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unidade_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("unidades.id"), nullable=False, index=True)
    viatura_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("viaturas.id"), nullable=False)
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("checklist_templates.id"), nullable=True)
    usuario_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("usuarios.id"), nullable=True)
    solicitacao_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("checklist_solicitacoes.id", ondelete="SET NULL"), nullable=True, index=True
    )

    km_inicial: Mapped[int] = mapped_column(Integer, nullable=False)
    combustivel_percentual: Mapped[int] = mapped_column(Integer, nullable=False)
    ala_servico: Mapped[AlaServico] = mapped_column(_enum(AlaServico), nullable=False)
    tipo_checklist: Mapped[TipoChecklist] = mapped_column(_enum(TipoChecklist), default=TipoChecklist.DIARIO)
    data_hora: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)

    status: Mapped[ChecklistStatus] = mapped_column(
        _enum(ChecklistStatus), default=ChecklistStatus.EM_ANDAMENTO, nullable=False, index=True
    )
    situacao: Mapped[SituacaoChecklist] = mapped_column(
        _enum(SituacaoChecklist), default=SituacaoChecklist.SEM_ALTERACAO
    )
    observacoes_gerais: Mapped[Optional[str]] = mapped_column(Text)

    usuario_autenticacao: Mapped[Optional[str]] = mapped_column(String(200))
    finalizado_em: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    cancelamento_motivo: Mapped[Optional[str]] = mapped_column(Text)
    cancelado_em: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    viatura: Mapped["Viatura"] = relationship()
    usuario: Mapped[Optional["Usuario"]] = relationship()
    itens: Mapped[List["ChecklistItem"]] = relationship(
        back_populates="checklist", cascade="all, delete-orphan", order_by="ChecklistItem.ordem"
    )

    def to_dict(self, with_itens: bool = False) -> dict:
        data = {
            "id": str(self.id),
            "viatura_id": str(self.viatura_id),
            "viatura_prefixo": self.viatura.prefixo if self.viatura else None,
            "template_id": str(self.template_id) if self.template_id else None,
            "solicitacao_id": str(self.solicitacao_id) if self.solicitacao_id else None,
            "usuario_nome": self.usuario.nome if self.usuario else None,
            "km_inicial": self.km_inicial,
            "combustivel_percentual": self.combustivel_percentual,
            "ala_servico": self.ala_servico.value,
            "tipo_checklist": self.tipo_checklist.value,
            "data_hora": self.data_hora.isoformat() if self.data_hora else None,
            "status": self.status.value,
            "situacao": self.situacao.value if self.situacao else None,
            "observacoes_gerais": self.observacoes_gerais,
            "usuario_autenticacao": self.usuario_autenticacao,
            "finalizado_em": self.finalizado_em.isoformat() if self.finalizado_em else None,
            "cancelamento_motivo": self.cancelamento_motivo,
            "cancelado_em": self.cancelado_em.isoformat() if self.cancelado_em else None,
        }
        if with_itens:
            data["itens"] = [i.to_dict() for i in self.itens]
        return data


class ChecklistItem(Base):
    __tablename__ = "checklist_itens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    checklist_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("checklist_viaturas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    nome_item: Mapped[str] = mapped_column(String(200), nullable=False)
    categoria: Mapped[Optional[str]] = mapped_column(String(200))
    tipo: Mapped[Optional[TipoItem]] = mapped_column(_enum(TipoItem), nullable=True)
    obrigatorio: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[ItemStatus] = mapped_column(_enum(ItemStatus), default=ItemStatus.OK, nullable=False)
    observacoes: Mapped[Optional[str]] = mapped_column(Text)
    valor: Mapped[Optional[str]] = mapped_column(String(500))
    fotos: Mapped[list] = mapped_column(JSON, default=list)
    ordem: Mapped[int] = mapped_column(Integer, default=0)

    checklist: Mapped["ChecklistViatura"] = relationship(back_populates="itens")

    def to_dict(self) -> dict:
        return {
            "nome_item": self.nome_item,
            "categoria": self.categoria,
            "tipo": self.tipo.value if self.tipo else None,
            "obrigatorio": self.obrigatorio,
            "status": self.status.value,
            "observacoes": self.observacoes or "",
            "valor": self.valor,
            "fotos": list(self.fotos or []),
            "ordem": self.ordem,
        }
