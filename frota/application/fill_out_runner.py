"""
Checklist fill-out runner - drives a ChecklistSession against a backend.

The backend is either the HTTP client (FrotaApiClient) or ServiceBackend,
which calls the application services in-process. Both expose:

    get_template(template_id) -> dict
    start_solicitation(solicitacao_id) -> dict (prefill)
    get_checklist(checklist_id) -> dict
    upload_photos(files) -> list[dict]
    validate_credentials(usuario, senha) -> dict
    create_checklist(payload) -> dict
    update_checklist(checklist_id, payload) -> dict
    finalize_checklist(checklist_id, usuario, senha) -> dict
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from ..domain.checklist_session import ChecklistSession, Etapa
from ..domain.entities import ItemChecklist, TemplateChecklist
from ..domain.exceptions import (
    AuthenticationError, ChecklistAlreadyFinalizedError, DomainError, NetworkError, ValidationError,
)
from ..domain.value_objects import Foto
from .checklist_service import ChecklistService
from .credential_gate import CredentialGate
from .solicitacao_service import SolicitacaoService

logger = logging.getLogger(__name__)

NETWORK_MESSAGE = "Sem conexão com o servidor. Verifique a rede e tente novamente."
GENERIC_MESSAGE = "Não foi possível finalizar o checklist. Tente novamente."


@dataclass
class SubmitResult:
    """Outcome of a submit attempt."""
    success: bool
    message: str
    checklist_id: Optional[str] = None
    auth_failed: bool = False
    ignored: bool = False


class ChecklistFillOut:
    """
    Holds the current session for one operator and performs submits.

    Only one submit may be in flight: a second call while the first is still
    running returns immediately with `ignored=True` and touches nothing.
    """

    def __init__(self, backend, session: Optional[ChecklistSession] = None):
        self._backend = backend
        self.session = session or ChecklistSession.ad_hoc()
        self._submit_lock = threading.Lock()

    @classmethod
    def from_solicitacao(cls, backend, solicitacao_id) -> 'ChecklistFillOut':
        """Start from a pending solicitation; loads its template when it has one."""
        prefill = backend.start_solicitation(solicitacao_id)
        runner = cls(backend, ChecklistSession.from_prefill(prefill))
        if runner.session.template_id:
            runner.load_template()
        return runner

    @property
    def submitting(self) -> bool:
        return self._submit_lock.locked()

    def apply(self, transition, *args, **kwargs) -> ChecklistSession:
        """Run a ChecklistSession transition by name and keep the result."""
        self.session = getattr(self.session, transition)(*args, **kwargs)
        return self.session

    def load_template(self, template_id=None) -> ChecklistSession:
        """
        Fetch and load the template. A checklist already in progress for this
        session (continuation) contributes its saved context and items.
        """
        template_id = template_id or self.session.template_id
        if not template_id:
            raise ValidationError("Selecione um template", "template_id")
        session = self.session
        if str(template_id) != session.template_id:
            session = session.set_context(template_id=template_id)
        template = TemplateChecklist.from_dict(self._backend.get_template(template_id))

        salvos = None
        if session.checklist_id:
            salvo = self._backend.get_checklist(session.checklist_id)
            session = session.set_context(
                km_inicial=salvo.get("km_inicial"),
                combustivel_percentual=salvo.get("combustivel_percentual"),
                ala_servico=salvo.get("ala_servico"),
                observacoes_gerais=salvo.get("observacoes_gerais"),
            )
            salvos = [ItemChecklist.from_payload(i, n) for n, i in enumerate(salvo.get("itens") or [])]

        self.session = session.with_template(template, salvos)
        return self.session

    def attach_photos(self, index: int, files) -> ChecklistSession:
        """Upload through the external collaborator and keep only the returned metadata."""
        metadata = self._backend.upload_photos(files)
        return self.apply("add_item_fotos", index, [Foto.from_dict(m) for m in metadata])

    def submit(self, usuario: str, senha: str) -> SubmitResult:
        """
        Gate, create-or-update, finalize.

        On failure the session keeps everything (including a checklist id
        created along the way, so the retry updates instead of duplicating);
        an authentication failure clears only the password.
        """
        if not self._submit_lock.acquire(blocking=False):
            logger.info("Envio ignorado: outro envio em andamento")
            return SubmitResult(success=False, message="Envio já em andamento", ignored=True)

        try:
            if self.session.etapa == Etapa.FINALIZADO:
                return SubmitResult(True, "Checklist já finalizado", checklist_id=self.session.checklist_id)

            session = self.session.with_credentials(usuario, senha)
            try:
                session.ensure_ready_to_submit()
            except ValidationError as e:
                self.session = session.on_submit_error(e.message)
                return SubmitResult(False, e.message)

            try:
                self._backend.validate_credentials(session.usuario_autenticacao, session.senha)

                payload = session.to_payload()
                try:
                    if session.checklist_id:
                        self._backend.update_checklist(session.checklist_id, payload)
                    else:
                        created = self._backend.create_checklist(payload)
                        session = session.with_checklist_id(created["id"])
                    self._backend.finalize_checklist(session.checklist_id, session.usuario_autenticacao, session.senha)
                except ChecklistAlreadyFinalizedError:
                    # Tentativa anterior finalizou, mas a resposta se perdeu
                    logger.info(f"Checklist {session.checklist_id} já estava finalizado")

            except AuthenticationError as e:
                self.session = session.on_auth_failure(e.message)
                return SubmitResult(False, e.message, checklist_id=session.checklist_id, auth_failed=True)
            except NetworkError:
                self.session = session.on_submit_error(NETWORK_MESSAGE)
                return SubmitResult(False, NETWORK_MESSAGE, checklist_id=session.checklist_id)
            except DomainError as e:
                logger.warning(f"Falha ao finalizar checklist: {e.code} {e.message}")
                self.session = session.on_submit_error(GENERIC_MESSAGE)
                return SubmitResult(False, GENERIC_MESSAGE, checklist_id=session.checklist_id)
            except Exception:
                logger.exception("Erro inesperado ao finalizar checklist")
                self.session = session.on_submit_error(GENERIC_MESSAGE)
                return SubmitResult(False, GENERIC_MESSAGE, checklist_id=session.checklist_id)

            self.session = session.on_finalized()
            logger.info(f"Checklist {session.checklist_id} finalizado")
            return SubmitResult(True, "Checklist finalizado com sucesso!", checklist_id=session.checklist_id)
        finally:
            self._submit_lock.release()

    def reset(self) -> ChecklistSession:
        """
        Discard the in-memory session. Nothing persisted is touched: the
        solicitation stays pending and an in-progress checklist is offered
        again by start_solicitation.
        """
        self.session = ChecklistSession.ad_hoc()
        return self.session


class ServiceBackend:
    """In-process backend over the application services, for one operator and unit."""

    def __init__(self, uow, usuario, unidade_id, uploader=None):
        self._uow = uow
        self._usuario = usuario
        self._unidade_id = unidade_id
        self._uploader = uploader
        self._checklists = ChecklistService(uow)
        self._solicitacoes = SolicitacaoService(uow)
        self._gate = CredentialGate(uow)

    def get_template(self, template_id):
        return self._checklists.get_template(template_id, self._unidade_id).to_dict()

    def start_solicitation(self, solicitacao_id):
        return self._solicitacoes.start(solicitacao_id, self._usuario, self._unidade_id)

    def get_checklist(self, checklist_id):
        return self._checklists.get(checklist_id, self._unidade_id).to_dict(with_itens=True)

    def upload_photos(self, files):
        if self._uploader is None:
            raise ValidationError("Envio de fotos indisponível", "fotos")
        return self._uploader(files)

    def validate_credentials(self, usuario, senha):
        return self._gate.validate(usuario, senha).to_dict()

    def create_checklist(self, payload):
        return self._checklists.create(payload, self._usuario, self._unidade_id).to_dict()

    def update_checklist(self, checklist_id, payload):
        return self._checklists.update(checklist_id, payload, self._usuario, self._unidade_id).to_dict()

    def finalize_checklist(self, checklist_id, usuario, senha):
        result = self._checklists.finalize(checklist_id, usuario, senha, self._usuario, self._unidade_id)
        return {**result["checklist"].to_dict(), "solicitacao_atendida": result["solicitacao_atendida"]}
