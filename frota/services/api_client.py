"""
HTTP client for the checklist API, used by the operator-side wizard.

Error responses are mapped back to the domain exception taxonomy so the
fill-out runner handles a remote backend exactly like the in-process one.
"""
import logging
from typing import Any, Dict, Iterable, Optional

import requests

from ..config import config
from ..domain.exceptions import (
    AuthenticationError, BusinessRuleViolationError, ChecklistAlreadyFinalizedError, ConflictError,
    DomainError, NetworkError, NotFoundError, PermissionDeniedError, ValidationError,
)

logger = logging.getLogger(__name__)


class FrotaApiClient:
    """
    Usage:
        client = FrotaApiClient("https://frota.example.com")
        client.login("operador@cbm.gov.br", "senha")
        prefill = client.start_solicitation(solicitacao_id)
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 unidade_id: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout or config.API_TIMEOUT_SECONDS
        self._http = session or requests.Session()
        self._http.headers.update({"Accept": "application/json"})
        if unidade_id:
            self._http.headers["X-Unidade-ID"] = str(unidade_id)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self._http.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning(f"Falha de rede em {method} {path}: {e}")
            raise NetworkError()

        if response.status_code >= 400:
            raise self._error_from(response)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_from(response) -> DomainError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("user_msg") or body.get("error") or f"Erro HTTP {response.status_code}"
        code = body.get("code") or ""
        status = response.status_code

        if status == 400:
            return ValidationError(body.get("error") or message, body.get("field"))
        if status == 401:
            return AuthenticationError(body.get("error") or message)
        if status == 403:
            return PermissionDeniedError(body.get("error") or message)
        if status == 404:
            error = NotFoundError("Recurso")
            error.message = body.get("error") or error.message
            return error
        if status == 409:
            if code == "ALREADY_FINALIZED":
                error = ChecklistAlreadyFinalizedError(body.get("checklist_id") or "")
                error.message = body.get("error") or error.message
                return error
            return ConflictError(body.get("error") or message, code or "CONFLICT")
        if status == 422:
            rule = code[len("BUSINESS_RULE_"):] if code.startswith("BUSINESS_RULE_") else (code or "UNKNOWN")
            return BusinessRuleViolationError(rule, body.get("error") or message)
        return DomainError(message, code or f"HTTP_{status}")

    # --- auth -----------------------------------------------------------------

    def login(self, email: str, senha: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", json={"email": email, "senha": senha})

    def logout(self) -> None:
        self._request("POST", "/auth/logout")

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    # --- lookups --------------------------------------------------------------

    def list_templates(self, tipo_viatura: Optional[str] = None):
        params = {"tipo_viatura": tipo_viatura} if tipo_viatura else None
        return self._request("GET", "/api/checklist/templates", params=params)["templates"]

    def get_template(self, template_id) -> Dict[str, Any]:
        return self._request("GET", f"/api/checklist/templates/{template_id}")

    def list_viaturas(self, **filtros):
        return self._request("GET", "/api/checklist/frota/viaturas", params=filtros or None)["viaturas"]

    def upload_photos(self, files: Iterable) -> list:
        """`files` are (filename, fileobj, content_type) tuples; only the returned metadata is kept."""
        multipart = [("fotos", f) for f in files]
        result = self._request("POST", "/api/upload/fotos", files=multipart)
        return result.get("fotos", []) if isinstance(result, dict) else result

    # --- credential gate ------------------------------------------------------

    def validate_credentials(self, usuario: str, senha: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/api/checklist/validar-credenciais",
            json={"usuario": usuario, "senha": senha},
        )["usuario"]

    # --- checklists -----------------------------------------------------------

    def list_checklists(self, **filtros) -> Dict[str, Any]:
        return self._request("GET", "/api/checklist/viaturas", params=filtros or None)

    def get_checklist(self, checklist_id) -> Dict[str, Any]:
        return self._request("GET", f"/api/checklist/viaturas/{checklist_id}")

    def create_checklist(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/checklist/viaturas", json=payload)

    def update_checklist(self, checklist_id, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/api/checklist/viaturas/{checklist_id}", json=payload)

    def finalize_checklist(self, checklist_id, usuario: str, senha: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/api/checklist/viaturas/{checklist_id}/finalizar",
            json={"usuario_autenticacao": usuario, "senha": senha},
        )

    def cancel_checklist(self, checklist_id, motivo: str) -> Dict[str, Any]:
        return self._request("PUT", f"/api/checklist/viaturas/{checklist_id}/cancelar", json={"motivo": motivo})

    def delete_checklist(self, checklist_id) -> None:
        self._request("DELETE", f"/api/checklist/viaturas/{checklist_id}")

    # --- solicitations --------------------------------------------------------

    def list_solicitacoes(self, **filtros):
        return self._request("GET", "/api/checklist/solicitacoes", params=filtros or None)["solicitacoes"]

    def create_solicitacao(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/checklist/solicitacoes", json=payload)

    def start_solicitation(self, solicitacao_id) -> Dict[str, Any]:
        return self._request("POST", f"/api/checklist/solicitacoes/{solicitacao_id}/iniciar")

    def cancel_solicitacao(self, solicitacao_id, motivo: str) -> Dict[str, Any]:
        return self._request(
            "PUT", f"/api/checklist/solicitacoes/{solicitacao_id}/cancelar", json={"motivo": motivo}
        )

    def delete_solicitacao(self, solicitacao_id) -> None:
        self._request("DELETE", f"/api/checklist/solicitacoes/{solicitacao_id}")

    # --- automation rules -----------------------------------------------------

    def list_automacoes(self):
        return self._request("GET", "/api/checklist/automacoes")["automacoes"]

    def create_automacao(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/checklist/automacoes", json=payload)

    def update_automacao(self, automacao_id, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/api/checklist/automacoes/{automacao_id}", json=payload)

    def toggle_automacao(self, automacao_id, ativo: Optional[bool] = None) -> Dict[str, Any]:
        body = {"ativo": ativo} if ativo is not None else {}
        return self._request("PUT", f"/api/checklist/automacoes/{automacao_id}/ativar", json=body)

    def delete_automacao(self, automacao_id) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/checklist/automacoes/{automacao_id}")

    def generate_now(self, automacao_id) -> Dict[str, Any]:
        return self._request("POST", f"/api/checklist/automacoes/{automacao_id}/gerar-solicitacoes")
