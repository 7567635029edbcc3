"""Domain error taxonomy.

Every error carries the HTTP status it maps to and a message written for
direct display to the end user. The API layer renders them as
``{"error": message}``; anything not derived from DomainError is left to
propagate as a 500.
"""

from __future__ import annotations


class DomainError(Exception):
    status_code = 500
    default_message = "Erro interno"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    default_message = "Dados inválidos"


class SelfActionError(ValidationError):
    default_message = "Não é possível alterar seu próprio membership"


class AuthenticationError(DomainError):
    status_code = 401
    default_message = "Não autenticado"


class AuthorizationError(DomainError):
    status_code = 403
    default_message = "Sem acesso"


class PlanLimitError(AuthorizationError):
    default_message = (
        "Seu plano atual não permite criar organizações. "
        "Faça upgrade para continuar."
    )


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Não encontrado"


class InvalidCodeError(NotFoundError):
    default_message = "Código inválido ou expirado"


class ConflictError(DomainError):
    status_code = 409
    default_message = "Conflito"


class AlreadyMemberError(ConflictError):
    default_message = "Você já é membro desta organização"


class DuplicateRequestError(ConflictError):
    default_message = "Você já tem uma solicitação pendente para esta organização"


class LastOwnerError(ConflictError):
    default_message = "A organização precisa manter ao menos um proprietário ativo"
