from fastapi import HTTPException, status


class EntityNotFoundError(HTTPException):
    """Record not found by id or uuid (404)."""

    def __init__(self, model_name: str, key):
        self.model_name = model_name
        self.key = key
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{model_name} {key} no encontrado",
        )


class StaleWriteError(HTTPException):
    """Optimistic lock failure: the record changed since the client read it (409)."""

    def __init__(
        self,
        detail: str = "El registro ha sido modificado por otro usuario. "
        "Por favor, recarga la página e intenta nuevamente.",
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class DomainActionError(HTTPException):
    """Business rule refusal with a user-facing message (422)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


class TransactionRequiredError(RuntimeError):
    """Pessimistic lock requested outside of a service transaction."""

    def __init__(self, detail: str = "Pessimistic locks require an open transaction"):
        super().__init__(detail)


class InvalidTokenError(HTTPException):
    """Bearer token that is malformed, expired or not an access token (401)."""

    def __init__(self, detail: str = "Token inválido"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )
