from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder

from eventflow.core.errors import DomainError


def http_error(error: DomainError) -> HTTPException:
    """Translate a domain error into the HTTP error the client sees."""
    return HTTPException(status_code=error.status_code, detail=jsonable_encoder(error.to_dict()))
