import logging
from contextlib import contextmanager

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base for errors a service raises toward the HTTP layer.

    `extra` is merged into the JSON body next to `message`.
    """
    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"message": self.message, **self.extra}


class BadRequest(ServiceError):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class Internal(ServiceError):
    status_code = 500


@contextmanager
def db_errors(message: str):
    """Turn a datastore failure into Internal(message) with the driver's error text."""
    try:
        yield
    except PyMongoError as exc:
        logger.exception("%s: %s", message, exc)
        raise Internal(message, error=str(exc)) from exc
