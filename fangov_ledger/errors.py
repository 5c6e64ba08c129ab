"""Typed failures raised by the ledger engine"""
from typing import Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

ModelT = TypeVar('ModelT', bound=BaseModel)


class LedgerError(Exception):
    """Base class for every failure the engine reports to its callers"""
    http_status = 500


class ValidationError(LedgerError):
    """Malformed input: bad percentages, too few options, non-positive amounts"""
    http_status = 400


class NotFoundError(LedgerError):
    """Unknown id for a user, artist, proposal or revenue event"""
    http_status = 404


class InvalidStateError(LedgerError):
    """Operation not valid in the current lifecycle state"""
    http_status = 409


class InvalidTransitionError(InvalidStateError):
    """Proposal status change out of a terminal state"""


class UnauthorizedError(LedgerError):
    """Caller holds no voting right for the operation"""
    http_status = 403


def parse_input(model: Type[ModelT], **data) -> ModelT:
    """Validate raw input against a pydantic model, reporting failures as ValidationError"""
    try:
        return model(**data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid {model.__name__}: {problems}") from e
