"""
Error taxonomy shared by the store, the services and the HTTP layer.

Every error carries a ``kind`` (stable, machine-readable) and, when raised
from an operation, the ``op`` that raised it so logs point at the origin.
The HTTP layer only looks at the class to pick a status code.
"""
from typing import Optional


class OrgStructError(Exception):
    kind = "internal"
    default_message = "internal error"

    def __init__(self, message: Optional[str] = None, *, op: Optional[str] = None):
        self.message = message or self.default_message
        self.op = op
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.op:
            return f"{self.op}: {self.message}"
        return self.message


# -------- not found --------
class NotFoundError(OrgStructError):
    kind = "not_found"
    default_message = "not found"


class DepartmentNotFoundError(NotFoundError):
    kind = "department_not_found"
    default_message = "department not found"


class ParentNotFoundError(NotFoundError):
    kind = "parent_not_found"
    default_message = "parent not found"


# -------- conflict --------
class ConflictError(OrgStructError):
    kind = "conflict"
    default_message = "conflict"


class DuplicateNameError(ConflictError):
    kind = "duplicate_name"
    default_message = "duplicate name"


class AlreadyExistsError(ConflictError):
    kind = "already_exists"
    default_message = "entity already exists"


class CycleConstraintError(ConflictError):
    kind = "cycle_constraint"
    default_message = "cycle constraint"


# -------- bad request --------
class InvalidInputError(OrgStructError):
    kind = "invalid_input"
    default_message = "invalid input"


class LengthConstraintError(InvalidInputError):
    kind = "length_constraint"
    default_message = "length constraint"


class EmptyConstraintError(InvalidInputError):
    kind = "empty_constraint"
    default_message = "empty constraint"


class InvalidReassignToIDError(InvalidInputError):
    kind = "invalid_reassign_to_id"
    default_message = "invalid reassign_to_id"


class InvalidDepthError(InvalidInputError):
    kind = "invalid_depth"
    default_message = "depth must be at least 1"


class InvalidDeleteModeError(InvalidInputError):
    kind = "invalid_mode"
    default_message = "mode must be 'cascade' or 'reassign'"


class InvalidDateFormatError(InvalidInputError):
    kind = "invalid_date_format"
    default_message = "invalid date format for hired_at, expected YYYY-MM-DD"


# -------- unauthorized --------
class UnauthorizedError(OrgStructError):
    kind = "unauthorized"
    default_message = "invalid or missing API key"


# -------- internal --------
class TreeIntegrityError(OrgStructError):
    """Stored parent links loop or run deeper than any real tree could."""

    kind = "tree_integrity"
    default_message = "department tree is corrupted"
