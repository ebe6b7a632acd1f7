"""
Warehouse Exceptions

Field-level problems never surface as errors: the validators convert them to
null or to a default label. Relation-level problems abort the run.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Error categories raised by the warehouse build."""

    TABLE_NOT_FOUND = "RESOURCE_002"
    TYPE_CONVERSION = "VALIDATION_005"
    CONSTRAINT_VIOLATION = "DATA_003"
    LOAD_FAILED = "OPERATION_002"


class Severity(Enum):
    WARNING = 10
    ERROR = 16


class WarehouseError(Exception):
    """
    Base exception for the warehouse build.

    Attributes:
        message: Error message
        error_code: Category from ``ErrorCode``
        severity: ``Severity`` of the failure
        details: Additional context (entity, table, column...)
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.LOAD_FAILED,
        severity: Severity = Severity.ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code.value,
            "severity": self.severity.name,
            "message": self.message,
            "details": self.details,
        }


class SchemaMissingError(WarehouseError):
    """Target relation does not exist in the catalog."""

    def __init__(self, table_name: str):
        super().__init__(
            f"Table not found: {table_name}",
            error_code=ErrorCode.TABLE_NOT_FOUND,
            severity=Severity.WARNING,
            details={"table": table_name},
        )
        self.table_name = table_name


class TypeConversionError(WarehouseError):
    """A raw scalar could not be converted to its semantic type."""

    def __init__(self, value: Any, expected: str):
        super().__init__(
            f"Cannot convert {value!r} to {expected}",
            error_code=ErrorCode.TYPE_CONVERSION,
            severity=Severity.WARNING,
            details={"value": repr(value), "expected": expected},
        )
        self.value = value
        self.expected = expected


class ConstraintViolation(WarehouseError):
    """Transformed output does not satisfy the target relation's schema."""

    def __init__(self, table_name: str, missing_columns):
        missing = sorted(missing_columns)
        super().__init__(
            f"{table_name} requires columns not produced by the load: {', '.join(missing)}",
            error_code=ErrorCode.CONSTRAINT_VIOLATION,
            details={"table": table_name, "missing_columns": missing},
        )
        self.table_name = table_name
        self.missing_columns = missing


class RunAbortedError(WarehouseError):
    """
    A relation load failed and the refresh was aborted.

    The original failure's message is kept verbatim; its class name and
    severity are recorded in ``details``.
    """

    def __init__(self, entity: str, cause: BaseException):
        severity = cause.severity if isinstance(cause, WarehouseError) else Severity.ERROR
        error_code = cause.error_code if isinstance(cause, WarehouseError) else ErrorCode.LOAD_FAILED
        super().__init__(
            str(cause),
            error_code=error_code,
            severity=severity,
            details={"entity": entity, "original_error": type(cause).__name__},
            cause=cause,
        )
        self.entity = entity
