from typing import Optional


class AppError(Exception):
    def __init__(self, code: str, message: str, status_code: int):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def to_content(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class ValidationError(AppError):
    def __init__(self, message: str):
        super().__init__("VALIDATION_ERROR", message, 400)


class AuthorizationError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__("UNAUTHORIZED", message, 401)


class NotFoundError(AppError):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, 404)


class ConflictError(AppError):
    def __init__(self, message: str):
        super().__init__("CONFLICT", message, 409)


class PersistenceError(AppError):
    """Database failure. The message is safe to return; detail stays in the log."""

    def __init__(self, message: str = "A database error occurred"):
        super().__init__("PERSISTENCE_ERROR", message, 500)


class RowValidationError(AppError):
    """One or more rows of a bulk import failed to parse.

    ``rows`` holds ``{"row": index, "field": name, "reason": text}`` entries,
    ``field`` being None when the row itself is malformed.
    """

    def __init__(self, rows: list[dict]):
        first = rows[0]
        where = f"row {first['row']}"
        if first["field"] is not None:
            where += f", field '{first['field']}'"
        message = f"Invalid import data at {where}: {first['reason']}"
        if len(rows) > 1:
            message += f" (and {len(rows) - 1} more)"
        super().__init__("ROW_VALIDATION_ERROR", message, 400)
        self.rows = rows

    @property
    def row_index(self) -> int:
        return self.rows[0]["row"]

    @property
    def field(self) -> Optional[str]:
        return self.rows[0]["field"]

    def to_content(self) -> dict:
        content = super().to_content()
        content["error"]["rows"] = self.rows
        return content
