from __future__ import annotations


class AppError(Exception):
    """Domain error carrying the HTTP status the API should answer with."""

    status_code = 500

    def __init__(self, status_code: int | None = None, message: str = "") -> None:
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class BadRequestError(AppError):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(None, message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str) -> None:
        super().__init__(None, message)


class ConflictError(AppError):
    status_code = 409

    def __init__(self, message: str) -> None:
        super().__init__(None, message)


def raise_for_errors(errors: list[str]) -> None:
    if errors:
        raise BadRequestError("Validation failed: " + ", ".join(errors))
