from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_PERMISSION = "INVALID_PERMISSION"
    UNAUTHORIZED = "UNAUTHORIZED"


class Error(BaseModel):
    code: ErrorCode
    errors: list[str]

    @classmethod
    def create(cls, code: ErrorCode, *errors: str) -> "Error":
        return cls(code=code, errors=list(errors))

    def __str__(self) -> str:
        return f"{self.code.value}: {'; '.join(self.errors)}"
