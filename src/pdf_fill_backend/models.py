from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(str, Enum):
    TEXT = "text"
    CHOICE_GROUP = "choice_group"


class Violation(BaseModel):
    field: str
    value: Optional[str] = None
    allowed: List[str]


class ValidationResult(BaseModel):
    violations: List[Violation] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations


class ValidationFailure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str = "Invalid values found"
    invalid_fields: List[Violation] = Field(alias="invalidFields")


class FormFieldInfo(BaseModel):
    name: str
    kind: FieldKind
    options: List[str] = Field(default_factory=list)
