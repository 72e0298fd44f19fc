from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .constants import CategoryKind, ColorToken


def _clean_name(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("name cannot be empty")
    return value.strip()


class CategoryIn(BaseModel):
    name: str
    kind: CategoryKind = "tag"

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        return _clean_name(value)


class CategoryUpdateIn(BaseModel):
    name: Optional[str] = None
    color_token: Optional[ColorToken] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _clean_name(value) if value is not None else None

    @field_validator("color_token")
    @classmethod
    def _not_neutral(cls, value: Optional[ColorToken]) -> Optional[ColorToken]:
        if value is ColorToken.GRAY:
            raise ValueError("gray-500 is reserved for uncategorized totals")
        return value

    @model_validator(mode="after")
    def _at_least_one(self) -> "CategoryUpdateIn":
        if self.name is None and self.color_token is None:
            raise ValueError("at least one field must be provided")
        return self


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: CategoryKind = "tag"
    color_token: ColorToken
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def color_hex(self) -> str:
        return self.color_token.hex
