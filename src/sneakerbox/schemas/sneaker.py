"""Pydantic schemas for sneakers.

Learn: Separate "Create" schemas (input) from "Read" schemas (output).
Updates are partial; user_id is never accepted from the client — it
always comes from the resolved session.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

UPDATABLE_FIELDS = ("brand", "model", "price", "color", "size", "in_stock")


class SneakerCreate(BaseModel):
    brand: str = Field(..., min_length=2, max_length=100)
    model: str = Field(..., min_length=2, max_length=100)
    price: float = Field(..., ge=0)
    color: str = Field(..., min_length=1, max_length=50)
    size: float = Field(..., ge=4, le=18)
    in_stock: bool = True

    @field_validator("brand", "model", "color", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class SneakerUpdate(BaseModel):
    brand: Optional[str] = Field(None, min_length=2, max_length=100)
    model: Optional[str] = Field(None, min_length=2, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    color: Optional[str] = Field(None, min_length=1, max_length=50)
    size: Optional[float] = Field(None, ge=4, le=18)
    in_stock: Optional[bool] = None

    model_config = {"extra": "ignore"}

    @field_validator("brand", "model", "color", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.changes():
            raise ValueError(
                "At least one valid field must be provided for update: "
                + ", ".join(UPDATABLE_FIELDS)
            )
        return self

    def changes(self) -> dict:
        return self.model_dump(
            include=set(UPDATABLE_FIELDS), exclude_unset=True, exclude_none=True
        )


class SneakerUpdateWithId(SneakerUpdate):
    id: uuid.UUID


class SneakerRead(BaseModel):
    id: uuid.UUID
    brand: str
    model: str
    price: float
    color: str
    size: float
    in_stock: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SneakerList(BaseModel):
    sneakers: list[SneakerRead]


class BulkDeleteRequest(BaseModel):
    ids: list[uuid.UUID] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    message: str
    count: int
    deleted_sneakers: list[SneakerRead]


class SneakerDeleteResponse(BaseModel):
    message: str
    deleted_sneaker: SneakerRead
