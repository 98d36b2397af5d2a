# /app/schemas.py
"""
Pydantic request models for the game endpoints.

Schemas only; no game rules here. ``parse`` turns a pydantic
``ValidationError`` into the core's ``ValidationRejection`` so every bad body
gets the same 400 shape as the other rejections.
"""
from __future__ import annotations

from typing import Any, List, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from server.errors import ValidationRejection

M = TypeVar("M", bound=BaseModel)

# keeps price * quantity well inside a 64-bit integer column
MAX_QUANTITY = 9999


class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MoveRequest(_Body):
    world_x: int
    world_y: int


class AttackPlayerRequest(_Body):
    target_character_id: str = Field(
        min_length=1, validation_alias=AliasChoices("target_character_id", "target_user_id")
    )


class ShopRequest(_Body):
    item_id: str = Field(min_length=1, validation_alias=AliasChoices("item_id", "itemId"))
    quantity: int = Field(ge=1, le=MAX_QUANTITY)


class TradeLine(_Body):
    item_id: str = Field(min_length=1)
    quantity: int = Field(ge=1, le=MAX_QUANTITY)


class TradeInitiateRequest(_Body):
    target_character_id: str = Field(
        min_length=1, validation_alias=AliasChoices("target_character_id", "target_user_id")
    )


class TradeExecuteRequest(TradeInitiateRequest):
    my_items: List[TradeLine] = Field(default_factory=list)
    target_items: List[TradeLine] = Field(default_factory=list)


class TerrainArea(_Body):
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @model_validator(mode="after")
    def _ordered(self) -> "TerrainArea":
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError("min must not exceed max")
        return self


def parse(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors() if err["loc"]})
        raise ValidationRejection(
            f"Invalid request: {', '.join(fields) or 'body'}", fields=fields
        ) from e
