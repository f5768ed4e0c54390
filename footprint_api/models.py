from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import rules


class InvalidRecord(ValueError):
    pass


def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = datetime.now(timezone.utc) if now is None else now
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_date(now: Optional[datetime] = None) -> str:
    return utc_timestamp(now).split("T")[0]


def _as_text(value: Any) -> Any:
    # JSON numbers are stored the way they were sent; 0 and false count as missing
    if isinstance(value, (bool, int, float)) and not value:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return value


class Dish(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(default="", alias="Dish Name")
    ingredients: str = Field(default="", alias="Ingredients")
    carbon: str = Field(default="", alias="Total Carbon Footprint (kg CO2e)")
    water: str = Field(default="", alias="Total Water Usage (L)")
    price: str = Field(default="", alias="Price (INR)")
    created: str = Field(default="", alias="Date Created")

    @property
    def key(self) -> str:
        return self.name


class Bill(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(default="", alias="Bill Name")
    dishes: str = Field(default="", alias="Dishes")
    carbon: str = Field(default="", alias="Total Carbon Footprint (kg CO2e)")
    water: str = Field(default="", alias="Total Water Usage (L)")
    price: str = Field(default="", alias="Total Price (INR)")
    created: str = Field(default="", alias="Date Created")
    checked_out: str = Field(default=rules.CHECKED_OUT_FALSE, alias="CheckedOut")

    @field_validator("checked_out", mode="before")
    @classmethod
    def _default_checked_out(cls, value: Any) -> Any:
        return value or rules.CHECKED_OUT_FALSE

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_checked_out(self) -> bool:
        return self.checked_out == rules.CHECKED_OUT_TRUE


class Ingredient(BaseModel):
    """One row of the externally supplied ingredient reference table.

    Columns beyond the four known ones are kept as-is.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(default="", alias=rules.INGREDIENT_NAME)
    category: str = Field(default="", alias=rules.INGREDIENT_CATEGORY)
    carbon: str = Field(default="", alias=rules.INGREDIENT_CARBON)
    water: str = Field(default="", alias=rules.INGREDIENT_WATER)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _numbers_as_text(cls, value: Any) -> Any:
        return _as_text(value)


class DishIn(_Payload):
    name: Optional[str] = Field(default=None, alias="Dish Name")
    ingredients: Optional[str] = Field(default=None, alias="Ingredients")
    carbon: Optional[str] = Field(default=None, alias="Total Carbon Footprint (kg CO2e)")
    water: Optional[str] = Field(default=None, alias="Total Water Usage (L)")
    price: Optional[str] = Field(default=None, alias="Price (INR)")

    def to_record(self, now: Optional[datetime] = None) -> Dish:
        if not self.name or not self.ingredients:
            raise InvalidRecord("Invalid dish data provided")
        return Dish(
            name=self.name,
            ingredients=self.ingredients,
            carbon=self.carbon or rules.DEFAULT_AMOUNT,
            water=self.water or rules.DEFAULT_AMOUNT,
            price=self.price or rules.DEFAULT_AMOUNT,
            created=utc_timestamp(now),
        )


class BillIn(_Payload):
    name: Optional[str] = Field(default=None, alias="Bill Name")
    dishes: Optional[str] = Field(default=None, alias="Dishes")
    carbon: Optional[str] = Field(default=None, alias="Total Carbon Footprint (kg CO2e)")
    water: Optional[str] = Field(default=None, alias="Total Water Usage (L)")
    price: Optional[str] = Field(default=None, alias="Total Price (INR)")
    # Sent by the dashboard, replaced by the server on save
    created: Optional[str] = Field(default=None, alias="Date Created")
    checked_out: Optional[str] = Field(default=None, alias="CheckedOut")

    def to_record(self, now: Optional[datetime] = None) -> Bill:
        if not self.name or not self.dishes:
            raise InvalidRecord("Invalid bill data provided")
        return Bill(
            name=self.name,
            dishes=self.dishes,
            carbon=self.carbon or rules.DEFAULT_AMOUNT,
            water=self.water or rules.DEFAULT_AMOUNT,
            price=self.price or rules.DEFAULT_AMOUNT,
            created=utc_date(now),
            checked_out=rules.CHECKED_OUT_FALSE,
        )


class SaveResponse(BaseModel):
    success: bool = True
    message: str


class CheckoutResponse(SaveResponse):
    bill: Bill


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
