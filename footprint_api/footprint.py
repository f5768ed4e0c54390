"""
Footprint and price aggregation.

This is the arithmetic the dashboard performs before it posts a record:
summing per-kg carbon and water over the selected ingredients of a dish,
and carbon, water and price over the selected dishes of a bill. Amounts
travel as text formatted to two decimal places.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union

from . import rules
from .models import Bill, BillIn, Dish, DishIn, Ingredient, utc_date

_LEADING_NUMBER = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


class CompositionError(ValueError):
    pass


@dataclass(frozen=True)
class Totals:
    carbon: float = 0.0
    water: float = 0.0
    price: float = 0.0


def parse_amount(value: Union[str, float, int, None]) -> float:
    """Leading numeric part of `value`, or 0.0 when there is none."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0

    m = _LEADING_NUMBER.match(value)
    if m is None:
        return 0.0
    amount = float(m.group(1))
    return amount if math.isfinite(amount) else 0.0


def format_amount(amount: float) -> str:
    return f"{amount:.2f}"


def dish_totals(ingredients: Iterable[Ingredient]) -> Totals:
    carbon = 0.0
    water = 0.0
    for ingredient in ingredients:
        carbon += parse_amount(ingredient.carbon)
        water += parse_amount(ingredient.water)
    return Totals(carbon=carbon, water=water)


def bill_totals(dishes: Iterable[Dish]) -> Totals:
    carbon = 0.0
    water = 0.0
    price = 0.0
    for dish in dishes:
        carbon += parse_amount(dish.carbon)
        water += parse_amount(dish.water)
        price += parse_amount(dish.price)
    return Totals(carbon=carbon, water=water, price=price)


def category_breakdown(ingredients: Iterable[Ingredient]) -> Dict[str, float]:
    """Carbon per ingredient category, in first-seen order."""
    breakdown: Dict[str, float] = {}
    for ingredient in ingredients:
        breakdown[ingredient.category] = breakdown.get(ingredient.category, 0.0) + parse_amount(ingredient.carbon)
    return breakdown


def active_bills(bills: Iterable[Bill]) -> List[Bill]:
    return [bill for bill in bills if not bill.is_checked_out]


def compose_dish(
    name: str,
    ingredients: Sequence[Ingredient],
    price: Union[str, float, None],
) -> DishIn:
    if not name or not ingredients or price is None or price == "":
        raise CompositionError("Please fill in all fields")

    totals = dish_totals(ingredients)
    return DishIn(
        name=name,
        ingredients=rules.JOIN_SEPARATOR.join(ingredient.name for ingredient in ingredients),
        carbon=format_amount(totals.carbon),
        water=format_amount(totals.water),
        price=format_amount(parse_amount(price)),
    )


def compose_bill(
    name: str,
    dishes: Sequence[Dish],
    now: Optional[datetime] = None,
) -> BillIn:
    if not name or not dishes:
        raise CompositionError("Please fill in all fields")

    totals = bill_totals(dishes)
    return BillIn(
        name=name,
        dishes=rules.JOIN_SEPARATOR.join(dish.name for dish in dishes),
        carbon=format_amount(totals.carbon),
        water=format_amount(totals.water),
        price=format_amount(totals.price),
        created=utc_date(now),
        checked_out=rules.CHECKED_OUT_FALSE,
    )
