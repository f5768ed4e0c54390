"""
Dashboard client for the footprint API.

Holds the same state the browser dashboard does: the ingredient list, all
dishes, the active (not checked out) bills, and the current ingredient and
dish selections. Saves update the local lists optimistically instead of
re-fetching.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import httpx

from .footprint import (
    Totals,
    active_bills,
    category_breakdown,
    compose_bill,
    compose_dish,
    dish_totals,
)
from .models import Bill, Dish, Ingredient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"


class DashboardError(Exception):
    pass


class DashboardClient:
    def __init__(self, http: httpx.Client) -> None:
        self._http = http
        self.ingredients: List[Ingredient] = []
        self.dishes: List[Dish] = []
        self.bills: List[Bill] = []
        self.selected_ingredients: List[Ingredient] = []
        self.selected_dishes: List[Dish] = []

    @classmethod
    def connect(cls, base_url: str = DEFAULT_BASE_URL, timeout: float = 20) -> "DashboardClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "DashboardClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def load(self) -> None:
        ingredients = self._request("GET", "/api/ingredients", "Failed to load ingredients")
        dishes = self._request("GET", "/api/dishes", "Failed to load dishes")
        bills = self._request("GET", "/api/bills", "Failed to load bills")

        self.ingredients = [Ingredient.model_validate(row) for row in ingredients]
        self.dishes = [Dish.model_validate(row) for row in dishes]
        self.bills = active_bills(Bill.model_validate(row) for row in bills)
        logger.info(
            "Loaded %d ingredients, %d dishes, %d active bills",
            len(self.ingredients), len(self.dishes), len(self.bills),
        )

    def select_ingredient(self, ingredient: Ingredient) -> None:
        self.selected_ingredients.append(ingredient)

    def find_ingredient(self, name: str) -> Ingredient:
        for ingredient in self.ingredients:
            if ingredient.name == name:
                return ingredient
        raise DashboardError(f"Unknown ingredient: {name}")

    @property
    def totals(self) -> Totals:
        return dish_totals(self.selected_ingredients)

    def category_data(self) -> List[Dict[str, Union[str, float]]]:
        return [
            {"name": category, "value": value}
            for category, value in category_breakdown(self.selected_ingredients).items()
        ]

    def save_dish(self, name: str, price: Union[str, float, None]) -> Dish:
        dish_in = compose_dish(name, self.selected_ingredients, price)
        body = dish_in.model_dump(by_alias=True, exclude_none=True)
        self._request("POST", "/api/dishes", "Failed to save dish", json=body)

        dish = Dish.model_validate(body)
        self.dishes.append(dish)
        self.selected_ingredients = []
        return dish

    def select_dish(self, dish: Dish) -> None:
        self.selected_dishes.append(dish)

    def save_bill(self, name: str) -> Bill:
        bill_in = compose_bill(name, self.selected_dishes)
        body = bill_in.model_dump(by_alias=True, exclude_none=True)
        self._request("POST", "/api/bills", "Error saving bill", json=body)

        bill = Bill.model_validate(body)
        self.bills.append(bill)
        self.selected_dishes = []
        return bill

    def checkout(self, bill_name: str) -> Bill:
        data = self._request(
            "PUT",
            f"/api/bills/{quote(bill_name, safe='')}",
            "Failed to process payment",
        )
        self.bills = [bill for bill in self.bills if bill.name != bill_name]
        return Bill.model_validate(data["bill"])

    def _request(self, method: str, url: str, fallback: str, json: Optional[Dict[str, Any]] = None) -> Any:
        resp = self._http.request(method, url, json=json)
        if resp.is_success:
            return resp.json()

        try:
            error = resp.json().get("error")
        except ValueError:
            error = None
        logger.warning("%s %s failed with %d: %s", method, url, resp.status_code, error)
        raise DashboardError(error or fallback)
