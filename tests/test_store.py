"""Tests for the CSV record store."""

import pytest

from footprint_api.models import Bill, Dish
from footprint_api.store import (
    BILLS,
    DISHES,
    RecordNotFound,
    RecordStore,
    decode_text,
    parse_rows,
    render_rows,
)


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "data")


def _dish(name, ingredients="Rice", price="50.00"):
    return Dish(
        name=name,
        ingredients=ingredients,
        carbon="1.00",
        water="100.00",
        price=price,
        created="2024-05-01T10:00:00.000Z",
    )


def _bill(name, checked_out="false"):
    return Bill(
        name=name,
        dishes="Salad, Dal",
        carbon="1.90",
        water="22.50",
        price="210.00",
        created="2024-05-01",
        checked_out=checked_out,
    )


def test_read_missing_creates_header_only(store):
    assert store.read_all(BILLS) == []
    text = store.path_for(BILLS).read_text(encoding="utf-8")
    assert text == ",".join(BILLS.columns) + "\n"

    # Second read sees the same file and the same empty result
    assert store.read_all(BILLS) == []
    assert store.path_for(BILLS).read_text(encoding="utf-8") == text


def test_append_round_trip_keeps_order(store):
    names = ["Salad", "Dal", "Biryani", "Paneer Tikka"]
    for name in names:
        store.append(DISHES, _dish(name))

    dishes = store.read_all(DISHES)
    assert [d.name for d in dishes] == names
    assert dishes[2] == _dish("Biryani")


def test_append_quotes_joined_names(store):
    store.append(DISHES, _dish("Salad", ingredients="Lettuce, Tomato"))

    text = store.path_for(DISHES).read_text(encoding="utf-8")
    assert 'Salad,"Lettuce, Tomato",1.00' in text
    assert store.read_all(DISHES)[0].ingredients == "Lettuce, Tomato"


def test_column_order_is_fixed(store):
    record = Dish.model_validate(
        {
            "Date Created": "2024-05-01T10:00:00.000Z",
            "Price (INR)": "80.00",
            "Dish Name": "Soup",
            "Ingredients": "Carrot",
            "Total Water Usage (L)": "5.00",
            "Total Carbon Footprint (kg CO2e)": "0.30",
        }
    )
    store.append(DISHES, record)

    lines = store.path_for(DISHES).read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(DISHES.columns)
    assert lines[1] == "Soup,Carrot,0.30,5.00,80.00,2024-05-01T10:00:00.000Z"


def test_bill_checked_out_filled_on_read_not_written(store):
    path = store.path_for(BILLS)
    path.parent.mkdir(parents=True)
    content = (
        ",".join(BILLS.columns) + "\n"
        "Table 1,Salad,0.50,10.00,90.00,2024-05-01,\n"
        "Table 2,Dal,1.40,12.50,120.00,2024-05-01,true\n"
    )
    path.write_text(content, encoding="utf-8")

    bills = store.read_all(BILLS)
    assert [b.checked_out for b in bills] == ["false", "true"]
    assert path.read_text(encoding="utf-8") == content


def test_bill_checked_out_filled_on_write(store):
    store.append(BILLS, Bill(name="Table 1", dishes="Salad", checked_out=""))

    lines = store.path_for(BILLS).read_text(encoding="utf-8").splitlines()
    assert lines[1].endswith(",false")


def test_checkout_first_match_only(store):
    store.append(BILLS, _bill("Table 1"))
    store.append(BILLS, _bill("Table 2"))
    store.append(BILLS, _bill("Table 2"))

    bill = store.checkout("Table 2")
    assert bill.checked_out == "true"
    assert bill.price == "210.00"

    bills = store.read_all(BILLS)
    assert [b.checked_out for b in bills] == ["false", "true", "false"]
    assert bills[1].model_copy(update={"checked_out": "false"}) == _bill("Table 2")


def test_checkout_unknown_leaves_file(store):
    store.append(BILLS, _bill("Table 1"))
    before = store.path_for(BILLS).read_bytes()

    with pytest.raises(RecordNotFound):
        store.checkout("TABLE 1")

    assert store.path_for(BILLS).read_bytes() == before


def test_update_by_key_on_dishes(store):
    store.append(DISHES, _dish("Soup", price="40.00"))

    updated = store.update_by_key(DISHES, "Soup", lambda d: d.model_copy(update={"price": "45.00"}))
    assert updated.price == "45.00"
    assert store.read_all(DISHES)[0].price == "45.00"


def test_read_failure_returns_empty(store):
    store.path_for(DISHES).mkdir(parents=True)
    assert store.read_all(DISHES) == []


def test_write_failure_propagates(tmp_path):
    blocker = tmp_path / "data"
    blocker.write_text("not a directory", encoding="utf-8")
    store = RecordStore(blocker)

    with pytest.raises(OSError):
        store.append(DISHES, _dish("Soup"))


def test_parse_rows_pads_and_skips_blank_lines():
    text = "a,b,c\n1,2\n\n4,5,6,7\n"
    assert parse_rows(text) == [
        {"a": "1", "b": "2", "c": ""},
        {"a": "4", "b": "5", "c": "6"},
    ]


def test_parse_rows_empty():
    assert parse_rows("") == []
    assert parse_rows("a,b\n") == []


def test_render_rows_fills_absent_columns():
    assert render_rows(("a", "b"), [{"b": "2"}]) == "a,b\n,2\n"


def test_read_ingredients(store):
    store.data_dir.mkdir(parents=True)
    (store.data_dir / "ingredients.csv").write_text(
        "Ingredient,Category,Carbon Footprint (kg CO2e/kg),Water Usage (L/kg)\n"
        "Rice,Grain,4.00,2500\n"
        "Tomato,Vegetable,1.10,210\n",
        encoding="utf-8",
    )

    ingredients = store.read_ingredients()
    assert [i.name for i in ingredients] == ["Rice", "Tomato"]
    assert ingredients[1].category == "Vegetable"
    assert ingredients[1].water == "210"


def test_read_ingredients_missing(store):
    with pytest.raises(FileNotFoundError):
        store.read_ingredients()


def test_long_field_round_trip(store):
    store.append(DISHES, _dish("Salad"))
    store.append(DISHES, _dish("Feast", ingredients="y" * 200000))
    store.append(DISHES, _dish("Soup"))

    dishes = store.read_all(DISHES)
    assert [d.name for d in dishes] == ["Salad", "Feast", "Soup"]
    assert len(dishes[1].ingredients) == 200000


def test_read_replaces_undecodable_bytes(store):
    path = store.path_for(BILLS)
    path.parent.mkdir(parents=True)
    path.write_bytes(
        (",".join(BILLS.columns) + "\n").encode("utf-8")
        + b"Caf\xe9 Table,Salad,0.50,10.00,90.00,2024-05-01,false\n"
    )

    bills = store.read_all(BILLS)
    assert [b.name for b in bills] == ["Caf\ufffd Table"]
    assert bills[0].price == "90.00"


@pytest.mark.parametrize(
    "raw,expected",
    (
        (b"", ""),
        ("\ufeffIngredient,Category\nRice,Grain\n".encode("utf-8"), "Ingredient,Category\nRice,Grain\n"),
        ("Ingredient,Category\nRice,Grain\n".encode("utf-8"), "Ingredient,Category\nRice,Grain\n"),
    ),
)
def test_decode_text(raw, expected):
    assert decode_text(raw) == expected
