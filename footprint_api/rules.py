"""
Fixed file layout rules for the dish and bill collections.

Header strings and column order are part of the on-disk format and must
match exactly, byte for byte.
"""

DISHES_FILE = "dishes.csv"
BILLS_FILE = "bills.csv"
INGREDIENTS_FILE = "ingredients.csv"

FILE_ENCODING = "utf-8"
LINE_TERMINATOR = "\n"

DISH_COLUMNS = (
    "Dish Name",
    "Ingredients",
    "Total Carbon Footprint (kg CO2e)",
    "Total Water Usage (L)",
    "Price (INR)",
    "Date Created",
)

BILL_COLUMNS = (
    "Bill Name",
    "Dishes",
    "Total Carbon Footprint (kg CO2e)",
    "Total Water Usage (L)",
    "Total Price (INR)",
    "Date Created",
    "CheckedOut",
)

INGREDIENT_NAME = "Ingredient"
INGREDIENT_CATEGORY = "Category"
INGREDIENT_CARBON = "Carbon Footprint (kg CO2e/kg)"
INGREDIENT_WATER = "Water Usage (L/kg)"

DEFAULT_AMOUNT = "0.00"
CHECKED_OUT_TRUE = "true"
CHECKED_OUT_FALSE = "false"

JOIN_SEPARATOR = ", "

# Largest single cell accepted when parsing; fits a C long on every platform
MAX_FIELD_SIZE = 2**31 - 1
