"""Static restaurant and menu table.

Asset paths are relative to the public server URL, which the message
builder prepends at build time.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class Restaurant:
    key: str  # postback payload that opens this restaurant's menu
    title: str
    subtitle: str
    website: str
    image_path: str


@dataclass(frozen=True)
class MenuItem:
    title: str
    price: str  # decimal string, as shown to the user
    image_path: str


RESTAURANTS: tuple[Restaurant, ...] = (
    Restaurant(
        key="restaurant_campus_pizza",
        title="Campus Pizza",
        subtitle="Call us for all your pizza needs!",
        website="http://www.campuspizza.ca/",
        image_path="/assets/campus_pizza.png",
    ),
    Restaurant(
        key="restaurant_foodie_fruitie",
        title="Foodie Fruitie",
        subtitle="Ramen X Juice X Sushi",
        website="http://foodiefruitie.com/",
        image_path="/assets/foodie_fruitie.png",
    ),
    Restaurant(
        key="restaurant_williams",
        title="Williams Fresh Cafe",
        subtitle="Canada's leading fast casual fresh food cafe",
        website="http://williamsfreshcafe.com/",
        image_path="/assets/williams.png",
    ),
)

MENUS: MappingProxyType[str, tuple[MenuItem, ...]] = MappingProxyType({
    "restaurant_campus_pizza": (
        MenuItem("Vegetarian Pizza", "4.99", "/assets/vegetarian_pizza.png"),
        MenuItem("Cheese Pizza", "4.99", "/assets/cheese_pizza.png"),
        MenuItem("Pepperoni Pizza", "4.99", "/assets/pepperoni_pizza.png"),
    ),
    "restaurant_foodie_fruitie": (
        MenuItem("Teriyaki Salmon", "9.99", "/assets/teriyaki_salmon.png"),
        MenuItem("BBQ Pork Fried Rice", "9.99", "/assets/pork_fried_rice.png"),
        MenuItem("Curry Ramen", "9.99", "/assets/curry_ramen.png"),
    ),
    "restaurant_williams": (
        MenuItem("Chicken Quesadilla", "6.99", "/assets/chicken_quesadilla.png"),
        MenuItem("William's Big Breakfast", "9.99", "/assets/big_breakfast.png"),
        MenuItem("Mac'n'Cheese", "4.99", "/assets/mac_cheese.png"),
    ),
})


def menu_for(restaurant_key: str) -> tuple[MenuItem, ...]:
    """Return the menu for ``restaurant_key``; KeyError if unknown."""
    return MENUS[restaurant_key]
