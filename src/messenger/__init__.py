"""Reply composition and delivery for the restaurant messenger bot."""

from src.messenger.builder import MessageBuilder
from src.messenger.catalog import MENUS, RESTAURANTS, MenuItem, Restaurant
from src.messenger.responder import FOOD_KEYWORDS, MalformedPostbackError, MessageResponder
from src.messenger.send_api import SendGateway

__all__ = [
    "FOOD_KEYWORDS",
    "MENUS",
    "RESTAURANTS",
    "MalformedPostbackError",
    "MenuItem",
    "MessageBuilder",
    "MessageResponder",
    "Restaurant",
    "SendGateway",
]
