"""Menu and outlet models for the daily menu newsletter."""

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

HOMEPAGE_TEXT_DOC_ID = "homepage_text"
EXTERNAL_SUBSCRIBERS_DOC_ID = "external_newsletter_subscribers"

# Section titles recognised by the paste parser
SECTION_TITLES = ["Entrée", "Plat chaud", "Accompagnement", "Dessert", "Boisson"]

DEFAULT_MENU_IMAGE = (
    "https://firebasestorage.googleapis.com/v0/b/le-mamita.appspot.com/o/"
    "site-assets%2Flogo_mamita.png?alt=media"
)
DEFAULT_MENU_HOURS = "Du Lundi au Vendredi : de 7h à 14h"

CLOSING_PHRASE = "bon appétit"


class Outlet(str, Enum):
    """The two business units, each with its own menu and subscriber list."""

    MAMITA = "menu_1"
    BOUTIQUE_CAFE = "menu_2"

    @property
    def profile(self) -> "OutletProfile":
        return OUTLET_PROFILES[self]

    @property
    def display_name(self) -> str:
        return self.profile.display_name

    @property
    def closing_wish(self) -> str:
        """Closing line appended verbatim under the menu."""
        return f"{self.display_name} vous souhaite un {CLOSING_PHRASE} !"


@dataclass(frozen=True)
class OutletProfile:
    """Static naming for an outlet across the document store."""

    display_name: str
    subscription_field: str  # boolean flag on user records
    external_list_key: str   # key in the external subscribers document


OUTLET_PROFILES: Dict[Outlet, OutletProfile] = {
    Outlet.MAMITA: OutletProfile(
        display_name="Le Mamita",
        subscription_field="newsletterMamita",
        external_list_key="mamita",
    ),
    Outlet.BOUTIQUE_CAFE: OutletProfile(
        display_name="La Boutique Café",
        subscription_field="newsletterBoutiqueCafe",
        external_list_key="boutiqueCafe",
    ),
}


def mentions_closing_phrase(line: str) -> bool:
    """True when a line already carries the closing wish, however its accents are encoded."""
    return CLOSING_PHRASE in unicodedata.normalize("NFC", line).casefold()


class MenuSection(BaseModel):
    """One titled block of menu lines."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    lines: List[str] = Field(default_factory=list)
    is_visible: bool = Field(default=True, alias="isVisible")

    @property
    def non_blank_lines(self) -> List[str]:
        return [line for line in self.lines if line.strip()]


class MenuRecord(BaseModel):
    """The structured daily menu content for one outlet."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    image: str = ""
    date: str = ""
    horaires: str = ""
    sections: List[MenuSection] = Field(default_factory=list)
    footer_lines: List[str] = Field(default_factory=list, alias="footerLines")

    @property
    def visible_sections(self) -> List[MenuSection]:
        return [section for section in self.sections if section.is_visible]

    def footer_without_closing(self) -> List[str]:
        """Footer lines minus any line that already wishes bon appétit."""
        return [line for line in self.footer_lines if not mentions_closing_phrase(line)]

    def to_document(self) -> Dict:
        """Serialize with the field names used in the settings document."""
        return self.model_dump(by_alias=True)


class HomepageText(BaseModel):
    """The ``homepage_text`` settings document."""

    menus: List[MenuRecord] = Field(default_factory=list)

    def find_menu(self, menu_id: str):
        return next((menu for menu in self.menus if menu.id == menu_id), None)


def create_default_menu(menu_id: str) -> MenuRecord:
    """Blank menu with the standard sections, used by the admin editor."""
    section_sizes = {"Accompagnement": 2}
    return MenuRecord(
        id=menu_id,
        image=DEFAULT_MENU_IMAGE,
        date="",
        horaires=DEFAULT_MENU_HOURS,
        sections=[
            MenuSection(title=title, lines=[""] * section_sizes.get(title, 4), is_visible=True)
            for title in SECTION_TITLES
        ],
        footer_lines=[""] * 3,
    )
