"""Menu content service: loading, editing and saving the outlets' menus."""

from typing import List, Optional

from mamita_newsletter.infrastructure.database import DocumentStore
from mamita_newsletter.infrastructure.error_handling import MenuEditError, MenuNotFoundError, SettingsNotFoundError
from mamita_newsletter.infrastructure.logging import LoggerMixin
from mamita_newsletter.models.menu import (
    HOMEPAGE_TEXT_DOC_ID,
    HomepageText,
    MenuRecord,
    Outlet,
    create_default_menu,
)


class MenuContentService(LoggerMixin):
    """Reads and writes the ``homepage_text`` settings document."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def load_homepage_text(self) -> HomepageText:
        """Load the settings document holding every outlet's menu.

        Raises:
            SettingsNotFoundError: If the document does not exist.
        """
        data = await self.store.get_settings_document(HOMEPAGE_TEXT_DOC_ID)
        if data is None:
            raise SettingsNotFoundError("Homepage text settings not found.")
        return HomepageText.model_validate(data)

    async def get_menu(self, outlet: Outlet) -> MenuRecord:
        """Return the stored menu for an outlet.

        Raises:
            SettingsNotFoundError: If the settings document is absent.
            MenuNotFoundError: If no stored menu matches the outlet id.
        """
        homepage_text = await self.load_homepage_text()
        menu = homepage_text.find_menu(outlet.value)
        if menu is None:
            raise MenuNotFoundError(f"Menu data for {outlet.value} not found.")

        self.logger.debug(
            "Menu loaded",
            outlet=outlet.value,
            sections=len(menu.sections),
            visible_sections=len(menu.visible_sections),
        )
        return menu

    async def load_menus_for_editing(self) -> List[MenuRecord]:
        """Both outlets' menus with stored values laid over the defaults."""
        data = await self.store.get_settings_document(HOMEPAGE_TEXT_DOC_ID)
        stored = HomepageText.model_validate(data) if data else HomepageText()

        if not stored.menus:
            return [create_default_menu(outlet.value) for outlet in Outlet]

        menus = []
        for menu in stored.menus:
            defaults = create_default_menu(menu.id).model_dump()
            # Only keys present in the stored document override the defaults
            overrides = menu.model_dump(exclude_unset=True)
            menus.append(MenuRecord.model_validate({**defaults, **overrides}))
        return menus

    async def save_menus(self, menus: List[MenuRecord]) -> None:
        """Replace the stored menus."""
        await self.store.save_settings_document(
            HOMEPAGE_TEXT_DOC_ID,
            {"menus": [menu.to_document() for menu in menus]},
        )
        self.logger.info("Menus saved", menu_ids=[menu.id for menu in menus])

    async def update_menu(self, menu: MenuRecord) -> None:
        """Save one outlet's menu, keeping the others as they are."""
        menus = await self.load_menus_for_editing()
        replaced = [menu if existing.id == menu.id else existing for existing in menus]
        if menu.id not in {existing.id for existing in menus}:
            replaced.append(menu)
        await self.save_menus(replaced)

    async def menu_for_editing(self, outlet: Outlet) -> MenuRecord:
        """The outlet's editable menu; a blank default when none is stored."""
        menus = await self.load_menus_for_editing()
        menu = next((m for m in menus if m.id == outlet.value), None)
        return menu if menu is not None else create_default_menu(outlet.value)

    async def set_section_visibility(self, outlet: Outlet, title: str, visible: bool) -> MenuRecord:
        """Show or hide one section of the outlet's menu.

        Raises:
            MenuEditError: If no section has this title (case-insensitive).
        """
        menu = await self.menu_for_editing(outlet)
        wanted = title.strip().casefold()
        section = next((s for s in menu.sections if s.title.strip().casefold() == wanted), None)
        if section is None:
            raise MenuEditError(
                f"Section {title!r} not found in {outlet.value}. "
                f"Sections: {', '.join(s.title for s in menu.sections)}"
            )

        section.is_visible = visible
        await self.update_menu(menu)
        self.logger.info("Section visibility changed", outlet=outlet.value, title=section.title, visible=visible)
        return menu

    async def set_menu_fields(
        self,
        outlet: Outlet,
        date: Optional[str] = None,
        horaires: Optional[str] = None,
        image: Optional[str] = None,
    ) -> MenuRecord:
        """Update the date label, opening hours text or header image URL."""
        menu = await self.menu_for_editing(outlet)
        changes = {
            name: value
            for name, value in (("date", date), ("horaires", horaires), ("image", image))
            if value is not None
        }
        for name, value in changes.items():
            setattr(menu, name, value.strip())

        await self.update_menu(menu)
        self.logger.info("Menu fields updated", outlet=outlet.value, fields=sorted(changes))
        return menu

    async def set_footer_line(self, outlet: Outlet, index: int, text: str) -> MenuRecord:
        """Replace one footer slot (0-based); an empty text clears it.

        Raises:
            MenuEditError: If the slot does not exist.
        """
        menu = await self.menu_for_editing(outlet)
        if not 0 <= index < len(menu.footer_lines):
            raise MenuEditError(
                f"Footer line {index + 1} does not exist; {outlet.value} has "
                f"{len(menu.footer_lines)} footer line(s)."
            )

        menu.footer_lines[index] = text.strip()
        await self.update_menu(menu)
        self.logger.info("Footer line updated", outlet=outlet.value, line=index + 1)
        return menu


def parse_pasted_menu(menu: MenuRecord, raw_text: str) -> MenuRecord:
    """Fill a menu's sections from free text pasted by staff.

    Every section is reset to blank slots of the same length. A pasted line
    matching a section title (case-insensitive) selects that section;
    following lines fill its next empty slot. Lines before the first title
    and lines beyond a section's slots are dropped.
    """
    parsed = menu.model_copy(deep=True)
    for section in parsed.sections:
        section.lines = [""] * len(section.lines)

    titles = [section.title.strip().lower() for section in parsed.sections]
    current = None

    for line in (raw.strip() for raw in raw_text.splitlines()):
        if not line:
            continue
        if line.lower() in titles:
            current = parsed.sections[titles.index(line.lower())]
        elif current is not None and "" in current.lines:
            current.lines[current.lines.index("")] = line

    return parsed
