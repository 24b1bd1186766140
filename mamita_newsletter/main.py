#!/usr/bin/env python3
"""Main entry point for the daily menu newsletter."""

import argparse
import asyncio
import sys
from pathlib import Path

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from mamita_newsletter.agents import NewsletterDependencies
from mamita_newsletter.infrastructure.config import ApplicationConfig, load_config
from mamita_newsletter.infrastructure.database import Database, init_database
from mamita_newsletter.infrastructure.error_handling import NewsletterError
from mamita_newsletter.infrastructure.logging import get_logger, setup_logging
from mamita_newsletter.models.menu import Outlet, create_default_menu
from mamita_newsletter.services.menu_content import MenuContentService, parse_pasted_menu
from mamita_newsletter.services.openai_service import OpenAIMenuFormatter
from mamita_newsletter.services.subscribers import SubscriberService
from mamita_newsletter.workflows.newsletter import preview_newsletter, send_newsletter

console = Console()
logger = get_logger(__name__)


class NewsletterCLI:
    """Command-line interface for the admin newsletter tools."""

    def __init__(self, config: ApplicationConfig):
        self.config = config

    async def _open_database(self) -> Database:
        return await init_database(self.config)

    def _dependencies(self, db: Database) -> NewsletterDependencies:
        return NewsletterDependencies(
            store=db,
            formatter=OpenAIMenuFormatter(self.config),
        )

    async def init_db(self) -> bool:
        db = await self._open_database()
        await db.close()
        console.print(f"[bold green]Database ready:[/bold green] {self.config.database_url}")
        return True

    async def send(self, outlet: Outlet, assume_yes: bool = False) -> bool:
        """Send the outlet's menu to every subscriber after confirmation."""
        if not assume_yes and not Confirm.ask(
            f"Send the [bold]{outlet.display_name}[/bold] menu to all subscribers? "
            "This cannot be undone"
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return False

        db = await self._open_database()
        try:
            with console.status("[bold green]Sending newsletter..."):
                result = await send_newsletter(outlet, self.config.smtp, self._dependencies(db))
        finally:
            await db.close()

        console.print(f"[bold green]Success:[/bold green] {result.message}")
        return result.success

    async def preview(self, outlet: Outlet, output: Path = None) -> bool:
        """Render the email without sending it."""
        db = await self._open_database()
        try:
            with console.status("[bold blue]Generating preview..."):
                result = await preview_newsletter(outlet, self._dependencies(db))
        finally:
            await db.close()

        console.print(Panel.fit(
            f"[bold]{result.subject}[/bold]\n{result.message}",
            title=f"Preview: {outlet.display_name}",
            border_style="blue",
        ))
        if output:
            output.write_text(result.body or "", encoding="utf-8")
            console.print(f"HTML written to [cyan]{output}[/cyan]")
        return True

    async def show_menu(self, outlet: Outlet) -> bool:
        db = await self._open_database()
        try:
            menu = await MenuContentService(db).menu_for_editing(outlet)
        finally:
            await db.close()

        table = Table(title=f"{outlet.display_name} - {menu.date or 'no date'}")
        table.add_column("Section", style="cyan")
        table.add_column("Visible")
        table.add_column("Lines", style="white")
        for section in menu.sections:
            table.add_row(
                section.title,
                "yes" if section.is_visible else "no",
                "\n".join(section.non_blank_lines),
            )
        console.print(table)

        footer = "\n".join(f"{number}. {line}" for number, line in enumerate(menu.footer_lines, start=1))
        console.print(Panel(
            f"[bold]Hours:[/bold] {menu.horaires}\n[bold]Image:[/bold] {menu.image}\n\n{footer}",
            title="Header and footer",
            border_style="cyan",
        ))
        return True

    async def paste_menu(self, outlet: Outlet, source: Path, date: str = None) -> bool:
        """Fill the outlet's menu from a pasted text file and save it."""
        db = await self._open_database()
        try:
            service = MenuContentService(db)
            menu = await service.menu_for_editing(outlet)
            updated = parse_pasted_menu(menu, source.read_text(encoding="utf-8"))
            if date:
                updated.date = date
            await service.update_menu(updated)
        finally:
            await db.close()

        console.print(f"[bold green]Menu updated[/bold green] for {outlet.display_name}")
        return True

    async def set_visibility(self, outlet: Outlet, section: str, visible: bool) -> bool:
        db = await self._open_database()
        try:
            await MenuContentService(db).set_section_visibility(outlet, section, visible)
        finally:
            await db.close()
        state = "shown" if visible else "hidden"
        console.print(f"Section [cyan]{section}[/cyan] {state} for {outlet.display_name}")
        return True

    async def set_menu_fields(self, outlet: Outlet, date: str = None, hours: str = None, image: str = None) -> bool:
        if date is None and hours is None and image is None:
            console.print("[yellow]Nothing to update: pass --date, --hours or --image.[/yellow]")
            return False

        db = await self._open_database()
        try:
            await MenuContentService(db).set_menu_fields(outlet, date=date, horaires=hours, image=image)
        finally:
            await db.close()
        console.print(f"[bold green]Menu updated[/bold green] for {outlet.display_name}")
        return True

    async def set_footer_line(self, outlet: Outlet, line_number: int, text: str) -> bool:
        db = await self._open_database()
        try:
            await MenuContentService(db).set_footer_line(outlet, line_number - 1, text)
        finally:
            await db.close()
        console.print(f"[bold green]Footer line {line_number} updated[/bold green] for {outlet.display_name}")
        return True

    async def reset_menu(self, outlet: Outlet) -> bool:
        db = await self._open_database()
        try:
            await MenuContentService(db).update_menu(create_default_menu(outlet.value))
        finally:
            await db.close()
        console.print(f"[bold green]Menu reset[/bold green] for {outlet.display_name}")
        return True

    async def list_subscribers(self, outlet: Outlet) -> bool:
        db = await self._open_database()
        try:
            summary = await SubscriberService(db).summary(outlet)
        finally:
            await db.close()

        table = Table(title=f"{outlet.display_name} subscribers ({summary.total})")
        table.add_column("Email", style="white")
        table.add_column("Source", style="cyan")
        for email in summary.registered:
            table.add_row(email, "registered")
        for email in summary.external:
            table.add_row(email, "external")
        console.print(table)
        return True

    async def add_subscriber(self, outlet: Outlet, email: str) -> bool:
        db = await self._open_database()
        try:
            await SubscriberService(db).add_external_email(outlet, email)
        finally:
            await db.close()
        console.print(f"[bold green]Added[/bold green] {email.strip().lower()}")
        return True

    async def remove_subscriber(self, outlet: Outlet, email: str) -> bool:
        db = await self._open_database()
        try:
            await SubscriberService(db).remove_external_email(outlet, email)
        finally:
            await db.close()
        console.print(f"[bold green]Removed[/bold green] {email}")
        return True

    async def add_user(self, email: str, name: str, outlets: list) -> bool:
        db = await self._open_database()
        try:
            await db.create_user(email=email, name=name, subscriptions=outlets)
        finally:
            await db.close()
        console.print(f"[bold green]User created:[/bold green] {email}")
        return True

    async def list_users(self) -> bool:
        db = await self._open_database()
        try:
            users = await db.list_users()
        finally:
            await db.close()

        table = Table(title=f"Registered users ({len(users)})")
        table.add_column("Email", style="white")
        table.add_column("Name")
        for outlet in Outlet:
            table.add_column(outlet.display_name, justify="center")
        for user in users:
            table.add_row(
                user.email,
                user.name or "",
                "yes" if user.newsletter_mamita else "no",
                "yes" if user.newsletter_boutique_cafe else "no",
            )
        console.print(table)
        return True

    async def subscribe_user(self, email: str, outlet: Outlet, subscribed: bool) -> bool:
        db = await self._open_database()
        try:
            found = await db.set_user_subscription(email, outlet, subscribed)
        finally:
            await db.close()
        if not found:
            console.print(f"[bold red]Error:[/bold red] User not found: {email}")
            return False
        state = "subscribed to" if subscribed else "unsubscribed from"
        console.print(f"{email} {state} {outlet.display_name}")
        return True


# Shown in help and errors as menu ids; argparse compares them to the parsed Outlet
OUTLET_CHOICES = [outlet.value for outlet in Outlet]


def _parse_outlet(value: str) -> Outlet:
    try:
        return Outlet(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"unknown outlet {value!r} (choose from {', '.join(OUTLET_CHOICES)})"
        )


def _outlet_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--outlet",
        type=_parse_outlet,
        choices=OUTLET_CHOICES,
        default=Outlet.MAMITA,
        help="Outlet menu id (menu_1: Le Mamita, menu_2: La Boutique Café)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mamita-newsletter",
        description="Daily menu newsletter tools",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    send_parser = subparsers.add_parser("send", help="Send the daily menu to subscribers")
    _outlet_argument(send_parser)
    send_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    preview_parser = subparsers.add_parser("preview", help="Render the email without sending")
    _outlet_argument(preview_parser)
    preview_parser.add_argument("--output", type=Path, help="Write the HTML body to this file")

    menu_parser = subparsers.add_parser("menu", help="Inspect or edit menus")
    menu_commands = menu_parser.add_subparsers(dest="menu_command", required=True)
    show_parser = menu_commands.add_parser("show")
    _outlet_argument(show_parser)
    paste_parser = menu_commands.add_parser("paste", help="Fill sections from pasted text")
    _outlet_argument(paste_parser)
    paste_parser.add_argument("file", type=Path)
    paste_parser.add_argument("--date", help="Date label for the menu")
    visibility_parser = menu_commands.add_parser("visibility", help="Show or hide a section")
    _outlet_argument(visibility_parser)
    visibility_parser.add_argument("section", help="Section title, e.g. Dessert")
    visibility_group = visibility_parser.add_mutually_exclusive_group(required=True)
    visibility_group.add_argument("--show", dest="visible", action="store_true")
    visibility_group.add_argument("--hide", dest="visible", action="store_false")
    set_parser = menu_commands.add_parser("set", help="Set the date, hours or image")
    _outlet_argument(set_parser)
    set_parser.add_argument("--date", help="Date label, e.g. Mercredi 30 Juillet 2025")
    set_parser.add_argument("--hours", help="Opening hours text")
    set_parser.add_argument("--image", help="Header image URL (empty to remove)")
    footer_parser = menu_commands.add_parser("footer", help="Set one footer line")
    _outlet_argument(footer_parser)
    footer_parser.add_argument("line", type=int, help="Footer line number, starting at 1")
    footer_parser.add_argument("text", help="New text (empty to clear)")
    reset_parser = menu_commands.add_parser("reset", help="Restore the default blank menu")
    _outlet_argument(reset_parser)

    subscribers_parser = subparsers.add_parser("subscribers", help="Manage subscriber lists")
    subscriber_commands = subscribers_parser.add_subparsers(dest="subscribers_command", required=True)
    list_parser = subscriber_commands.add_parser("list")
    _outlet_argument(list_parser)
    for name in ("add", "remove"):
        sub = subscriber_commands.add_parser(name)
        _outlet_argument(sub)
        sub.add_argument("email")

    users_parser = subparsers.add_parser("users", help="Manage registered users")
    user_commands = users_parser.add_subparsers(dest="users_command", required=True)
    user_commands.add_parser("list")
    add_user_parser = user_commands.add_parser("add")
    add_user_parser.add_argument("email")
    add_user_parser.add_argument("--name")
    add_user_parser.add_argument(
        "--subscribe", type=_parse_outlet, choices=OUTLET_CHOICES, action="append", default=[],
    )
    subscribe_parser = user_commands.add_parser("subscribe")
    subscribe_parser.add_argument("email")
    _outlet_argument(subscribe_parser)
    subscribe_parser.add_argument("--off", action="store_true", help="Unsubscribe instead")

    parser.add_argument("--log-level", help="Override the configured log level")
    return parser


async def run_command(cli: NewsletterCLI, args: argparse.Namespace) -> bool:
    if args.command == "init-db":
        return await cli.init_db()
    if args.command == "send":
        return await cli.send(args.outlet, assume_yes=args.yes)
    if args.command == "preview":
        return await cli.preview(args.outlet, args.output)
    if args.command == "menu":
        if args.menu_command == "show":
            return await cli.show_menu(args.outlet)
        if args.menu_command == "paste":
            return await cli.paste_menu(args.outlet, args.file, args.date)
        if args.menu_command == "visibility":
            return await cli.set_visibility(args.outlet, args.section, args.visible)
        if args.menu_command == "set":
            return await cli.set_menu_fields(args.outlet, args.date, args.hours, args.image)
        if args.menu_command == "footer":
            return await cli.set_footer_line(args.outlet, args.line, args.text)
        return await cli.reset_menu(args.outlet)
    if args.command == "subscribers":
        if args.subscribers_command == "list":
            return await cli.list_subscribers(args.outlet)
        if args.subscribers_command == "add":
            return await cli.add_subscriber(args.outlet, args.email)
        return await cli.remove_subscriber(args.outlet, args.email)
    if args.users_command == "list":
        return await cli.list_users()
    if args.users_command == "add":
        return await cli.add_user(args.email, args.name, args.subscribe)
    return await cli.subscribe_user(args.email, args.outlet, not args.off)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_logging(
        level=args.log_level or config.log_level,
        format_type=config.log_format,
    )

    try:
        ok = asyncio.run(run_command(NewsletterCLI(config), args))
    except NewsletterError as e:
        logger.error("Command failed", command=args.command, error=str(e))
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        return 130

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
