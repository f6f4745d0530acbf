#!/usr/bin/env python3
"""
Terminal dashboard for browsing workflows.

Typed lines behave like edits to the search box: they are debounced before
the list refreshes, and an empty line clears the search at once. Lines
starting with ``:`` are commands (see ``help``).
"""

import argparse
import getpass
import logging
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from app.client.api_client import ApiClient, ApiError
from app.client.params import ParamsStore, SearchParams
from app.client.query_cache import QueryCache
from app.client.search import SearchParamsController, ThreadTimerScheduler
from app.client import workflows
from app.core.config import settings
from app.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


class WorkflowsConsole:
    """Interactive workflow list hosting one SearchParamsController."""

    def __init__(self, api: ApiClient, query_string: str = "", console: Optional[Console] = None):
        self.console = console or Console()
        self.api = api
        self.cache = QueryCache(stale_time=settings.query_stale_time_seconds)
        self.store = ParamsStore.from_url(query_string)
        self.scheduler = ThreadTimerScheduler()
        self.search = SearchParamsController(
            self.store.value,
            self.store.set,
            self.scheduler,
            debounce_ms=settings.search_debounce_ms,
        )
        self._unsubscribe = self.store.subscribe(self._on_params_changed)
        self._last_page: dict = {}

    def notify(self, level: str, message: str) -> None:
        style = "red" if level == "error" else "green"
        self.console.print(f"[{style}]{message}[/{style}]")

    def close(self) -> None:
        self._unsubscribe()
        self.search.close()
        self.cache.clear()

    def _on_params_changed(self, params: SearchParams) -> None:
        self.search.sync(params)
        self.render()

    def print_welcome(self):
        self.console.print(Panel.fit(
            "[green]Type to filter workflows by name.[/green]\n\n"
            "• An empty line clears the search\n"
            "• Type 'help' for commands, ':quit' to exit",
            title=Text("Workflow Atlas", style="bold blue"),
            border_style="blue",
        ))

    def print_help(self):
        help_table = Table(title="Available Commands")
        help_table.add_column("Command", style="cyan", no_wrap=True)
        help_table.add_column("Description", style="white")

        help_table.add_row("<text>", "Search workflows (debounced)")
        help_table.add_row("<empty line>", "Clear the search immediately")
        help_table.add_row(":next / :prev", "Change page")
        help_table.add_row(":new", "Create a workflow")
        help_table.add_row(":rm ID", "Remove a workflow")
        help_table.add_row(":rename ID NAME", "Rename a workflow")
        help_table.add_row(":run ID", "Execute a workflow in the background")
        help_table.add_row(":job ID", "Show a job run")
        help_table.add_row(":url", "Show the current query string")
        help_table.add_row(":whoami", "Show the signed-in account")
        help_table.add_row(":logout", "Sign out and exit")
        help_table.add_row(":quit", "Exit")
        self.console.print(help_table)

    def render(self) -> None:
        params = self.store.value
        try:
            page = workflows.fetch_workflows(self.api, self.cache, params)
        except ApiError as e:
            self.notify("error", f"Failed to load workflows: {e.detail}")
            return
        self._last_page = page

        table = Table(title=f"Workflows (search: {params.search!r})")
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Name", style="cyan")
        table.add_column("Created", style="white")
        for item in page["items"]:
            table.add_row(item["id"], item["name"], str(item["created_at"]))
        if not page["items"]:
            table.add_row("", "[dim]No workflows found[/dim]", "")

        self.console.print(table)
        self.console.print(
            f"[dim]Page {page['page']} of {max(page['total_pages'], 1)} · {page['total']} total[/dim]"
        )

    def show_session(self) -> None:
        try:
            session = self.api.session()
        except ApiError as e:
            self.notify("error", f"Failed to load session: {e.detail}")
            return
        if not session["authenticated"]:
            self.notify("error", "Not signed in")
            return
        plan = "premium" if session["is_premium"] else "free"
        self.console.print(f"{session['user']['email']} [dim]({plan})[/dim]")

    def logout(self) -> bool:
        """Sign out; the console exits either way since the token is gone."""
        try:
            self.api.logout()
        except ApiError as e:
            self.notify("error", f"Sign-out request failed: {e.detail}")
        else:
            self.notify("success", "Signed out")
        return False

    def _change_page(self, delta: int) -> None:
        params = self.store.value
        if delta > 0 and not self._last_page.get("has_next_page"):
            self.notify("error", "Already on the last page")
            return
        if delta < 0 and params.page <= 1:
            self.notify("error", "Already on the first page")
            return
        self.store.set(params.replace(page=params.page + delta))

    def run_command(self, command: str, args: List[str]) -> bool:
        """Dispatch a ``:command``; returns False when the console should exit."""
        if command in ("quit", "exit", "q"):
            return False
        if command == "next":
            self._change_page(1)
        elif command == "prev":
            self._change_page(-1)
        elif command == "new":
            workflows.after_create(workflows.create_workflow(self.api), self.cache, self.notify)
            self.render()
        elif command == "rm" and args:
            workflows.after_remove(workflows.remove_workflow(self.api, args[0]), self.cache, self.notify)
            self.render()
        elif command == "rename" and len(args) >= 2:
            result = workflows.rename_workflow(self.api, args[0], " ".join(args[1:]))
            workflows.after_rename(result, self.cache, self.notify)
            self.render()
        elif command == "run" and args:
            workflows.after_execute(workflows.execute_workflow(self.api, args[0]), self.notify)
        elif command == "job" and args:
            try:
                self.console.print_json(data=self.api.get_job_run(args[0]))
            except ApiError as e:
                self.notify("error", e.detail)
        elif command == "url":
            self.console.print(self.store.url or "(defaults)")
        elif command == "whoami":
            self.show_session()
        elif command == "logout":
            return self.logout()
        else:
            self.print_help()
        return True

    def handle_line(self, line: str) -> bool:
        if line.strip() == "help":
            self.print_help()
            return True
        if line.startswith(":"):
            parts = line[1:].split()
            if not parts:
                self.print_help()
                return True
            with self.scheduler.lock:
                return self.run_command(parts[0].lower(), parts[1:])
        with self.scheduler.lock:
            self.search.on_user_input(line)
        return True

    def run(self) -> None:
        self.print_welcome()
        with self.scheduler.lock:
            self.render()
        try:
            while True:
                line = Prompt.ask(f"[bold]search[/bold] [dim]({self.search.get_display_value()!r})[/dim]")
                if not self.handle_line(line):
                    break
        except (KeyboardInterrupt, EOFError):
            self.console.print()
        finally:
            self.close()
            self.console.print("[dim]Goodbye![/dim]")


def main():
    parser = argparse.ArgumentParser(description="Browse workflows from the terminal.")
    parser.add_argument("--url", default="http://localhost:8000", help="API base URL")
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--query", default="", help="Initial query string, e.g. 'search=report&page=2'")
    args = parser.parse_args()

    configure_logging("WARNING")
    api = ApiClient(args.url)
    try:
        api.login(args.email, getpass.getpass("Password: "))
    except ApiError as e:
        Console().print(f"[red]Login failed: {e.detail}[/red]")
        raise SystemExit(1)

    WorkflowsConsole(api, query_string=args.query).run()


if __name__ == "__main__":
    main()
