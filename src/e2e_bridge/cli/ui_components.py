"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from presentation details.
- Lets several commands reuse the same tables.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from e2e_bridge.core.domain.models import RouteCollection


def print_banner(console: Console, *, base_url: str, prefix: str) -> None:
    title = Text("e2e-bridge", style="bold cyan")
    subtitle = Text(f"{base_url.rstrip('/')}{prefix}", style="dim")
    console.print(Panel(Text.assemble(title, "\n", subtitle), border_style="cyan", padding=(0, 2)))


def build_routes_table(routes: RouteCollection) -> Table:
    table = Table(title=f"Routes ({len(routes)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Method", style="green")
    table.add_column("URI", style="white")
    table.add_column("Domain", style="magenta")
    table.add_column("Action", style="dim")
    for name in sorted(routes.names()):
        route = routes[name]
        table.add_row(
            name or "-",
            "|".join(route.method),
            route.uri,
            route.domain or "",
            route.action,
        )
    return table
