from rich.console import Console
from rich.table import Table
from rich.markup import escape

console = Console()


class ScannerUI:
    def __init__(self):
        self.console = console

    def display_welcome(self):
        self.console.rule("[bold red]nmaprobot - parallel nmap runner[/bold red]")

    def show_command(self, command):
        self.console.print(f"[dim]Running: {escape(command)}[/dim]")

    def display_results(self, reports, duration):
        """
        One row per target block. Structured reports show how many <host>
        entries came back, raw ones their size.
        """
        table = Table(title="Scan Results", show_header=True, header_style="bold magenta")
        table.add_column("Block", style="cyan", overflow="fold")
        table.add_column("Format", style="yellow")
        table.add_column("Output", style="white", justify="right")

        for block, report in reports.items():
            if isinstance(report, dict):
                table.add_row(block, "json", f"{len(report.get('host', []))} host(s)")
            else:
                table.add_row(block, "xml", f"{len(report)} chars")

        self.console.print(table)
        self.console.print(f"\n[bold]Scan completed in {duration:.2f} seconds.[/bold]")

    def show_errors(self, error):
        errors = getattr(error, "errors", None) or [error]
        for e in errors:
            self.console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")

    def show_message(self, msg, style="bold red"):
        self.console.print(f"[{style}]{msg}[/{style}]")

    def show_saved(self, filename):
        self.console.print(f"[dim]Results saved to {filename}[/dim]")
