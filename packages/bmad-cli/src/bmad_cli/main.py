from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import typer
from bmad_common import __version__
from bmad_common.config import BmadConfig
from bmad_common.errors import BmadError, ConfigError
from bmad_kb import AgentManager, Catalog, ContentStore, agent_summary
from bmad_kb.tokens import fits_in_token_limit, token_usage_summary
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from bmad_kb.types import Agent

console = Console()

app = typer.Typer(
    name="bmad",
    help="BMAD Method: browse and activate agents from a BMAD content root",
    no_args_is_help=True,
)


def _config(ctx: typer.Context) -> BmadConfig:
    return ctx.obj


def _store(ctx: typer.Context) -> ContentStore:
    return ContentStore.from_config(_config(ctx))


def _not_found(message: str) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _dash(items: list[str]) -> str:
    return ", ".join(items) if items else "-"


@app.callback()
def _main(
    ctx: typer.Context,
    root: Path | None = typer.Option(
        None, "--root", help="BMAD content root (defaults to ./bmad-core)"
    ),
) -> None:
    """Load configuration, applying ``--root`` over config files and env."""
    config = BmadConfig.load()
    if root is not None:
        config = config.with_content_root(root)
    ctx.obj = config


@app.command()
def serve(ctx: typer.Context) -> None:
    """Run the MCP server over stdio."""
    from bmad_tools.server import serve as run_server

    try:
        run_server(_config(ctx))
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]", highlight=False)
        raise typer.Exit(1) from None


@app.command("agents")
def list_agents(
    ctx: typer.Context,
    packs: bool = typer.Option(False, "--packs", help="Include expansion-pack agents"),
    category: str = typer.Option("all", "--category", help="Agent category filter"),
) -> None:
    """List available agents."""
    manager = AgentManager(_store(ctx))
    agents = asyncio.run(manager.list_agents(packs, category))

    if not agents:
        console.print("[yellow]No agents found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="BMAD Agents", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Display Name")
    table.add_column("Role")
    table.add_column("Category")
    table.add_column("Commands", justify="right")
    table.add_column("Source", style="dim")

    for agent in agents:
        summary = agent_summary(agent)
        table.add_row(
            summary.name,
            summary.display_name,
            summary.role,
            summary.category,
            str(summary.command_count),
            summary.source,
        )

    console.print(table)
    console.print(f"\n[dim]{len(agents)} agent(s) found.[/dim]")


@app.command("agent")
def show_agent(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent name"),
    deps: bool = typer.Option(False, "--deps", help="Resolve and list dependencies"),
) -> None:
    """Show an agent definition."""
    manager = AgentManager(_store(ctx))
    try:
        agent = asyncio.run(manager.get_agent(name))
    except BmadError as exc:
        _not_found(str(exc))
    if agent is None:
        _not_found(f"Agent not found: {name}")

    console.print(Panel(_agent_details(agent), title=agent.display_name, border_style="cyan"))

    if agent.commands:
        table = Table(title="Commands", show_header=True, header_style="bold cyan")
        table.add_column("Command", style="bold")
        table.add_column("Description")
        table.add_column("Syntax", style="dim")
        for command in agent.commands:
            table.add_row(command.name, command.description, command.syntax)
        console.print(table)

    if deps:
        try:
            resolved = asyncio.run(manager.resolve_dependencies(agent))
        except BmadError as exc:
            _not_found(str(exc))
        console.print(
            f"[bold]Tasks:[/bold] {_dash([t.name for t in resolved.tasks])}\n"
            f"[bold]Templates:[/bold] {_dash([t.name for t in resolved.templates])}\n"
            f"[bold]Checklists:[/bold] {_dash([c.name for c in resolved.checklists])}\n"
            f"[bold]Data:[/bold] {_dash(list(resolved.data))}"
        )


def _agent_details(agent: Agent) -> str:
    lines = [
        f"[bold]Name:[/bold]      {agent.name}",
        f"[bold]Role:[/bold]      {agent.role}",
        f"[bold]Domain:[/bold]    {agent.primary_domain}",
        f"[bold]Source:[/bold]    {agent.source}",
    ]
    if agent.works_with:
        lines.append(f"[bold]Works with:[/bold] {', '.join(agent.works_with)}")
    if agent.persona:
        lines.append(f"\n{agent.persona}")
    return "\n".join(lines)


@app.command()
def activate(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent name"),
    project: str | None = typer.Option(None, "--project", help="Project path context"),
    command: str | None = typer.Option(None, "--command", help="Initial command"),
    budget: int | None = typer.Option(None, "--budget", help="Warn above this many tokens"),
    breakdown: bool = typer.Option(False, "--breakdown", help="Show tokens per prompt section"),
) -> None:
    """Print an agent's activation prompt."""
    manager = AgentManager(_store(ctx))
    try:
        result = asyncio.run(manager.activate_agent(name, project, command))
    except BmadError as exc:
        _not_found(str(exc))

    console.print(result.activation_prompt, markup=False, highlight=False)
    console.print(f"\n[dim]~{result.token_estimate} tokens[/dim]")

    if budget is not None and not fits_in_token_limit(result.activation_prompt, budget):
        console.print(
            f"[yellow]Activation prompt exceeds budget of {budget} tokens.[/yellow]"
        )

    if breakdown:
        sections = manager.composer.sections(result.agent, project, command)
        summary = token_usage_summary({s.key: s.text for s in sections})
        table = Table(title="Token Usage", show_header=True, header_style="bold cyan")
        table.add_column("Section", style="bold")
        table.add_column("Tokens", justify="right")
        table.add_column("Share", justify="right")
        for item in summary.items:
            table.add_row(item.name, str(item.tokens), f"{item.percentage:.1f}%")
        table.add_row("[bold]total[/bold]", str(summary.total_tokens), "")
        console.print(table)


@app.command()
def tasks(
    ctx: typer.Context,
    agent: str | None = typer.Option(None, "--agent", help="Only tasks used by this agent"),
) -> None:
    """List tasks."""
    summaries = asyncio.run(Catalog(_store(ctx)).list_tasks(agent))
    if not summaries:
        console.print("[yellow]No tasks found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="BMAD Tasks", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Description")
    table.add_column("Agents")
    for task in summaries:
        table.add_row(task.name, task.description, _dash(task.agents))
    console.print(table)


@app.command()
def templates(
    ctx: typer.Context,
    category: str | None = typer.Option(None, "--category", help="Template category filter"),
) -> None:
    """List templates."""
    summaries = asyncio.run(Catalog(_store(ctx)).list_templates(category))
    if not summaries:
        console.print("[yellow]No templates found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="BMAD Templates", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Sections", justify="right")
    table.add_column("Variables")
    for template in summaries:
        table.add_row(
            template.name,
            template.type,
            str(template.section_count),
            _dash(template.variables),
        )
    console.print(table)


@app.command()
def workflows(
    ctx: typer.Context,
    project_type: str | None = typer.Option(
        None, "--type", help="greenfield, brownfield or maintenance"
    ),
) -> None:
    """List workflows."""
    summaries = asyncio.run(Catalog(_store(ctx)).list_workflows(project_type))
    if not summaries:
        console.print("[yellow]No workflows found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="BMAD Workflows", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Phases", justify="right")
    table.add_column("Duration")
    table.add_column("Description")
    for workflow in summaries:
        table.add_row(
            workflow.name,
            workflow.type,
            str(workflow.phase_count),
            workflow.estimated_duration or "-",
            workflow.description,
        )
    console.print(table)


@app.command()
def kb(ctx: typer.Context) -> None:
    """Print the knowledge base document."""
    content = asyncio.run(_store(ctx).get_knowledge_base())
    if not content:
        _not_found("Knowledge base not found")
    console.print(Markdown(content))


@app.command()
def teams(ctx: typer.Context) -> None:
    """List agent teams."""
    summaries = asyncio.run(Catalog(_store(ctx)).list_teams())
    if not summaries:
        console.print("[yellow]No teams found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="BMAD Teams", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Agents")
    table.add_column("Workflow")
    table.add_column("Description")
    for team in summaries:
        table.add_row(team.name, _dash(team.agents), team.workflow or "-", team.description)
    console.print(table)


@app.command()
def packs(ctx: typer.Context) -> None:
    """List expansion packs."""
    found = asyncio.run(_store(ctx).list_expansion_packs())
    if not found:
        console.print("[yellow]No expansion packs found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="Expansion Packs", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Version", justify="center")
    table.add_column("Category")
    table.add_column("Agents")
    table.add_column("Description")
    for pack in found:
        table.add_row(
            pack.name,
            pack.version,
            pack.category,
            _dash(pack.agents),
            pack.description,
        )
    console.print(table)


@app.command()
def version() -> None:
    """Show the bmad version."""
    console.print(f"bmad {__version__}")


def main() -> None:
    app()
