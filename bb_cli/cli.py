"""Typer-based CLI for bb."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .aliases import AliasManager
from .browse import BrowseTarget, build_browse_url, describe_target
from .config import Config, load_config, save_config
from .exceptions import NO_CONTEXT_HINT, BitbucketCliError, ConfigError, UrlFormatError
from .git import GitRemoteReader, current_branch
from .http import METHODS, ApiClient, build_body, parse_headers
from .interactive import require_confirmation
from .models import HostConfig, HostType, RepoContext, RepoOptions
from .resolver import ContextResolver

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Work with Bitbucket Cloud and Bitbucket Server/Data Center from the command line.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Read and write bb settings.", no_args_is_help=True)
alias_app = typer.Typer(help="Create shortcuts for bb commands.", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(alias_app, name="alias")

console = Console()

BUILTIN_COMMANDS = frozenset({"context", "browse", "api", "config", "alias"})
GLOBAL_VALUE_OPTIONS = frozenset({"--repo", "-R", "--host"})


@dataclass
class AppState:
    options: RepoOptions
    verbose: bool = False


def configure_logging(verbose: bool) -> None:
    debug = verbose or bool(os.environ.get("BB_DEBUG"))
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)
    logging.getLogger("bb_cli").setLevel(level)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"bb {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    repo: str | None = typer.Option(
        None,
        "--repo",
        "-R",
        envvar="BB_REPO",
        help="Target repository as WORKSPACE/REPO (Cloud) or PROJECT/REPO (Server).",
    ),
    host: str | None = typer.Option(
        None,
        "--host",
        envvar="BB_HOST",
        help="Bitbucket host used with --repo (defaults to bitbucket.org).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the bb version and exit.",
    ),
) -> None:
    _ = version  # handled via callback
    configure_logging(verbose)
    ctx.obj = AppState(options=RepoOptions(repo=repo, host=host), verbose=verbose)


@app.command(help="Show the repository bb resolves for the current invocation")
def context(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output JSON for scripting."),
) -> None:
    state = _require_state(ctx)
    repo_ctx = _resolve(state)
    branch = current_branch() if state.options.repo is None else None
    if as_json:
        data = repo_ctx.to_dict()
        data["current_branch"] = branch
        typer.echo(json.dumps(data, indent=2))
        return
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Host", repo_ctx.host)
    table.add_row("Host type", repo_ctx.host_type.label)
    table.add_row(repo_ctx.host_type.owner_label, repo_ctx.owner)
    table.add_row("Repository", repo_ctx.repo_slug)
    if repo_ctx.default_branch:
        table.add_row("Default branch", repo_ctx.default_branch)
    if branch:
        table.add_row("Current branch", branch)
    table.add_row("Web URL", repo_ctx.web_url())
    table.add_row("API URL", repo_ctx.api_url())
    console.print(table)


@app.command(help="Open the repository (or one of its pages) in a web browser")
def browse(
    ctx: typer.Context,
    path: str | None = typer.Argument(None, help="File or directory to open."),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Branch to view."),
    commit: str | None = typer.Option(None, "--commit", "-c", help="Commit to view."),
    settings: bool = typer.Option(False, "--settings", help="Open repository settings."),
    issues: bool = typer.Option(False, "--issues", help="Open the issue tracker (Cloud only)."),
    prs: bool = typer.Option(False, "--prs", help="Open pull requests."),
    pipelines: bool = typer.Option(False, "--pipelines", help="Open pipelines (Cloud only)."),
    wiki: bool = typer.Option(False, "--wiki", help="Open the wiki (Cloud only)."),
    projects: bool = typer.Option(False, "--projects", help="Open the workspace projects or Server project."),
    branches: bool = typer.Option(False, "--branches", help="Open the branch list."),
    commits: bool = typer.Option(False, "--commits", help="Open the commit history."),
    downloads: bool = typer.Option(False, "--downloads", help="Open downloads (Cloud only)."),
    print_only: bool = typer.Option(False, "--print", "-p", help="Print the URL instead of opening it."),
) -> None:
    state = _require_state(ctx)
    flags = {
        BrowseTarget.SETTINGS: settings,
        BrowseTarget.ISSUES: issues,
        BrowseTarget.PRS: prs,
        BrowseTarget.PIPELINES: pipelines,
        BrowseTarget.WIKI: wiki,
        BrowseTarget.PROJECTS: projects,
        BrowseTarget.BRANCHES: branches,
        BrowseTarget.COMMITS: commits,
        BrowseTarget.DOWNLOADS: downloads,
    }
    selected = [target for target, enabled in flags.items() if enabled]
    if len(selected) > 1:
        _fail("Specify only one of " + ", ".join(f"--{target.value}" for target in selected) + ".")
    target = selected[0] if selected else BrowseTarget.REPO
    repo_ctx = _resolve(state)
    try:
        url = build_browse_url(repo_ctx, target, path=path, branch=branch, commit=commit)
    except BitbucketCliError as err:
        _fail(str(err))
    if print_only:
        typer.echo(url)
        return
    console.print(f"[cyan]→[/cyan] Opening {describe_target(target, path)} in browser...")
    typer.launch(url)


@app.command(help="Make an authenticated request to the Bitbucket REST API")
def api(
    ctx: typer.Context,
    endpoint: str = typer.Argument(
        ...,
        help="Path relative to the API root. {owner}, {workspace}, {project} and {repo} are filled in.",
    ),
    method: str = typer.Option("GET", "--method", "-X", help=f"HTTP method ({', '.join(METHODS)})."),
    header: list[str] = typer.Option([], "--header", "-H", help="Extra header as 'Name: value'."),
    field: list[str] = typer.Option([], "--field", "-F", help="Body field as key=value (dots nest)."),
    include: bool = typer.Option(False, "--include", "-i", help="Print the status line and headers."),
    silent: bool = typer.Option(False, "--silent", help="Do not print the response body."),
    timeout: float = typer.Option(30, "--timeout", help="Request timeout in seconds."),
) -> None:
    state = _require_state(ctx)
    repo_ctx = _resolve(state)
    try:
        client = ApiClient(repo_ctx, timeout=timeout)
        response = client.request(
            method,
            endpoint,
            body=build_body(field),
            headers=parse_headers(header),
        )
    except BitbucketCliError as err:
        _fail(str(err))
    if include:
        typer.echo(f"HTTP {response.status_code} {response.reason}")
        for name, value in response.headers.items():
            typer.echo(f"{name}: {value}")
        typer.echo("")
    if silent or not response.text:
        return
    try:
        payload = response.json()
    except ValueError:
        typer.echo(response.text)
        return
    typer.echo(json.dumps(payload, indent=2))


@config_app.command("get", help="Print the value of a setting")
def config_get(key: str = typer.Argument(..., help=f"One of: {', '.join(Config.KEYS)}.")) -> None:
    config = _load_config()
    if key not in Config.KEYS:
        _fail(f"Unknown configuration key: {key}")
    value = config.get(key)
    if value is not None:
        typer.echo(value)


@config_app.command("set", help="Update a setting")
def config_set(
    key: str = typer.Argument(..., help=f"One of: {', '.join(Config.KEYS)}."),
    value: str = typer.Argument(...),
) -> None:
    config = _load_config()
    try:
        known = config.set(key, value)
    except ConfigError as err:
        _fail(str(err))
    if not known:
        _fail(f"Unknown configuration key: {key}")
    path = save_config(config)
    logger.debug("Saved %s=%s to %s", key, value, path)
    console.print(f"[green]✓[/green] Set {key} to {value}")


@config_app.command("list", help="Show all settings and configured hosts")
def config_list(as_json: bool = typer.Option(False, "--json", help="Output JSON for scripting.")) -> None:
    config = _load_config()
    if as_json:
        typer.echo(json.dumps(config.to_dict(), indent=2))
        return
    for key in Config.KEYS:
        value = config.get(key)
        typer.echo(f"{key}={'' if value is None else value}")
    if not config.hosts:
        return
    table = Table(title="Hosts", show_header=True, header_style="bold")
    table.add_column("Host")
    table.add_column("Type")
    table.add_column("User")
    table.add_column("Default workspace/project")
    for name, entry in sorted(config.hosts.items()):
        table.add_row(
            name,
            entry.host_type.value if entry.host_type else "auto",
            entry.user or "",
            entry.default_workspace or entry.default_project or "",
        )
    console.print(table)


@config_app.command("set-host", help="Record settings for a Bitbucket host")
def config_set_host(
    host: str = typer.Argument(..., help="Host name, e.g. bitbucket.example.com."),
    host_type: HostType | None = typer.Option(
        None,
        "--type",
        case_sensitive=False,
        help="Force the host type instead of detecting it from the host name.",
    ),
    user: str | None = typer.Option(None, "--user", help="Username on this host."),
    workspace: str | None = typer.Option(None, "--workspace", help="Default workspace (Cloud)."),
    project: str | None = typer.Option(None, "--project", help="Default project key (Server)."),
) -> None:
    config = _load_config()
    entry = HostConfig(
        host=host,
        host_type=host_type,
        user=user,
        default_workspace=workspace,
        default_project=project,
    )
    if not host.strip():
        _fail("Host name cannot be empty.")
    config.set_host(entry)
    save_config(config)
    console.print(f"[green]✓[/green] Saved settings for {entry.host}")


@alias_app.command("set", help="Create or replace an alias")
def alias_set(
    name: str = typer.Argument(..., help="Alias name."),
    expansion: str = typer.Argument(..., help="Command the alias expands to, e.g. 'browse --prs'."),
    shell: bool = typer.Option(False, "--shell", "-s", help="Run the expansion through sh."),
) -> None:
    config = _load_config()
    manager = AliasManager(config, BUILTIN_COMMANDS)
    existed = manager.get(name) is not None
    try:
        manager.set(name, expansion, shell=shell)
    except BitbucketCliError as err:
        _fail(str(err))
    save_config(config)
    verb = "Changed" if existed else "Added"
    console.print(f"[green]✓[/green] {verb} alias {name}")


@alias_app.command("list", help="Show configured aliases")
def alias_list(as_json: bool = typer.Option(False, "--json", help="Output JSON for scripting.")) -> None:
    manager = AliasManager(_load_config(), BUILTIN_COMMANDS)
    aliases = manager.list()
    if as_json:
        data = {name: {"expansion": entry.expansion, "shell": entry.shell} for name, entry in aliases.items()}
        typer.echo(json.dumps(data, indent=2))
        return
    if not aliases:
        console.print("No aliases configured.")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Expansion")
    table.add_column("Shell")
    for name, entry in aliases.items():
        table.add_row(name, entry.expansion, "yes" if entry.shell else "")
    console.print(table)


@alias_app.command("delete", help="Remove an alias")
def alias_delete(
    name: str = typer.Argument(..., help="Alias name."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    config = _load_config()
    manager = AliasManager(config, BUILTIN_COMMANDS)
    if manager.get(name) is None:
        _fail(f"No such alias: {name}")
    try:
        require_confirmation(f"Delete alias '{name}'?", assume_yes=yes)
    except BitbucketCliError as err:
        _fail(str(err))
    manager.delete(name)
    save_config(config)
    console.print(f"[green]✓[/green] Deleted alias {name}")


def _require_state(ctx: typer.Context) -> AppState:
    state = ctx.find_root().obj
    if not isinstance(state, AppState):  # pragma: no cover
        raise typer.Exit(1)
    return state


def _load_config() -> Config:
    try:
        return load_config()
    except ConfigError as err:
        _fail(str(err))


def _resolve(state: AppState) -> RepoContext:
    config = _load_config()
    resolver = ContextResolver(config, GitRemoteReader())
    try:
        return resolver.resolve(state.options)
    except UrlFormatError as err:
        _fail(f"{err}. {NO_CONTEXT_HINT}")
    except BitbucketCliError as err:
        _fail(str(err))


def _fail(message: str, code: int = 1) -> NoReturn:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code)


def _command_index(args: list[str]) -> int | None:
    """Return the position of the first command word, skipping global options."""

    index = 0
    while index < len(args):
        arg = args[index]
        if arg == "--":
            return index + 1 if index + 1 < len(args) else None
        if arg in GLOBAL_VALUE_OPTIONS:
            index += 2
            continue
        if arg.startswith("-"):
            index += 1
            continue
        return index
    return None


def main(argv: list[str] | None = None) -> None:
    """Console entrypoint: expand aliases, then hand off to Typer."""

    args = list(sys.argv[1:] if argv is None else argv)
    index = _command_index(args)
    if index is not None and args[index] not in BUILTIN_COMMANDS:
        try:
            manager = AliasManager(load_config(), BUILTIN_COMMANDS)
            expanded, shell = manager.expand_args(args[index:])
        except BitbucketCliError as err:
            typer.secho(str(err), err=True, fg=typer.colors.RED)
            raise SystemExit(1) from err
        if shell:
            logger.debug("Running shell alias %s", args[index])
            raise SystemExit(subprocess.run(expanded, check=False).returncode)
        if expanded != args[index:]:
            logger.debug("Expanded alias %s to %s", args[index], expanded)
        args = args[:index] + expanded
    app(args=args, prog_name="bb")


if __name__ == "__main__":
    main()
