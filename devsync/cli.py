import click


@click.group()
@click.option("--projects-root", default=None, help="Projects root (default: from DEVSYNC_PROJECTS_ROOT or /projects).")
@click.option("--devfile", "devfile_path", default=None, help="Devfile path (default: from DEVSYNC_DEVFILE_PATH).")
@click.option("--log-level", default=None, help="Log level (default: from DEVSYNC_LOG_LEVEL or INFO).")
@click.pass_context
def main(ctx: click.Context, projects_root: str | None, devfile_path: str | None, log_level: str | None) -> None:
    """devsync - keep workspace projects, devfile and open folders in sync."""
    from devsync.workspace.log import setup_logging
    from devsync.workspace.settings import get_settings

    overrides = {
        key: value
        for key, value in (("projects_root", projects_root), ("devfile_path", devfile_path), ("log_level", log_level))
        if value is not None
    }
    settings = get_settings().model_copy(update=overrides)
    setup_logging(settings.log_level, settings.log_file)
    ctx.obj = settings


@main.command()
@click.pass_obj
def run(settings) -> None:
    """Import missing projects, then watch the projects root until interrupted."""
    import asyncio

    from devsync.workspace.service import build_service, serve

    asyncio.run(serve(build_service(settings)))


@main.command(name="import")
@click.option("--trust-all", is_flag=True, default=False, help="Do not ask before importing from a remote.")
@click.option("--non-interactive", is_flag=True, default=False, help="Never ask questions; dismiss them instead.")
@click.pass_obj
def import_(settings, trust_all: bool, non_interactive: bool) -> None:
    """Import missing projects once and exit.  Exits with 1 if any import failed."""
    import asyncio

    from devsync.workspace.service import build_service, import_once

    settings = settings.model_copy(
        update={
            "trust_all": settings.trust_all or trust_all,
            "interactive": settings.interactive and not non_interactive,
        }
    )
    results = asyncio.run(import_once(build_service(settings)))

    failed = 0
    for result in results:
        if result.ok:
            click.echo(f"imported  {result.name} -> {result.path}")
        elif result.skipped:
            click.echo(f"skipped   {result.name}: {result.error}")
        else:
            failed += 1
            click.echo(f"failed    {result.name}: {result.error}", err=True)
    if not results:
        click.echo("Nothing to import.")
    if failed:
        raise SystemExit(1)


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.pass_obj
def sync(settings, path: str) -> None:
    """Write the git project in PATH into the devfile."""
    import asyncio

    from devsync.workspace.git import get_upstream_branch
    from devsync.workspace.managers.devfile import DescriptorIOError, DevfileUpdater
    from devsync.workspace.store.local import LocalDevfileStore

    async def _sync() -> bool:
        branch = await get_upstream_branch(path)
        if branch is None or not branch.remote_url:
            return False
        updater = DevfileUpdater(LocalDevfileStore(settings.devfile_path), settings.projects_root)
        await updater.update_project(path, branch.remote_url, branch.branch)
        return True

    try:
        synced = asyncio.run(_sync())
    except DescriptorIOError as exc:
        click.echo(f"{exc}: {exc.__cause__}", err=True)
        raise SystemExit(1) from exc

    if not synced:
        click.echo(f"Could not detect git project branch for {path}.", err=True)
        raise SystemExit(1)
    click.echo(f"Devfile {settings.devfile_path} synchronized with {path}.")


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def upstream(path: str) -> None:
    """Print the upstream branch and remote URL of the git project in PATH."""
    import asyncio

    from devsync.workspace.git import get_upstream_branch

    branch = asyncio.run(get_upstream_branch(path))
    if branch is None:
        click.echo(f"No upstream branch for {path}.", err=True)
        raise SystemExit(1)
    click.echo(f"{branch.remote}/{branch.branch} {branch.remote_url or '-'}")


if __name__ == "__main__":
    main()
