"""
genchangelog CLI Interface

Command line interface for generating ChangeLog files from git history
"""
import sys
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape
from rich.table import Table

from genchangelog.core.changelog_builder import ChangelogBuilder
from genchangelog.core.file_merger import ChangelogFile
from genchangelog.core.git_history import GitHistoryProvider
from genchangelog.core.mailbox_applier import MailboxApplier
from genchangelog.exceptions import ChangelogError
from genchangelog.utils.config import ChangelogConfig
from genchangelog.utils.logger import console, setup_logger


def _fail(error: ChangelogError) -> None:
    console.print(f"[bold red]error:[/bold red] {escape(str(error))}", highlight=False, soft_wrap=True)
    sys.exit(1)


def _open_repository(ctx) -> GitHistoryProvider:
    provider = GitHistoryProvider(ctx.obj['repo'])
    provider.ensure_work_tree()
    return provider


def _configure_logging(ctx, config: ChangelogConfig) -> None:
    setup_logger(ctx.obj['log_level'] or config.log_level, ctx.obj['log_file'])


def _load_config(ctx, provider: Optional[GitHistoryProvider], **overrides) -> ChangelogConfig:
    search_dir = str(provider.work_tree) if provider else ctx.obj['repo']
    config = ChangelogConfig.load(ctx.obj['config_file'], search_dir=search_dir)
    return config.with_overrides(**overrides)


@click.group()
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
    default=None,
    help='Set the logging level'
)
@click.option(
    '--config',
    'config_file',
    type=click.Path(),
    help='Path to configuration file'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False),
    help='Also write DEBUG level logs to this file'
)
@click.option(
    '-C', '--repo',
    default='.',
    type=click.Path(file_okay=False),
    help='Run as if started in this directory'
)
@click.pass_context
def cli(ctx, log_level, config_file, log_file, repo):
    """genchangelog - ChangeLog files from git history"""
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config_file
    ctx.obj['repo'] = repo
    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


@cli.command()
@click.argument('new_rev', default='HEAD')
@click.option('--old', 'old_rev', help='Exclusive lower boundary (default: newest hash in the changelog)')
@click.option('--initial', is_flag=True, help='Initial import of the whole history up to NEW_REV')
@click.option('--change-log', 'changelog_path', help='Changelog file to update')
@click.option('--disable-hash/--no-disable-hash', default=None, help='Omit the hash field')
@click.option('--hash-length', type=click.IntRange(min=1), help='Length of abbreviated hashes')
@click.option('--line-length', type=click.IntRange(min=1), help='Wrap width')
@click.option('--tab-width', type=click.IntRange(min=1), help='Columns counted for a tab')
@click.option('--local-time/--no-local-time', default=None, help="Use today's date instead of commit dates")
@click.option('--pre-load/--no-pre-load', default=None, help='Merge into the existing top stanza')
@click.option('--use-x-seq/--no-use-x-seq', default=None, help='Extract X-Seq tags from subjects')
@click.option('--stdout', 'to_stdout', is_flag=True, help='Print the new entries instead of updating the file')
@click.pass_context
def generate(ctx, new_rev, old_rev, initial, changelog_path, disable_hash, hash_length,
             line_length, tab_width, local_time, pre_load, use_x_seq, to_stdout):
    """Update the changelog with the commits up to NEW_REV"""
    if initial and old_rev:
        raise click.UsageError("--initial and --old are mutually exclusive")

    try:
        provider = _open_repository(ctx)
        config = _load_config(
            ctx,
            provider,
            changelog_path=changelog_path,
            disable_hash=disable_hash,
            hash_length=hash_length,
            line_length=line_length,
            tab_width=tab_width,
            use_local_date=local_time,
            preload_top_stanza=pre_load,
            use_xseq_prefix=use_x_seq,
        )
        _configure_logging(ctx, config)

        builder = ChangelogBuilder(config, provider)
        changelog = ChangelogFile(provider.work_tree / config.changelog_path)

        if to_stdout:
            if old_rev is None and not initial:
                old_rev = changelog.infer_old_revision(provider)
            result = builder.generate(new_rev, old_rev)
            click.echo(result.text, nl=False)
            return

        result = changelog.update(builder, new_rev, old_rev, initial)
    except ChangelogError as e:
        _fail(e)

    console.print(
        f"[green]✓[/green] {result.commit_count} commit(s) written to {changelog.path}",
        highlight=False,
    )


@cli.command('apply-mailbox')
@click.argument('mailbox_path', type=click.Path(exists=True))
@click.option('--no-amend', is_flag=True, help='Leave the changelog update uncommitted')
@click.pass_context
def apply_mailbox(ctx, mailbox_path, no_amend):
    """Apply every patch in MAILBOX and regenerate the changelog after each

    Amending gives each applied commit a new hash while the changelog keeps
    the old one, so later runs need --old unless disable-hash is set.
    """
    try:
        provider = _open_repository(ctx)
        config = _load_config(ctx, provider)
        _configure_logging(ctx, config)

        applied = MailboxApplier(provider, config, amend=not no_amend).apply(Path(mailbox_path))
    except ChangelogError as e:
        _fail(e)

    console.print(f"[green]✓[/green] {len(applied)} patch(es) applied", highlight=False)


@cli.command('check-config')
@click.pass_context
def check_config(ctx):
    """Show the effective configuration"""
    try:
        config = _load_config(ctx, None)
        _configure_logging(ctx, config)
    except ChangelogError as e:
        _fail(e)

    table = Table(title="genchangelog configuration")
    table.add_column("Option", style="cyan")
    table.add_column("Value", style="yellow")

    for option, value in config.to_options().items():
        table.add_row(option, str(value))

    console.print(table)


def main():
    """Console script entry point"""
    cli()


if __name__ == "__main__":
    main()
