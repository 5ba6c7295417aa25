import logging
import sys

import click

from mysql_restore.config import load_topology
from mysql_restore.constants import (
    DEFAULT_CONFIG_PATH,
    EXIT_COLLABORATOR_FAILURE,
    EXIT_OK,
    EXIT_USAGE_ERROR,
    EXIT_VALIDATION_ERROR,
    PROGRAM_NAME,
    PROGRAM_VERSION,
)
from mysql_restore.dto import RestoreOptions
from mysql_restore.exceptions import (
    CollaboratorFailure,
    InvalidMode,
    UsageError,
    ValidationError,
    VersionListRequested,
)
from mysql_restore.instance import MysqldControl
from mysql_restore.metrics import push_metrics
from mysql_restore.mode import resolve_mode
from mysql_restore.restore import RestoreManager
from mysql_restore.transport import BackupTransport


logger = logging.getLogger(__name__)


def print_version(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"{PROGRAM_NAME} {PROGRAM_VERSION}")
    ctx.exit(EXIT_OK)


def validate_mode(ctx, param, value):
    try:
        return resolve_mode(value)
    except InvalidMode as e:
        raise click.BadParameter(str(e))


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command(name=PROGRAM_NAME)
@click.option('--config', 'config_path', help='Cluster configuration file', default=DEFAULT_CONFIG_PATH, show_default=True)
@click.option('--src-dir', help='Backup directory to restore from, defaults to backup_dir of this node')
@click.option('--dest-dir', help='Directory to restore into, defaults to restore_dir of this node')
@click.option('--mode', help='data-only, single-single, slave-single, master-single, master-slave or slave-slave', required=True, callback=validate_mode)
@click.option('--version', help='Incremental version to restore, "list" shows the available versions', default="")
@click.option('--dry-run', is_flag=True, help='Print the restore plan and exit without changing anything')
@click.option('--skip-mysqld', is_flag=True, help='Do not stop, start or configure mysqld')
@click.option('--this-node', help='Name of this node in the configuration, defaults to the hostname')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
@click.option('--version-info', is_flag=True, callback=print_version, expose_value=False, is_eager=True, help='Show program version and exit')
def restore(config_path, src_dir, dest_dir, mode, version, dry_run, skip_mysqld, this_node, verbose):
    setup_logging(verbose)
    topology = load_topology(config_path, this_node=this_node)
    this = topology.this

    src_dir = src_dir or this.backup_dir
    dest_dir = dest_dir or this.restore_dir
    if not src_dir:
        raise click.UsageError(f"--src-dir is required, node {this.name} has no backup_dir")
    if not dest_dir:
        raise click.UsageError(f"--dest-dir is required, node {this.name} has no restore_dir")

    options = RestoreOptions(
        mode=mode,
        src_dir=src_dir,
        dest_dir=dest_dir,
        version=version,
        dry_run=dry_run,
        skip_mysqld=skip_mysqld,
    )
    manager = RestoreManager(
        topology=topology,
        transport=BackupTransport(owner=topology.mysqld.owner),
        mysqld=MysqldControl(this.ip, topology.mysqld, port=this.mysql_port),
        options=options,
    )
    try:
        state = manager.run()
    finally:
        push_metrics(topology.metrics.pushgateway, topology.metrics.job, topology.this_node)

    click.echo(f"Restore state: {state.value}")
    return EXIT_OK


def main(argv: list[str] | None=None) -> None:
    try:
        code = restore.main(args=argv, prog_name=PROGRAM_NAME, standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(EXIT_USAGE_ERROR)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(EXIT_USAGE_ERROR)
    except UsageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_USAGE_ERROR)
    except VersionListRequested:
        sys.exit(EXIT_OK)
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_VALIDATION_ERROR)
    except CollaboratorFailure as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_COLLABORATOR_FAILURE)

    sys.exit(code if isinstance(code, int) else EXIT_OK)


if __name__ == '__main__':
    main()
