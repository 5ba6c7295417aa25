import glob
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager

import click

from mysql_restore.base import run_command
from mysql_restore.constants import (
    BACKUP_STATUS_FILE,
    INCREMENTAL_BASE_DIR,
    INCREMENTAL_DELTAS_DIR,
    XTRABACKUP_METADATA_PREFIX,
)
from mysql_restore.dto import BackupStatus, CopyMethod


logger = logging.getLogger(__name__)


class BackupTransport:
    """
    Moves backup data into the mysql data directory.

    Copy methods whose name starts with ``xtrabackup`` are prepared and
    copied back with xtrabackup, every other method is a plain file copy
    done with rsync. Incremental backups are laid out as ``base/`` plus one
    directory per increment under ``incr/``; increments are applied in
    lexical order up to the requested version. xtrabackup prepares a copy
    of the backup in a staging directory next to the destination, so the
    backup can be restored again at any version.
    """

    def __init__(
        self,
        owner: str | None=None,
        rsync: str="rsync",
        xtrabackup: str="xtrabackup",
        staging_dir: str | None=None,
    ) -> None:
        self.owner = owner
        self.staging_dir = staging_dir
        self.rsync = rsync
        self.xtrabackup = xtrabackup

    @staticmethod
    def _is_xtrabackup(method: CopyMethod) -> bool:
        return method.name.startswith("xtrabackup")

    def check_source(self, directory: str) -> bool:
        if not os.path.isdir(directory):
            logger.error("Backup directory %s does not exist", directory)
            return False
        if not os.access(directory, os.R_OK | os.X_OK):
            logger.error("Backup directory %s is not readable", directory)
            return False
        return True

    def check_destination(self, directory: str) -> bool:
        if not os.path.isdir(directory):
            logger.error("Restore directory %s does not exist", directory)
            return False
        if not os.access(directory, os.W_OK | os.X_OK):
            logger.error("Restore directory %s is not writable", directory)
            return False
        return True

    def get_increments(self, directory: str) -> list[str]:
        increments_dir = os.path.join(directory, INCREMENTAL_DELTAS_DIR)
        if not os.path.isdir(increments_dir):
            return []
        try:
            names = os.listdir(increments_dir)
        except OSError as e:
            logger.error("Could not read increments in %s: %s", increments_dir, e)
            return []
        return sorted(name for name in names if os.path.isdir(os.path.join(increments_dir, name)))

    def list_increments(self, directory: str, method: CopyMethod) -> bool:
        if not method.incremental:
            click.echo(f"Copy method {method.name} is not incremental, there are no versions to choose from")
            return False

        increments = self.get_increments(directory)
        if not increments:
            click.echo(f"No incremental versions found in {directory}")
            return False

        click.echo(f"Available versions in {directory}:")
        for increment in increments:
            click.echo(f"  {increment}")
        return True

    def _rsync(self, src: str, dst: str, delete: bool) -> bool:
        command = [self.rsync, "-a", f"--exclude={BACKUP_STATUS_FILE}"]
        if delete:
            command.append("--delete")
        command += [src.rstrip("/") + "/", dst.rstrip("/") + "/"]
        return run_command(command)

    def _copy_back(self, prepared_dir: str, dst: str) -> bool:
        return run_command([
            self.xtrabackup, "--copy-back", f"--target-dir={prepared_dir}", f"--datadir={dst}",
        ])

    @contextmanager
    def _staging(self, dst: str):
        ## xtrabackup prepares in place, the backup itself is never a target
        parent = self.staging_dir or os.path.dirname(os.path.abspath(dst.rstrip("/")))
        staging = tempfile.mkdtemp(prefix=".mysql-restore-", dir=parent)
        logger.debug("Preparing backup in %s", staging)
        try:
            yield staging
        finally:
            try:
                shutil.rmtree(staging)
            except OSError as e:
                logger.warning("Could not remove staging directory %s: %s", staging, e)

    def restore(self, method: CopyMethod, src: str, dst: str) -> bool:
        logger.info("Restoring %s backup from %s to %s", method.name, src, dst)
        if not self._is_xtrabackup(method):
            return self._rsync(src, dst, delete=True)

        with self._staging(dst) as staging:
            if not self._rsync(src, staging, delete=True):
                return False
            if not run_command([self.xtrabackup, "--prepare", f"--target-dir={staging}"]):
                return False
            return self._copy_back(staging, dst)

    def restore_incremental(self, method: CopyMethod, src: str, dst: str, version: str) -> bool:
        increments = self.get_increments(src)
        if version not in increments:
            logger.error("Version %s does not exist in %s", version, src)
            return False

        base_dir = os.path.join(src, INCREMENTAL_BASE_DIR)
        to_apply = increments[:increments.index(version) + 1]
        logger.info("Restoring %s backup from %s with increments %s", method.name, base_dir, to_apply)

        if not self._is_xtrabackup(method):
            if not self._rsync(base_dir, dst, delete=True):
                return False
            for increment in to_apply:
                if not self._rsync(os.path.join(src, INCREMENTAL_DELTAS_DIR, increment), dst, delete=False):
                    return False
            return True

        with self._staging(dst) as staging:
            if not self._rsync(base_dir, staging, delete=True):
                return False
            if not run_command([self.xtrabackup, "--prepare", "--apply-log-only", f"--target-dir={staging}"]):
                return False
            for increment in to_apply:
                incremental_dir = os.path.join(src, INCREMENTAL_DELTAS_DIR, increment)
                command = [self.xtrabackup, "--prepare", f"--target-dir={staging}", f"--incremental-dir={incremental_dir}"]
                ## the last increment rolls back uncommitted transactions
                if increment != to_apply[-1]:
                    command.insert(2, "--apply-log-only")
                if not run_command(command):
                    return False
            return self._copy_back(staging, dst)

    def cleanup(self, status: BackupStatus, dst: str, dirs_to_restore: list[str]) -> bool:
        logger.info("Cleaning up %s backup leftovers in %s", status.copy_method, dst)
        for directory in dirs_to_restore or [dst]:
            leftovers = [os.path.join(directory, BACKUP_STATUS_FILE)]
            leftovers += glob.glob(os.path.join(directory, XTRABACKUP_METADATA_PREFIX + "*"))
            for path in leftovers:
                if not os.path.isfile(path):
                    continue
                try:
                    os.remove(path)
                except OSError as e:
                    logger.error("Could not remove %s: %s", path, e)
                    return False

        if self.owner:
            ## an empty group after the colon is the owner's login group
            return run_command(["chown", "-R", f"{self.owner}:", dst])
        return True
