import logging
import os

import yaml

from mysql_restore.constants import BACKUP_STATUS_FILE
from mysql_restore.dto import BackupStatus, MasterCoordinates, SlaveCoordinates
from mysql_restore.exceptions import ConfigError


logger = logging.getLogger(__name__)


def _parse_master_status(path: str, master: dict | None) -> MasterCoordinates | None:
    if not master:
        return None
    try:
        return MasterCoordinates(
            file=str(master["File"]),
            position=int(master["Position"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(path, f"invalid master_status ({e})")


def _parse_slave_status(path: str, slave: dict | None) -> SlaveCoordinates | None:
    if not slave:
        return None
    try:
        return SlaveCoordinates(
            relay_master_log_file=str(slave["Relay_Master_Log_File"]),
            exec_master_log_pos=int(slave["Exec_Master_Log_Pos"]),
            master_host=str(slave["Master_Host"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(path, f"invalid slave_status ({e})")


def status_file_path(directory: str) -> str:
    return os.path.join(directory, BACKUP_STATUS_FILE)


def load_status(directory: str) -> BackupStatus | None:
    """
    Read the metadata recorded next to a backup when it was taken.

    The file holds the copy method, the host the backup was taken on and
    the output of ``SHOW MASTER STATUS`` / ``SHOW SLAVE STATUS`` at backup
    time. Returns None when the backup has no status file.
    """
    path = status_file_path(directory)
    if not os.path.isfile(path):
        logger.debug("No backup status found at %s", path)
        return None

    try:
        with open(path, "r") as sf:
            data = yaml.safe_load(sf.read())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(path, str(e))

    if not isinstance(data, dict):
        raise ConfigError(path, "backup status must be a mapping")
    for key in ("copy_method", "origin_host"):
        if not data.get(key):
            raise ConfigError(path, f"'{key}' is missing")

    backup_time = data.get("backup_time")
    return BackupStatus(
        copy_method=str(data["copy_method"]),
        origin_host=str(data["origin_host"]),
        master=_parse_master_status(path, data.get("master_status")),
        slave=_parse_slave_status(path, data.get("slave_status")),
        backup_time=str(backup_time) if backup_time is not None else None,
    )
