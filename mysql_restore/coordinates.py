import logging

from mysql_restore.dto import (
    BackupStatus,
    Coordinates,
    PeerResolution,
    ReplicationPlan,
    RestoreMode,
)
from mysql_restore.enums import Role
from mysql_restore.exceptions import MissingCoordinates


logger = logging.getLogger(__name__)


def select_coordinates(mode: RestoreMode, status: BackupStatus) -> Coordinates | None:
    """
    Pick the binary log coordinates a restored slave must start from.

    ==========  ===========  ==============================================
    source      destination  coordinates
    ==========  ===========  ==============================================
    master      slave        master_status File / Position
    slave       slave        slave_status Relay_Master_Log_File /
                             Exec_Master_Log_Pos
    any         single       none
    other       slave        none, with a warning
    ==========  ===========  ==============================================

    Returns None when replication must not be configured. Never falls back
    to another pair of coordinates.
    """
    if mode.is_data_only or mode.dest_role == Role.SINGLE:
        return None

    if mode.source_role == Role.MASTER and mode.dest_role == Role.SLAVE:
        if status.master is None:
            raise MissingCoordinates("master")
        return Coordinates(log_file=status.master.file, log_position=status.master.position)

    if mode.source_role == Role.SLAVE and mode.dest_role == Role.SLAVE:
        if status.slave is None:
            raise MissingCoordinates("slave")
        return Coordinates(
            log_file=status.slave.relay_master_log_file,
            log_position=status.slave.exec_master_log_pos,
        )

    logger.warning("Replication setup from %s is not supported, replication will not be configured", mode)
    return None


def build_replication_plan(
    mode: RestoreMode,
    status: BackupStatus,
    peer: PeerResolution,
    skip_mysqld: bool,
) -> ReplicationPlan | None:
    if skip_mysqld or peer.is_none:
        return None

    coordinates = select_coordinates(mode, status)
    if coordinates is None:
        return None

    return ReplicationPlan(
        peer_host=peer.peer_host,
        peer_info=peer.peer_info,
        master_log_file=coordinates.log_file,
        master_log_position=coordinates.log_position,
    )
