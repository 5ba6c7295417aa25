import logging

from mysql_restore.dto import BackupStatus, ClusterTopology, PeerResolution, RestoreMode
from mysql_restore.enums import Role
from mysql_restore.exceptions import UnknownPeer


logger = logging.getLogger(__name__)


def find_peer_host(mode: RestoreMode, status: BackupStatus, topology: ClusterTopology) -> str | None:
    if mode.source_role == Role.SLAVE:
        ## a slave backup replicates from the master it was replicating from
        if status.slave is None:
            return None
        return topology.node_by_ip(status.slave.master_host)
    return status.origin_host


def resolve_peer(
    mode: RestoreMode,
    status: BackupStatus,
    topology: ClusterTopology,
    skip_mysqld: bool,
) -> PeerResolution:
    peer_host = find_peer_host(mode, status, topology)

    if mode.is_data_only or mode.dest_role == Role.SINGLE or skip_mysqld:
        return PeerResolution(peer_host=peer_host)

    if peer_host is None or peer_host not in topology.nodes:
        unknown = peer_host
        if unknown is None and status.slave is not None:
            unknown = status.slave.master_host
        raise UnknownPeer(unknown)

    logger.debug("Replication peer of %s is %s", topology.this_node, peer_host)
    return PeerResolution(peer_host=peer_host, peer_info=topology.nodes[peer_host])
