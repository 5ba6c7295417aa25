import logging

from mysql_restore.constants import LIST_VERSIONS_ARG
from mysql_restore.dto import BackupStatus, ClusterTopology, EligibilityResult
from mysql_restore.exceptions import (
    MissingVersion,
    UnknownCopyMethod,
    UnknownVersion,
    VersionListRequested,
)


logger = logging.getLogger(__name__)


def check_eligibility(
    status: BackupStatus,
    topology: ClusterTopology,
    version: str,
    transport,
    src_dir: str,
) -> EligibilityResult:
    """
    Decide whether the backup in ``src_dir`` can be restored as requested.

    Raises:
        UnknownCopyMethod: the copy method of the backup is not configured.
        VersionListRequested: ``version`` is ``list``; the available
            increments were printed and nothing must be restored.
        MissingVersion: the backup is incremental and no version was given.
            The available increments are printed first.
        UnknownVersion: the requested increment is not part of the backup.
            The available increments are printed first.
    """
    copy_method = topology.copy_method(status.copy_method)
    if copy_method is None:
        raise UnknownCopyMethod(status.copy_method)

    version = (version or "").strip()
    if version == LIST_VERSIONS_ARG:
        transport.list_increments(src_dir, copy_method)
        raise VersionListRequested()

    if copy_method.incremental and not version:
        logger.error("Backup in %s is incremental, choose one of the versions below", src_dir)
        transport.list_increments(src_dir, copy_method)
        raise MissingVersion(copy_method.name)

    if copy_method.incremental and version not in transport.get_increments(src_dir):
        logger.error("Version %s is not in %s, choose one of the versions below", version, src_dir)
        transport.list_increments(src_dir, copy_method)
        raise UnknownVersion(version, src_dir)

    if not copy_method.incremental and version:
        logger.warning("Copy method %s is not incremental, ignoring version %s", copy_method.name, version)
        version = ""

    return EligibilityResult(copy_method=copy_method, version=version)
