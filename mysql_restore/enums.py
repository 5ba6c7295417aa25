from enum import Enum


class Role(Enum):
    SINGLE = "single"
    MASTER = "master"
    SLAVE = "slave"


class RestoreState(Enum):
    VALIDATING = "validating"
    REPORTING = "reporting"
    DRY_RUN_EXIT = "dry_run_exit"
    VERSIONS_LISTED = "versions_listed"
    EXECUTING = "executing"
    STOPPING_DB = "stopping_db"
    RESTORING = "restoring"
    CLEANING = "cleaning"
    STARTING_DB = "starting_db"
    CONFIGURING_REPLICATION = "configuring_replication"
    DONE = "done"
    ABORTED = "aborted"
    PARTIAL_FAILURE = "partial_failure"


class RestoreStep(Enum):
    STOP_DB = "stop mysqld"
    RESTORE = "restore data"
    CLEANUP = "cleanup"
    START_DB = "start mysqld"
    CHANGE_MASTER = "set replication"
