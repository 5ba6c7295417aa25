PROGRAM_NAME = "mysql-restore"
PROGRAM_VERSION = "1.2.0"

CONFIG_SECTION = "mysql_restore"
DEFAULT_CONFIG_PATH = "/etc/mysql-restore/config.yaml"
DEFAULT_MYSQL_PORT = 3306

BACKUP_STATUS_FILE = "backup-status.yaml"
LIST_VERSIONS_ARG = "list"
DATA_ONLY_MODE = "data-only"
MODE_SEPARATOR = "-"

INCREMENTAL_BASE_DIR = "base"
INCREMENTAL_DELTAS_DIR = "incr"
XTRABACKUP_METADATA_PREFIX = "xtrabackup_"

DEFAULT_MYSQLD_STOP_COMMAND = "systemctl stop mysql"
DEFAULT_MYSQLD_START_COMMAND = "systemctl start mysql"
DEFAULT_METRICS_JOB = "mysql_restore"

EXIT_OK = 0
EXIT_USAGE_ERROR = 1
EXIT_VALIDATION_ERROR = 2
EXIT_COLLABORATOR_FAILURE = 3
