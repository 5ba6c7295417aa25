from dataclasses import dataclass, field

from mysql_restore.constants import (
    DEFAULT_METRICS_JOB,
    DEFAULT_MYSQL_PORT,
    DEFAULT_MYSQLD_START_COMMAND,
    DEFAULT_MYSQLD_STOP_COMMAND,
)
from mysql_restore.enums import Role
from mysql_restore.exceptions import InvalidMode


VALID_ROLE_PAIRS = {
    (Role.SINGLE, Role.SINGLE),
    (Role.SLAVE, Role.SINGLE),
    (Role.MASTER, Role.SINGLE),
    (Role.MASTER, Role.SLAVE),
    (Role.SLAVE, Role.SLAVE),
}


@dataclass(frozen=True)
class RestoreMode:
    source_role: Role | None
    dest_role: Role | None
    name: str = ""

    def __post_init__(self) -> None:
        if self.source_role is None and self.dest_role is None:
            return
        if (self.source_role, self.dest_role) not in VALID_ROLE_PAIRS:
            raise InvalidMode(self.name or f"{getattr(self.source_role, 'value', None)}-{getattr(self.dest_role, 'value', None)}")

    @classmethod
    def data_only(cls) -> "RestoreMode":
        return cls(source_role=None, dest_role=None, name="data-only")

    @property
    def is_data_only(self) -> bool:
        return self.source_role is None and self.dest_role is None

    def __str__(self) -> str:
        if self.is_data_only:
            return "data-only"
        return f"{self.source_role.value}-{self.dest_role.value}"


@dataclass(frozen=True)
class NodeInfo:
    name: str
    ip: str
    mysql_port: int = DEFAULT_MYSQL_PORT
    repl_user: str = ""
    repl_password: str = ""
    backup_dir: str = ""
    restore_dir: str = ""


@dataclass(frozen=True)
class CopyMethod:
    name: str
    incremental: bool = False


@dataclass(frozen=True)
class MysqldConfig:
    stop_command: str = DEFAULT_MYSQLD_STOP_COMMAND
    start_command: str = DEFAULT_MYSQLD_START_COMMAND
    user: str = "root"
    password: str = ""
    socket: str | None = None
    owner: str | None = None


@dataclass(frozen=True)
class MetricsConfig:
    pushgateway: str | None = None
    job: str = DEFAULT_METRICS_JOB


@dataclass(frozen=True)
class ClusterTopology:
    this_node: str
    nodes: dict[str, NodeInfo]
    copy_methods: dict[str, CopyMethod]
    mysqld: MysqldConfig = field(default_factory=MysqldConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    @property
    def this(self) -> NodeInfo:
        return self.nodes[self.this_node]

    def copy_method(self, name: str) -> CopyMethod | None:
        return self.copy_methods.get(name)

    def node_by_ip(self, ip: str | None) -> str | None:
        if ip is None:
            return None
        if ip in self.nodes:
            return ip
        for name, node in self.nodes.items():
            if node.ip == ip:
                return name
        return None


@dataclass(frozen=True)
class MasterCoordinates:
    file: str
    position: int


@dataclass(frozen=True)
class SlaveCoordinates:
    relay_master_log_file: str
    exec_master_log_pos: int
    master_host: str


@dataclass(frozen=True)
class BackupStatus:
    copy_method: str
    origin_host: str
    master: MasterCoordinates | None = None
    slave: SlaveCoordinates | None = None
    backup_time: str | None = None


@dataclass(frozen=True)
class Coordinates:
    log_file: str
    log_position: int


@dataclass(frozen=True)
class EligibilityResult:
    copy_method: CopyMethod
    version: str = ""


@dataclass(frozen=True)
class PeerResolution:
    peer_host: str | None
    peer_info: NodeInfo | None = None

    @property
    def is_none(self) -> bool:
        return self.peer_info is None


@dataclass(frozen=True)
class ReplicationPlan:
    peer_host: str
    peer_info: NodeInfo
    master_log_file: str
    master_log_position: int


@dataclass(frozen=True)
class ChangeMasterParams:
    host: str
    master_host: str
    master_port: int
    master_user: str
    master_pass: str
    master_log: str
    master_pos: int


@dataclass(frozen=True)
class RestoreOptions:
    mode: RestoreMode
    src_dir: str
    dest_dir: str
    version: str = ""
    dry_run: bool = False
    skip_mysqld: bool = False

    @property
    def mysqld_skipped(self) -> bool:
        return self.skip_mysqld or self.mode.is_data_only
