import logging
import socket

import yaml

from mysql_restore.constants import CONFIG_SECTION, DEFAULT_MYSQL_PORT
from mysql_restore.dto import (
    ClusterTopology,
    CopyMethod,
    MetricsConfig,
    MysqldConfig,
    NodeInfo,
)
from mysql_restore.exceptions import ConfigError


logger = logging.getLogger(__name__)

NODE_KEYS = {"ip", "mysql_port", "repl_user", "repl_password", "backup_dir", "restore_dir"}
MYSQLD_KEYS = {"stop_command", "start_command", "user", "password", "socket", "owner"}
METRICS_KEYS = {"pushgateway", "job"}


class TopologyLoader:
    """
    Builds the immutable ``ClusterTopology`` from a YAML configuration file.

    Expected layout::

        mysql_restore:
          this: db1
          nodes:
            db1: {ip: 10.0.0.1, repl_user: repl, repl_password: pwd,
                  backup_dir: /backup/db1, restore_dir: /var/lib/mysql}
          copy_methods:
            rsync: {incremental: false}
            xtrabackup_incremental: {incremental: true}
          mysqld: {stop_command: "systemctl stop mysql", user: root, password: root}
          metrics: {pushgateway: "localhost:9091"}
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def _read(self) -> dict:
        try:
            with open(self.path, "r") as cf:
                data = yaml.safe_load(cf.read())
        except OSError as e:
            raise ConfigError(self.path, str(e))
        except yaml.YAMLError as e:
            raise ConfigError(self.path, f"malformed YAML ({e})")

        if not isinstance(data, dict) or not isinstance(data.get(CONFIG_SECTION), dict):
            raise ConfigError(self.path, f"section '{CONFIG_SECTION}' is missing")
        return data[CONFIG_SECTION]

    def _build_node(self, name: str, node: dict) -> NodeInfo:
        if not isinstance(node, dict) or "ip" not in node:
            raise ConfigError(self.path, f"node '{name}' must define an ip")
        unknown = set(node) - NODE_KEYS
        if unknown:
            raise ConfigError(self.path, f"node '{name}' has unknown keys {sorted(unknown)}")
        try:
            port = int(node.get("mysql_port", DEFAULT_MYSQL_PORT))
        except (TypeError, ValueError):
            raise ConfigError(self.path, f"node '{name}' has an invalid mysql_port")

        return NodeInfo(
            name=name,
            ip=str(node["ip"]),
            mysql_port=port,
            repl_user=str(node.get("repl_user", "")),
            repl_password=str(node.get("repl_password", "")),
            backup_dir=str(node.get("backup_dir", "")),
            restore_dir=str(node.get("restore_dir", "")),
        )

    def _build_copy_method(self, name: str, method: dict | None) -> CopyMethod:
        method = method or {}
        if not isinstance(method, dict):
            raise ConfigError(self.path, f"copy method '{name}' must be a mapping")
        return CopyMethod(name=name, incremental=bool(method.get("incremental", False)))

    def _build_section(self, section: dict | None, keys: set, name: str, cls):
        section = section or {}
        if not isinstance(section, dict):
            raise ConfigError(self.path, f"section '{name}' must be a mapping")
        unknown = set(section) - keys
        if unknown:
            raise ConfigError(self.path, f"section '{name}' has unknown keys {sorted(unknown)}")
        return cls(**section)

    def load(self, this_node: str | None = None) -> ClusterTopology:
        section = self._read()

        nodes_dict = section.get("nodes")
        if not isinstance(nodes_dict, dict) or len(nodes_dict) == 0:
            raise ConfigError(self.path, "at least one node must be defined in 'nodes'")
        methods_dict = section.get("copy_methods")
        if not isinstance(methods_dict, dict) or len(methods_dict) == 0:
            raise ConfigError(self.path, "at least one copy method must be defined in 'copy_methods'")

        nodes = {}
        for name, node in nodes_dict.items():
            nodes[str(name)] = self._build_node(str(name), node)

        copy_methods = {}
        for name, method in methods_dict.items():
            copy_methods[str(name)] = self._build_copy_method(str(name), method)

        ## command line wins over the file, then the hostname
        this = this_node or section.get("this") or socket.gethostname().split(".")[0]
        if this not in nodes:
            raise ConfigError(self.path, f"this node '{this}' is not defined in 'nodes'")

        topology = ClusterTopology(
            this_node=this,
            nodes=nodes,
            copy_methods=copy_methods,
            mysqld=self._build_section(section.get("mysqld"), MYSQLD_KEYS, "mysqld", MysqldConfig),
            metrics=self._build_section(section.get("metrics"), METRICS_KEYS, "metrics", MetricsConfig),
        )
        logger.debug("Loaded %d nodes and %d copy methods from %s", len(nodes), len(copy_methods), self.path)
        return topology


def load_topology(path: str, this_node: str | None = None) -> ClusterTopology:
    return TopologyLoader(path).load(this_node=this_node)
