import logging

from mysql_restore.base import BaseServer, run_command
from mysql_restore.dto import ChangeMasterParams, MysqldConfig


class MysqldControl(BaseServer):
    """Stops, starts and wires replication of the mysqld being restored."""

    def __init__(self, host: str, config: MysqldConfig, port: int=3306) -> None:
        super().__init__(host, config.user, config.password, port, config.socket)
        self.stop_command = config.stop_command
        self.start_command = config.start_command

    def stop(self) -> bool:
        self._log("Stopping mysqld")
        return run_command(self.stop_command)

    def start(self) -> bool:
        self._log("Starting mysqld")
        return run_command(self.start_command)

    @staticmethod
    def _quote(value: str) -> str:
        return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"

    def _generate_change_master_command(self, params: ChangeMasterParams) -> str:
        return f"""
CHANGE REPLICATION SOURCE TO SOURCE_HOST={self._quote(params.master_host)},
    SOURCE_PORT={int(params.master_port)},
    SOURCE_USER={self._quote(params.master_user)},
    SOURCE_PASSWORD={self._quote(params.master_pass)},
    SOURCE_LOG_FILE={self._quote(params.master_log)},
    SOURCE_LOG_POS={int(params.master_pos)};
"""

    def change_master_to(self, params: ChangeMasterParams) -> bool:
        self._log(
            f"Replicating from {params.master_host}:{params.master_port} "
            f"at {params.master_log}:{params.master_pos}"
        )
        if params.host != self.host:
            self._log(f"Replication params are for {params.host}, not this server", logging.ERROR)
            return False

        return self.run_commands([
            "STOP REPLICA",
            self._generate_change_master_command(params),
            "START REPLICA",
        ])
