import os

import pytest
import yaml

from mysql_restore.constants import BACKUP_STATUS_FILE
from mysql_restore.dto import (
    BackupStatus,
    ClusterTopology,
    CopyMethod,
    MasterCoordinates,
    NodeInfo,
    SlaveCoordinates,
)


class FakeTransport:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.failing: set[str] = set()
        self.increments: list[str] = []
        self.listed: list[tuple] = []
        self.source_ok = True
        self.destination_ok = True

    def _call(self, name: str, *args) -> bool:
        self.calls.append((name, *args))
        return name not in self.failing

    def check_source(self, directory):
        return self.source_ok

    def check_destination(self, directory):
        return self.destination_ok

    def get_increments(self, directory):
        return list(self.increments)

    def list_increments(self, directory, method):
        self.listed.append((directory, method.name))
        return bool(self.increments)

    def restore(self, method, src, dst):
        return self._call("restore", method.name, src, dst)

    def restore_incremental(self, method, src, dst, version):
        return self._call("restore_incremental", method.name, src, dst, version)

    def cleanup(self, status, dst, dirs_to_restore):
        return self._call("cleanup", dst, tuple(dirs_to_restore))


class FakeMysqld:
    def __init__(self, calls: list | None = None) -> None:
        self.calls = calls if calls is not None else []
        self.failing: set[str] = set()

    def _call(self, name: str, *args) -> bool:
        self.calls.append((name, *args))
        return name not in self.failing

    def stop(self):
        return self._call("stop")

    def start(self):
        return self._call("start")

    def change_master_to(self, params):
        return self._call("change_master_to", params)


@pytest.fixture
def topology() -> ClusterTopology:
    return ClusterTopology(
        this_node="db2",
        nodes={
            "db1": NodeInfo(name="db1", ip="10.0.0.1", repl_user="replica", repl_password="pwd1"),
            "db2": NodeInfo(name="db2", ip="10.0.0.2", repl_user="replica", repl_password="pwd2"),
            "db3": NodeInfo(name="db3", ip="10.0.0.3", mysql_port=3307, repl_user="replica", repl_password="pwd3"),
        },
        copy_methods={
            "rsync": CopyMethod(name="rsync", incremental=False),
            "xtrabackup_incremental": CopyMethod(name="xtrabackup_incremental", incremental=True),
        },
    )


@pytest.fixture
def master_status() -> BackupStatus:
    return BackupStatus(
        copy_method="rsync",
        origin_host="db1",
        master=MasterCoordinates(file="bin.000005", position=107),
    )


@pytest.fixture
def slave_status() -> BackupStatus:
    return BackupStatus(
        copy_method="rsync",
        origin_host="db3",
        master=MasterCoordinates(file="bin.000009", position=4),
        slave=SlaveCoordinates(
            relay_master_log_file="bin.000042",
            exec_master_log_pos=1234,
            master_host="10.0.0.1",
        ),
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def mysqld(transport) -> FakeMysqld:
    ## shares the call log with the transport to check ordering
    return FakeMysqld(calls=transport.calls)


@pytest.fixture
def write_status():
    def _write(directory, **status) -> str:
        os.makedirs(directory, exist_ok=True)
        with open(os.path.join(directory, BACKUP_STATUS_FILE), "w") as sf:
            sf.write(yaml.safe_dump(status))
        return str(directory)
    return _write
