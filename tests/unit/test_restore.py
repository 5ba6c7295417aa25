import pytest

from mysql_restore.dto import RestoreOptions
from mysql_restore.enums import RestoreState
from mysql_restore.exceptions import (
    BackupStatusNotFound,
    CollaboratorFailure,
    DestinationDirectoryError,
    MissingVersion,
    SourceDirectoryError,
    UnknownPeer,
    UnknownVersion,
    VersionListRequested,
)
from mysql_restore.mode import resolve_mode
from mysql_restore.restore import RestoreManager


def make_manager(topology, transport, mysqld, src_dir, mode="master-slave", **kwargs) -> RestoreManager:
    options = RestoreOptions(mode=resolve_mode(mode), src_dir=src_dir, dest_dir="/var/lib/mysql", **kwargs)
    return RestoreManager(topology, transport, mysqld, options)


@pytest.fixture
def master_backup(tmp_path, write_status):
    return write_status(
        tmp_path / "backup",
        copy_method="rsync",
        origin_host="db1",
        master_status={"File": "bin.000005", "Position": 107},
    )


def call_names(transport) -> list[str]:
    return [call[0] for call in transport.calls]


def test_master_slave_restore_sequence(topology, transport, mysqld, master_backup):
    manager = make_manager(topology, transport, mysqld, master_backup)
    assert manager.run() == RestoreState.DONE
    assert call_names(transport) == ["stop", "restore", "cleanup", "start", "change_master_to"]

    params = transport.calls[-1][1]
    assert params.host == "10.0.0.2"
    assert params.master_host == "10.0.0.1"
    assert params.master_port == 3306
    assert params.master_user == "replica"
    assert params.master_pass == "pwd1"
    assert params.master_log == "bin.000005"
    assert params.master_pos == 107


def test_cleanup_gets_restored_directories(topology, transport, mysqld, master_backup):
    make_manager(topology, transport, mysqld, master_backup).run()
    cleanup = [call for call in transport.calls if call[0] == "cleanup"][0]
    assert cleanup == ("cleanup", "/var/lib/mysql", ("/var/lib/mysql",))


def test_single_destination_skips_replication(topology, transport, mysqld, master_backup, caplog):
    manager = make_manager(topology, transport, mysqld, master_backup, mode="master-single")
    with caplog.at_level("INFO"):
        assert manager.run() == RestoreState.DONE
    assert call_names(transport) == ["stop", "restore", "cleanup", "start"]
    assert "replication is not configured" in caplog.text


def test_data_only_skips_mysqld(topology, transport, mysqld, master_backup):
    manager = make_manager(topology, transport, mysqld, master_backup, mode="data-only")
    assert manager.run() == RestoreState.DONE
    assert call_names(transport) == ["restore", "cleanup"]


def test_skip_mysqld_flag(topology, transport, mysqld, master_backup):
    manager = make_manager(topology, transport, mysqld, master_backup, skip_mysqld=True)
    assert manager.run() == RestoreState.DONE
    assert call_names(transport) == ["restore", "cleanup"]


def test_incremental_restore(topology, transport, mysqld, tmp_path, write_status):
    transport.increments = ["2024-01-01", "2024-01-02", "2024-01-03"]
    backup = write_status(tmp_path / "backup", copy_method="xtrabackup_incremental", origin_host="db1")
    manager = make_manager(topology, transport, mysqld, backup, mode="single-single", version="2024-01-02")
    assert manager.run() == RestoreState.DONE
    assert transport.calls[1] == (
        "restore_incremental", "xtrabackup_incremental", backup, "/var/lib/mysql", "2024-01-02",
    )


@pytest.mark.parametrize("mode", ["data-only", "single-single", "master-single", "master-slave"])
def test_dry_run_changes_nothing(topology, transport, mysqld, master_backup, capsys, mode):
    manager = make_manager(topology, transport, mysqld, master_backup, mode=mode, dry_run=True)
    assert manager.run() == RestoreState.DRY_RUN_EXIT
    assert transport.calls == []
    output = capsys.readouterr().out
    assert f"Restore mode:      {mode}" in output
    assert master_backup in output


def test_report_describes_replication(topology, transport, mysqld, master_backup):
    manager = make_manager(topology, transport, mysqld, master_backup, dry_run=True)
    manager.run()
    assert "Replication:       from db1 (10.0.0.1:3306) at bin.000005:107" in manager.describe()


def test_missing_status_aborts(topology, transport, mysqld, tmp_path):
    manager = make_manager(topology, transport, mysqld, str(tmp_path))
    with pytest.raises(BackupStatusNotFound):
        manager.run()
    assert manager.state == RestoreState.ABORTED
    assert transport.calls == []


def test_unusable_source_aborts(topology, transport, mysqld, master_backup):
    transport.source_ok = False
    manager = make_manager(topology, transport, mysqld, master_backup)
    with pytest.raises(SourceDirectoryError):
        manager.run()
    assert manager.state == RestoreState.ABORTED


def test_unusable_destination_aborts(topology, transport, mysqld, master_backup):
    transport.destination_ok = False
    manager = make_manager(topology, transport, mysqld, master_backup)
    with pytest.raises(DestinationDirectoryError):
        manager.run()
    assert manager.state == RestoreState.ABORTED
    assert transport.calls == []


def test_unknown_peer_aborts_before_stopping(topology, transport, mysqld, tmp_path, write_status):
    backup = write_status(
        tmp_path / "backup",
        copy_method="rsync",
        origin_host="db9",
        master_status={"File": "bin.000005", "Position": 107},
    )
    manager = make_manager(topology, transport, mysqld, backup)
    with pytest.raises(UnknownPeer):
        manager.run()
    assert manager.state == RestoreState.ABORTED
    assert transport.calls == []


def test_incremental_without_version_aborts(topology, transport, mysqld, tmp_path, write_status):
    backup = write_status(tmp_path / "backup", copy_method="xtrabackup_incremental", origin_host="db1")
    manager = make_manager(topology, transport, mysqld, backup, mode="single-single")
    with pytest.raises(MissingVersion):
        manager.run()
    assert transport.listed
    assert transport.calls == []


@pytest.mark.parametrize("failing, completed", [
    ("restore", ["stop", "restore"]),
    ("cleanup", ["stop", "restore", "cleanup"]),
])
def test_transport_failure_is_partial(topology, transport, mysqld, master_backup, failing, completed):
    transport.failing.add(failing)
    manager = make_manager(topology, transport, mysqld, master_backup)
    with pytest.raises(CollaboratorFailure) as e:
        manager.run()
    assert manager.state == RestoreState.PARTIAL_FAILURE
    assert call_names(transport) == completed
    assert e.value.step in ("restore data", "cleanup")


@pytest.mark.parametrize("failing, completed", [
    ("start", ["stop", "restore", "cleanup", "start"]),
    ("change_master_to", ["stop", "restore", "cleanup", "start", "change_master_to"]),
])
def test_mysqld_failure_after_restore_is_partial(topology, transport, mysqld, master_backup, failing, completed):
    mysqld.failing.add(failing)
    manager = make_manager(topology, transport, mysqld, master_backup)
    with pytest.raises(CollaboratorFailure):
        manager.run()
    assert manager.state == RestoreState.PARTIAL_FAILURE
    assert call_names(transport) == completed


def test_failing_first_step_aborts(topology, transport, mysqld, master_backup):
    mysqld.failing.add("stop")
    manager = make_manager(topology, transport, mysqld, master_backup)
    with pytest.raises(CollaboratorFailure) as e:
        manager.run()
    assert e.value.step == "stop mysqld"
    assert manager.state == RestoreState.ABORTED
    assert call_names(transport) == ["stop"]


def test_unknown_version_aborts_before_stopping(topology, transport, mysqld, tmp_path, write_status):
    transport.increments = ["2024-01-01"]
    backup = write_status(tmp_path / "backup", copy_method="xtrabackup_incremental", origin_host="db1")
    manager = make_manager(topology, transport, mysqld, backup, mode="single-single", version="2024-01-09")
    with pytest.raises(UnknownVersion):
        manager.run()
    assert manager.state == RestoreState.ABORTED
    assert transport.listed
    assert transport.calls == []


def test_raising_step_is_partial(topology, transport, mysqld, master_backup, caplog):
    def restore(method, src, dst):
        transport.calls.append(("restore", method.name, src, dst))
        raise PermissionError(13, "Permission denied", dst)

    transport.restore = restore
    manager = make_manager(topology, transport, mysqld, master_backup)
    with caplog.at_level("CRITICAL"):
        with pytest.raises(CollaboratorFailure) as e:
            manager.run()
    assert e.value.step == "restore data"
    assert "Permission denied" in str(e.value)
    assert isinstance(e.value.__cause__, PermissionError)
    assert manager.state == RestoreState.PARTIAL_FAILURE
    assert call_names(transport) == ["stop", "restore"]
    assert "Manual recovery is needed" in caplog.text


def test_version_list_ends_in_its_own_state(topology, transport, mysqld, tmp_path, write_status):
    transport.increments = ["2024-01-01"]
    backup = write_status(tmp_path / "backup", copy_method="xtrabackup_incremental", origin_host="db1")
    manager = make_manager(topology, transport, mysqld, backup, mode="single-single", version="list")
    with pytest.raises(VersionListRequested):
        manager.run()
    assert manager.state == RestoreState.VERSIONS_LISTED
    assert transport.calls == []
