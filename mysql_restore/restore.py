import logging

import click

from mysql_restore.backup_status import load_status
from mysql_restore.coordinates import build_replication_plan
from mysql_restore.dto import (
    BackupStatus,
    ChangeMasterParams,
    ClusterTopology,
    EligibilityResult,
    PeerResolution,
    ReplicationPlan,
    RestoreOptions,
)
from mysql_restore.eligibility import check_eligibility
from mysql_restore.enums import RestoreState, RestoreStep, Role
from mysql_restore.exceptions import (
    BackupStatusNotFound,
    CollaboratorFailure,
    DestinationDirectoryError,
    SourceDirectoryError,
    ValidationError,
    VersionListRequested,
)
from mysql_restore.metrics import RESTORE_RUNS, RESTORE_STEP_DURATION, RESTORE_STEP_FAILURES
from mysql_restore.peer import resolve_peer


logger = logging.getLogger(__name__)


class RestoreManager:
    """
    Restores one node from a backup and wires it into replication.

    Everything that can be checked is checked in ``validate`` before the
    first side effect. Once mysqld has been stopped each step must succeed;
    a failing step stops the run and nothing is rolled back.
    """

    def __init__(self, topology: ClusterTopology, transport, mysqld, options: RestoreOptions) -> None:
        self.topology = topology
        self.transport = transport
        self.mysqld = mysqld
        self.options = options
        self.state: RestoreState = RestoreState.VALIDATING
        self.status: BackupStatus | None = None
        self.eligibility: EligibilityResult | None = None
        self.peer: PeerResolution | None = None
        self.plan: ReplicationPlan | None = None
        self.completed_steps: list[RestoreStep] = []

    def _log(self, msg, level: int=logging.INFO) -> None:
        logger.log(level, "[%s] %s", self.state.value, msg)

    def validate(self) -> None:
        self.state = RestoreState.VALIDATING
        src_dir = self.options.src_dir
        if not self.transport.check_source(src_dir):
            raise SourceDirectoryError(src_dir)

        self.status = load_status(src_dir)
        if self.status is None:
            raise BackupStatusNotFound(src_dir)

        self.eligibility = check_eligibility(
            self.status, self.topology, self.options.version, self.transport, src_dir,
        )

        if not self.transport.check_destination(self.options.dest_dir):
            raise DestinationDirectoryError(self.options.dest_dir)

        self.peer = resolve_peer(
            self.options.mode, self.status, self.topology, self.options.mysqld_skipped,
        )
        self.plan = build_replication_plan(
            self.options.mode, self.status, self.peer, self.options.mysqld_skipped,
        )

    def describe(self) -> list[str]:
        lines = [
            f"Restore mode:      {self.options.mode}",
            f"This node:         {self.topology.this_node} ({self.topology.this.ip})",
            f"Backup source:     {self.options.src_dir}",
            f"Restore target:    {self.options.dest_dir}",
            f"Backup taken on:   {self.status.origin_host}"
            + (f" at {self.status.backup_time}" if self.status.backup_time else ""),
            f"Copy method:       {self.eligibility.copy_method.name}"
            + (" (incremental)" if self.eligibility.copy_method.incremental else ""),
        ]
        if self.eligibility.version:
            lines.append(f"Version:           {self.eligibility.version}")
        lines.append(f"mysqld:            {'left alone' if self.options.mysqld_skipped else 'stopped and started'}")
        if self.plan is not None:
            lines.append(
                f"Replication:       from {self.plan.peer_host} "
                f"({self.plan.peer_info.ip}:{self.plan.peer_info.mysql_port}) "
                f"at {self.plan.master_log_file}:{self.plan.master_log_position}"
            )
        else:
            lines.append("Replication:       not configured")
        return lines

    def report(self) -> None:
        self.state = RestoreState.REPORTING
        for line in self.describe():
            logger.debug(line)
            click.echo(line)

    def _run_step(self, step: RestoreStep, state: RestoreState, func, *args) -> None:
        self.state = state
        self._log(f"Running step: {step.value}")
        try:
            with RESTORE_STEP_DURATION.labels(step=step.name.lower()).time():
                succeeded = func(*args)
        except Exception as e:
            RESTORE_STEP_FAILURES.labels(step=step.name.lower()).inc()
            raise CollaboratorFailure(step.value, str(e)) from e
        if not succeeded:
            RESTORE_STEP_FAILURES.labels(step=step.name.lower()).inc()
            raise CollaboratorFailure(step.value)
        self.completed_steps.append(step)

    def _change_master_params(self) -> ChangeMasterParams:
        return ChangeMasterParams(
            host=self.topology.this.ip,
            master_host=self.plan.peer_info.ip,
            master_port=self.plan.peer_info.mysql_port,
            master_user=self.plan.peer_info.repl_user,
            master_pass=self.plan.peer_info.repl_password,
            master_log=self.plan.master_log_file,
            master_pos=self.plan.master_log_position,
        )

    def execute(self) -> None:
        self.state = RestoreState.EXECUTING
        options = self.options
        method = self.eligibility.copy_method

        if options.mysqld_skipped:
            self._log("Skipping mysqld stop and start")
        else:
            self._run_step(RestoreStep.STOP_DB, RestoreState.STOPPING_DB, self.mysqld.stop)

        if self.eligibility.version:
            self._run_step(
                RestoreStep.RESTORE, RestoreState.RESTORING, self.transport.restore_incremental,
                method, options.src_dir, options.dest_dir, self.eligibility.version,
            )
        else:
            self._run_step(
                RestoreStep.RESTORE, RestoreState.RESTORING, self.transport.restore,
                method, options.src_dir, options.dest_dir,
            )

        self._run_step(
            RestoreStep.CLEANUP, RestoreState.CLEANING, self.transport.cleanup,
            self.status, options.dest_dir, [options.dest_dir],
        )

        if not options.mysqld_skipped:
            self._run_step(RestoreStep.START_DB, RestoreState.STARTING_DB, self.mysqld.start)

        if options.mode.dest_role == Role.SINGLE:
            self._log("Restored node is single, replication is not configured")
        elif self.plan is None:
            self._log("Replication is not configured")
        else:
            self._run_step(
                RestoreStep.CHANGE_MASTER, RestoreState.CONFIGURING_REPLICATION,
                self.mysqld.change_master_to, self._change_master_params(),
            )

    def run(self) -> RestoreState:
        try:
            try:
                self.validate()
            except VersionListRequested:
                self.state = RestoreState.VERSIONS_LISTED
                raise
            except ValidationError:
                self.state = RestoreState.ABORTED
                raise

            self.report()
            if self.options.dry_run:
                self.state = RestoreState.DRY_RUN_EXIT
                self._log("Dry run, nothing was changed")
                return self.state

            try:
                self.execute()
            except CollaboratorFailure as e:
                self.state = RestoreState.PARTIAL_FAILURE if self.completed_steps else RestoreState.ABORTED
                if self.completed_steps:
                    done = ", ".join(step.value for step in self.completed_steps)
                    self._log(f"{e} after completing: {done}. Manual recovery is needed", logging.CRITICAL)
                else:
                    self._log(str(e), logging.CRITICAL)
                raise

            self.state = RestoreState.DONE
            self._log("Restore finished")
            return self.state
        finally:
            RESTORE_RUNS.labels(mode=str(self.options.mode), state=self.state.value).inc()
