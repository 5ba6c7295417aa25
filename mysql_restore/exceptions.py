class RestoreException(Exception):
    pass


class UsageError(RestoreException):
    pass


class ValidationError(RestoreException):
    pass


class CollaboratorFailure(RestoreException):
    def __init__(self, step: str, detail: str = "") -> None:
        self.step = step
        message = f"Step '{step}' failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class InvalidMode(UsageError):
    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__(
            f"Invalid restore mode: '{mode}'. Use data-only, single-single, slave-single, "
            "master-single, master-slave or slave-slave"
        )


class ConfigError(ValidationError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Configuration {path} is not valid: {reason}")


class BackupStatusNotFound(ValidationError):
    def __init__(self, directory: str) -> None:
        super().__init__(f"Could not find backup status in {directory}")


class SourceDirectoryError(ValidationError):
    def __init__(self, directory: str) -> None:
        super().__init__(f"Backup source directory {directory} is not usable")


class DestinationDirectoryError(ValidationError):
    def __init__(self, directory: str) -> None:
        super().__init__(f"Restore destination directory {directory} is not usable")


class UnknownCopyMethod(ValidationError):
    def __init__(self, copy_method: str) -> None:
        self.copy_method = copy_method
        super().__init__(f"Backup copy method '{copy_method}' is not defined in configuration")


class MissingVersion(ValidationError):
    def __init__(self, copy_method: str) -> None:
        super().__init__(
            f"Copy method '{copy_method}' is incremental, a version to restore must be given with --version"
        )


class UnknownPeer(ValidationError):
    def __init__(self, host: str | None) -> None:
        self.host = host
        super().__init__(f"Replication peer '{host}' is not a node of the cluster configuration")


class MissingCoordinates(ValidationError):
    def __init__(self, block: str) -> None:
        super().__init__(f"Backup status does not contain {block} replication coordinates")


class VersionListRequested(RestoreException):
    def __init__(self) -> None:
        super().__init__("Listed available incremental versions")


class UnknownVersion(ValidationError):
    def __init__(self, version: str, directory: str) -> None:
        self.version = version
        super().__init__(f"Incremental version '{version}' does not exist in {directory}")
