from mysql_restore.constants import DATA_ONLY_MODE, MODE_SEPARATOR
from mysql_restore.dto import RestoreMode
from mysql_restore.enums import Role
from mysql_restore.exceptions import InvalidMode


def _parse_role(token: str, mode: str) -> Role:
    try:
        return Role(token)
    except ValueError:
        raise InvalidMode(mode)


def resolve_mode(mode: str) -> RestoreMode:
    """
    Parse an operator supplied restore mode.

    Args:
        mode (str): ``data-only`` or ``<source role>-<destination role>``,
            e.g. ``master-slave``.

    Returns:
        RestoreMode: the validated (source role, destination role) pair.

    Raises:
        InvalidMode: the string is malformed, names an unknown role or a
            combination that can not be restored.
    """
    if mode is None:
        raise InvalidMode("")
    mode = mode.strip()
    if mode == DATA_ONLY_MODE:
        return RestoreMode.data_only()

    tokens = mode.split(MODE_SEPARATOR)
    if len(tokens) != 2:
        raise InvalidMode(mode)

    source_role = _parse_role(tokens[0], mode)
    dest_role = _parse_role(tokens[1], mode)
    return RestoreMode(source_role=source_role, dest_role=dest_role, name=mode)
