import logging
import shlex
import subprocess

import pymysql


logger = logging.getLogger(__name__)


def run_command(command: str | list[str]) -> bool:
    args = shlex.split(command) if isinstance(command, str) else command
    logger.info("Running: %s", " ".join(args))
    try:
        result = subprocess.run(args, capture_output=True, text=True)
    except OSError as e:
        logger.error("Could not run %s: %s", args[0], e)
        return False

    if result.stdout:
        logger.debug(result.stdout.rstrip())
    if result.returncode != 0:
        logger.error("Command %s exited with %d: %s", args[0], result.returncode, result.stderr.strip())
        return False
    return True


class BaseServer:
    def __init__(self, host: str, user: str, password: str, port: int=3306, socket: str | None=None) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.socket = socket

    def _log(self, msg, level: int=logging.INFO) -> None:
        logger.log(level, "Host: " + self.host + ", " + msg)

    def _get_db(self):
        db = None
        try:
            db = pymysql.Connection(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                unix_socket=self.socket,
                cursorclass=pymysql.cursors.DictCursor,
            )
        except Exception as e:
            self._log(str(e), logging.ERROR)
            return None
        return db

    def run_commands(self, commands: list[str]) -> bool:
        db = self._get_db()
        if db is None:
            self._log("Could not connect to mysql", logging.ERROR)
            return False

        with db:
            with db.cursor() as cursor:
                try:
                    for command in commands:
                        cursor.execute(command)
                except pymysql.MySQLError as e:
                    self._log(str(e), logging.ERROR)
                    return False
        return True
