# stdlib
from pathlib import Path
from datetime import datetime
from typing import Optional
from types import TracebackType
# projectlib
from smart_grid_insight.utils.paths import validate_address
from smart_grid_insight.utils.typing import Verbosity, Address

class Logger(object):
    """
    Lightweight callable logger with optional file persistence.

    Messages carry a verbosity level and are only emitted when the
    logger's threshold is high enough. Output goes either to stdout or
    is appended to ``log.txt`` inside ``log_dir``. An optional ``name``
    tags every line with the emitting component, which keeps the output
    of the normalizer, validator and forecaster apart when they share a
    log file.
    """

    def __init__(
        self,
        verbose: Verbosity = 0,
        log_dir: Address = Path.cwd(),
        write_log: bool = False,
        name: Optional[str] = None,
    ) -> None:
        """
        Initialize the logger.

        Parameters
        ----------
        verbose : Verbosity, default 0
            Verbosity threshold. Messages with a verbosity level less
            than or equal to this value will be emitted.
        log_dir : Address, default Path.cwd()
            Directory in which ``log.txt`` is written if ``write_log``
            is True. Created when missing.
        write_log : bool, default False
            If True, messages are appended to the log file. If False,
            messages are printed to stdout.
        name : str, optional
            Component tag prefixed to each message.
        """
        self.verbose = verbose
        self.log_dir = log_dir
        if write_log:
            log_dir = validate_address(log_dir, mkdir=True)
        self.log_path = Path(log_dir) / "log.txt"
        self.write_log = write_log
        self.name = name

    def __call__(self, msg: str, verbosity: int = 0) -> None:
        """
        Emit a log message if the verbosity threshold is met, e.g.
        ``logger("message", verbosity=1)``.
        """
        if self.verbose >= verbosity:
            formatted = self._format(msg)
            if self.write_log:
                self.write(formatted)
            else:
                print(formatted)

    def child(self, name: str) -> "Logger":
        """Return a logger sharing this one's settings under ``name``."""
        return Logger(
            verbose=self.verbose,
            log_dir=self.log_dir,
            write_log=self.write_log,
            name=name,
        )

    def write(self, msg: str) -> None:
        """Append a formatted message to the log file."""
        with open(self.log_path, "a", encoding="utf-8") as file:
            file.write(msg + "\n")

    def _format(self, msg: str) -> str:
        ts = datetime.now().isoformat(timespec="seconds")
        if self.name:
            return f"[{ts}] [{self.name}] {msg}"
        return f"[{ts}] {msg}"

    def __enter__(self) -> "Logger":
        return self

    def __exit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
        ) -> None:
        if exc is not None:
            self(f"Aborted with {exc_type.__name__}: {exc}", verbosity=0)


def resolve_logger(logger: Optional[Logger], name: str) -> Logger:
    """Return ``logger`` renamed to ``name``, or a silent default."""
    if logger is None:
        return Logger(verbose=0, name=name)
    return logger.child(name)
