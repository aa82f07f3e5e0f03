class HomesnapError(Exception):
    """Base class for every error homesnap reports to the user."""


class ConfigurationError(HomesnapError):
    pass


class KeyFileError(ConfigurationError):
    pass


class DestinationError(HomesnapError):
    pass


class PipelineError(HomesnapError):
    """
    Raised when one or more stages of a pipeline exit with a non-zero status.

    Attributes:
        failures (list[tuple[str, int]]): Stage name and exit code of every failed stage.
    """

    def __init__(self, action: str, failures: list):
        self.failures = failures
        details = ", ".join(f"{stage} exited with {code}" for stage, code in failures)
        super().__init__(f"{action} failed: {details}")


class BackupInterrupted(HomesnapError):

    def __init__(self, signum=None):
        self.signum = signum
        reason = f"signal {signum}" if signum is not None else "abnormal exit"
        super().__init__(f"Backup interrupted ({reason})")
