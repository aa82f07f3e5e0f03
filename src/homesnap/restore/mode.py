from enum import Enum


class RestoreMode(Enum):
    RESTORE = "restore"
    EXTRACT = "extract"
