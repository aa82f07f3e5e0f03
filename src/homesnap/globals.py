class Globals:
    SNAPSHOT_ENDING = ".tar.zst.gpg"
    DEFAULT_CONFIG_ROOT = "~/.config/homesnap"
    KEY_FILE = "key"
    OPTIONS_FILE = "options"
    FILTERS_FILE = "filters"
    SETTINGS_FILE = "settings.yaml"
    KEY_LENGTH = 32
    DEFAULT_DATE_FORMAT = "%Y.%m.%d"
    REQUIRED_SYSTEM_BINS = ["tar", "zstd", "gpg"]
    DEFAULT_EXCLUSIONS = ["~/.cache", "~/.local/share/Trash", "~/Downloads"]
