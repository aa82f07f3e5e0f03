import pytest

from homesnap.errors import ConfigurationError
from homesnap.options import Configuration, load_configuration, read_options, write_options
from conftest import FakeProvider


def test_well_formed_options_load_identically_twice(tmp_path):
    options_file = tmp_path / "options"
    options_file.write_text(
        "# homesnap options\n"
        "BACKUP_DIR='/home/alice/backups'\n"
        "RESTORE_DIR='/home/alice/restore dir'\n"
        "DATE_FORMAT='%Y.%m.%d'\n"
    )
    provider = FakeProvider()

    first = load_configuration(options_file, provider)
    second = load_configuration(options_file, provider)

    assert first == second
    assert first == Configuration("/home/alice/backups", "/home/alice/restore dir", "%Y.%m.%d")
    assert provider.asked == []


def test_missing_options_trigger_setup_and_are_persisted(tmp_path):
    options_file = tmp_path / "config" / "options"
    wanted = Configuration(str(tmp_path / "out"), str(tmp_path / "restore"))
    provider = FakeProvider(config=wanted)

    assert load_configuration(options_file, provider) == wanted
    assert provider.asked == ["configuration"]
    assert read_options(options_file) == wanted


@pytest.mark.parametrize("content", [
    "BACKUP_DIR='/b'\n",
    "BACKUP_DIR=''\nRESTORE_DIR='/r'\n",
    "BACKUP_DIR='/b\nRESTORE_DIR='/r'\n",
    "this is not an assignment\n",
])
def test_incomplete_or_corrupt_options_are_recreated(tmp_path, content):
    options_file = tmp_path / "options"
    options_file.write_text(content)
    wanted = Configuration("/new/backups", "/new/restore")
    provider = FakeProvider(config=wanted)

    assert load_configuration(options_file, provider) == wanted
    assert provider.asked == ["configuration"]
    assert read_options(options_file) == wanted


def test_written_options_are_shell_assignments(tmp_path):
    options_file = tmp_path / "options"
    write_options(options_file, Configuration("/b", "/it's here"))

    lines = options_file.read_text().splitlines()
    assert lines[0] == "BACKUP_DIR='/b'"
    assert lines[2] == "DATE_FORMAT='%Y.%m.%d'"
    assert read_options(options_file).restore_dir == "/it's here"


def test_empty_answers_are_rejected(tmp_path):
    provider = FakeProvider(config=Configuration("", "/r"))
    with pytest.raises(ConfigurationError):
        load_configuration(tmp_path / "options", provider)
    assert not (tmp_path / "options").exists()


def test_setup_creates_output_and_restore_directories(tmp_path):
    wanted = Configuration(str(tmp_path / "a" / "backups"), str(tmp_path / "b" / "restore"))
    load_configuration(tmp_path / "options", FakeProvider(config=wanted))

    assert wanted.output_path.is_dir()
    assert wanted.restore_path.is_dir()
