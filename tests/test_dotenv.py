import os

import pytest

from docxtranslate.utils.dotenv import ENV_FILE_HINT, load_env_file, parse_env_line


@pytest.mark.parametrize(
    "line, expected",
    [
        ("KEY=value", ("KEY", "value")),
        ("export KEY = value", ("KEY", "value")),
        ('KEY="quoted # not a comment"', ("KEY", "quoted # not a comment")),
        ("KEY=value # comment", ("KEY", "value")),
        ("# comment", None),
        ("", None),
        ("no equals sign", None),
    ],
)
def test_parse_env_line(line, expected):
    assert parse_env_line(line) == expected


def test_load_env_file_keeps_existing_values(tmp_path, monkeypatch):
    env_file = tmp_path / "custom.env"
    env_file.write_text("DOCXT_TEST_NEW=1\nDOCXT_TEST_OLD=2\n", encoding="utf-8")
    monkeypatch.setenv("DOCXT_TEST_OLD", "kept")
    monkeypatch.delenv("DOCXT_TEST_NEW", raising=False)
    monkeypatch.setenv(ENV_FILE_HINT, str(env_file))

    path_used, loaded = load_env_file()

    assert path_used == str(env_file)
    assert loaded == ["DOCXT_TEST_NEW"]
    assert os.environ["DOCXT_TEST_NEW"] == "1"
    assert os.environ["DOCXT_TEST_OLD"] == "kept"
    monkeypatch.delenv("DOCXT_TEST_NEW")


def test_missing_env_file(tmp_path):
    assert load_env_file(tmp_path / "absent.env") == (None, [])
