from core.config import DEFAULTS, get_setting, load_config


def test_defaults_without_file(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"), environ={})
    assert config == DEFAULTS
    assert config is not DEFAULTS


def test_yaml_file_overrides_defaults(tmp_path):
    path = tmp_path / "nexus.yaml"
    path.write_text("remote:\n  base_url: https://db.example.test\n  timeout: 3\n", encoding="utf-8")

    config = load_config(str(path), environ={})

    assert config["remote"]["base_url"] == "https://db.example.test"
    assert config["remote"]["timeout"] == 3
    assert config["remote"]["probe_timeout"] == 2.5
    assert config["local"]["db_path"] == "nexus_local.db"


def test_environment_wins_over_file(tmp_path):
    path = tmp_path / "nexus.yaml"
    path.write_text("local:\n  db_path: from-file.db\n", encoding="utf-8")

    config = load_config(str(path), environ={"NEXUS_DB_PATH": "from-env.db", "NEXUS_API_KEY": "k"})

    assert config["local"]["db_path"] == "from-env.db"
    assert config["remote"]["api_key"] == "k"


def test_config_path_from_environment(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("logging:\n  level: DEBUG\n", encoding="utf-8")

    config = load_config(environ={"NEXUS_CONFIG": str(path)})
    assert config["logging"]["level"] == "DEBUG"


def test_broken_files_fall_back_to_defaults(tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("remote: [unclosed\n", encoding="utf-8")
    assert load_config(str(broken), environ={}) == DEFAULTS

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string\n", encoding="utf-8")
    assert load_config(str(scalar), environ={}) == DEFAULTS


def test_get_setting_dot_paths():
    config = {"remote": {"base_url": "u"}}
    assert get_setting(config, "remote.base_url") == "u"
    assert get_setting(config, "remote.missing", 5) == 5
    assert get_setting(config, "remote.base_url.deeper") is None
