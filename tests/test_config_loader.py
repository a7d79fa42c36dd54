import pytest

from pressdock.config.loader import diff_preferences, load_config
from pressdock.core.context import SessionContext
from pressdock.core.models import StackConfig
from pressdock.utils.diagnostics import ConfigLoadError


def test_load_config_no_file(tmp_path):
    config = load_config(tmp_path / "nonexistent.yaml")
    assert config == {}


def test_load_config_basic(tmp_path):
    config_file = tmp_path / "pressdock.yaml"
    config_file.write_text("""
pressdock:
  tools_dir: "/tmp/pressdock-tools"
basic:
  wordpress-folder: "/src/wordpress-develop"
site:
  port: 8080
""")

    config = load_config(config_file)
    assert config["pressdock"]["tools_dir"] == "/tmp/pressdock-tools"
    assert config["basic"]["wordpress-folder"] == "/src/wordpress-develop"
    assert config["site"]["port"] == 8080


def test_load_config_interpolation(tmp_path, monkeypatch):
    monkeypatch.setenv("WP_CHECKOUT", "/home/dev/wordpress-develop")
    monkeypatch.delenv("GUTENBERG_CHECKOUT", raising=False)
    monkeypatch.delenv("SITE_PORT", raising=False)

    config_file = tmp_path / "pressdock.yaml"
    config_file.write_text("""
basic:
  wordpress-folder: "${WP_CHECKOUT}"
  gutenberg-folder: "${GUTENBERG_CHECKOUT}"
site:
  port: "${SITE_PORT:9090}"
""")

    config = load_config(config_file)
    assert config["basic"]["wordpress-folder"] == "/home/dev/wordpress-develop"
    assert config["basic"]["gutenberg-folder"] == ""
    assert config["site"]["port"] == "9090"


def test_load_config_drops_unknown_sections(tmp_path):
    config_file = tmp_path / "pressdock.yaml"
    config_file.write_text("""
unknown_key: true
basic:
  wordpress-folder: "."
""")

    config = load_config(config_file)
    assert "unknown_key" not in config
    assert "basic" in config


def test_load_config_invalid_yaml_raises(tmp_path):
    config_file = tmp_path / "pressdock.yaml"
    config_file.write_text("basic: [unclosed\n")

    with pytest.raises(ConfigLoadError):
        load_config(config_file)


def test_load_config_non_mapping_raises(tmp_path):
    config_file = tmp_path / "pressdock.yaml"
    config_file.write_text("- basic\n- site\n")

    with pytest.raises(ConfigLoadError):
        load_config(config_file)


def test_load_config_empty_file_is_empty(tmp_path):
    config_file = tmp_path / "pressdock.yaml"
    config_file.write_text("")

    assert load_config(config_file) == {}


def test_diff_preferences_reports_changed_added_and_removed_keys():
    before = {"basic": {"wordpress-folder": "/a", "gutenberg-folder": "/g"}, "site": {"port": 9999}}
    after = {"basic": {"wordpress-folder": "/a"}, "site": {"port": 8080, "title": "x"}}

    assert diff_preferences(before, after) == [
        ("basic", "gutenberg-folder", None),
        ("site", "port", 8080),
        ("site", "title", "x"),
    ]


def test_context_seeds_settings_and_preferences_from_config_dict(tmp_path):
    context = SessionContext(config_dict={
        "pressdock": {"tools_dir": str(tmp_path / "tools"), "log_level": "DEBUG"},
        "basic": {"wordpress-folder": "/src/wp"},
        "site": {"port": "8080"},
    })

    assert context.tools_dir == tmp_path / "tools"
    assert context.settings.log_level == "DEBUG"
    assert context.preference("basic", "wordpress-folder") == "/src/wp"
    assert context.current_config() == StackConfig(wordpress_folder="/src/wp", port=8080)


def test_stack_config_defaults_and_blank_values():
    config = StackConfig.from_preferences({"basic": {"wordpress-folder": "  ", "gutenberg-folder": ""}})

    assert config.wordpress_folder is None
    assert config.gutenberg_folder is None
    assert config.port == 9999
    assert config.is_startable is False


def test_stack_config_unusable_port_is_not_startable():
    config = StackConfig.from_preferences({
        "basic": {"wordpress-folder": "/src/wp"},
        "site": {"port": "not-a-port"},
    })

    assert config.port is None
    assert config.is_startable is False


def test_health_container_follows_tools_dir_name(tmp_path):
    context = SessionContext(config_dict={"pressdock": {"tools_dir": str(tmp_path / "Tools")}})
    assert context.settings.health_container == "tools_mysql_1"

    context = SessionContext(config_dict={"pressdock": {"mysql_container": "custom_db"}})
    assert context.settings.health_container == "custom_db"


def test_health_container_uses_compose_project_name_rules(tmp_path):
    context = SessionContext(config_dict={"pressdock": {"tools_dir": str(tmp_path / "My.Tools")}})
    assert context.settings.health_container == "mytools_mysql_1"

    context = SessionContext(config_dict={"pressdock": {"tools_dir": str(tmp_path / "wp_tools-2")}})
    assert context.settings.health_container == "wp_tools-2_mysql_1"
