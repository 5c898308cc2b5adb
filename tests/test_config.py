import yaml

from yalv.config import AppConfig, ConfigManager


def write_config(path, data):
    path.mkdir(parents=True, exist_ok=True)
    (path / "config.yaml").write_text(data)


def test_defaults_are_written_when_missing(tmp_path):
    config_dir = tmp_path / "config"
    manager = ConfigManager(config_dir=config_dir)

    assert (config_dir / "config.yaml").exists()
    saved = yaml.safe_load((config_dir / "config.yaml").read_text())
    assert saved["ui"]["refresh_interval"] == 3000
    assert saved["keybindings"]["quit"] == ["q", "esc"]
    assert manager.get_refresh_interval() == 3000
    assert manager.get_virsh_command() == ["virsh"]
    assert manager.get_address_sources() == ["lease", "arp", "agent"]


def test_user_values_override_defaults(tmp_path):
    config_dir = tmp_path / "config"
    write_config(config_dir, """
ui:
  refresh_interval: 500
  show_inactive: true
virsh:
  connect_uri: qemu:///system
  address_sources: [agent]
logging:
  level: debug
  file_path: /tmp/custom-yalv.log
""")
    manager = ConfigManager(config_dir=config_dir)

    assert manager.get_refresh_interval() == 500
    assert manager.should_show_inactive() is True
    assert manager.get_virsh_command() == ["virsh", "-c", "qemu:///system"]
    assert manager.get_address_sources() == ["agent"]
    assert manager.get_log_level() == "DEBUG"
    assert manager.get_custom_log_path() == "/tmp/custom-yalv.log"
    # untouched sections keep their defaults
    assert manager.get_key_bindings("down") == ["down", "j"]


def test_string_binding_becomes_list(tmp_path):
    config_dir = tmp_path / "config"
    write_config(config_dir, "keybindings:\n  start: U\n")
    manager = ConfigManager(config_dir=config_dir)

    assert manager.get_key_bindings("start") == ["U"]
    assert manager.is_key_binding("U", "start")
    assert not manager.is_key_binding("u", "start")


def test_unknown_keys_are_ignored(tmp_path, caplog):
    config_dir = tmp_path / "config"
    write_config(config_dir, "ui:\n  theme: dark\n  refresh_interval: 1000\n")
    manager = ConfigManager(config_dir=config_dir)

    assert manager.get_refresh_interval() == 1000
    assert not hasattr(manager.get_config().ui, "theme")
    assert "theme" in caplog.text


def test_invalid_yaml_falls_back_to_defaults(tmp_path):
    config_dir = tmp_path / "config"
    write_config(config_dir, "ui: [unclosed\n")
    manager = ConfigManager(config_dir=config_dir)

    assert manager.get_config() == AppConfig()


def test_non_mapping_root_falls_back_to_defaults(tmp_path):
    config_dir = tmp_path / "config"
    write_config(config_dir, "- just\n- a list\n")
    manager = ConfigManager(config_dir=config_dir)

    assert manager.get_config() == AppConfig()


def test_is_key_binding_named_keys_ignore_case(config):
    assert config.is_key_binding("enter", "console")
    assert config.is_key_binding("ENTER", "console")
    assert config.is_key_binding("esc", "quit")
    assert config.is_key_binding("q", "quit")
    assert not config.is_key_binding("Q", "quit")
    assert config.is_key_binding("Y", "confirm")
    assert not config.is_key_binding("x", "confirm")
    assert not config.is_key_binding("q", "no_such_action")
