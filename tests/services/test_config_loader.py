import pytest

from stackinit.errors import BootstrapError
from stackinit.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".stackinit.yml"
    config_file.write_text(
        "location: northeurope\ndeploy_mode: group\nname_cap: 6\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["location"] == "northeurope"
    assert loaded["deploy_mode"] == "group"
    assert loaded["name_cap"] == 6


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".stackinit.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(BootstrapError, match="Unknown configuration keys"):
        loader.load(str(config_file))


def test_config_loader_rejects_non_mapping(tmp_path):
    config_file = tmp_path / ".stackinit.yml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(BootstrapError, match="YAML mapping"):
        ConfigLoader().load(str(config_file))


def test_config_loader_returns_empty_for_missing_path_argument(tmp_path):
    assert ConfigLoader().load(None) == {}

    with pytest.raises(BootstrapError, match="not found"):
        ConfigLoader().load(str(tmp_path / "absent.yml"))


def test_find_default_prefers_first_directory(tmp_path):
    root = tmp_path / "root"
    cwd = tmp_path / "cwd"
    root.mkdir()
    cwd.mkdir()
    (cwd / ".stackinit.yml").write_text("verbose: true\n", encoding="utf-8")

    loader = ConfigLoader()
    assert loader.find_default(str(root), str(cwd)) == str(cwd / ".stackinit.yml")

    (root / ".stackinit.yml").write_text("verbose: false\n", encoding="utf-8")
    assert loader.find_default(str(root), str(cwd)) == str(root / ".stackinit.yml")


@pytest.mark.parametrize(
    "line, message",
    [
        ("verbose: yes please\n", "true or false"),
        ("name_cap: -1\n", "non-negative integer"),
        ("name_suffix_bytes: true\n", "non-negative integer"),
        ("deploy_timeout: 0\n", "positive number"),
        ("deploy_mode: terraform\n", "one of azd, group"),
        ("location: ''\n", "non-empty string"),
    ],
)
def test_config_loader_rejects_badly_typed_values(tmp_path, line, message):
    config_file = tmp_path / ".stackinit.yml"
    config_file.write_text(line, encoding="utf-8")

    with pytest.raises(BootstrapError, match=message):
        ConfigLoader().load(str(config_file))


def test_config_loader_accepts_integer_timeouts(tmp_path):
    config_file = tmp_path / ".stackinit.yml"
    config_file.write_text("deploy_timeout: 900\nauth_timeout: 45.5\n", encoding="utf-8")

    assert ConfigLoader().load(str(config_file)) == {"deploy_timeout": 900, "auth_timeout": 45.5}
