"""
sprout Policy Loader Tests

Tests:
- The bundled policy loads and exposes defaults, platform sets and profiles
- Missing keys and bad references fail fast
- Singleton behaviour of get_policy_loader
"""

import pytest
import yaml

from sprout.policy import (
    CommandProfile,
    PolicyLoader,
    PolicyValidationError,
    get_policy_loader,
    reset_policy_loader,
)
from sprout.runtime.errors import ConfigurationError


def write_policy(tmp_path, policy):
    path = tmp_path / "policy.yaml"
    path.write_text(yaml.safe_dump(policy))
    return path


def bundled_policy():
    loader = PolicyLoader()
    return loader.load()


def test_bundled_policy():
    reset_policy_loader()
    loader = get_policy_loader()

    assert loader.version == "1.0.0", f"Expected version 1.0.0, got {loader.version}"
    assert loader.get_default("organization") == "com.example"
    assert loader.get_default("android_language") == "kotlin"
    assert loader.get_default("ios_language") == "swift"
    assert loader.get_supported_platforms() == ["ios", "android", "windows", "linux", "macos", "web"]
    assert loader.get_disabled_platforms() == []
    assert set(loader.get_unstable_platforms()) == {"linux", "windows"}
    assert loader.list_commands() == ["create", "create-plugin", "add-platforms"]


def test_command_profiles():
    loader = PolicyLoader()
    loader.load()

    create = loader.get_command_profile("create")
    assert create == CommandProfile(
        name="create",
        allow_overwrite=True,
        default_platforms=("android", "ios"),
        refuse_existing_without_overwrite=True,
        include_existing_platforms=False,
        require_plugin_project=False,
        update_manifest=False,
    )

    add = loader.get_command_profile("add-platforms")
    assert add.require_plugin_project and add.update_manifest
    assert add.default_platforms == ()

    assert loader.get_command_profile("create-plugin").include_existing_platforms

    with pytest.raises(PolicyValidationError):
        loader.get_command_profile("destroy")


def test_policy_not_loaded():
    with pytest.raises(RuntimeError):
        PolicyLoader().policy


def test_missing_file(tmp_path):
    with pytest.raises(PolicyValidationError) as exc:
        PolicyLoader(tmp_path / "absent.yaml").load()
    assert "not found" in str(exc.value)


def test_empty_and_invalid_yaml(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text("")
    with pytest.raises(PolicyValidationError):
        PolicyLoader(path).load()

    path.write_text("version: [1\n")
    with pytest.raises(PolicyValidationError):
        PolicyLoader(path).load()


@pytest.mark.parametrize("mutate,message", [
    (lambda p: p.pop("commands"), "Missing required key: commands"),
    (lambda p: p["defaults"].pop("organization"), "defaults.organization"),
    (lambda p: p.update(supported_platforms=[]), "at least one platform"),
    (lambda p: p.update(disabled_platforms=["fuchsia"]), "disabled_platforms names unsupported platform"),
    (lambda p: p["commands"]["create"].pop("update_manifest"), "command 'create': update_manifest"),
    (lambda p: p["commands"]["create"].update(default_platforms=["tizen"]), "unsupported platform 'tizen'"),
])
def test_invalid_policy(tmp_path, mutate, message):
    policy = bundled_policy()
    mutate(policy)
    path = write_policy(tmp_path, policy)

    with pytest.raises(PolicyValidationError) as exc:
        PolicyLoader(path).load()
    assert message in str(exc.value)


def test_validation_error_is_configuration_error():
    assert issubclass(PolicyValidationError, ConfigurationError)
    assert PolicyValidationError("x").exit_code == 2


def test_singleton(tmp_path):
    reset_policy_loader()
    first = get_policy_loader()
    assert get_policy_loader() is first

    custom_path = write_policy(tmp_path, bundled_policy())
    custom = get_policy_loader(custom_path)
    assert custom is not first
    assert custom.policy_path == custom_path
    # An explicit path does not replace the default instance
    assert get_policy_loader() is first

    reset_policy_loader()
    assert get_policy_loader() is not first
