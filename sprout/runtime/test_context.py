"""
Template context tests
"""

import uuid
from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from sprout.runtime.context import build_example_context, build_template_context
from sprout.runtime.errors import ConfigurationError

FIXED_UUID = uuid.UUID("12345678-abcd-ef01-2345-6789abcdef01")


def fixed_clock():
    return datetime(2021, 3, 4, 12, 0, 0)


def build(**overrides):
    values = dict(
        organization="com.example",
        project_name="awesome_plugin",
        description="An awesome plugin.",
        tool_root="/opt/flutter/./bin/..",
        driver_test_enabled=False,
        android_language="kotlin",
        ios_language="swift",
        platforms={"android", "ios"},
        clock=fixed_clock,
        uuid_factory=lambda: FIXED_UUID,
    )
    values.update(overrides)
    return build_template_context(**values)


def test_plugin_context_values():
    context = build().as_template_vars()

    assert context["organization"] == "com.example"
    assert context["projectName"] == "awesome_plugin"
    assert context["androidIdentifier"] == "com.example.awesome_plugin"
    assert context["iosIdentifier"] == "com.example.awesomePlugin"
    assert context["macosIdentifier"] == "com.example.awesomePlugin"
    assert context["pluginDartClass"] == "AwesomePlugin"
    assert context["pluginClass"] == "AwesomePlugin"
    assert context["headerGuardToken"] == "AWESOME_PLUGIN"
    assert context["projectUUID"] == "12345678-ABCD-EF01-2345-6789ABCDEF01"
    assert context["toolRoot"] == "/opt/flutter"
    assert context["dartSdk"] == "/opt/flutter/bin/cache/dart-sdk"
    assert context["year"] == 2021
    assert context["withDriverTest"] is False


def test_plugin_class_gets_suffix():
    context = build(project_name="camera")
    assert context.plugin_dart_class == "Camera"
    assert context.plugin_class == "CameraPlugin"


def test_platform_flags():
    context = build(platforms=["web", "linux"]).as_template_vars()
    assert context["web"] is True
    assert context["linux"] is True
    for platform in ("ios", "android", "macos", "windows"):
        assert context[platform] is False, f"{platform} should be disabled"


def test_platforms_in_canonical_order():
    assert build(platforms=["web", "android", "ios"]).platforms == ["ios", "android", "web"]


def test_every_documented_key_present():
    context = build().as_template_vars()
    for key in (
        "organization", "projectName", "androidIdentifier", "iosIdentifier",
        "macosIdentifier", "description", "pluginClass", "pluginDartClass",
        "headerGuardToken", "projectUUID", "androidLanguage", "iosLanguage",
        "ios", "android", "web", "linux", "macos", "windows", "year",
    ):
        assert key in context, f"missing {key}"
    assert "identifiers" not in context


def test_invalid_languages():
    with pytest.raises(ConfigurationError) as exc:
        build(android_language="scala")
    assert exc.value.reason == "invalid_android_language"

    with pytest.raises(ConfigurationError) as exc:
        build(ios_language="kotlin")
    assert exc.value.reason == "invalid_ios_language"


def test_uuid_and_year_from_sources():
    calls = []

    def counting_uuid():
        calls.append(1)
        return uuid.uuid4()

    first = build(uuid_factory=counting_uuid)
    second = build(uuid_factory=counting_uuid)
    assert len(calls) == 2
    assert first.project_uuid != second.project_uuid
    assert first.project_uuid == first.project_uuid.upper()


def test_context_is_immutable():
    context = build()
    with pytest.raises(PydanticValidationError):
        context.description = "changed"


def test_example_context():
    plugin = build(platforms=["android", "macos"], driver_test_enabled=True)
    example = build_example_context(plugin)
    values = example.as_template_vars()

    assert values["projectName"] == "awesome_plugin_example"
    assert values["androidIdentifier"] == "com.example.awesome_plugin_example"
    assert values["iosIdentifier"] == "com.example.awesomePluginExample"
    assert values["description"] == "Demonstrates how to use the awesome_plugin plugin."
    assert values["pluginProjectName"] == "awesome_plugin"
    assert values["androidPluginIdentifier"] == "com.example.awesome_plugin"
    assert values["projectUUID"] == plugin.project_uuid
    assert values["year"] == 2021
    assert values["android"] is True and values["macos"] is True
    assert values["withDriverTest"] is True


def test_example_context_leaves_plugin_untouched():
    plugin = build()
    before = plugin.as_template_vars()
    build_example_context(plugin)
    assert plugin.as_template_vars() == before
    assert plugin.android_identifier == "com.example.awesome_plugin"
