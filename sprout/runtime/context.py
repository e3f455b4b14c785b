"""
Template contexts for the plugin and its example application.

A scaffold is rendered in two passes: the plugin package, then the example
app under example/. Each pass gets its own immutable context; the example
context is derived from the plugin context with a fresh identifier set, so
no identifier of one pass can leak into the other.
"""

import os
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import ConfigurationError
from .identifiers import Identifiers, derive_identifiers, derive_plugin_class_name
from .validators import SUPPORTED_PLATFORMS

ANDROID_LANGUAGES = ("java", "kotlin")
IOS_LANGUAGES = ("objc", "swift")


class PluginContext(BaseModel):
    """Substitution values for the plugin pass."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    identifiers: Identifiers = Field(..., exclude=True)
    description: str
    tool_root: str
    dart_sdk: str
    with_driver_test: bool = False
    plugin_class: str
    plugin_dart_class: str
    header_guard_token: str
    project_uuid: str = Field(..., alias="projectUUID")
    android_language: str
    ios_language: str
    ios: bool = False
    android: bool = False
    web: bool = False
    linux: bool = False
    macos: bool = False
    windows: bool = False
    year: int

    @property
    def organization(self) -> str:
        return self.identifiers.organization

    @property
    def project_name(self) -> str:
        return self.identifiers.project_name

    @property
    def android_identifier(self) -> str:
        return self.identifiers.android_identifier

    @property
    def platforms(self) -> list:
        """Enabled platforms in canonical order."""
        return [p for p in SUPPORTED_PLATFORMS if getattr(self, p)]

    def as_template_vars(self) -> Dict[str, Any]:
        """Flatten into the camelCase mapping the templates consume."""
        values = self.identifiers.model_dump(by_alias=True)
        values.update(self.model_dump(by_alias=True))
        return values


class ExampleAppContext(PluginContext):
    """Substitution values for the example app pass."""

    plugin_project_name: str
    android_plugin_identifier: str


def build_template_context(
    organization: str,
    project_name: str,
    description: str,
    tool_root: str,
    driver_test_enabled: bool,
    android_language: str,
    ios_language: str,
    platforms: Iterable[str],
    *,
    clock: Optional[Callable[[], datetime]] = None,
    uuid_factory: Optional[Callable[[], uuid.UUID]] = None,
) -> PluginContext:
    """Build the plugin context.

    The project UUID is random and the year comes from the clock, so two
    calls with identical arguments differ unless both sources are injected.
    Call this once per scaffold and derive the example context from it.
    """
    if android_language not in ANDROID_LANGUAGES:
        raise ConfigurationError(
            f"Invalid android language '{android_language}'. "
            f"Allowed: {', '.join(ANDROID_LANGUAGES)}.",
            reason="invalid_android_language",
        )
    if ios_language not in IOS_LANGUAGES:
        raise ConfigurationError(
            f"Invalid iOS language '{ios_language}'. Allowed: {', '.join(IOS_LANGUAGES)}.",
            reason="invalid_ios_language",
        )

    clock = clock or datetime.now
    uuid_factory = uuid_factory or uuid.uuid4
    tool_root = os.path.normpath(os.path.abspath(tool_root))

    plugin_dart_class = derive_plugin_class_name(project_name)
    plugin_class = plugin_dart_class if plugin_dart_class.endswith("Plugin") else plugin_dart_class + "Plugin"

    requested = set(platforms)
    flags = {platform: platform in requested for platform in SUPPORTED_PLATFORMS}

    return PluginContext(
        identifiers=derive_identifiers(organization, project_name),
        description=description,
        tool_root=tool_root,
        dart_sdk=f"{tool_root}/bin/cache/dart-sdk",
        with_driver_test=driver_test_enabled,
        plugin_class=plugin_class,
        plugin_dart_class=plugin_dart_class,
        header_guard_token=project_name.upper(),
        project_uuid=str(uuid_factory()).upper(),
        android_language=android_language,
        ios_language=ios_language,
        year=clock().year,
        **flags,
    )


def build_example_context(plugin: PluginContext) -> ExampleAppContext:
    """Derive the example app context: fresh identifiers, same UUID, year and platforms."""
    example_name = f"{plugin.project_name}_example"
    values = plugin.model_dump(exclude={"identifiers"})
    values.update(
        identifiers=derive_identifiers(plugin.organization, example_name),
        description=f"Demonstrates how to use the {plugin.project_name} plugin.",
        plugin_project_name=plugin.project_name,
        android_plugin_identifier=plugin.android_identifier,
    )
    return ExampleAppContext(**values)
