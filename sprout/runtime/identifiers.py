"""
Identifier derivation for generated plugin projects.

Android application ids are Java package names (strict grammar). Apple bundle
identifiers are UTIs in reverse-DNS form with looser character rules. The two
derivations are kept separate on purpose.
"""

import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import ValidationError

PLACEHOLDER_SEGMENT = "untitled"

_ANDROID_DISALLOWED = re.compile(r"[^A-Za-z0-9_.]")
_ANDROID_SEGMENT = re.compile(r"^[a-zA-Z][A-Za-z0-9_]*$")
_UTI_DISALLOWED = re.compile(r"[^a-zA-Z0-9\-.\u0080-\uffff]+")


class Identifiers(BaseModel):
    """Organization, project name and the platform identifiers derived from them."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    organization: str
    project_name: str
    android_identifier: str
    ios_identifier: str = Field(..., description="UTI shared with macOS")
    macos_identifier: str


def camel_case(name: str) -> str:
    """Convert snake_case to lowerCamelCase the way the Flutter tool does.

    An underscore within the last two characters is left in place, so
    "a_b" stays "a_b" and "foo_" stays "foo_".
    """
    index = name.find("_")
    while index != -1 and index < len(name) - 2:
        name = name[:index] + name[index + 1:index + 2].upper() + name[index + 2:]
        index = name.find("_")
    return name


def _segments(identifier: str) -> list:
    segments = [segment for segment in identifier.split(".") if segment]
    while len(segments) < 2:
        segments.append(PLACEHOLDER_SEGMENT)
    return segments


def derive_android_identifier(organization: str, name: str) -> str:
    """Build an Android application id from an organization and a project name.

    Only [a-zA-Z0-9_] survives, there are at least two segments and every
    segment starts with a letter.
    """
    raw = _ANDROID_DISALLOWED.sub("", f"{organization}.{name}")
    segments = []
    for segment in _segments(raw):
        if not _ANDROID_SEGMENT.match(segment):
            segment = "u" + segment
        segments.append(segment)
    return ".".join(segments)


def derive_uti_identifier(organization: str, name: str) -> str:
    """Build a Uniform Type Identifier (iOS/macOS bundle id)."""
    raw = _UTI_DISALLOWED.sub("", f"{organization}.{camel_case(name)}")
    return ".".join(_segments(raw))


def derive_plugin_class_name(name: str) -> str:
    camelized = camel_case(name)
    if not camelized:
        raise ValidationError(
            f"Cannot derive a plugin class name from '{name}'.", reason="empty_name"
        )
    return camelized[0].upper() + camelized[1:]


def derive_identifiers(organization: str, project_name: str) -> Identifiers:
    """Derive the identifier set for one project. iOS and macOS share a UTI."""
    apple_identifier = derive_uti_identifier(organization, project_name)
    return Identifiers(
        organization=organization,
        project_name=project_name,
        android_identifier=derive_android_identifier(organization, project_name),
        ios_identifier=apple_identifier,
        macos_identifier=apple_identifier,
    )
