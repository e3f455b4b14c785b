"""
Name and path validation for scaffold targets.

All validators raise ValidationError (or ConfigurationError for the tool root)
and return None when the input is acceptable.
"""

import os
import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .errors import ConfigurationError, ValidationError

SUPPORTED_PLATFORMS = ("ios", "android", "windows", "linux", "macos", "web")

# A valid Dart identifier.
_IDENTIFIER = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")

# Non-contextual Dart keywords.
DART_KEYWORDS = frozenset([
    "abstract", "as", "assert", "async", "await", "break", "case", "catch",
    "class", "const", "continue", "covariant", "default", "deferred", "do",
    "dynamic", "else", "enum", "export", "extends", "extension", "external",
    "factory", "false", "final", "finally", "for", "function", "get", "hide",
    "if", "implements", "import", "in", "inout", "interface", "is", "late",
    "library", "mixin", "native", "new", "null", "of", "on", "operator", "out",
    "part", "patch", "required", "rethrow", "return", "set", "show", "source",
    "static", "super", "switch", "sync", "this", "throw", "true", "try",
    "typedef", "var", "void", "while", "with", "yield",
])

# Packages the generated project depends on, directly or transitively.
PACKAGE_DEPENDENCIES = frozenset([
    "analyzer", "args", "async", "collection", "convert", "crypto", "flutter",
    "flutter_test", "front_end", "html", "http", "intl", "io", "isolate",
    "kernel", "logging", "matcher", "meta", "mime", "path", "plugin", "pool",
    "test", "utf", "watcher", "yaml",
])


def _is_identifier(name: str) -> bool:
    return _IDENTIFIER.fullmatch(name) is not None and name not in DART_KEYWORDS


def is_valid_package_name(name: str) -> bool:
    """Whether name can be used as the generated package's name."""
    return _is_identifier(name) and name not in PACKAGE_DEPENDENCIES


def validate_project_name(name: str) -> None:
    if not _is_identifier(name):
        raise ValidationError(
            f'"{name}" is not a valid Dart package name.\n\n'
            "See https://dart.dev/tools/pub/pubspec#name for more information.",
            reason="invalid_package_name",
        )
    if name in PACKAGE_DEPENDENCIES:
        raise ValidationError(
            f"Invalid project name: '{name}' - this will conflict with Flutter "
            "package dependencies.",
            reason="package_dependency_conflict",
        )


def _normalize(path) -> Path:
    return Path(os.path.normpath(os.path.abspath(path)))


def is_within(root, path) -> bool:
    """True when path equals root or is nested below it."""
    root_path = _normalize(root)
    target = _normalize(path)
    return target == root_path or root_path in target.parents


def validate_project_directory(path, tool_root, overwrite: bool = False) -> None:
    """Refuse targets inside the tool root, existing files and (without overwrite) links."""
    dir_path = str(_normalize(path))

    if is_within(tool_root, dir_path):
        raise ValidationError(
            "Cannot create a project within the Flutter SDK. "
            f"Target directory '{dir_path}' is within the Flutter SDK at '{_normalize(tool_root)}'.",
            reason="within_tool_root",
        )

    # A file where the project directory should go was probably not expected
    # by the user, so it is never replaced.
    if os.path.isfile(dir_path):
        message = f"Invalid project name: '{dir_path}' - refers to an existing file."
        if overwrite:
            message += " Refusing to overwrite a file with a directory."
        raise ValidationError(message, reason="existing_file")

    if overwrite:
        return

    if os.path.islink(dir_path):
        raise ValidationError(
            f"Invalid project name: '{dir_path}' - refers to a link.",
            reason="existing_link",
        )
    if os.path.lexists(dir_path) and not os.path.isdir(dir_path):
        raise ValidationError(
            f"Invalid project name: '{dir_path}' - file exists.",
            reason="existing_file",
        )


def validate_requested_platforms(
    platforms: Sequence[str],
    supported: Iterable[str] = SUPPORTED_PLATFORMS,
    disabled: Iterable[str] = (),
) -> List[str]:
    """Check the requested platforms and return them de-duplicated, in order."""
    if not platforms:
        raise ValidationError(
            "Must specify at least one platform using --platforms.",
            reason="no_platforms",
        )

    supported = set(supported)
    requested: List[str] = []
    for platform in platforms:
        if platform not in supported:
            raise ValidationError(
                f"Unsupported platform '{platform}'. "
                f"Allowed: {', '.join(sorted(supported))}.",
                reason="unsupported_platform",
            )
        if platform not in requested:
            requested.append(platform)

    disabled = set(disabled)
    disabled_requested = [p for p in requested if p in disabled]
    if disabled_requested:
        raise ValidationError(
            f"Requested platforms: {disabled_requested} were disabled.\n"
            "Enable them in the command policy before scaffolding them.",
            reason="disabled_platform",
        )
    return requested


def validate_output_directory_args(rest: Sequence[str], command: str = "create") -> str:
    """Exactly one positional output directory must be given."""
    if not rest:
        raise ValidationError(
            "No option specified for the output directory.", reason="no_output_directory"
        )
    if len(rest) > 1:
        message = "Multiple output directories specified."
        for arg in rest:
            if arg.startswith("-"):
                message += f"\nTry moving {arg} to be immediately following {command}"
                break
        raise ValidationError(message, reason="multiple_output_directories")
    return rest[0]


def validate_tool_root(tool_root: Optional[str]) -> str:
    """Return the absolute tool root, or fail when it is unset or not a Flutter SDK."""
    if not tool_root:
        raise ConfigurationError(
            "Neither the --flutter-root command line flag nor the FLUTTER_ROOT environment "
            "variable was specified. Unable to find package:flutter.",
            reason="no_tool_root",
        )
    root = _normalize(tool_root)
    flutter_package = root / "packages" / "flutter"
    if not (flutter_package / "pubspec.yaml").is_file():
        raise ConfigurationError(
            f"Unable to find package:flutter in {flutter_package}",
            reason="invalid_tool_root",
        )
    return str(root)
