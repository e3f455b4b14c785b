"""
Package manifest (pubspec.yaml) and project metadata access.

The manifest is parsed with PyYAML for reading only. Edits go through a
PlatformReconciler (see reconcilers/) which rewrites the text so unrelated
content keeps its formatting.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import jsonschema
import yaml

from .errors import IOFailure, ManifestFormatError
from .schemas import SCHEMA_REGISTRY

MANIFEST_FILENAME = "pubspec.yaml"
METADATA_FILENAME = ".metadata"

_APPLICATION_ID = re.compile(r"""applicationId\s*=?\s*["']([^"']+)["']""")
_BUNDLE_IDENTIFIER = re.compile(r"PRODUCT_BUNDLE_IDENTIFIER\s*=\s*([^\s;]+)")

# Example app files that carry an identifier, relative to example/
_EXAMPLE_IDENTIFIER_SOURCES = (
    ("android/app/build.gradle", _APPLICATION_ID),
    ("ios/Flutter/Bundle.xcconfig", _BUNDLE_IDENTIFIER),
    ("macos/Runner/Configs/AppInfo.xcconfig", _BUNDLE_IDENTIFIER),
)


def read_text(path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise IOFailure(f"Unable to read {path}: {e.strerror or e}", reason="read_failed")
    except UnicodeDecodeError as e:
        raise IOFailure(f"Unable to read {path}: not valid text ({e.reason})", reason="read_failed")


def write_text_atomic(path, content: str) -> None:
    """Replace path with content via a temp file in the same directory."""
    path = Path(path)
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o7777)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise IOFailure(f"Unable to write {path}: {e.strerror or e}", reason="write_failed")


def parse_plugin_manifest(text: str) -> Dict[str, Any]:
    """Parse and validate manifest text. Raises ManifestFormatError."""
    try:
        manifest = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestFormatError(
            f"Invalid flutter plugin `pubspec.yaml` file: {e}", reason="invalid_yaml"
        )

    try:
        jsonschema.validate(manifest, SCHEMA_REGISTRY[MANIFEST_FILENAME])
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ManifestFormatError(
            f"Invalid flutter plugin `pubspec.yaml` file ({location}: {e.message}).",
            reason="invalid_manifest",
        )
    return manifest


def load_plugin_manifest(path) -> Dict[str, Any]:
    return parse_plugin_manifest(read_text(path))


def get_platforms_map(manifest: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not isinstance(manifest, dict):
        return None
    flutter = manifest.get("flutter")
    if not isinstance(flutter, dict):
        return None
    plugin = flutter.get("plugin")
    if not isinstance(plugin, dict):
        return None
    platforms = plugin.get("platforms")
    return platforms if isinstance(platforms, dict) else None


def get_existing_platforms(manifest: Dict[str, Any]) -> List[str]:
    """Platforms declared under flutter.plugin.platforms, in file order."""
    platforms = get_platforms_map(manifest)
    if platforms is None:
        raise ManifestFormatError(
            "Invalid flutter plugin `pubspec.yaml` file.", reason="invalid_manifest"
        )
    return [str(name) for name in platforms]


def is_plugin_project(project_dir) -> bool:
    """Whether the .metadata file marks project_dir as a plugin."""
    metadata_path = Path(project_dir) / METADATA_FILENAME
    if not metadata_path.is_file():
        return False
    try:
        metadata = yaml.safe_load(read_text(metadata_path))
        jsonschema.validate(metadata, SCHEMA_REGISTRY[METADATA_FILENAME])
    except (yaml.YAMLError, jsonschema.ValidationError):
        return False
    return metadata.get("project_type") == "plugin"


def _organization_of(identifier: str) -> Optional[str]:
    segments = identifier.split(".")
    if len(segments) < 2:
        return None
    return ".".join(segments[:-1])


def infer_organizations(project_dir) -> Set[str]:
    """Organizations already used by an existing project.

    Looks at the android package declared in the manifest and at the example
    app's applicationId and bundle identifiers. A missing or malformed source
    contributes nothing.
    """
    project_dir = Path(project_dir)
    organizations: Set[str] = set()

    manifest_path = project_dir / MANIFEST_FILENAME
    if manifest_path.is_file():
        try:
            platforms = get_platforms_map(load_plugin_manifest(manifest_path)) or {}
        except ManifestFormatError:
            platforms = {}
        android = platforms.get("android") or {}
        package = android.get("package") if isinstance(android, dict) else None
        if package:
            org = _organization_of(str(package))
            if org:
                organizations.add(org)

    for relative, pattern in _EXAMPLE_IDENTIFIER_SOURCES:
        path = project_dir / "example" / relative
        if not path.is_file():
            continue
        match = pattern.search(read_text(path))
        if match:
            org = _organization_of(match.group(1))
            if org:
                organizations.add(org)

    return organizations


def reconcile_platforms(
    manifest_path,
    requested_platforms: Sequence[str],
    plugin_class: str,
    android_identifier: str,
    reconciler=None,
) -> List[str]:
    """Add missing platform blocks to the manifest. Returns the platforms added."""
    if reconciler is None:
        from .reconcilers import get_reconciler
        reconciler = get_reconciler()
    return reconciler.reconcile(
        Path(manifest_path), list(requested_platforms), plugin_class, android_identifier
    )
