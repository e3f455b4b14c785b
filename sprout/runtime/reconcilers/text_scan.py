"""
Text-scan platform reconciler.

Finds the `platforms:` line directly under a `plugin:` line and inserts new
platform blocks right after it. This is a line heuristic, not a YAML
structural edit: a `platforms:` inside a comment that directly follows a
`plugin:` line is matched too. Every line outside the inserted blocks is
written back unchanged.
"""

from pathlib import Path
from typing import List, Sequence, Tuple

from ..errors import ManifestFormatError
from ..manifest import get_existing_platforms, parse_plugin_manifest, read_text, write_text_atomic

PLATFORMS_TOKEN = "platforms:"
PLUGIN_TOKEN = "plugin:"


def locate_platforms_anchor(lines: Sequence[str]) -> Tuple[int, str]:
    """Return (index of the anchor line, text before the token on that line)."""
    for i, line in enumerate(lines):
        if PLATFORMS_TOKEN not in line:
            continue
        if i == 0 or PLUGIN_TOKEN not in lines[i - 1]:
            continue
        return i, line.split(PLATFORMS_TOKEN)[0]

    raise ManifestFormatError(
        "invalid manifest: no plugin.platforms section", reason="anchor_not_found"
    )


def insert_platform_blocks(
    lines: List[str],
    platforms: Sequence[str],
    plugin_class: str,
    android_identifier: str,
) -> List[str]:
    """Return a copy of lines with one block per platform after the anchor, in the given order."""
    anchor, prefix = locate_platforms_anchor(lines)
    result = list(lines)
    cursor = anchor + 1
    for platform in platforms:
        block = [
            f"{prefix}  {platform}:",
            f"{prefix}    pluginClass: {plugin_class}",
        ]
        if platform == "android":
            block.append(f"{prefix}    package: {android_identifier}")
        result[cursor:cursor] = block
        cursor += len(block)
    return result


class TextScanReconciler:
    def reconcile(
        self,
        manifest_path: Path,
        requested_platforms: List[str],
        plugin_class: str,
        android_identifier: str,
    ) -> List[str]:
        # Structure is read for the diff, text is edited for the write.
        text = read_text(manifest_path)
        existing = get_existing_platforms(parse_plugin_manifest(text))

        lines = text.split("\n")
        locate_platforms_anchor(lines)

        to_add: List[str] = []
        for platform in requested_platforms:
            if platform not in existing and platform not in to_add:
                to_add.append(platform)
        if not to_add:
            return []

        updated = insert_platform_blocks(lines, to_add, plugin_class, android_identifier)
        write_text_atomic(manifest_path, "\n".join(updated))
        return to_add
