"""
Template rendering for scaffolds.

A template is a directory under factory/templates/. Files ending in .tmpl are
rendered with Jinja2 and written without the suffix; other files are copied.
Path segments are rendered as well, so `{{projectName}}.dart.tmpl` becomes
`my_plugin.dart`.

Top-level directories named after a platform are only rendered when that
platform is enabled in the context. A language suffix (`android-kotlin`,
`ios-swift`) also has to match the context's language choice and is dropped
from the output path.
"""

import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from ..runtime.errors import ConfigurationError, IOFailure
from ..runtime.validators import SUPPORTED_PLATFORMS

TEMPLATE_SUFFIX = ".tmpl"
TEMPLATES_DIR = Path(__file__).parent / "templates"

_LANGUAGE_KEYS = {"android": "androidLanguage", "ios": "iosLanguage"}


def _platform_dir(name: str, context: Dict[str, Any]) -> Optional[str]:
    """Output name for a top-level directory, or None when it is filtered out."""
    platform, _, language = name.partition("-")
    if platform not in SUPPORTED_PLATFORMS:
        return name
    if not context.get(platform):
        return None
    if language and context.get(_LANGUAGE_KEYS.get(platform, "")) != language:
        return None
    return platform


class TemplateRenderer:
    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = Path(templates_dir or TEMPLATES_DIR)
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _output_path(self, relative: PurePosixPath, context: Dict[str, Any]) -> Optional[PurePosixPath]:
        parts = list(relative.parts)
        if len(parts) > 1:
            top = _platform_dir(parts[0], context)
            if top is None:
                return None
            parts[0] = top
        rendered = [self.env.from_string(part).render(context) for part in parts]
        if rendered[-1].endswith(TEMPLATE_SUFFIX):
            rendered[-1] = rendered[-1][: -len(TEMPLATE_SUFFIX)]
        return PurePosixPath(*rendered)

    def render(
        self,
        template_name: str,
        target_dir,
        context: Dict[str, Any],
        overwrite: bool = False,
        exclude: Iterable[str] = (),
    ) -> int:
        """Render a template into target_dir. Returns the number of files written.

        Existing files are left alone unless overwrite is set. Output paths
        listed in exclude (relative, posix style) are never written.
        """
        template_root = self.templates_dir / template_name
        if not template_root.is_dir():
            raise ConfigurationError(f"Template not found: {template_name}", reason="unknown_template")

        target_dir = Path(target_dir)
        excluded = set(exclude)
        written = 0

        for source in sorted(template_root.rglob("*")):
            if not source.is_file():
                continue
            relative = PurePosixPath(source.relative_to(template_root).as_posix())
            try:
                output = self._output_path(relative, context)
                if output is None or str(output) in excluded:
                    continue

                destination = target_dir / output
                if destination.exists() and not overwrite:
                    continue

                destination.parent.mkdir(parents=True, exist_ok=True)
                if source.name.endswith(TEMPLATE_SUFFIX):
                    template = self.env.get_template(f"{template_name}/{relative}")
                    destination.write_text(template.render(context))
                else:
                    shutil.copy2(source, destination)
            except TemplateError as e:
                raise ConfigurationError(
                    f"Failed to render {template_name}/{relative}: {e}", reason="template_error"
                )
            except OSError as e:
                raise IOFailure(f"Failed to write {target_dir / relative}: {e}", reason="write_failed")
            written += 1

        return written
