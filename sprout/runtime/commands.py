"""
sprout Scaffolding Commands

`create`, `create-plugin` and `add-platforms` share one flow. The differences
between them live in the CommandProfile loaded from the command policy:

- create:         fresh scaffold, refuses a non-empty directory unless --overwrite
- create-plugin:  scaffold that keeps the platforms an existing plugin declares
- add-platforms:  render new platform directories into an existing plugin and
                  add their entries to its pubspec.yaml

Validation runs before anything is written.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from filelock import FileLock, Timeout

from ..factory.template import TemplateRenderer
from ..policy import CommandProfile, PolicyLoader, get_policy_loader
from .context import PluginContext, build_example_context, build_template_context
from .errors import ConfigurationError, ToolBusyError, ValidationError
from .manifest import (
    MANIFEST_FILENAME,
    get_existing_platforms,
    infer_organizations,
    is_plugin_project,
    load_plugin_manifest,
    parse_plugin_manifest,
    read_text,
    reconcile_platforms,
)
from .reconcilers import locate_platforms_anchor
from .validators import (
    validate_output_directory_args,
    validate_project_directory,
    validate_project_name,
    validate_requested_platforms,
    validate_tool_root,
)

LOCK_FILENAME = ".sprout.lock"
EXAMPLE_DIR = "example"
DRIVER_DIR = "test_driver"


@dataclass
class ScaffoldOptions:
    """Parsed command line for one scaffolding command."""
    command: str
    rest: List[str] = field(default_factory=list)
    platforms: List[str] = field(default_factory=list)
    organization: Optional[str] = None
    android_language: Optional[str] = None
    ios_language: Optional[str] = None
    overwrite: bool = False
    with_driver_test: bool = False
    tool_root: Optional[str] = None
    description: Optional[str] = None
    project_name: Optional[str] = None


@dataclass
class ScaffoldResult:
    project_dir: Path
    project_name: str
    platforms: List[str]
    files_written: int = 0
    platforms_added: List[str] = field(default_factory=list)


def _resolve_profile(policy: PolicyLoader, options: ScaffoldOptions) -> CommandProfile:
    profile = policy.get_command_profile(options.command)
    if options.overwrite and not profile.allow_overwrite:
        raise ConfigurationError(
            f"--overwrite is not allowed for '{options.command}'.",
            reason="overwrite_not_allowed",
        )
    return profile


def _resolve_platforms(policy: PolicyLoader, profile: CommandProfile, options: ScaffoldOptions) -> List[str]:
    requested = options.platforms or list(profile.default_platforms)
    return validate_requested_platforms(
        requested, policy.get_supported_platforms(), policy.get_disabled_platforms()
    )


def _resolve_organization(policy: PolicyLoader, options: ScaffoldOptions, project_dir: Path) -> str:
    """Explicit --org, else the one organization the project already uses, else the default."""
    if options.organization:
        return options.organization

    if project_dir.is_dir():
        existing = infer_organizations(project_dir)
        if len(existing) == 1:
            return existing.pop()
        if len(existing) > 1:
            raise ValidationError(
                f"Ambiguous organization in existing files: {', '.join(sorted(existing))}. "
                f"The --org command line argument must be specified to recreate project.",
                reason="ambiguous_organization",
            )

    return policy.get_default("organization")


def _is_non_empty_dir(path: Path) -> bool:
    return path.is_dir() and any(path.iterdir())


def _render_scaffold(
    renderer: TemplateRenderer,
    plugin: PluginContext,
    project_dir: Path,
    overwrite: bool,
    exclude=(),
) -> int:
    written = renderer.render("plugin", project_dir, plugin.as_template_vars(), overwrite=overwrite, exclude=exclude)

    example = build_example_context(plugin)
    example_dir = project_dir / EXAMPLE_DIR
    written += renderer.render("app", example_dir, example.as_template_vars(), overwrite=overwrite, exclude=exclude)
    if plugin.with_driver_test:
        written += renderer.render(
            "driver", example_dir / DRIVER_DIR, example.as_template_vars(), overwrite=overwrite
        )
    return written


def _print_next_steps(policy: PolicyLoader, result: ScaffoldResult):
    relative = os.path.relpath(result.project_dir)
    print("\nAll done!")
    print("\nIn order to run your application, type:\n")
    print(f"  $ cd {os.path.join(relative, EXAMPLE_DIR)}")
    print("  $ flutter run\n")
    print(f"Your plugin code is in {os.path.join(relative, 'lib', result.project_name + '.dart')}.")
    native = [p for p in result.platforms if p != "web"]
    if native:
        dirs = ", ".join(os.path.join(relative, p) for p in native)
        print(f"Host platform code is in the {dirs} directories.")

    unstable = [p for p in result.platforms if p in policy.get_unstable_platforms()]
    for platform in unstable:
        print(
            f"\nWARNING: The {platform} platform is not yet stable. "
            f"The generated {platform} code may change in future releases."
        )


def _print_update_manifest_hint(project_dir: Path, platforms: List[str]):
    """Tell the user which rendered platforms the kept pubspec.yaml does not declare."""
    manifest_path = project_dir / MANIFEST_FILENAME
    if not is_plugin_project(project_dir) or not manifest_path.is_file():
        return
    declared = get_existing_platforms(load_plugin_manifest(manifest_path))
    missing = [p for p in platforms if p not in declared]
    if not missing:
        return
    relative = os.path.relpath(manifest_path)
    print(
        f"\nYou need to update {relative} to support {', '.join(missing)}. "
        f'Run "sprout add-platforms {os.path.relpath(project_dir)} --platforms {",".join(missing)}" to add them.'
    )


def run_create(
    options: ScaffoldOptions,
    policy: Optional[PolicyLoader] = None,
    renderer: Optional[TemplateRenderer] = None,
    clock: Optional[Callable] = None,
    uuid_factory: Optional[Callable] = None,
) -> ScaffoldResult:
    """Scaffold a new plugin package with its example app."""
    policy = policy or get_policy_loader()
    renderer = renderer or TemplateRenderer()
    profile = _resolve_profile(policy, options)

    output = validate_output_directory_args(options.rest, options.command)
    platforms = _resolve_platforms(policy, profile, options)
    tool_root = validate_tool_root(options.tool_root)

    project_dir = Path(os.path.abspath(output))
    organization = _resolve_organization(policy, options, project_dir)
    validate_project_directory(project_dir, tool_root, options.overwrite)

    project_name = options.project_name or project_dir.name
    validate_project_name(project_name)

    if profile.refuse_existing_without_overwrite and not options.overwrite and _is_non_empty_dir(project_dir):
        raise ValidationError(
            f'"{project_dir}" already exists and is not empty. '
            f"Use --overwrite to scaffold into it anyway.",
            reason="existing_project",
        )

    if profile.include_existing_platforms and is_plugin_project(project_dir):
        manifest_path = project_dir / MANIFEST_FILENAME
        if manifest_path.is_file():
            declared = get_existing_platforms(load_plugin_manifest(manifest_path))
            platforms += [p for p in declared if p not in platforms and p in policy.get_supported_platforms()]

    plugin = build_template_context(
        organization=organization,
        project_name=project_name,
        description=options.description or policy.get_default("description"),
        tool_root=tool_root,
        driver_test_enabled=options.with_driver_test,
        android_language=options.android_language or policy.get_default("android_language"),
        ios_language=options.ios_language or policy.get_default("ios_language"),
        platforms=platforms,
        clock=clock,
        uuid_factory=uuid_factory,
    )

    creating_new_project = not _is_non_empty_dir(project_dir)
    print(f"{'Creating' if creating_new_project else 'Recreating'} project {project_name}...")
    written = _render_scaffold(renderer, plugin, project_dir, options.overwrite)
    print(f"Wrote {written} files.")

    if not creating_new_project and not profile.update_manifest:
        _print_update_manifest_hint(project_dir, plugin.platforms)

    result = ScaffoldResult(
        project_dir=project_dir,
        project_name=project_name,
        platforms=plugin.platforms,
        files_written=written,
        platforms_added=plugin.platforms,
    )
    _print_next_steps(policy, result)
    return result


def run_add_platforms(
    options: ScaffoldOptions,
    policy: Optional[PolicyLoader] = None,
    renderer: Optional[TemplateRenderer] = None,
    clock: Optional[Callable] = None,
    uuid_factory: Optional[Callable] = None,
) -> ScaffoldResult:
    """Add platforms to an existing plugin. Holds the project lock while writing."""
    policy = policy or get_policy_loader()
    renderer = renderer or TemplateRenderer()
    profile = _resolve_profile(policy, options)

    output = validate_output_directory_args(options.rest, options.command)
    platforms = _resolve_platforms(policy, profile, options)
    tool_root = validate_tool_root(options.tool_root)

    project_dir = Path(os.path.abspath(output))
    validate_project_directory(project_dir, tool_root, options.overwrite)
    if profile.require_plugin_project and not is_plugin_project(project_dir):
        raise ValidationError(
            f'"{project_dir}" is not a plugin project. Create it with "sprout create" first.',
            reason="not_a_plugin",
        )

    manifest_path = project_dir / MANIFEST_FILENAME
    text = read_text(manifest_path)
    manifest = parse_plugin_manifest(text)
    if profile.update_manifest:
        locate_platforms_anchor(text.split("\n"))

    lock = FileLock(project_dir / LOCK_FILENAME, timeout=0)
    try:
        with lock:
            return _add_platforms_locked(
                options, policy, renderer, profile, project_dir, manifest,
                platforms, tool_root, clock, uuid_factory,
            )
    except Timeout:
        raise ToolBusyError(
            f"Project {project_dir} is currently locked by another process (BUSY)",
            reason="busy",
        )


def _add_platforms_locked(
    options: ScaffoldOptions,
    policy: PolicyLoader,
    renderer: TemplateRenderer,
    profile: CommandProfile,
    project_dir: Path,
    manifest: dict,
    platforms: List[str],
    tool_root: str,
    clock: Optional[Callable],
    uuid_factory: Optional[Callable],
) -> ScaffoldResult:
    project_name = options.project_name or manifest.get("name") or project_dir.name
    validate_project_name(project_name)

    plugin = build_template_context(
        organization=_resolve_organization(policy, options, project_dir),
        project_name=project_name,
        description=options.description or manifest.get("description") or policy.get_default("description"),
        tool_root=tool_root,
        driver_test_enabled=options.with_driver_test,
        android_language=options.android_language or policy.get_default("android_language"),
        ios_language=options.ios_language or policy.get_default("ios_language"),
        platforms=platforms,
        clock=clock,
        uuid_factory=uuid_factory,
    )

    print(f"Adding {', '.join(platforms)} to {project_name}...")
    written = _render_scaffold(
        renderer, plugin, project_dir, options.overwrite, exclude=(MANIFEST_FILENAME,)
    )
    print(f"Wrote {written} files.")

    added: List[str] = []
    if profile.update_manifest:
        added = reconcile_platforms(
            project_dir / MANIFEST_FILENAME, platforms, plugin.plugin_class, plugin.android_identifier
        )
        if added:
            print(f"Added {', '.join(added)} to {MANIFEST_FILENAME}.")
        else:
            print(f"{MANIFEST_FILENAME} already declares every requested platform.")

    result = ScaffoldResult(
        project_dir=project_dir,
        project_name=project_name,
        platforms=plugin.platforms,
        files_written=written,
        platforms_added=added,
    )
    _print_next_steps(policy, result)
    return result
