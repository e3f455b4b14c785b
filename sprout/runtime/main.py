import argparse
import os
import sys
from pathlib import Path

from sprout.policy import get_policy_loader
from sprout.runtime.commands import ScaffoldOptions, run_add_platforms, run_create
from sprout.runtime.context import ANDROID_LANGUAGES, IOS_LANGUAGES
from sprout.runtime.errors import ScaffoldError

COMMANDS = {
    "create": run_create,
    "create-plugin": run_create,
    "add-platforms": run_add_platforms,
}


def _split_platforms(value: str):
    return [p.strip() for p in value.split(",") if p.strip()]


def add_common_arguments(parser: argparse.ArgumentParser):
    """Options shared by every scaffolding command."""
    parser.add_argument("rest", nargs="*", metavar="output-directory", help="Project directory")
    parser.add_argument(
        "--platforms", action="extend", type=_split_platforms, default=[],
        help="Target platforms, repeatable or comma separated",
    )
    parser.add_argument("--org", dest="organization", help="Organization in reverse domain notation")
    parser.add_argument("--android-language", "-a", choices=ANDROID_LANGUAGES, help="Android glue code language")
    parser.add_argument("--ios-language", "-i", choices=IOS_LANGUAGES, help="iOS glue code language")
    parser.add_argument(
        "--overwrite", action=argparse.BooleanOptionalAction, default=False,
        help="Replace existing files",
    )
    parser.add_argument("--with-driver-test", action="store_true", help="Add a flutter_driver test to the example app")
    parser.add_argument(
        "--flutter-root", default=os.environ.get("FLUTTER_ROOT"),
        help="Flutter SDK root (default: $FLUTTER_ROOT)",
    )
    parser.add_argument("--policy", help="Path to a command policy file")
    parser.add_argument("--project-name", help="Package name (default: directory name)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="sprout: Flutter plugin scaffolding")
    subparsers = parser.add_subparsers(dest="command")

    create_parser = subparsers.add_parser("create", help="Create a new plugin project")
    add_common_arguments(create_parser)
    create_parser.add_argument("--description", help="Package description")

    plugin_parser = subparsers.add_parser("create-plugin", help="Create a plugin, keeping declared platforms")
    add_common_arguments(plugin_parser)
    plugin_parser.add_argument("--description", help="Package description")

    add_parser = subparsers.add_parser("add-platforms", help="Add platforms to an existing plugin")
    add_common_arguments(add_parser)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        return 2

    options = ScaffoldOptions(
        command=args.command,
        rest=list(args.rest) + extra,
        platforms=args.platforms,
        organization=args.organization,
        android_language=args.android_language,
        ios_language=args.ios_language,
        overwrite=args.overwrite,
        with_driver_test=args.with_driver_test,
        tool_root=args.flutter_root,
        description=getattr(args, "description", None),
        project_name=args.project_name,
    )

    try:
        policy = get_policy_loader(Path(args.policy) if args.policy else None)
        COMMANDS[args.command](options, policy=policy)
    except ScaffoldError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
