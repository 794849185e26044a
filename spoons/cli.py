"""
spoons CLI - Power Spoons Package Manager.

Pacman-style interface for managing packages.

Usage:
    spoons -S <id>...            Install and enable package(s)
    spoons -Sy [id...]           Refresh package list (then install ids)
    spoons -Ss [query]           Search the package list
    spoons -Si <id>              Show package definition
    spoons -R <id>...            Uninstall package(s)
    spoons -U [id...]            Update package(s) (all installed by default)
    spoons -Q                    List installed packages
    spoons -T <id>...            Toggle enabled state
    spoons -K [key [value]]      List, set or clear (--clear) secrets
    spoons -D                    Run enabled packages until interrupted
"""

import argparse
import sys


class SpoonsError(Exception):
    """Base exception for spoons CLI errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="spoons",
        description="Power Spoons - Pacman-style package manager",
        add_help=False,
    )

    # Operation flags (mutually exclusive)
    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Install package")
    ops.add_argument("-R", "--remove", action="store_true", help="Uninstall package")
    ops.add_argument("-U", "--upgrade", action="store_true", help="Update package(s)")
    ops.add_argument("-Q", "--query", action="store_true", help="Query installed")
    ops.add_argument("-T", "--toggle", action="store_true", help="Toggle enabled")
    ops.add_argument("-K", "--secrets", action="store_true", help="Manage secrets")
    ops.add_argument("-D", "--daemon", action="store_true", help="Run packages")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    # Sync sub-flags
    parser.add_argument("-y", "--refresh", action="store_true", help="Refresh (-Sy)")
    parser.add_argument("-s", "--search", action="store_true", help="Search (-Ss)")
    parser.add_argument("-i", "--info", action="store_true", help="Show info (-Si)")

    # Common options
    parser.add_argument("--clear", action="store_true", help="Clear secret on -K")
    parser.add_argument("--config", default=None, help="Path to config.toml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # Positional arguments
    parser.add_argument("targets", nargs="*", help="Package ids, queries or secret keys")

    return parser


def print_help():
    """Print help message."""
    print(__doc__.strip().split("\n\n", 1)[1])
    print(
        """
Options:
    --clear                      Clear secret on -K
    --config PATH                Config file (default: $POWERSPOONS_CONFIG
                                 or ~/.powerspoons/config.toml)
    -v, --verbose                Verbose output
    -h, --help                   Show this help"""
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for spoons CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        if args.help or not any(
            (
                args.sync,
                args.remove,
                args.upgrade,
                args.query,
                args.toggle,
                args.secrets,
                args.daemon,
            )
        ):
            print_help()
            return 0

        if args.sync:
            if args.search:
                from spoons.commands.sync import search_command

                return search_command(args)
            if args.info:
                from spoons.commands.sync import info_command

                return info_command(args)
            if args.refresh and not args.targets:
                from spoons.commands.sync import refresh_command

                return refresh_command(args)

            from spoons.commands.install import install_command

            return install_command(args)

        elif args.remove:
            from spoons.commands.remove import remove_command

            return remove_command(args)

        elif args.upgrade:
            from spoons.commands.upgrade import upgrade_command

            return upgrade_command(args)

        elif args.query:
            from spoons.commands.query import query_command

            return query_command(args)

        elif args.toggle:
            from spoons.commands.toggle import toggle_command

            return toggle_command(args)

        elif args.secrets:
            from spoons.commands.secrets import secrets_command

            return secrets_command(args)

        elif args.daemon:
            from spoons.commands.daemon import daemon_command

            return daemon_command(args)

    except SpoonsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
