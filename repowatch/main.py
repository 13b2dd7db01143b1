"""repowatch entry point.

Usage: repowatch [--config PATH] <command>

Commands: login, logout, whoami, add, remove, list, prs, merge, reject.
Output goes to stdout, logs to stderr (level from config or -v).
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Callable, Dict

from repowatch.adapters import GitHubAdapter, GitPlatformError
from repowatch.config import AppConfig, load_config
from repowatch.logging import RepowatchLogging
from repowatch.models import DashboardRepo, PullRequest
from repowatch.session import SessionManager
from repowatch.store import open_secret_storage, open_watchlist_storage
from repowatch.sync import Dashboard, RepositorySync
from repowatch.triage import PRTriage
from repowatch.utils import ValidationError, parse_full_name

LOG = logging.getLogger("repowatch.main")


def build_parser() -> argparse.ArgumentParser:
    """CLI: global options and one subcommand."""
    parser = argparse.ArgumentParser(
        prog="repowatch",
        description="repowatch - watch GitHub repositories and triage their pull requests",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    login = sub.add_parser("login", help="Validate and store a personal access token")
    login.add_argument("--token", help="Token (default: config/GITHUB_TOKEN, else prompt)")
    sub.add_parser("logout", help="Forget the stored token (watchlist is kept)")
    sub.add_parser("whoami", help="Show the authenticated user")

    add = sub.add_parser("add", help="Add owner/repo to the watchlist")
    add.add_argument("repo", help="owner/repo")
    remove = sub.add_parser("remove", help="Remove owner/repo from the watchlist")
    remove.add_argument("repo", help="owner/repo")

    dashboard = sub.add_parser("list", help="Dashboard: watched repositories and open PR counts")
    dashboard.add_argument("--filter", "-f", default="", help="Substring filter on owner/repo")

    prs = sub.add_parser("prs", help="Open pull requests of a repository")
    prs.add_argument("repo", help="owner/repo")
    prs.add_argument("--number", "-n", type=int, help="Show one PR in detail")

    for name, text in (("merge", "Squash-merge a pull request"), ("reject", "Close a pull request")):
        action = sub.add_parser(name, help=text)
        action.add_argument("repo", help="owner/repo")
        action.add_argument("number", type=int, help="PR number")
        action.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_manager(config: AppConfig) -> SessionManager:
    adapter = GitHubAdapter(api_url=config.github.api_url, timeout=config.github.timeout)
    return SessionManager(
        adapter,
        open_watchlist_storage(config.storage.watchlist_path),
        open_secret_storage(config.storage.secrets_path),
    )


def _confirm(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def _require_login(manager: SessionManager) -> bool:
    manager.start()
    if manager.is_authenticated:
        return True
    if manager.verify_error:
        print(f"Could not verify the stored token: {manager.verify_error}", file=sys.stderr)
    else:
        print("Not logged in. Run: repowatch login", file=sys.stderr)
    return False


def _format_repo(repo: DashboardRepo) -> str:
    if repo.error:
        return f"! {repo.full_name:<40} {repo.description}"
    marker = "*" if repo.pull_requests_count > 0 else " "
    return (
        f"{marker} {repo.full_name:<40} PRs {repo.pull_requests_count:>4}  "
        f"stars {repo.stargazers_count:>6}  forks {repo.forks_count:>5}  issues {repo.open_issues_count:>4}"
    )


def _format_pr_line(pr: PullRequest) -> str:
    return f"#{pr.number:<6} {pr.title}  ({pr.user.login}, {pr.head.ref} -> {pr.base.ref})"


def _print_pr_detail(pr: PullRequest) -> None:
    print(f"#{pr.number} {pr.title}")
    print(f"  author:  {pr.user.login}")
    print(f"  branch:  {pr.head.ref} -> {pr.base.ref}")
    print(f"  opened:  {pr.created_at:%Y-%m-%d %H:%M}  updated: {pr.updated_at:%Y-%m-%d %H:%M}")
    print(f"  url:     {pr.html_url}")
    print()
    print(pr.body or "No description provided.")


def _print_notice(triage: PRTriage) -> None:
    notice = triage.notice
    if notice is None:
        return
    stream = sys.stdout if notice.kind == "success" else sys.stderr
    print(notice.message, file=stream)


def _load_triage(config: AppConfig, manager: SessionManager, full_name: str) -> PRTriage | None:
    owner, name = parse_full_name(full_name)
    triage = PRTriage(manager.adapter, owner, name, notice_seconds=config.triage.notice_seconds)
    if not triage.load():
        _print_notice(triage)
        return None
    return triage


def cmd_login(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    token = args.token or config.github_token_resolved or getpass.getpass("GitHub token: ")
    try:
        user = manager.login(token)
    except GitPlatformError as e:
        print(f"Invalid token: {e}", file=sys.stderr)
        return 1
    print(f"Logged in as {user.login}" + (f" ({user.name})" if user.name else ""))
    return 0


def cmd_logout(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    manager.logout()
    print("Logged out. Watchlist kept.")
    return 0


def cmd_whoami(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    if not _require_login(manager):
        return 1
    user = manager.user
    assert user is not None
    print(user.login + (f" ({user.name})" if user.name else ""))
    return 0


def cmd_add(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    if not _require_login(manager):
        return 1
    if not manager.add_to_watchlist(args.repo):
        print(f"{args.repo.strip()} is already in the watchlist", file=sys.stderr)
        return 1
    print(f"Added {args.repo.strip()}")
    return 0


def cmd_remove(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    full_name = args.repo.strip()
    manager.load_watchlist()
    if full_name not in manager.watchlist:
        print(f"{full_name} is not in the watchlist", file=sys.stderr)
        return 1
    manager.remove_from_watchlist(full_name)
    print(f"Removed {full_name}")
    return 0


def cmd_list(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    if not _require_login(manager):
        return 1
    if not manager.watchlist:
        print("Watchlist is empty. Add a repository with: repowatch add owner/repo")
        return 0
    dashboard = Dashboard(RepositorySync(manager.adapter, max_workers=config.sync.max_workers))
    dashboard.search_term = args.filter
    dashboard.reload(manager.watchlist)
    visible = dashboard.visible
    for repo in visible:
        print(_format_repo(repo))
    if not visible:
        print(f"No repository matches {args.filter!r}")
    return 1 if any(r.error for r in visible) else 0


def cmd_prs(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    if not _require_login(manager):
        return 1
    triage = _load_triage(config, manager, args.repo)
    if triage is None:
        return 1
    if args.number is not None:
        if not triage.select_number(args.number):
            print(f"PR #{args.number} is not open in {triage.full_name}", file=sys.stderr)
            return 1
        assert triage.selected is not None
        _print_pr_detail(triage.selected)
        return 0
    if not triage.prs:
        print(f"No open pull requests in {triage.full_name}")
    for pr in triage.prs:
        print(_format_pr_line(pr))
    return 0


def _select_for_action(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> PRTriage | None:
    if not _require_login(manager):
        return None
    triage = _load_triage(config, manager, args.repo)
    if triage is None:
        return None
    if not triage.select_number(args.number):
        print(f"PR #{args.number} is not open in {triage.full_name}", file=sys.stderr)
        return None
    return triage


def cmd_merge(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    triage = _select_for_action(args, config, manager)
    if triage is None:
        return 1
    if not args.yes and not _confirm(f"Are you sure you want to MERGE PR #{args.number}?"):
        print("Cancelled")
        return 0
    ok = triage.merge()
    _print_notice(triage)
    return 0 if ok else 1


def cmd_reject(args: argparse.Namespace, config: AppConfig, manager: SessionManager) -> int:
    triage = _select_for_action(args, config, manager)
    if triage is None:
        return 1
    triage.reject()
    if not args.yes and not _confirm(f"Confirm reject PR #{args.number}?"):
        triage.deselect()
        print("Cancelled")
        return 0
    result = triage.reject()
    _print_notice(triage)
    return 0 if result == "closed" else 1


COMMANDS: Dict[str, Callable[[argparse.Namespace, AppConfig, SessionManager], int]] = {
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "add": cmd_add,
    "remove": cmd_remove,
    "list": cmd_list,
    "prs": cmd_prs,
    "merge": cmd_merge,
    "reject": cmd_reject,
}


def main(argv: list[str] | None = None) -> int:
    """Entry point: dispatch to the subcommand."""
    args = parse_args(argv)
    config = load_config(args.config)
    RepowatchLogging(config.logging, verbose=args.verbose).setup()

    if args.check:
        print("Config OK:", config.github.api_url, config.storage.data_dir)
        return 0
    if not args.command:
        build_parser().print_help()
        return 2

    manager = build_manager(config)
    try:
        return COMMANDS[args.command](args, config, manager)
    except (GitPlatformError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 1
    except Exception as e:
        LOG.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
