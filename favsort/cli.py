import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from .bilibili.client import BilibiliClient, Credentials
from .config import Settings, load_credentials, load_settings
from .core.orchestrator import MigrationOrchestrator
from .errors import FavSortError, MigrationAborted, ValidationError
from .events import CompositeObserver, LoggingObserver, RunObserver
from .models import ExecutionResult, MigrationPlan
from .planner.naming import parse_folder_names
from .report import write_report

SENSITIVE_KEYS = {"sessdata", "csrf", "cookie"}

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2
EXIT_INTERRUPTED = 130


def mask_sensitive(ns: argparse.Namespace) -> dict:
    """Return a dict copy of args with sensitive values masked."""
    data = vars(ns).copy()
    for k in list(data.keys()):
        if k in SENSITIVE_KEYS and data[k]:
            data[k] = "****"
    return data


def configure_logging(debug: bool, log_file: Optional[Path]) -> None:
    level = logging.DEBUG if debug else logging.INFO
    handlers: List[logging.Handler] = []
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        handlers=handlers,
    )

    noisy_level = logging.DEBUG if debug else logging.WARNING
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(noisy_level)


class ProgressObserver(RunObserver):
    """tqdm bar over all planned moves; silent when stderr is not a TTY."""

    def __init__(self, disable: Optional[bool] = None) -> None:
        if disable is None:
            disable = not sys.stderr.isatty()
        self.disable = disable
        self.total = 0
        self.bar: Optional[tqdm] = None

    def plan_ready(self, plan):
        self.total = plan.total_items

    def collection_created(self, created, chunk_index, chunk):
        if self.bar is None:
            self.bar = tqdm(total=self.total, unit="item", desc="Moving", disable=self.disable)

    def item_moved(self, item, label):
        if self.bar is not None:
            self.bar.update(1)

    def item_failed(self, failure, label):
        if self.bar is not None:
            self.bar.update(1)

    def run_completed(self, result):
        self.close()

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None


def build_parser() -> argparse.ArgumentParser:
    env = load_credentials()
    p = argparse.ArgumentParser(
        prog="favsort",
        description="Regroup Bilibili favourite folders by uploader into new, size-capped folders",
    )
    p.add_argument("-f", "--folders", dest="folders", action="append", required=True,
                   help="Source folder names, separated by commas, semicolons or newlines "
                        "(repeatable). Example: -f '稍后再看,音乐'")
    p.add_argument("-b", "--base-name", default=None,
                   help="Base name of the new folders (at most 10 characters).")
    p.add_argument("-c", "--capacity", default=None,
                   help="Maximum number of items per new folder.")
    p.add_argument("--cookie", default=env["cookie"],
                   help="Raw Cookie header of a logged-in session (env FAVSORT_COOKIE).")
    p.add_argument("--sessdata", default=env["sessdata"],
                   help="SESSDATA cookie value (env FAVSORT_SESSDATA).")
    p.add_argument("--csrf", default=env["csrf"],
                   help="bili_jct cookie value (env FAVSORT_CSRF).")
    p.add_argument("--mid", default=env["mid"],
                   help="Your user id (env FAVSORT_MID). Taken from DedeUserID when omitted.")
    p.add_argument("--api-url", default=None, help="API base URL.")
    p.add_argument("--move-delay", type=float, default=None,
                   help="Seconds to wait after every move.")
    p.add_argument("-y", "--yes", action="store_true",
                   help="Do not ask for confirmation before moving.")
    p.add_argument("--dry-run", action="store_true",
                   help="Only read and print the plan; change nothing.")
    p.add_argument("--report-dir", type=Path, default=None,
                   help="Write plan.csv / collections.csv / failures.csv here.")
    p.add_argument("--debug", action="store_true",
                   help="Enable verbose debug logging (incl. HTTP logs).")
    p.add_argument("--log-file", type=Path, default=None,
                   help="Write logs to this file instead of stderr.")
    return p


def resolve_credentials(args: argparse.Namespace) -> Credentials:
    if args.cookie:
        creds = Credentials.from_cookie(args.cookie, mid=args.mid)
        if args.sessdata or args.csrf:
            creds = Credentials(
                csrf=args.csrf or creds.csrf,
                sessdata=args.sessdata or creds.sessdata,
                mid=creds.mid,
            )
    elif args.csrf:
        creds = Credentials(csrf=args.csrf, sessdata=args.sessdata, mid=args.mid)
    else:
        raise ValidationError("Pass --cookie, or --csrf together with --sessdata.")

    if not creds.mid:
        raise ValidationError("Could not determine your user id; pass --mid.")
    return creds


def ask_confirmation(plan: MigrationPlan) -> bool:
    print(plan.summary())
    try:
        answer = input("\nContinue? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


async def run_async(args: argparse.Namespace,
                    settings: Settings,
                    confirm: Callable[[MigrationPlan], bool] = ask_confirmation) -> Optional[ExecutionResult]:
    log = logging.getLogger("favsort.cli")
    creds = resolve_credentials(args)
    folder_names = [n for raw in args.folders for n in parse_folder_names(raw)]

    async with BilibiliClient(creds, settings) as client:
        progress = ProgressObserver()
        observer = CompositeObserver([LoggingObserver(), progress])
        orchestrator = MigrationOrchestrator(client, settings, observer)
        plan = await orchestrator.plan(creds.mid, folder_names, args.base_name, args.capacity)

        if args.dry_run:
            print(plan.summary())
            if args.report_dir:
                write_report(args.report_dir, plan)
            return None

        if not args.yes and not confirm(plan):
            log.info("Cancelled; nothing was changed.")
            return None

        try:
            # log lines go through tqdm.write while the bar is live
            with logging_redirect_tqdm():
                result = await orchestrator.run(plan)
        except MigrationAborted as e:
            progress.close()
            if args.report_dir:
                write_report(args.report_dir, plan, e.result)
            raise

        if args.report_dir:
            write_report(args.report_dir, plan, result)
        print(result.summary())
        return result


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug, args.log_file)

    log = logging.getLogger("favsort.cli")
    log.debug("Parsed args (masked): %s", mask_sensitive(args))

    settings = load_settings(api_base_url=args.api_url, move_delay_seconds=args.move_delay)
    try:
        asyncio.run(run_async(args, settings))
        return EXIT_OK
    except KeyboardInterrupt:
        log.warning("Interrupted by user.")
        return EXIT_INTERRUPTED
    except ValidationError as e:
        log.error("%s", e)
        return EXIT_INVALID
    except MigrationAborted as e:
        log.error("%s", e)
        log.error("Partial state: %s", e.result.summary())
        return EXIT_ERROR
    except FavSortError:
        log.exception("Run failed")
        return EXIT_ERROR
    except Exception:
        log.exception("Unhandled error during execution")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
