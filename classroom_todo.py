#!/usr/bin/env python
"""Google Classroom to-do list: print coursework that is still open and not turned in"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import date

from auth import AuthError, get_credentials
from classroom import ClassroomAPIError, ClassroomClient
from config import Config, ConfigError
from coursework import CourseworkLister, RetrievalError
from formatter import format_assignment, format_course, format_summary

logger = logging.getLogger("classroom-todo")


def setup_logging(log_dir=None, verbose=False):
    level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler()]

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{date.today().isoformat()}.log")
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _credentials(config):
    return get_credentials(config.client_secret_file, config.token_file, port=config.oauth_port)


async def print_actionable(config, creds, out=sys.stdout):
    """Stream actionable assignments to `out` as they are found; return the run report"""
    async with ClassroomClient(creds.token, timeout=config.timeout) as client:
        lister = CourseworkLister(
            client,
            max_concurrency=config.max_concurrency,
            skip_failed_courses=config.skip_failed_courses,
        )
        async for assignment in lister.stream_visible(config.course_ids):
            print(format_assignment(assignment), file=out, flush=True)
    return lister.report


async def print_courses(config, creds, out=sys.stdout):
    async with ClassroomClient(creds.token, timeout=config.timeout) as client:
        courses = await client.list_courses()
    for course in courses:
        print(format_course(course), file=out)
    return courses


def cmd_run(config, args):
    """Main run: list coursework for every configured course and print what is left to do"""
    creds = _credentials(config)
    logger.info(f"Checking {len(config.course_ids)} course(s)")
    report = asyncio.run(print_actionable(config, creds))
    logger.info(f"Done: {format_summary(report, config.course_names)}")


def cmd_courses(config, args):
    """List enrolled courses so their IDs can be put in config.yaml"""
    creds = _credentials(config)
    courses = asyncio.run(print_courses(config, creds))
    if not courses:
        print("No active courses found.")


def cmd_login(config, args):
    """Authorize (or refresh) and cache the OAuth token"""
    _credentials(config)
    print(f"Credentials saved to {config.token_file}")


def main():
    parser = argparse.ArgumentParser(description="Google Classroom to-do list")
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="Print assignments that are open and not turned in")
    sub.add_parser("courses", help="List enrolled courses and their IDs")
    sub.add_parser("login", help="Authorize and cache the OAuth token")

    args = parser.parse_args()
    if not args.command:
        args.command = "run"

    try:
        config = Config.load(args.config)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Config error: {e}", file=sys.stderr)
        sys.exit(1)
    setup_logging(config.log_dir, args.verbose)

    try:
        if args.command == "courses":
            cmd_courses(config, args)
        elif args.command == "login":
            cmd_login(config, args)
        else:
            cmd_run(config, args)
    except AuthError as e:
        logger.error(f"Authorization failed: {e}")
        sys.exit(1)
    except RetrievalError as e:
        logger.error(str(e))
        sys.exit(1)
    except ClassroomAPIError as e:
        logger.error(f"Classroom API error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
