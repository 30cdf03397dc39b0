"""Sync cycle entry point for SyncReeper."""

import logging
import sys
from datetime import datetime
from typing import Callable, List

from .config import Config, load_configuration, validate_configuration
from .errors import ConfigurationError, InventoryError
from .file_lock import acquire_lock
from .git_sync import RemoteRepository, SyncAction, SyncResult, reconcile_all
from .github import fetch_repositories
from .stignore import project_ignore_patterns

EXIT_OK = 0
EXIT_FAILURE = 1


def setup_logging(config: Config) -> None:
    """Configure console logging for a cycle; the log stream is the only record of a timer run."""
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger('syncreeper').setLevel(getattr(logging, config.log_level))

    # httpx logs every request at INFO
    logging.getLogger('httpx').setLevel(logging.WARNING)


def log_summary(results: List[SyncResult]) -> None:
    """Log per-action totals and the message of every failed repository."""
    logger = logging.getLogger('syncreeper.summary')

    def count(action: SyncAction) -> int:
        return sum(1 for r in results if r.action is action)

    errors = [r for r in results if r.is_error]

    logger.info("=== Sync Summary ===")
    logger.info(f"Total repositories: {len(results)}")
    logger.info(f"  Cloned: {count(SyncAction.CLONED)}")
    logger.info(f"  Updated: {count(SyncAction.UPDATED)}")
    logger.info(f"  Unchanged: {count(SyncAction.UNCHANGED)}")
    logger.info(f"  Skipped: {count(SyncAction.SKIPPED)}")
    logger.info(f"  Errors: {len(errors)}")

    skipped = [r for r in results if r.action is SyncAction.SKIPPED]
    for result in skipped:
        logger.info(f"  Skipped {result.repository}: {result.message}")

    if errors:
        logger.error("Errors:")
        for result in errors:
            category = f" [{result.error_category}]" if result.error_category else ""
            logger.error(f"  {result.repository}{category}: {result.message}")


def run_sync_cycle(
    config: Config,
    inventory: Callable[..., List[RemoteRepository]] = fetch_repositories
) -> int:
    """
    Run one complete sync cycle and return the process exit status.

    Acquires the run lock, fetches the inventory, reconciles each repository
    in order, then projects .gitignore patterns into .stignore. The lock is
    released on every path. The status is non-zero if the lock could not be
    taken, the inventory failed, or any repository ended in an error;
    skipped repositories do not fail the cycle.
    """
    logger = logging.getLogger('syncreeper.server')

    lock = acquire_lock(config.lock_dir, config.lock_stale_timeout)
    if not lock.acquired:
        logger.error(f"Cannot acquire lock: {lock.error}")
        return EXIT_FAILURE

    try:
        repositories = inventory(
            config.github_token,
            config.github_username,
            api_url=config.github_api_url,
            timeout=config.request_timeout
        )

        if not repositories:
            logger.info("No repositories to sync")
            return EXIT_OK

        logger.info(f"Syncing {len(repositories)} repositories...")
        results = reconcile_all(repositories, config.repos_path, config.github_token)

        project_ignore_patterns(config.repos_path, config.stignore_path)

        log_summary(results)

        if any(r.is_error for r in results):
            return EXIT_FAILURE
        return EXIT_OK

    except InventoryError as e:
        logger.error(f"Failed to fetch repositories: {e}")
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return EXIT_FAILURE
    finally:
        lock.release()


def main() -> int:
    """Console entry point: load configuration from the environment and run one cycle."""
    try:
        config = load_configuration()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(config)
    logger = logging.getLogger('syncreeper.server')

    logger.info("SyncReeper - GitHub Repository Sync")
    logger.info(f"Started at: {datetime.now().isoformat()}")
    logger.info(f"Repos path: {config.repos_path}")
    logger.info(f"GitHub user: {config.github_username}")

    for issue in validate_configuration(config):
        if issue.startswith("ERROR:"):
            logger.error(issue[7:])
        elif issue.startswith("WARNING:"):
            logger.warning(issue[9:])

    try:
        exit_code = run_sync_cycle(config)
    except KeyboardInterrupt:
        logger.info("Sync interrupted by user (Ctrl+C)")
        return EXIT_FAILURE

    logger.info(f"Completed at: {datetime.now().isoformat()}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
