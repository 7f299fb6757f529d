import argparse
import logging
import sys
from typing import List, Optional

from config import EngineConfig, Settings
from csv_io import write_accounts
from errors import TransactionStreamError
from payments_engine import PaymentsEngine

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transactions-processor",
        description="Apply a CSV stream of transactions and print the resulting client accounts as CSV.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "transactions_file",
        metavar="TRANSACTIONS_FILE",
        help="Path to CSV file containing the transactions to process",
    )
    parser.add_argument(
        "--log-level",
        default=Settings.log_level(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level for diagnostics on stderr (default: %(default)s)",
    )
    parser.add_argument(
        "--allow-locked-activity",
        action="store_true",
        help="Accept deposits and withdrawals on accounts locked by a chargeback",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.WARNING),
        format=Settings.LOG_FORMAT,
        stream=sys.stderr,
    )

    config = EngineConfig.from_env()
    if args.allow_locked_activity:
        config = EngineConfig(reject_locked_account_activity=False)

    engine = PaymentsEngine(config)
    exit_code = 0
    try:
        engine.process_file(args.transactions_file)
    except TransactionStreamError as e:
        logger.error(f"{e}; writing accounts processed so far")
        exit_code = 1
    except OSError as e:
        logger.error(f"Cannot open {args.transactions_file}: {e}")
        return 1

    write_accounts(engine.accounts.get_all_accounts().values(), sys.stdout)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
