import logging
import sys
from decimal import Decimal
from typing import Iterable, List, Optional, TextIO

from config import get_settings
from models import AccountSnapshot
from payments_engine import PaymentsEngine


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = value.normalize()
    return f"{normalized:f}"


def write_report(snapshots: Iterable[AccountSnapshot], out: TextIO) -> None:
    print("client,available,held,total,locked", file=out)
    for snapshot in snapshots:
        print(
            f"{snapshot.client_id},"
            f"{format_decimal(snapshot.available)},"
            f"{format_decimal(snapshot.held)},"
            f"{format_decimal(snapshot.total)},"
            f"{str(snapshot.locked).lower()}",
            file=out,
        )


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format=settings.log_format,
        stream=sys.stderr,
    )

    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = PaymentsEngine(report_stats=settings.report_stats)
    try:
        engine.process_file(filepath)
    except OSError as e:
        print(f"Cannot read {filepath}: {e}", file=sys.stderr)
        return 1

    write_report(engine.snapshots(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
