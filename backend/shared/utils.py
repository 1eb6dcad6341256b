from datetime import datetime
from dateutil import parser as date_parser


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse a database timestamp (ISO string or datetime) into a datetime."""
    if value is None or isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError, TypeError):
        return None


def print_release_summary(stats: dict[str, int]) -> None:
    """Print delivery batch summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Release Complete!")
    print(f"{'=' * 60}")
    print(f"✓ Emails sent:   {stats.get('emails_sent', 0)}")
    print(f"✓ Messages sent: {stats.get('messages_sent', 0)}")
    print(f"✗ Failed:        {stats.get('failed', 0)}")
    print(f"{'=' * 60}\n")
