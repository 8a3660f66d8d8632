"""
Revenue report command.

Prints an affiliate's revenue overview from the backend store.

Usage:
    affiliate-revenue <affiliate_user_id> [--group-by referral_code|day|month]
"""

import argparse
import asyncio
import sys

from loguru import logger

from affiliate_revenue.config.database import create_engine, create_session_maker
from affiliate_revenue.config.logging import setup_logging
from affiliate_revenue.config.settings import settings
from affiliate_revenue.services.cache import ResultCache
from affiliate_revenue.services.payment_intent import PaymentIntentClient
from affiliate_revenue.services.revenue import RevenueGroupBy, RevenueService, RevenueSummary
from fee_calculator import format_currency, format_percentage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="affiliate-revenue",
        description="Print the revenue overview of an affiliate admin",
    )
    parser.add_argument("affiliate_user_id", help="Affiliate admin user id")
    parser.add_argument(
        "--group-by",
        choices=[g.value for g in RevenueGroupBy],
        default=RevenueGroupBy.REFERRAL_CODE.value,
        help="Primary grouping of the report",
    )
    return parser


def format_summary(summary: RevenueSummary) -> str:
    """Render a summary as plain text lines."""
    lines = [
        f"Total revenue:      {format_currency(summary.total_revenue)}",
        f"Referrals:          {summary.completed_referrals}/{summary.total_referrals} completed",
        f"Conversion:         {format_percentage(summary.conversion_rate)} "
        f"(target {format_percentage(summary.conversion_target)})",
        f"Last 7 days:        {format_currency(summary.last_7_days_revenue)} "
        f"({format_percentage(summary.revenue_growth, show_sign=True)})",
        f"Monthly average:    {format_currency(summary.monthly_average)}",
        f"Best month:         {summary.best_month or '-'}",
        f"Manual revenue:     {format_currency(summary.manual_revenue)}",
    ]
    if summary.available_balance is not None:
        lines.append(f"Available balance:  {format_currency(summary.available_balance)}")

    lines.append("")
    lines.append(f"By {summary.group_by}:")
    for key, amount in summary.groups.items():
        if amount:
            lines.append(f"  {key:<20} {format_currency(amount)}")
    return "\n".join(lines)


async def run_report(affiliate_user_id: str, group_by: str) -> RevenueSummary:
    """Build the overview with a fresh engine, cache and lookup client."""
    engine = create_engine()
    session_maker = create_session_maker(engine)
    cache = ResultCache(sweep_interval=settings.cache_sweep_interval)

    try:
        async with PaymentIntentClient(cache) as client, session_maker() as session:
            service = RevenueService(session, cache, client)
            summary = await service.build_affiliate_overview(affiliate_user_id, group_by)
            anomalies = service.anomalies.snapshot()
            if anomalies:
                logger.warning(f"Anomalies during report: {anomalies}")
            return summary
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level, settings.log_file)

    try:
        summary = asyncio.run(run_report(args.affiliate_user_id, args.group_by))
    except Exception as e:
        logger.exception(f"Report failed: {e}")
        return 1

    print(format_summary(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
