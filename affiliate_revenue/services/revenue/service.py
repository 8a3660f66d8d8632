"""
Revenue service.

Entry point for presentation code: resolves fee amounts for single users
and cohorts, and builds revenue summaries for affiliates. Backend reads
happen sequentially on the session; processor lookups for a cohort run
concurrently under a semaphore.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from datetime import timedelta
from decimal import Decimal
from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.config.settings import settings
from affiliate_revenue.models.enums import FeeCategory, ResolutionSource, SystemVariant
from affiliate_revenue.repositories import (
    CouponUsageRepository,
    FeeOverrideRepository,
    FeePaymentRepository,
    PaymentRequestRepository,
    SellerRepository,
    UserProfileRepository,
)
from affiliate_revenue.services.anomalies import AnomalyKind, AnomalyLog
from affiliate_revenue.services.base_service import BaseService, log_operation
from affiliate_revenue.services.batch import (
    BatchLoader,
    coupons_by_category,
    latest_payments,
)
from affiliate_revenue.services.cache import ResultCache
from affiliate_revenue.services.fees import (
    FeeInputs,
    FeeOverrideSet,
    FeeStrippingPolicy,
    FeeValueResolver,
    RecordedPayment,
    ResolvedAmount,
    parse_category,
)
from affiliate_revenue.services.payment_intent import PaymentIntentClient
from affiliate_revenue.services.revenue.aggregator import RevenueAggregator
from affiliate_revenue.services.revenue.models import (
    PaymentRequestSummary,
    ReferralProfile,
    RevenueGroupBy,
    RevenueSummary,
)
from affiliate_revenue.utils.exceptions import is_safe_to_ignore, must_log, must_raise
from fee_calculator import default_fee_amount, round_cents


# (variant, dependents) per user
UserTraits = dict[str, tuple[SystemVariant, int]]

T = TypeVar("T")


class RevenueService(BaseService):
    """
    Fee resolution and revenue aggregation for the affiliate console.

    Usage:
        async with PaymentIntentClient(cache) as client:
            service = RevenueService(session, cache, client)
            amounts = await service.resolve_amounts(user_id, ["scholarship"])
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: ResultCache,
        lookup_client: PaymentIntentClient,
        policy: FeeStrippingPolicy | None = None,
        anomalies: AnomalyLog | None = None,
        batch_threshold: int | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        """
        Initialize service.

        Args:
            session: Async database session
            cache: Shared result cache
            lookup_client: Payment intent metadata client
            policy: Fee stripping policy, defaults to settings
            anomalies: Anomaly log, a fresh one by default
            batch_threshold: Cohorts larger than this use batch loaders
            max_concurrency: Concurrent per-user resolutions in a cohort
        """
        super().__init__(session)
        self.cache = cache
        self.anomalies = anomalies or AnomalyLog()
        self.policy = policy or FeeStrippingPolicy.from_settings(settings)
        self.batch_threshold = batch_threshold or settings.batch_threshold
        self.max_concurrency = max_concurrency or settings.max_concurrent_lookups

        self.resolver = FeeValueResolver(
            lookup_client=lookup_client,
            policy=self.policy,
            anomalies=self.anomalies,
            reference_currency=settings.reference_currency,
            coupon_freshness=timedelta(hours=settings.coupon_freshness_hours),
        )
        self.aggregator = RevenueAggregator(
            anomalies=self.anomalies,
            scholarship_paid_source=settings.scholarship_paid_source,
        )
        self.batch_loader = BatchLoader(session, cache, anomalies=self.anomalies)

        self.profile_repo = UserProfileRepository(session)
        self.override_repo = FeeOverrideRepository(session)
        self.coupon_repo = CouponUsageRepository(session)
        self.payment_repo = FeePaymentRepository(session)
        self.seller_repo = SellerRepository(session)
        self.payment_request_repo = PaymentRequestRepository(session)

    # ------------------------------------------------------------------
    # Single user
    # ------------------------------------------------------------------

    async def resolve(
        self, user_id: str, category: FeeCategory | str
    ) -> ResolvedAmount:
        """
        Resolve one category for one user.

        Raises:
            ValueError: If category is unknown
        """
        category = parse_category(category)
        inputs = await self.load_inputs(user_id)
        return await self.resolver.resolve(inputs, category)

    async def resolve_amounts(
        self, user_id: str, categories: Iterable[FeeCategory | str]
    ) -> dict[FeeCategory, Decimal]:
        """
        Resolve several categories for one user.

        Returns:
            Dict category -> amount in reference currency
        """
        parsed = [parse_category(c) for c in categories]
        inputs = await self.load_inputs(user_id)
        resolved = await self.resolver.resolve_many(inputs, parsed)
        return {category: result.amount for category, result in resolved.items()}

    async def load_inputs(
        self,
        user_id: str,
        variant: SystemVariant | None = None,
        dependents: int | None = None,
    ) -> FeeInputs:
        """
        Load everything the resolver needs for one user.

        Variant and dependents are read from the profile unless given.
        Each source is read on its own: a failed read counts as "no data"
        for that source only.
        """
        if variant is None or dependents is None:
            profile = await self._read_or_default(
                self.profile_repo.get_by_user_id(user_id),
                None,
                AnomalyKind.USER_RESOLUTION_FAILED,
                "profile",
                user_id=user_id,
            )
            if variant is None:
                variant = SystemVariant.parse(profile.system_type if profile else None)
            if dependents is None:
                dependents = (profile.dependents if profile else 0) or 0

        override = await self._read_or_default(
            self._load_override(user_id),
            None,
            AnomalyKind.USER_RESOLUTION_FAILED,
            "fee overrides",
            user_id=user_id,
        )
        usages = await self._read_or_default(
            self.coupon_repo.get_latest_by_user(user_id),
            {},
            AnomalyKind.USER_RESOLUTION_FAILED,
            "coupon redemptions",
            user_id=user_id,
        )
        records = await self._read_or_default(
            self.payment_repo.get_by_user(user_id),
            [],
            AnomalyKind.USER_RESOLUTION_FAILED,
            "recorded payments",
            user_id=user_id,
        )
        payments = latest_payments(
            payment
            for payment in map(RecordedPayment.from_record, records)
            if payment is not None
        )

        return FeeInputs(
            user_id=user_id,
            variant=variant,
            dependents=dependents,
            override=override,
            coupons=coupons_by_category(usages),
            payments=payments.get(user_id, {}),
        )

    async def _load_override(self, user_id: str) -> FeeOverrideSet:
        params = {"target_user_id": user_id}
        cached = self.cache.get("get_user_fee_overrides", params)
        if cached is not None:
            return cached

        row = await self.override_repo.get_for_user(user_id)
        override = FeeOverrideSet.from_row(user_id, row or {})
        self.cache.set("get_user_fee_overrides", override, params)
        return override

    async def _read_or_default(
        self,
        read: Awaitable[T],
        default: T,
        kind: AnomalyKind,
        label: str,
        **context: Any,
    ) -> T:
        """
        Await a backend read, falling back to a default on failure.

        The session is rolled back so the next read starts a clean
        transaction. Programming errors are re-raised.
        """
        try:
            return await read
        except Exception as e:
            if must_raise(e):
                raise
            if not must_log(e):
                self.logger.exception(f"Unexpected error reading {label}: {e}")
            await self.session.rollback()
            self.anomalies.record(kind, f"Could not read {label}: {e}", **context)
            return default

    def invalidate_user(self, user_id: str) -> None:
        """
        Drop cached fee data after a user's overrides or payments change.

        Batch entries cannot be addressed per user, so all of them go.
        """
        self.cache.invalidate("get_user_fee_overrides", {"target_user_id": user_id})
        for function_name in (
            "get_user_fee_overrides_batch",
            "get_payment_dates_batch",
            "individual_fee_payments",
            "promotional_coupon_usage",
        ):
            self.cache.invalidate_prefix(f"{function_name}:")

    # ------------------------------------------------------------------
    # Cohorts
    # ------------------------------------------------------------------

    @log_operation
    async def resolve_for_cohort(
        self,
        user_ids: Iterable[str],
        categories: Iterable[FeeCategory | str],
    ) -> dict[str, dict[FeeCategory, Decimal]]:
        """
        Resolve categories for every user in a cohort.

        A user whose resolution fails gets default amounts; the rest of
        the cohort is unaffected.

        Returns:
            Dict user_id -> {category: amount}
        """
        parsed = list(dict.fromkeys(parse_category(c) for c in categories))
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}

        profiles = await self._read_or_default(
            self.profile_repo.get_by_user_ids(ids),
            [],
            AnomalyKind.SOURCE_READ_FAILED,
            "cohort profiles",
            users=len(ids),
        )
        traits: UserTraits = {
            profile.user_id: (SystemVariant.parse(profile.system_type), profile.dependents or 0)
            for profile in profiles
        }
        for user_id in ids:
            traits.setdefault(user_id, (SystemVariant.LEGACY, 0))

        requested = {user_id: parsed for user_id in ids}
        resolved = await self._resolve_cohort(traits, requested)
        return {
            user_id: {category: result.amount for category, result in results.items()}
            for user_id, results in resolved.items()
        }

    async def _resolve_cohort(
        self,
        traits: UserTraits,
        requested: dict[str, list[FeeCategory]],
    ) -> dict[str, dict[FeeCategory, ResolvedAmount]]:
        """Load inputs for the cohort, then resolve users concurrently."""
        inputs = await self._load_cohort_inputs(traits)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def resolve_user(user_id: str) -> dict[FeeCategory, ResolvedAmount]:
            async with semaphore:
                return await self.resolver.resolve_many(inputs[user_id], requested[user_id])

        user_ids = list(requested)
        results = await asyncio.gather(
            *(resolve_user(user_id) for user_id in user_ids),
            return_exceptions=True,
        )

        resolved: dict[str, dict[FeeCategory, ResolvedAmount]] = {}
        for user_id, result in zip(user_ids, results):
            if isinstance(result, BaseException):
                if must_raise(result):
                    raise result
                if not is_safe_to_ignore(result):
                    self.anomalies.record(
                        AnomalyKind.USER_RESOLUTION_FAILED,
                        f"Falling back to defaults: {result}",
                        user_id=user_id,
                    )
                resolved[user_id] = self._defaults(inputs[user_id], requested[user_id])
            else:
                resolved[user_id] = result
        return resolved

    async def _load_cohort_inputs(self, traits: UserTraits) -> dict[str, FeeInputs]:
        """
        Load resolver inputs for every user.

        Small cohorts load per user; larger ones go through the batch
        loaders so the backend sees one call per chunk.
        """
        if len(traits) <= self.batch_threshold:
            inputs: dict[str, FeeInputs] = {}
            for user_id, (variant, dependents) in traits.items():
                inputs[user_id] = await self.load_inputs(user_id, variant, dependents)
            return inputs

        user_ids = list(traits)
        overrides = await self.batch_loader.batch_resolve_overrides(user_ids)
        coupons = await self.batch_loader.batch_load_coupon_redemptions(user_ids)
        payments = await self.batch_loader.batch_load_recorded_payments(user_ids)

        return {
            user_id: FeeInputs(
                user_id=user_id,
                variant=variant,
                dependents=dependents,
                override=overrides.results.get(user_id),
                coupons=coupons.results.get(user_id, {}),
                payments=payments.results.get(user_id, {}),
            )
            for user_id, (variant, dependents) in traits.items()
        }

    @staticmethod
    def _defaults(
        inputs: FeeInputs, categories: list[FeeCategory]
    ) -> dict[FeeCategory, ResolvedAmount]:
        return {
            category: ResolvedAmount(
                user_id=inputs.user_id,
                category=category,
                amount=round_cents(
                    default_fee_amount(category.value, inputs.variant.value, inputs.dependents)
                ),
                source=ResolutionSource.DEFAULT,
            )
            for category in categories
        }

    # ------------------------------------------------------------------
    # Revenue
    # ------------------------------------------------------------------

    @log_operation
    async def aggregate_revenue(
        self,
        cohort: Iterable[ReferralProfile],
        group_by: RevenueGroupBy | str = RevenueGroupBy.REFERRAL_CODE,
        payment_requests: Iterable[PaymentRequestSummary] | None = None,
    ) -> RevenueSummary:
        """
        Aggregate revenue for referred students.

        Only categories a student has paid are resolved.

        Raises:
            ValueError: If group_by is not a known grouping
        """
        group_by = RevenueGroupBy(group_by)
        profiles = list(cohort)

        requested = {
            profile.user_id: self.aggregator.paid_categories(profile, record_mismatch=False)
            for profile in profiles
        }
        to_resolve = {user_id: categories for user_id, categories in requested.items() if categories}
        traits: UserTraits = {
            profile.user_id: (profile.variant, profile.dependents)
            for profile in profiles
            if profile.user_id in to_resolve
        }

        resolved = await self._resolve_cohort(traits, to_resolve) if to_resolve else {}

        entries = [
            (
                profile,
                {
                    category: result.amount
                    for category, result in resolved.get(profile.user_id, {}).items()
                },
            )
            for profile in profiles
        ]
        return self.aggregator.aggregate(entries, group_by, payment_requests)

    async def build_affiliate_overview(
        self,
        affiliate_user_id: str,
        group_by: RevenueGroupBy | str = RevenueGroupBy.REFERRAL_CODE,
    ) -> RevenueSummary:
        """
        Revenue summary for everything referred by an affiliate's sellers.

        Includes the payout balance computed from the affiliate's
        payment requests. A failed read leaves its part of the summary
        empty; if the payment requests cannot be read the balance is None.
        """
        sellers = await self._read_or_default(
            self.seller_repo.get_by_affiliate_admin(affiliate_user_id),
            [],
            AnomalyKind.SOURCE_READ_FAILED,
            "sellers",
            affiliate_user_id=affiliate_user_id,
        )
        codes = [seller.referral_code for seller in sellers if seller.referral_code]

        records = await self._read_or_default(
            self.profile_repo.get_by_referral_codes(codes),
            [],
            AnomalyKind.SOURCE_READ_FAILED,
            "referred profiles",
            affiliate_user_id=affiliate_user_id,
        )
        cohort = [ReferralProfile.from_record(record) for record in records]

        requests = await self._read_or_default(
            self.payment_request_repo.get_by_referrer(affiliate_user_id),
            None,
            AnomalyKind.SOURCE_READ_FAILED,
            "payment requests",
            affiliate_user_id=affiliate_user_id,
        )
        summaries = None
        if requests is not None:
            summaries = []
            for request in requests:
                summary = PaymentRequestSummary.from_record(request)
                if summary is None:
                    self.anomalies.record(
                        AnomalyKind.UNKNOWN_PAYMENT_REQUEST_STATUS,
                        f"Skipping payment request with status {request.status!r}",
                        affiliate_user_id=affiliate_user_id,
                    )
                    continue
                summaries.append(summary)

        self.logger.info(
            f"Affiliate {affiliate_user_id}: {len(sellers)} seller(s), "
            f"{len(cohort)} referral(s), {len(summaries or [])} payment request(s)"
        )
        return await self.aggregate_revenue(cohort, group_by, summaries)
