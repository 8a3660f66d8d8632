"""
Webhook notifier.

Side-channel alerts to the notification webhook when a seller is
approved or rejected. Fire-and-forget: failures are logged, never
retried and never raised to the caller.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import aiohttp
from loguru import logger

from affiliate_revenue.config.settings import settings
from affiliate_revenue.models.enums import SellerStatus
from fee_calculator import format_percentage


SELLER_DASHBOARD_LINK = "/seller/dashboard"


@dataclass(frozen=True)
class NotificationActor:
    """Affiliate admin who changed the seller status."""

    name: str | None = None
    email: str | None = None


class WebhookNotifier:
    """Posts seller status notifications to the webhook sink."""

    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize notifier.

        Args:
            webhook_url: Sink URL, defaults to settings; None disables sending
            timeout: Total request timeout in seconds
        """
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = aiohttp.ClientTimeout(total=timeout or settings.http_timeout)
        self._tasks: set[asyncio.Task] = set()
        self.logger = logger.bind(service="WebhookNotifier")

    @staticmethod
    def build_seller_payload(
        seller: Any,
        status: SellerStatus,
        actor: NotificationActor,
    ) -> dict[str, Any]:
        """
        Build the webhook payload for a seller status change.

        Args:
            seller: Object with user_id, name, email, referral_code, commission_rate
            status: New seller status
            actor: Affiliate admin who made the change

        Returns:
            JSON-serializable payload
        """
        status = SellerStatus(status)
        actor_name = actor.name or "Affiliate Admin"
        referral_code = seller.referral_code or ""
        commission_rate = Decimal(str(seller.commission_rate or "0.1"))
        commission_label = format_percentage(commission_rate * 100, decimals=0)

        payload: dict[str, Any] = {
            "email_seller": seller.email or "",
            "nome_seller": seller.name or "",
            "email_affiliate_admin": actor.email or "",
            "nome_affiliate_admin": actor_name,
            "seller_id": seller.user_id,
            "referral_code": referral_code,
            "commission_rate": float(commission_rate),
        }

        if status == SellerStatus.APPROVED:
            payload["tipo_notf"] = "Seller approved"
            payload["o_que_enviar"] = (
                f"Congratulations! {actor_name} approved you as a seller. "
                f"Your referral code is {referral_code or 'N/A'} "
                f"with a {commission_label} commission."
            )
            payload["dashboard_link"] = SELLER_DASHBOARD_LINK
        else:
            payload["tipo_notf"] = "Seller rejected"
            payload["o_que_enviar"] = (
                f"{actor_name} rejected your seller registration."
            )

        return payload

    async def notify_seller_status(
        self,
        seller: Any,
        status: SellerStatus,
        actor: NotificationActor,
    ) -> bool:
        """
        Send a seller status notification.

        Returns:
            True if the sink accepted it, False otherwise
        """
        if not self.webhook_url:
            self.logger.debug("Webhook URL not configured, skipping notification")
            return False

        payload = self.build_seller_payload(seller, status, actor)
        return await self._post(payload)

    def fire(
        self,
        seller: Any,
        status: SellerStatus,
        actor: NotificationActor,
    ) -> asyncio.Task:
        """
        Schedule a notification in the background.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(self.notify_seller_status(seller, status, actor))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _post(self, payload: dict[str, Any]) -> bool:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                ) as response:
                    if response.status // 100 == 2:
                        self.logger.info(
                            f"Notification sent: {payload['tipo_notf']} "
                            f"({payload['referral_code'] or 'no code'})"
                        )
                        return True
                    self.logger.warning(f"Webhook returned HTTP {response.status}")
                    return False
        except (aiohttp.ClientError, TimeoutError) as e:
            self.logger.error(f"Webhook request failed: {e}")
            return False
