"""Best-effort forwarding of verified webhooks to the downstream automation endpoint."""

import asyncio
import logging

import httpx

from relay.schemas.shopify import RelayEnvelope

logger = logging.getLogger(__name__)


class WebhookForwarder:
    """Fire-and-forget delivery of relay envelopes.

    ``dispatch`` schedules the POST as a background task and returns at once;
    the caller's HTTP response never waits on it and never sees its outcome.
    Each envelope gets exactly one attempt. Failures are logged and dropped.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, envelope: RelayEnvelope) -> asyncio.Task[None]:
        """Schedule one forward attempt for ``envelope``."""
        task = asyncio.create_task(
            self.forward(envelope),
            name=f"forward-webhook-{envelope.shopify.webhook_id or 'unknown'}",
        )
        # The event loop only keeps weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def schedule(self, envelope: RelayEnvelope) -> None:
        """Background-task entry point: spawn the forward and return without awaiting it."""
        self.dispatch(envelope)

    async def forward(self, envelope: RelayEnvelope) -> None:
        """POST ``envelope`` downstream. Never raises."""
        topic = envelope.shopify.topic
        webhook_id = envelope.shopify.webhook_id

        if not self.url:
            logger.error(
                "Cannot forward webhook %s (%s): N8N_RETURNS_WEBHOOK_URL is not set",
                webhook_id,
                topic,
            )
            return

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=envelope.model_dump(mode="json"))
        except httpx.HTTPError as e:
            logger.warning(
                "Failed to forward webhook %s (%s) to n8n: %s",
                webhook_id,
                topic,
                e,
            )
            return
        except Exception:
            logger.exception("Unexpected error forwarding webhook %s (%s)", webhook_id, topic)
            return

        if not response.is_success:
            logger.warning(
                "n8n rejected webhook %s (%s): HTTP %s",
                webhook_id,
                topic,
                response.status_code,
            )
            return

        logger.info("Forwarded webhook %s (%s) to n8n", webhook_id, topic)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight forwards, e.g. on shutdown."""
        if not self._pending:
            return
        logger.info("Waiting for %d in-flight webhook forward(s)", len(self._pending))
        _, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("Dropped %d webhook forward(s) still running at shutdown", len(pending))
