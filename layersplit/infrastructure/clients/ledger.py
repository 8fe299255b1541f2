"""Ledger gateway client: read-only amount-due queries with exponential backoff"""

import httpx
import asyncio
from dataclasses import dataclass
from layersplit.domain.exceptions import InvalidAmountError, LedgerAPIError
from layersplit.domain.money import Money
from layersplit.infrastructure.observability.metrics import ledger_latency_histogram, ledger_query_failure_counter
from layersplit.infrastructure.sui.builder import TransactionDescription


@dataclass(frozen=True)
class LedgerAmountDue:
    """Interest and total due as computed on-chain"""

    interest: Money
    total_due: Money


class LedgerClient:
    """Client for the external ledger's inspection endpoint"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.transport = transport

    async def fetch_amount_due(self, query: TransactionDescription) -> LedgerAmountDue:
        """
        Dev-inspect a calculate_interest call and return its result.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base, ...
        - Retries on 5xx errors and network failures, not on 4xx

        Raises:
            LedgerAPIError: after the final attempt, or on a malformed response
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with ledger_latency_histogram.time():
                        response = await client.post(
                            f"{self.base_url}/inspect",
                            json={"transaction": query.serialize()},
                        )
                        response.raise_for_status()
                    data = response.json()
                    return LedgerAmountDue(
                        interest=Money(int(data["interest"])),
                        total_due=Money(int(data["total_due"])),
                    )

                except httpx.HTTPStatusError as e:
                    ledger_query_failure_counter.inc()
                    attempt += 1
                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        raise LedgerAPIError(f"ledger query failed: {e.response.status_code}") from e

                except httpx.RequestError as e:
                    ledger_query_failure_counter.inc()
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise LedgerAPIError(f"ledger unreachable after {attempt} attempts: {e}") from e

                except (KeyError, ValueError, TypeError, InvalidAmountError) as e:
                    ledger_query_failure_counter.inc()
                    raise LedgerAPIError(f"invalid amount-due response from ledger: {e}") from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)
