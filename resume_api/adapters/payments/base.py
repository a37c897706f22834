from abc import ABC, abstractmethod
from typing import Any


class AbstractPaymentGateway(ABC):
	"""Interface for the payment provider used for premium upgrades."""

	@abstractmethod
	async def create_order(
		self,
		*,
		amount: int,
		currency: str,
		receipt: str,
		notes: dict[str, Any],
	) -> dict[str, Any]:
		"""Create an order and return the provider's order object.

		Args:
			amount: Amount in the smallest currency unit (paise for INR).
			currency: ISO currency code.
			receipt: Merchant-side receipt reference.
			notes: Free-form metadata stored on the order.

		Raises:
			UpstreamAppError: If the provider rejects the request or is unreachable.
		"""
		...

	@abstractmethod
	async def fetch_payment(self, payment_id: str) -> dict[str, Any]:
		"""Return the provider's payment object."""
		...

	@abstractmethod
	async def fetch_order(self, order_id: str) -> dict[str, Any]:
		"""Return the provider's order object."""
		...

	async def aclose(self) -> None:
		"""Release network resources (optional)."""
