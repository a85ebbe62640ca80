"""Payment processor strategies, one per payment method"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from retail_backoffice.domain.enums import PaymentMethod
from retail_backoffice.domain.exceptions import InvalidAmountError, UnsupportedMethodError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Confirmation:
    """Processor acknowledgement for a charged amount"""

    reference: str
    method: PaymentMethod
    amount: Decimal


class PaymentProcessor(ABC):
    """Charges an amount through one payment channel"""

    method: PaymentMethod
    reference_prefix: str

    def process(self, amount: Decimal, reference_id: str) -> Confirmation:
        """
        Validate and charge the amount.

        Raises:
            InvalidAmountError: amount is zero or negative
        """
        if amount <= 0:
            raise InvalidAmountError(f"{self.method.to_token()} payment amount must be greater than 0")

        logger.info(
            "Processing payment",
            extra={"method": self.method.value, "amount": str(amount), "reference_id": reference_id},
        )
        return self._confirm(amount, reference_id)

    @abstractmethod
    def _confirm(self, amount: Decimal, reference_id: str) -> Confirmation:
        """Channel-specific confirmation (gateway call, receipt, ...)"""

    def _new_confirmation(self, amount: Decimal) -> Confirmation:
        return Confirmation(
            reference=f"{self.reference_prefix}-{uuid.uuid4()}",
            method=self.method,
            amount=amount,
        )


class CashProcessor(PaymentProcessor):
    method = PaymentMethod.CASH
    reference_prefix = "CASH"

    def _confirm(self, amount: Decimal, reference_id: str) -> Confirmation:
        return self._new_confirmation(amount)


class CreditCardProcessor(PaymentProcessor):
    method = PaymentMethod.CREDIT_CARD
    reference_prefix = "CC"

    # Card gateway authorisation hooks in here
    def _confirm(self, amount: Decimal, reference_id: str) -> Confirmation:
        return self._new_confirmation(amount)


class BankTransferProcessor(PaymentProcessor):
    method = PaymentMethod.BANK_TRANSFER
    reference_prefix = "BANK"

    def _confirm(self, amount: Decimal, reference_id: str) -> Confirmation:
        return self._new_confirmation(amount)


class EWalletProcessor(PaymentProcessor):
    method = PaymentMethod.E_WALLET
    reference_prefix = "EWALLET"

    def _confirm(self, amount: Decimal, reference_id: str) -> Confirmation:
        return self._new_confirmation(amount)


class PaymentProcessorFactory:
    """Maps every PaymentMethod to its processor; anything else fails closed"""

    @staticmethod
    def create(method: PaymentMethod) -> PaymentProcessor:
        if method is PaymentMethod.CASH:
            return CashProcessor()
        elif method is PaymentMethod.CREDIT_CARD:
            return CreditCardProcessor()
        elif method is PaymentMethod.BANK_TRANSFER:
            return BankTransferProcessor()
        elif method is PaymentMethod.E_WALLET:
            return EWalletProcessor()
        raise UnsupportedMethodError(f"Unsupported payment method: {method!r}")
