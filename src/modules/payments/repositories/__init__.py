"""Payment event repositories package."""

from modules.payments.repositories.django_repository import PaymentEventDjangoRepository
from modules.payments.repositories.interfaces import IPaymentEventRepository

__all__ = ["IPaymentEventRepository", "PaymentEventDjangoRepository"]
