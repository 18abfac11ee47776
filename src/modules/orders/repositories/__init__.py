"""Order persistence: the port services depend on and its ORM adapter."""

from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.repositories.interfaces import IOrderRepository

__all__ = ["IOrderRepository", "OrderDjangoRepository"]
