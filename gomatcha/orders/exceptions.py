"""Exceptions spécifiques au domaine Order."""
from typing import List


class OrderDomainException(Exception):
    """Classe de base pour les exceptions du domaine Order."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class OrderNotFoundException(OrderDomainException):
    """Levée lorsqu'une commande spécifique n'est pas trouvée."""
    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found.")
        self.order_id = order_id


class InvalidOrderStatusException(OrderDomainException):
    """Levée lorsque le statut fourni pour une commande est inconnu."""
    def __init__(self, status: str, allowed: List[str]):
        allowed_str = ", ".join(allowed)
        super().__init__(f"Status '{status}' is invalid. Allowed statuses: {allowed_str}.")
        self.status = status
        self.allowed = allowed


class InvalidStatusTransitionException(OrderDomainException):
    """Levée lorsqu'une transition de statut n'est pas permise."""
    def __init__(self, order_id: str, current: str, target: str):
        super().__init__(f"Order {order_id} cannot go from '{current}' to '{target}'.")
        self.order_id = order_id
        self.current = current
        self.target = target


class OrderCreationFailedException(OrderDomainException):
    """Levée lorsque l'écriture de la commande en base échoue."""
    pass


class OrderUpdateFailedException(OrderDomainException):
    """Levée lorsqu'une mise à jour partielle échoue en base."""
    pass
