"""Exceptions spécifiques au panier."""


class CartDomainException(Exception):
    """Classe de base pour les exceptions du panier."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class CartItemNotFoundException(CartDomainException):
    def __init__(self, variant_id: str):
        super().__init__(f"Variant '{variant_id}' is not in the cart.")
        self.variant_id = variant_id


class InvalidQuantityException(CartDomainException):
    def __init__(self, quantity: int):
        super().__init__(f"Quantity must be at least 1 (got {quantity}).")
        self.quantity = quantity


class CurrencyMismatchException(CartDomainException):
    """Levée si une ligne n'est pas dans la devise du panier."""
    def __init__(self, expected: str, got: str):
        super().__init__(f"Cart currency is {expected}, cannot add an item priced in {got}.")
        self.expected = expected
        self.got = got
