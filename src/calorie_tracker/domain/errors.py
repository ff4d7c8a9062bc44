"""Domain errors for nutrient math and estimation."""


class EstimationError(RuntimeError):
    """Raised when the AI estimation collaborator fails."""

    def __init__(self, request_type: str, message: str) -> None:
        super().__init__(message)
        self.request_type = request_type


class InvalidAmountError(ValueError):
    """Raised when a consumed amount is not a positive finite number."""

    def __init__(self, amount: object) -> None:
        super().__init__(f"Amount must be a positive number, got {amount!r}.")
        self.amount = amount


class MissingReferenceBasisError(ValueError):
    """Raised when a product has no usable reference amount."""


class UnknownNutrientError(KeyError):
    """Raised when a nutrient id is not part of the catalog."""

    def __str__(self) -> str:
        return f"Unknown nutrient id: {self.args[0]!r}"
