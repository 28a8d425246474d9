from sportsamigo.exceptions import NotFound, ShopError


class ProductNotFound(NotFound):
    default_message = "Product not found"


class ProductUnavailable(ShopError):
    default_message = "This product is not available."


class InsufficientStock(ShopError):
    default_message = "Insufficient stock"

    def __init__(self, product=None, available=None, message=None):
        self.product = product
        self.available = available
        if message is None and product is not None and available is not None:
            message = f"Only {available} left for {product.name}."
        super().__init__(message)
