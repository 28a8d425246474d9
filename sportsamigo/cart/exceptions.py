from sportsamigo.exceptions import NotFound, ShopError


class InvalidQuantity(ShopError):
    default_message = "Invalid quantity"


class ItemNotInCart(NotFound):
    default_message = "Item not found in cart"


class CartConflict(ShopError):
    status_code = 409
    default_message = "Your cart was changed in another window. Please refresh and try again."


class InvalidRevision(ShopError):
    default_message = "Invalid cart revision"
