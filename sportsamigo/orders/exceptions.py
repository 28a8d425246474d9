from sportsamigo.exceptions import NotFound, ShopError
from wallet.exceptions import InsufficientFunds
from wallet.models import format_amount


class EmptyCart(ShopError):
    default_message = "Cart is empty"


class IncompleteShippingInfo(ShopError):
    default_message = "Please fill in all required fields"


class InvalidPaymentMethod(ShopError):
    default_message = "Invalid payment method"


class WalletNotAllowed(ShopError):
    status_code = 403
    default_message = "Wallet payment is only available for players"


class InsufficientWalletBalance(InsufficientFunds):

    def __init__(self, balance, required):
        message = (f"Insufficient wallet balance. You have {format_amount(balance)}, "
                   f"but need {format_amount(required)}")
        super().__init__(balance=balance, required=required, message=message)


class OrderNotFound(NotFound):
    default_message = "Order not found"
