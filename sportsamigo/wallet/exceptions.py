from sportsamigo.exceptions import NotFound, ShopError


class InvalidAmount(ShopError):
    default_message = "Invalid amount. Please enter a positive number."


class WalletInactive(ShopError):
    status_code = 403
    default_message = "Wallet is not active. Please contact support."


class InsufficientFunds(ShopError):
    default_message = "Insufficient wallet balance"

    def __init__(self, balance=None, required=None, message=None):
        self.balance = balance
        self.required = required
        super().__init__(message)


class TransactionNotFound(NotFound):
    default_message = "Transaction not found"
