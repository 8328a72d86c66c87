from .payment_record import PaymentRecord
from .transaction import Transaction
from .transaction_item import TransactionItem
from .transaction_tax import TransactionTax

__all__ = [
    "PaymentRecord",
    "Transaction",
    "TransactionItem",
    "TransactionTax",
]
