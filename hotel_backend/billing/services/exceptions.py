"""
BILLING DOMAIN ERRORS

Validation errors are raised BEFORE any write and map to HTTP 400.
SettlementConflictError maps to HTTP 409 once automatic retries are spent.
"""


class BillingError(Exception):
    code = "BILLING_ERROR"


class BillingValidationError(BillingError):
    code = "VALIDATION_ERROR"


class EmptyCartError(BillingValidationError):
    code = "EMPTY_CART"


class MissingGuestDetailsError(BillingValidationError):
    code = "MISSING_GUEST_DETAILS"


class InvalidPaymentError(BillingValidationError):
    code = "INVALID_PAYMENT"


class OverpaymentError(BillingValidationError):
    code = "OVERPAYMENT"


class RoomUnavailableError(BillingValidationError):
    code = "ROOM_UNAVAILABLE"


class SettlementConflictError(BillingError):
    code = "SETTLEMENT_CONFLICT"
