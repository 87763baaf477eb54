"""Custom exceptions for the Invoicer application."""
from decimal import Decimal


class InvoicerError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(InvoicerError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(InvoicerError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class InsufficientStockError(BusinessLogicError):
    """Raised when a requested line quantity exceeds the product stock."""
    def __init__(self, product_name, requested, available):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        message = f"Cannot add more than available stock for {product_name}: requested {requested}, available {available}"
        super().__init__(message, status_code=409, payload={
            'error': 'InsufficientStock',
            'requested': requested,
            'available': available,
        })


class InvalidBillRequestError(BusinessLogicError):
    """Raised when a bill cannot be built from the current request (no customer, empty cart, bad amounts)."""
    def __init__(self, message):
        super().__init__(message, status_code=400, payload={'error': 'InvalidBillRequest'})


class CreditLimitExceededError(BusinessLogicError):
    """
    Soft failure: the bill would push the customer's balance past the credit limit.

    The caller may retry the same request with an explicit override.
    """
    def __init__(self, customer_name, outstanding_balance: Decimal, amount_due: Decimal, credit_limit: Decimal):
        self.outstanding_balance = outstanding_balance
        self.amount_due = amount_due
        self.credit_limit = credit_limit
        self.projected_balance = outstanding_balance + amount_due
        message = f"This bill will exceed the credit limit of {customer_name}. Continue anyway?"
        super().__init__(message, status_code=409, payload={
            'error': 'CreditLimitExceeded',
            'customer_name': customer_name,
            'outstanding_balance': f'{outstanding_balance:.2f}',
            'amount_due': f'{amount_due:.2f}',
            'projected_balance': f'{self.projected_balance:.2f}',
            'credit_limit': f'{credit_limit:.2f}',
            'override_required': True,
        })


class AuthenticationError(InvoicerError):
    """Raised when a request needs a logged-in user."""
    def __init__(self, message="Please sign in to continue"):
        super().__init__(message, 401)


class UnauthorizedError(InvoicerError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)
