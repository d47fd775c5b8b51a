"""
Error taxonomy

Every failure raised by the catalog, order and payment modules is a
BookshopError. The API layer turns each one into a JSON body of the form
{"message": ...} with the class's status code.
"""


class BookshopError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookshopError):
    """Missing or malformed fields on a book or order"""
    status_code = 400


class NotFound(BookshopError):
    status_code = 404


class InvalidStateTransition(BookshopError):
    """Cancel requested on an order in a terminal status"""
    status_code = 400


class EmptyCartError(BookshopError):
    status_code = 400

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class PaymentProviderError(BookshopError):
    status_code = 500


class StoreError(BookshopError):
    """Database unavailable or driver failure"""
    status_code = 500
