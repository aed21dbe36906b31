"""Custom exceptions for the bakery storefront."""


class BakeryError(Exception):
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


class ValidationError(BakeryError):
    """Raised when a request payload is missing fields or is malformed."""
    def __init__(self, errors, message='Datos inválidos'):
        super().__init__(message, 400, {'errors': errors})
        self.errors = errors


class BusinessLogicError(BakeryError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class SchedulingError(BusinessLogicError):
    """Delivery date is not a weekend day or is not in the future."""
    def __init__(self, message):
        super().__init__(message, status_code=422)


class CapacityError(BusinessLogicError):
    """No delivery slots left for the requested date and window."""
    def __init__(self, message='No hay cupos disponibles para esta fecha y horario'):
        super().__init__(message, status_code=422)


class ProductUnavailableError(BusinessLogicError):
    """One or more products do not exist or are not published."""
    def __init__(self, unavailable):
        self.unavailable = list(unavailable)
        message = f"Algunos productos no están disponibles: {', '.join(self.unavailable)}"
        super().__init__(message, payload={'unavailable': self.unavailable})


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available):
        self.product_name = product_name
        message = f"Stock insuficiente para {product_name}: se requieren {required}, disponible {available}"
        super().__init__(message, payload={'product': product_name})


class InvalidZoneError(BusinessLogicError):
    """Delivery zone does not exist or is inactive."""
    def __init__(self, message='Zona de entrega no válida'):
        super().__init__(message)


class ConflictError(BusinessLogicError):
    """A unique value (slug, code) is already taken."""
    def __init__(self, message):
        super().__init__(message, status_code=409)


class NotFoundError(BakeryError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class AuthenticationError(BakeryError):
    """Raised when a request needs a logged-in session."""
    def __init__(self, message="Debes iniciar sesión"):
        super().__init__(message, 401)


class UnauthorizedError(BakeryError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="No autorizado"):
        super().__init__(message, 403)


class OrderPersistenceError(BakeryError):
    """Unexpected failure while writing an order. Details stay in the logs."""
    def __init__(self, message="Error al procesar el pedido"):
        super().__init__(message, 500)
