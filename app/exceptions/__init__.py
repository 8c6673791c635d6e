"""Custom exceptions for the quoting application."""

class AppError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="Ocorreu um erro interno", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(AppError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(AppError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Recurso não encontrado", payload=None):
        super().__init__(message, 404, payload)

class InvalidTransitionError(BusinessLogicError):
    """Raised when a quote status action is not allowed from the current status."""
    def __init__(self, action, status, message=None):
        action_name = getattr(action, 'value', action)
        status_name = getattr(status, 'value', status)
        message = message or f"Ação '{action_name}' não permitida para orçamento com status '{status_name}'"
        super().__init__(message, status_code=409, payload={'action': action_name, 'current_status': status_name})
        self.action = action
        self.status = status

class ValidationError(BusinessLogicError):
    """Raised when submitted data fails form validation."""
    def __init__(self, errors, message="Dados inválidos"):
        super().__init__(message, status_code=400, payload={'errors': errors})
        self.errors = errors

class UnauthorizedError(AppError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Acesso não autorizado"):
        super().__init__(message, 403)
