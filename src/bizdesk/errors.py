"""Domain exceptions raised by the business logic layer."""


class BusinessRuleViolation(Exception):
    """Raised when a requested operation violates a domain constraint."""


class MissingReferenceError(BusinessRuleViolation):
    """Raised when a referenced customer, item, supplier or invoice is unknown."""
