"""
Domain exceptions raised by the service layer
Route handlers translate these into HTTP responses
"""


class WardrobeException(Exception):
    """
    Base exception for wardrobe domain errors
    """
    def __init__(self, message: str = "Wardrobe operation failed"):
        self.message = message
        super().__init__(self.message)


class ResourceNotFoundException(WardrobeException):
    """
    Exception raised when a collection, garment or tag does not exist
    or is not owned by the requesting user
    """
    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)


class ValidationException(WardrobeException):
    """
    Exception raised when a request payload violates a domain constraint
    """
    def __init__(self, message: str = "Invalid request"):
        super().__init__(message)


class InvalidRuleException(ValidationException):
    """
    Exception raised when a smart collection rule is structurally invalid
    """
    def __init__(self, message: str = "Invalid collection rule"):
        super().__init__(message)


class NotSmartCollectionException(ValidationException):
    """
    Exception raised when a rule operation targets an ordinary collection
    """
    def __init__(self, collection_id):
        self.collection_id = collection_id
        super().__init__(f"Collection {collection_id} is not a smart collection")


class SmartCollectionMembershipException(ValidationException):
    """
    Exception raised when garments are added to or removed from a smart collection by hand
    """
    def __init__(self, collection_id):
        self.collection_id = collection_id
        super().__init__(
            f"Membership of smart collection {collection_id} is managed by its rules"
        )


class ConflictException(WardrobeException):
    """
    Exception raised when a write would duplicate a unique value (e.g. a tag name)
    """
    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)
