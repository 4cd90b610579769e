"""
Core Application - shared infrastructure for the chat backend.

Models (core.models):
    - BaseModel: Abstract model with created_at/updated_at

Services (core.services):
    - BaseService: Logger, transaction and exception helpers for services
    - ServiceResult: Success/failure wrapper returned by every service call
    - ErrorCode: Error codes carried by failed results

Exceptions (core.exceptions):
    - ValidationError, InvalidOperationError, PermissionDeniedError,
      NotFoundError, ConflictError, ExternalServiceError
    - api_exception_handler: DRF handler rendering {"message": ...}

Views (core.views):
    - health_check: /health/ endpoint
    - error_response: failed ServiceResult -> Response

Validators (core.validators):
    - validate_file_size, validate_file_extension, validate_no_html
"""
