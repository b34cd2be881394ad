from lingua_cache.application.api.middleware.error_handler import ErrorHandlingMiddleware

__all__ = ["ErrorHandlingMiddleware"]
