from .base import ApplicationError, ErrorCode, ErrorLevel
from .errors import (
    BindVariableCollisionError,
    DecodingError,
    NotFoundError,
    QueryBuilderError,
    QueryExecutionError,
)
