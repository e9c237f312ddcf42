"""Exception hierarchy for filter parsing and query building."""


class QueryBuildError(Exception):
    """Base exception for filter parsing and query building errors.

    Provides dual messaging: a user-facing message that names the offending
    clause, field or verb, and internal details for logging.
    """

    def __init__(
        self,
        user_message: str,
        internal_details: str = "",
        wrapped: Exception | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details or user_message
        self.wrapped = wrapped

    def internal(self) -> str:
        return self.internal_details


class InvalidFilterClauseError(QueryBuildError):
    """Raised when a filter clause has no recognizable operator."""


class UnsupportedOperatorError(QueryBuildError):
    """Raised when an operator is not supported for a field class."""


class InvalidValueError(QueryBuildError):
    """Raised when a filter value does not fit its field class."""


class InvalidPortError(InvalidValueError):
    """Raised when a port value is not an integer or is out of range."""


class InvalidIPError(InvalidValueError):
    """Raised when a value is neither an IP address, CIDR block nor prefix."""


class InvalidCIDRError(InvalidValueError):
    """Raised when a CIDR block cannot be parsed."""


class InvalidNumericValueError(InvalidValueError):
    """Raised when a numeric field receives a non-numeric value."""


class InvalidFieldError(QueryBuildError):
    """Raised when a field is unknown or not valid for a schema version."""


class InvalidVersionError(QueryBuildError):
    """Raised when a schema version is not supported."""


class NonNumericFieldError(QueryBuildError):
    """Raised when an aggregation verb requires a numeric field."""


class InvalidLimitError(QueryBuildError):
    """Raised when a result limit is negative."""


class InvalidSchemaError(QueryBuildError):
    """Raised when there is a problem with the provided schema."""


class UnsupportedExpressionError(QueryBuildError):
    """Raised when an object is not a known expression node."""


class InvalidVerbError(QueryBuildError):
    """Raised when a query verb is missing or unknown."""


# User-facing message templates
ERR_MSG_INVALID_FILTER_CLAUSE = "invalid filter clause: {clause!r}"
ERR_MSG_UNSUPPORTED_OPERATOR = "unsupported operator for {kind} field: {operator!r}"
ERR_MSG_INVALID_PORT_VALUE = "invalid port value: {value}"
ERR_MSG_PORT_OUT_OF_RANGE = "port out of range: {port}"
ERR_MSG_INVALID_NUMERIC_VALUE = "invalid numeric value for field {field}: {value}"
ERR_MSG_INVALID_IP_VALUE = "invalid IP, CIDR, or prefix value for field {field}: {value}"
ERR_MSG_INVALID_CIDR_BLOCK = "invalid CIDR block: {value}"
