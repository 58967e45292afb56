class AppStatusCode:
    # success
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    OPERATION_SUCCESSFUL = "101"

    # generic failures
    OPERATION_FAILED = "200"
    INVALID_INPUT = "201"
    NOT_FOUND = "202"
    FORBIDDEN = "203"

    # rental domain
    INVALID_STATE = "300"
    CONFLICT = "301"
    DUPLICATE_ADD_ERROR = "302"

    # authentication
    AUTHENTICATION_TOKEN_INVALID = "400"
    AUTHENTICATION_TOKEN_EXPIRED = "401"
    AUTHENTICATION_ROLE_INVALID = "402"
    AUTHENTICATION_KEY_INVALID = "403"
