class ErrorCode:
    BAD_PARAMS = 400
    NO_AUTH = 401
    NO_PERMISSION = 403
    NOT_FOUND = 404
    SERVER_ERROR = 500


class CommonError(Exception):
    """
    A user-facing error. Rendered by the app as {"code": code, "errmsg": message}.
    """

    def __init__(self, message: str, code: int = ErrorCode.BAD_PARAMS):
        super().__init__(message)
        self.message = message
        self.code = code
