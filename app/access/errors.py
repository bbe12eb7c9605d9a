class AccessError(Exception):
    pass


class CodeValidationError(AccessError):
    def __init__(self, message: str = "", *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class EntitlementTargetNotFoundError(CodeValidationError):
    pass


class CodeNotFoundError(AccessError):
    pass


class CodePoolNotFoundError(AccessError):
    pass


class CodeAlreadyUsedError(AccessError):
    pass


class CodeExpiredError(AccessError):
    pass


class StudentUnauthorizedError(AccessError):
    pass


class AccessConflictError(AccessError):
    pass


class DuplicateRedemptionInPoolError(AccessConflictError):
    pass


class RedemptionConflictError(AccessConflictError):
    pass


class CodePoolHasUsedCodesError(AccessConflictError):
    pass


class CodePoolHasNoUnusedCodesError(AccessError):
    pass


class AccessDeniedError(AccessError):
    pass


class ContentNotFoundError(AccessError):
    pass
