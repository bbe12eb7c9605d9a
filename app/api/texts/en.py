TEXTS_EN: dict[str, str] = {
    "msg.code.redeemed": "Code redeemed successfully",
    "msg.code_pool.deleted": "Codes group deleted",
    "error.E_VALIDATION": "Invalid input",
    "error.E_ENTITLEMENT_TARGET_NOT_FOUND": "Some of the given materials or courses do not exist",
    "error.E_CODE_NOT_FOUND": "Code not found",
    "error.E_CODE_POOL_NOT_FOUND": "Codes group not found",
    "error.E_CODE_ALREADY_USED": "Code already used",
    "error.E_CODE_EXPIRED": "Code has expired",
    "error.E_CODE_POOL_ALREADY_REDEEMED": "You have already redeemed a code from this group",
    "error.E_UNAUTHORIZED": "Not authenticated",
    "error.E_REDEMPTION_CONFLICT": "Redemption conflicted with another request, please retry",
    "error.E_CODE_POOL_HAS_USED_CODES": "Cannot delete group with used codes",
    "error.E_CODE_POOL_NO_UNUSED_CODES": "No unused codes available",
    "error.E_ACCESS_DENIED": "No valid access to this content",
    "error.E_NOT_FOUND": "Not found",
    "error.E_FORBIDDEN": "Forbidden",
    "error.E_INTERNAL": "Server error",
}
