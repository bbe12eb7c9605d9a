TEXTS_AR: dict[str, str] = {
    "msg.code.redeemed": "تم استخدام الكود بنجاح",
    "msg.code_pool.deleted": "تم حذف مجموعة الأكواد",
    "error.E_VALIDATION": "البيانات المدخلة غير صالحة",
    "error.E_ENTITLEMENT_TARGET_NOT_FOUND": "بعض المواد أو الدورات المحددة غير موجودة",
    "error.E_CODE_NOT_FOUND": "الكود غير موجود",
    "error.E_CODE_POOL_NOT_FOUND": "مجموعة الأكواد غير موجودة",
    "error.E_CODE_ALREADY_USED": "الكود مستخدم مسبقاً",
    "error.E_CODE_EXPIRED": "انتهت صلاحية الكود",
    "error.E_CODE_POOL_ALREADY_REDEEMED": "لقد استخدمت كوداً من هذه المجموعة مسبقاً",
    "error.E_UNAUTHORIZED": "غير مصرح لك، يرجى تسجيل الدخول",
    "error.E_REDEMPTION_CONFLICT": "الطلب قيد المعالجة، يرجى المحاولة مرة أخرى",
    "error.E_CODE_POOL_HAS_USED_CODES": "لا يمكن حذف مجموعة تحتوي على أكواد مستخدمة",
    "error.E_CODE_POOL_NO_UNUSED_CODES": "لا توجد أكواد غير مستخدمة",
    "error.E_ACCESS_DENIED": "لا تملك صلاحية الوصول إلى هذا المحتوى",
    "error.E_NOT_FOUND": "العنصر المطلوب غير موجود",
    "error.E_FORBIDDEN": "الوصول مرفوض",
    "error.E_INTERNAL": "حدث خطأ في الخادم",
}
