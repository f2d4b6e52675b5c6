class DomainException(Exception):
    pass


class StickerNotFoundError(DomainException):
    pass


class PromotionNotFoundError(DomainException):
    pass


class DiscountCodeNotFoundError(DomainException):
    pass


class InvalidPromotionError(DomainException):
    pass


class PromotionConflictError(DomainException):
    pass


class DiscountCodeConflictError(DomainException):
    pass


class InvalidDiscountCodeError(DomainException):
    pass


class PermissionDeniedError(DomainException):
    pass


class InvalidStatusTransitionError(DomainException):
    def __init__(self, current: str, requested: str, reason: str = ""):
        self.current = current
        self.requested = requested
        self.reason = reason
        super().__init__(f"Недопустимый переход статуса {current} -> {requested}. {reason}".strip())


class InvalidQrRequestError(DomainException):
    pass
