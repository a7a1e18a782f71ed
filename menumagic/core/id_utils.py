import shortuuid

PAYMENT_REFERENCE_PREFIX = "PAY"


def generate_payment_reference() -> str:
    """Human-readable receipt reference, e.g. ``PAY-7K3QW9ZC``."""
    token = shortuuid.ShortUUID(alphabet="23456789ABCDEFGHJKLMNPQRSTUVWXYZ").random(length=8)
    return f"{PAYMENT_REFERENCE_PREFIX}-{token}"
