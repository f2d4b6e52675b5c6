import secrets

# без 0/O/1/I, чтобы слаг можно было продиктовать
SLUG_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_slug(length: int = 7) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def generate_serial() -> str:
    return f"STK-{generate_slug(8)}"


def generate_payment_reference() -> str:
    return f"SFT-{generate_slug(8)}"
