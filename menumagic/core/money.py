from decimal import Decimal, ROUND_HALF_UP

MONEY_QUANT = Decimal("0.01")
QTY_QUANT = Decimal("0.001")
ZERO_MONEY = Decimal("0.00")
ZERO_QTY = Decimal("0.000")


def to_money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def to_qty(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(QTY_QUANT, rounding=ROUND_HALF_UP)


def money_or_none(value: Decimal | None) -> float | None:
    if value is None:
        return None
    return float(to_money(value))
