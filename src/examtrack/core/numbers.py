from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """Round halves away from zero (12.5 -> 13), returning an int when digits == 0."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)


def clamp(value: float, floor: float, ceiling: Optional[float] = None) -> float:
    if value < floor:
        return floor
    if ceiling is not None and value > ceiling:
        return ceiling
    return value
