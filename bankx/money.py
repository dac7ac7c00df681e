"""
Money Module

Exact fixed-point currency amounts. NEVER uses float for monetary values.
Every amount is held at cent precision and every rate multiplication is
rounded ROUND_HALF_UP to 2 decimals, so results are reproducible.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from dataclasses import dataclass
from typing import Union
import re

from .errors import InvalidAmount

# Set global decimal context for financial precision
getcontext().prec = 28

CENT = Decimal('0.01')
DEFAULT_FEE_RATE = Decimal('0.0005')       # 0.05% on payments and customer transfers
DEFAULT_INTEREST_RATE = Decimal('0.005')   # 0.5% on savings transfers and interest runs

AmountLike = Union[Decimal, int, str]

# Plain digits or comma-grouped thousands, optional sign and fraction
_AMOUNT_PATTERN = re.compile(r'[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d*)?|[+-]?\.\d+')


def _to_decimal(value: AmountLike) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Money cannot be built from {type(value).__name__}; use Decimal or str")
    if isinstance(value, (int, str)):
        return Decimal(value)
    raise TypeError(f"Unsupported amount type: {type(value).__name__}")


@dataclass(frozen=True)
class Money:
    """
    Immutable money representation at cent precision.
    All monetary values in the ledger MUST use this class.
    """
    amount: Decimal

    def __post_init__(self):
        amount = _to_decimal(self.amount)
        object.__setattr__(self, 'amount', amount.quantize(CENT, rounding=ROUND_HALF_UP))

    @classmethod
    def zero(cls) -> 'Money':
        return cls(Decimal('0'))

    def __add__(self, other: 'Money') -> 'Money':
        return Money(self.amount + other.amount)

    def __sub__(self, other: 'Money') -> 'Money':
        # Negative results are representable; callers reject them before committing
        return Money(self.amount - other.amount)

    def __mul__(self, rate: Union[Decimal, str]) -> 'Money':
        if not isinstance(rate, Decimal):
            rate = _to_decimal(rate)
        return Money(self.amount * rate)

    def __neg__(self) -> 'Money':
        return Money(-self.amount)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return False
        return self.amount == other.amount

    def __hash__(self) -> int:
        return hash(self.amount)

    def __lt__(self, other: 'Money') -> bool:
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        return self.amount >= other.amount

    def is_zero(self) -> bool:
        """Check if amount is exactly zero"""
        return self.amount == Decimal('0')

    def is_positive(self) -> bool:
        """Check if amount is positive"""
        return self.amount > Decimal('0')

    def is_negative(self) -> bool:
        """Check if amount is negative"""
        return self.amount < Decimal('0')

    def to_string(self) -> str:
        """Format for display"""
        return f"{self.amount:,.2f}"


def calculate_fee(amount: Money, rate: Decimal = DEFAULT_FEE_RATE) -> Money:
    """Transaction fee: round(amount * rate, 2), half-up"""
    return amount * rate


def calculate_interest(amount: Money, rate: Decimal = DEFAULT_INTEREST_RATE) -> Money:
    """Interest bonus: round(amount * rate, 2), half-up"""
    return amount * rate


def parse_amount(value: AmountLike) -> Money:
    """
    Convert caller input into Money without losing precision

    Args:
        value: Decimal, int, or string such as "1,000.50"

    Returns:
        Money at cent precision

    Raises:
        InvalidAmount: If the value is malformed, not finite, or has
            more than two fractional digits
    """
    if isinstance(value, Money):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidAmount(value, "empty amount")
        if not _AMOUNT_PATTERN.fullmatch(text):
            raise InvalidAmount(value, "not a decimal number")
        decimal_value = Decimal(text.replace(',', ''))
    else:
        try:
            decimal_value = _to_decimal(value)
        except (TypeError, InvalidOperation) as e:
            raise InvalidAmount(value, str(e)) from e

    if not decimal_value.is_finite():
        raise InvalidAmount(value, "amount must be finite")

    try:
        quantized = decimal_value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise InvalidAmount(value, "amount out of range") from e

    if decimal_value != quantized:
        raise InvalidAmount(value, "more than two decimal places")

    return Money(decimal_value)
