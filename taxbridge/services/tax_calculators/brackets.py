"""
TaxBridge - Progressive Bracket Calculator

Progressive tax over ordered bands, Nigeria Tax Act 2025 (tax years 2026+).

Annual PIT/PAYE bands:
- ₦0 - ₦800,000: 0% (statutory exemption)
- ₦800,000 - ₦3,000,000: 15%
- ₦3,000,000 - ₦12,000,000: 18%
- ₦12,000,000 - ₦25,000,000: 21%
- ₦25,000,000 - ₦50,000,000: 23%
- Above ₦50,000,000: 25%

Monthly PAYE bands are the annual bounds divided by 12, rounded to the kobo.
Tax is rounded once on the total, never per band.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Tuple, Any

from taxbridge.utils.error_handling import ValidationException, ErrorCode


KOBO = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """Coerce int/float/str to Decimal without binary float drift."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_kobo(value: Decimal) -> Decimal:
    """Round a Naira amount to the nearest kobo (half up)."""
    return to_decimal(value).quantize(KOBO, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TaxBand:
    """A progressive tax band. ``rate`` is a percentage."""
    lower: Decimal
    upper: Optional[Decimal]  # None = unbounded top band
    rate: Decimal

    def taxable_portion(self, base: Decimal) -> Decimal:
        """Amount of ``base`` that falls inside this band."""
        if base <= self.lower:
            return Decimal("0")
        top = base if self.upper is None else min(base, self.upper)
        return top - self.lower

    def calculate_tax(self, base: Decimal) -> Decimal:
        """Unrounded tax contributed by this band."""
        return self.taxable_portion(base) * self.rate / Decimal("100")


def build_bands(bounds: Sequence[Tuple[Optional[Any], Any]]) -> List[TaxBand]:
    """
    Build contiguous bands from ``[(upper_bound, rate), ...]``.

    Bounds must be strictly ascending and only the final band may be
    unbounded (``None``).
    """
    if not bounds:
        raise ValueError("At least one tax band is required")

    bands: List[TaxBand] = []
    lower = Decimal("0")
    for index, (upper, rate) in enumerate(bounds):
        is_last = index == len(bounds) - 1
        rate_value = to_decimal(rate)
        if rate_value < 0:
            raise ValueError(f"Band {index} has a negative rate")
        if upper is None:
            if not is_last:
                raise ValueError("Only the final band may be unbounded")
            bands.append(TaxBand(lower=lower, upper=None, rate=rate_value))
            continue
        upper_value = to_decimal(upper)
        if upper_value <= lower:
            raise ValueError(f"Band {index} upper bound {upper_value} is not above {lower}")
        bands.append(TaxBand(lower=lower, upper=upper_value, rate=rate_value))
        lower = upper_value

    if bands[-1].upper is not None:
        raise ValueError("The final band must be unbounded")
    return bands


# Nigeria Tax Act 2025 - annual bands
ANNUAL_PIT_BOUNDS: List[Tuple[Optional[Decimal], Decimal]] = [
    (Decimal("800000"), Decimal("0")),
    (Decimal("3000000"), Decimal("15")),
    (Decimal("12000000"), Decimal("18")),
    (Decimal("25000000"), Decimal("21")),
    (Decimal("50000000"), Decimal("23")),
    (None, Decimal("25")),
]

NIGERIA_2026_ANNUAL_BANDS = build_bands(ANNUAL_PIT_BOUNDS)

NIGERIA_2026_MONTHLY_BANDS = build_bands([
    (None if upper is None else round_kobo(upper / 12), rate)
    for upper, rate in ANNUAL_PIT_BOUNDS
])

ANNUAL_EXEMPTION = Decimal("800000")
MONTHLY_EXEMPTION = round_kobo(ANNUAL_EXEMPTION / 12)


class BracketCalculator:
    """
    Progressive tax on a taxable base.

    Guarantees:
    - zero tax for a zero base
    - monotonic in the base
    - one rounding step, on the total
    """

    @staticmethod
    def calculate(
        taxable_income: Any,
        bands: Sequence[TaxBand] = NIGERIA_2026_ANNUAL_BANDS,
    ) -> Tuple[Decimal, List[Dict[str, Any]]]:
        """
        Calculate progressive tax.

        Args:
            taxable_income: Non-negative taxable base
            bands: Ordered bands from ``build_bands``

        Returns:
            Tuple of (total_tax, band_breakdown)

        Raises:
            ValidationException: if the base is negative
        """
        base = to_decimal(taxable_income)
        if base < 0:
            raise ValidationException(
                message=f"Taxable income cannot be negative. Received: {base}",
                field="taxable_income",
                code=ErrorCode.INVALID_AMOUNT,
                details={"provided": str(base)},
            )

        total = Decimal("0")
        breakdown: List[Dict[str, Any]] = []
        for band in bands:
            portion = band.taxable_portion(base)
            if portion <= 0:
                break
            tax = band.calculate_tax(base)
            total += tax
            breakdown.append({
                "band_lower": band.lower,
                "band_upper": band.upper,
                "rate": band.rate,
                "taxable_amount": portion,
                "tax": round_kobo(tax),
            })

        return round_kobo(total), breakdown

    @classmethod
    def total(cls, taxable_income: Any, bands: Sequence[TaxBand] = NIGERIA_2026_ANNUAL_BANDS) -> Decimal:
        return cls.calculate(taxable_income, bands)[0]
