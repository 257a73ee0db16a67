"""
TaxBridge - Nigerian Tax Computation and Payroll Engine

PAYE, PIT, CIT, VAT and WHT under the Nigeria Tax Act 2025 (tax years 2026+),
idempotent monthly payroll batches and subscription upgrade proration.
"""

__version__ = "1.0.0"
