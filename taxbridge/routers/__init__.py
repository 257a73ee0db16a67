"""
TaxBridge - Routers Package

FastAPI route handlers.

Routers:
- tax: Stateless PAYE, CIT, VAT and WHT calculators
- payroll: Payroll batches, schedules and PAYE remittances
- pit: Employment deductions and annual PIT summary
- subscription: Plans, upgrade proration and payment activation
"""

from taxbridge.routers import tax, payroll, pit, subscription

__all__ = ["tax", "payroll", "pit", "subscription"]
