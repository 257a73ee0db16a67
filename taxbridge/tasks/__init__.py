"""
TaxBridge - Background Tasks

Celery tasks for daily status maintenance.
"""
