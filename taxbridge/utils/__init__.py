"""
TaxBridge - Utilities Package

Error handling and shared validators.
"""
