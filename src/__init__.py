"""
CashHash Ledger - Invoice Financing Service

A FastAPI-based microservice that scores invoices for risk, drives their
lifecycle, records fractional investments against a funding goal, and
distributes buyer payments or default recoveries back to investors.
"""

__version__ = "0.1.0"
