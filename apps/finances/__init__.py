"""Finances app package.

This app contains payments, refunds, cached payment methods and
reconciliation cases, the payment gateway contract with its Stripe
implementation, and the scheduled reconciliation of charges that could
not be recorded.
"""
