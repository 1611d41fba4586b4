"""Referral MVP backend: JSON record store, account/company use cases and a JSON API."""
