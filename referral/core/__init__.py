"""
Core utilities shared across the referral backend.

This package hosts configuration, logging setup, password hashing and the
in-memory rate limiter. Services and routers depend on these primitives
instead of reading os.environ or configuring handlers themselves.
"""
