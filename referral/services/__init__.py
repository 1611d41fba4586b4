"""
High-level use cases for the referral backend.

Each service orchestrates the JsonStore to implement business rules
(register an owner, edit a site, reset a partner's counters, ...).
Routers call these services instead of reading the data files directly.
"""
