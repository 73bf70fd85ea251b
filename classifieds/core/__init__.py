"""
Core utilities shared across the classifieds API: settings, structured
logging, password hashing, bearer tokens and rate limiting.
"""
