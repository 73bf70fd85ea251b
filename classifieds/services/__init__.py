"""
High-level use cases for the classifieds API.

Each service module orchestrates the repository to implement business rules
(allocate listing ids, enforce ownership, register users, send messages).
Routers call these services instead of touching the database directly.
"""
