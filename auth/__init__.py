"""
Auth package for Link Stats.

Shared-password gate for the write/admin routes, guarded by a process-wide
failed-attempt rate limiter.
"""
