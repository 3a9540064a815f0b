"""
Application Layer for the Goal Progress API.

This package contains:
- ports/: Abstract repository and notifier interfaces (what the engine needs)
- exceptions: Errors shared by the store, adapters and routers
"""
