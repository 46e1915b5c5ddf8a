# =============================================================================
# subtrack_core/__init__.py
# Subscription Tracker - persistence and synchronization core
# =============================================================================
"""
Core library of the Subscription Tracker.

Sub-packages:
- models:    Subscription / NotificationSettings value shapes
- offline:   local cache, remote stores, migration and the data service
- auth:      identity resolution (federated session or local account)
- analytics: monthly cost, category totals, renewal windows
- bootstrap: logging setup and service wiring for views
"""

__version__ = "0.3.0"
