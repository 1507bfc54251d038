"""
Money Tracker - Core Package

An offline-capable personal finance tracker: expenses and income are
kept on the device while signed out and in the user's remote account
once signed in.

DESIGN PRINCIPLES:
1. The app keeps working without a network (offline cache)
2. One consistent transaction list whatever the auth state
3. Local transactions reach the account once, without duplicates
4. Operations never crash the UI: they succeed or notify
"""

__version__ = "1.0.0"
__author__ = "Money Tracker Team"
