"""
Finance Tracker - Source Package

A single-user personal finance tracker: income and expenses, savings
goals, investments, receipt scanning and a conversational assistant.

DESIGN PRINCIPLES:
1. AI suggests → Human confirms → System saves
2. Fail early, fail visibly
3. No silent corrections
4. Every state change is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
