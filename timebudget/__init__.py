# Time Budget - Core Library
"""
Persistence, configuration and the budget core (timebudget.budget).
"""
