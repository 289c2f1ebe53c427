"""
Review Store Module.

Single source of truth for ingested reviews.
Manages persistence, filtered queries and approval decisions.
"""
