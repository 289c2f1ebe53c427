"""
Utility modules for Guestbook Analytics.

Cross-cutting concerns:
- Storage: JSON report persistence
- Numeric: rounding and guarded means
- Dates: UTC day handling and timestamp parsing
"""
