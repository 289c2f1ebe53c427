"""
Analytics engine for Guestbook Analytics.

Stateless functions over review record collections:
- Rating derivation
- Time bucketing and series transforms
- KPI aggregation with week-over-week deltas
- Recurring issue and issue spike detection
- Response time metrics
- Property comparison and review ordering
"""
