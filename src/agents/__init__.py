"""
Agent implementations for Guestbook Analytics.

Contains the agent modules that move reviews through the pipeline:
- Ingestion Agent (Hostaway / Google normalization, mock data)
- Aggregation (Trend Aggregator + Comparison Exporter)
"""
