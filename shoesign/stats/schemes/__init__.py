"""
Problem-specific decision engines.

Available schemes:
- `three_way`: B/P/T outcome streams with a single favoured category
"""
