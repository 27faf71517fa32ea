"""
Unit tests for the resilient HTTP layer.

Test individual components in isolation:
- Endpoint model (parsing, equality, hashing)
- Backoff cursors (intervals, STOP)
- Retry classification (IO predicates, response predicate)
- Retry executor (state machine, lifecycle events, ceiling)
- Load balancing (round-robin, failure avoidance, TTL sweep)
- Header redaction and settings
"""
