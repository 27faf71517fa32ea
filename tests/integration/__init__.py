"""
Integration tests for the resilient HTTP layer.

Test components together against real sockets (marked with @pytest.mark.integration):
- Retry over a flaky local HTTP server (status, timeout, connection refused)
- Round-robin load balancing across two local servers
"""
