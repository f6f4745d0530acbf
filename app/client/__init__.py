"""
Client side of the workflow dashboard: URL-backed search params, the debounced
search controller, a session-scoped query cache, and the HTTP client.
"""
