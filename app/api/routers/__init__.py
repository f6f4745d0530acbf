"""
HTTP routers: ``auth`` (sessions and tokens), ``workflows`` (user-scoped CRUD
and execution) and ``jobs`` (background run tracking).
"""
