"""
Workflow management for Workflow Atlas.

Workflows are user-owned records created with a generated name, listed with
paging and search, renamed, removed, and executed through the job runner.
"""
