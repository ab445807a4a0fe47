"""
REST API for the table store.
"""
