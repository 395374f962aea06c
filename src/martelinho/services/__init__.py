"""Service-record storage utilities.

Provides the tenant-scoped MongoDB repository for repair services and the
boundary step that turns raw documents into validated `ServiceRecord`
models right after they are fetched.
"""
