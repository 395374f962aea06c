"""Financial summary helpers.

This package turns a reference date into named reporting windows, sums the
value and number of services in each window for one tenant, and derives
month-over-month growth for the dashboard. Everything here is recomputed on
every request; nothing is cached or persisted.
"""
