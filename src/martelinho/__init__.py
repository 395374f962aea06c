"""martelinho package.

Contains modules for managing the repair services of an auto body shop
("martelinho de ouro"): tenant-scoped storage of service records in MongoDB,
password authentication, a period-bucketed financial summary, and PDF
invoice generation, plus utilities for serving a Streamlit dashboard.

Architecture:
- Service records stored in MongoDB, always scoped by `tenant_id`
- Dask is used to fan out per-window aggregation queries
- Pydantic models validate records at the storage boundary
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
