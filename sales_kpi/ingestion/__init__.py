"""
Data Ingestion Module
"""
from .batch_loader import BatchFileConfig, LoadResult, LoadStatus, SalesBatchLoader, create_batch_loader

__all__ = [
    "BatchFileConfig",
    "LoadResult",
    "LoadStatus",
    "SalesBatchLoader",
    "create_batch_loader",
]
