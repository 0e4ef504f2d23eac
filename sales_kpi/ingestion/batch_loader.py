"""
Sales Batch Loader

Bulk ingestion of the retail sales CSV export into the sales fact table:
- Positional column mapping (header row skipped)
- Explicit type casting with Polars
- Row-level validation with dead-letter output for rejected rows
- Append-only inserts: transactions already in the table are skipped, never updated
- Audit information in the returned LoadResult
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import hashlib

import polars as pl
import structlog
from pydantic import BaseModel
from sqlalchemy import insert as generic_insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from sales_kpi.config import get_settings
from sales_kpi.database.models import Sale
from sales_kpi.exceptions import IngestionError
from sales_kpi.quality.validators import REJECT_REASON_COLUMN, SalesValidator, create_sales_validator

logger = structlog.get_logger(__name__)
settings = get_settings()

# File column order: identifier, date, customer id, gender, age, category,
# quantity, unit price, total amount
SALES_COLUMNS = [
    "transaction_id",
    "txn_date",
    "customer_id",
    "gender",
    "age",
    "product_category",
    "quantity",
    "price_per_unit",
    "total_amount",
]

CENT = Decimal("0.01")


class LoadStatus(str, Enum):
    """Batch load status"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class BatchFileConfig:
    """Configuration for a sales file load"""
    file_path: Union[str, Path]
    delimiter: str = ","
    encoding: str = "utf8"
    chunk_size: int = 1000

    @classmethod
    def from_settings(cls, file_path: Optional[Union[str, Path]] = None) -> "BatchFileConfig":
        ingestion = settings.ingestion
        return cls(
            file_path=file_path or ingestion.source_file,
            delimiter=ingestion.delimiter,
            encoding=ingestion.encoding,
            chunk_size=ingestion.chunk_size,
        )


class LoadResult(BaseModel):
    """Result of a batch load operation"""
    file_path: str
    target_table: str = Sale.__tablename__
    status: LoadStatus
    rows_read: int = 0
    rows_loaded: int = 0
    rows_rejected: int = 0
    rows_skipped: int = 0
    warning_count: int = 0
    error_message: Optional[str] = None
    dead_letter_file: Optional[str] = None
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    file_hash: Optional[str] = None


class SalesBatchLoader:
    """
    Loads retail sales CSV files into the sales fact table.

    Example:
        loader = SalesBatchLoader()
        async with get_db() as db:
            result = await loader.load(BatchFileConfig("retail_sales_dataset.csv"), db)
    """

    def __init__(
        self,
        validator: Optional[SalesValidator] = None,
        dead_letter_path: Optional[Union[str, Path]] = None,
    ):
        self.validator = validator or create_sales_validator()
        self.dead_letter_path = Path(dead_letter_path or settings.ingestion.dead_letter_path)

    def _compute_file_hash(self, file_path: Path) -> str:
        """Compute MD5 hash of file for audit"""
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    def read(self, config: BatchFileConfig) -> pl.DataFrame:
        """
        Read a sales file as text columns named after the fact table.

        Raises:
            IngestionError: file missing or wrong number of columns
        """
        file_path = Path(config.file_path)
        if not file_path.exists():
            raise IngestionError(f"File not found: {file_path}")

        df = pl.read_csv(
            file_path,
            has_header=True,
            separator=config.delimiter,
            encoding=config.encoding,
            infer_schema_length=0,
        )
        if df.width != len(SALES_COLUMNS):
            raise IngestionError(
                f"Expected {len(SALES_COLUMNS)} columns in {file_path.name}, found {df.width}"
            )
        df.columns = SALES_COLUMNS
        return df

    def cast(self, df: pl.DataFrame) -> pl.DataFrame:
        """Trim text and cast to fact table types; unparseable values become null"""
        return df.with_columns(
            [pl.col(c).str.strip_chars() for c in SALES_COLUMNS]
        ).with_columns([
            pl.col("transaction_id").cast(pl.Int64, strict=False),
            pl.col("txn_date").str.strptime(pl.Date, "%Y-%m-%d", strict=False),
            pl.col("age").cast(pl.Int64, strict=False),
            pl.col("quantity").cast(pl.Int64, strict=False),
            pl.col("price_per_unit").cast(pl.Float64, strict=False),
            pl.col("total_amount").cast(pl.Float64, strict=False),
        ])

    def to_records(self, df: pl.DataFrame) -> List[Dict[str, Any]]:
        """Rows as insert parameter dicts with Decimal money columns"""
        records = df.select(SALES_COLUMNS).to_dicts()
        for record in records:
            for column in ("price_per_unit", "total_amount"):
                record[column] = Decimal(str(record[column])).quantize(CENT)
        return records

    def _write_to_dead_letter(self, df: pl.DataFrame, config: BatchFileConfig) -> Path:
        """Write rejected rows to a Parquet file for inspection"""
        self.dead_letter_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        file_name = Path(config.file_path).stem
        dead_letter_file = self.dead_letter_path / f"{file_name}_{timestamp}.parquet"

        df.with_columns(pl.lit(datetime.now(timezone.utc)).alias("_failed_at")).write_parquet(dead_letter_file)
        logger.warning(
            "Written rejected rows to dead letter file",
            file=str(dead_letter_file),
            records=df.height,
            reasons=df[REJECT_REASON_COLUMN].unique().to_list(),
        )
        return dead_letter_file

    def _insert_statement(self, session: AsyncSession):
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(Sale).on_conflict_do_nothing(index_elements=[Sale.transaction_id])
        if dialect == "sqlite":
            return sqlite_insert(Sale).on_conflict_do_nothing(index_elements=[Sale.transaction_id])
        return generic_insert(Sale)

    async def _existing_ids(self, session: AsyncSession, ids: List[int]) -> set:
        result = await session.execute(
            select(Sale.transaction_id).where(Sale.transaction_id.in_(ids))
        )
        return set(result.scalars().all())

    async def insert_records(
        self,
        session: AsyncSession,
        records: List[Dict[str, Any]],
        chunk_size: int = 1000,
    ) -> int:
        """
        Append records to the fact table in chunks.

        Transactions whose identifier is already stored are skipped.

        Returns:
            Number of rows inserted
        """
        inserted = 0
        for i in range(0, len(records), chunk_size):
            chunk = records[i:i + chunk_size]
            existing = await self._existing_ids(session, [r["transaction_id"] for r in chunk])
            new_rows = [r for r in chunk if r["transaction_id"] not in existing]
            if new_rows:
                await session.execute(self._insert_statement(session), new_rows)
                inserted += len(new_rows)
        await session.flush()
        return inserted

    async def load(self, config: BatchFileConfig, session: AsyncSession) -> LoadResult:
        """
        Load a sales file into the fact table.

        File problems (missing file, wrong layout) give a FAILED result;
        database errors propagate to the caller.

        Args:
            config: Batch file configuration
            session: Database session used for the inserts

        Returns:
            LoadResult: Result of the load operation
        """
        file_path = Path(config.file_path)
        started_at = datetime.now(timezone.utc)

        result = LoadResult(
            file_path=str(file_path),
            status=LoadStatus.RUNNING,
            started_at=started_at,
        )

        logger.info("Starting batch load", file=str(file_path), target_table=result.target_table)

        try:
            result.file_hash = self._compute_file_hash(file_path) if file_path.exists() else None
            raw = self.read(config)
        except (IngestionError, pl.exceptions.PolarsError, OSError) as e:
            result.status = LoadStatus.FAILED
            result.error_message = str(e)
            result.completed_at = datetime.now(timezone.utc)
            result.load_duration_seconds = (result.completed_at - started_at).total_seconds()
            logger.error("Batch load failed", error=str(e), file=str(file_path))
            return result

        result.rows_read = raw.height
        typed = self.cast(raw)

        validation = self.validator.validate(typed)
        result.warning_count = validation.warning_count
        valid, rejected = self.validator.split(typed)

        if rejected.height:
            result.rows_rejected = rejected.height
            result.dead_letter_file = str(self._write_to_dead_letter(rejected, config))

        inserted = await self.insert_records(session, self.to_records(valid), config.chunk_size)
        result.rows_loaded = inserted
        result.rows_skipped = valid.height - inserted

        result.status = LoadStatus.PARTIAL if result.rows_rejected else LoadStatus.COMPLETED
        result.completed_at = datetime.now(timezone.utc)
        result.load_duration_seconds = (result.completed_at - started_at).total_seconds()

        logger.info(
            "Batch load completed",
            status=result.status.value,
            rows_read=result.rows_read,
            rows_loaded=result.rows_loaded,
            rows_rejected=result.rows_rejected,
            rows_skipped=result.rows_skipped,
            duration_seconds=result.load_duration_seconds,
        )
        return result


def create_batch_loader() -> SalesBatchLoader:
    """Create a loader configured from settings"""
    return SalesBatchLoader(dead_letter_path=settings.ingestion.dead_letter_path)
