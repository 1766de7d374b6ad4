"""
Bulk Import Service Layer

Applies parsed CSV data to the drug store one item at a time. A bad item
never stops the batch; its failure is reported next to the others.
"""

from typing import List

from loguru import logger
from pydantic import BaseModel, Field

from pharmatrack.core.exceptions import BaseCustomException, ValidationError
from pharmatrack.domain.drugs.records import DrugCreate, SaleRequest, TransferRequest
from pharmatrack.domain.drugs.store import DrugStore
from pharmatrack.domain.imports.csv_codec import (
    csv_to_drugs, csv_to_sales, csv_to_transfers, parse_csv
)

IMPORT_KINDS = ("drugs", "transfers", "sales")


class DrugImportResult(BaseModel):
    success: bool
    imported: int
    errors: List[str] = Field(default_factory=list)


class BulkOperationResult(BaseModel):
    success: bool
    processed: int
    errors: List[str] = Field(default_factory=list)


class CSVImportResult(BaseModel):
    success: bool
    drugs_imported: int = 0
    transfers_imported: int = 0
    sales_imported: int = 0
    errors: List[str] = Field(default_factory=list)


class ImportService:
    """Service layer for bulk drug data"""

    def __init__(self, store: DrugStore):
        self.store = store

    def import_drugs(self, drugs: List[DrugCreate]) -> DrugImportResult:
        errors: List[str] = []
        imported = 0

        for drug in drugs:
            if drug.batch_number and self.store.exists(drug.batch_number):
                errors.append(f"Batch {drug.batch_number} already exists")
                continue
            try:
                self.store.create_drug(drug)
                imported += 1
            except BaseCustomException as e:
                errors.append(f"Failed to import {drug.batch_number}: {e.message}")

        logger.info(f"Imported {imported} of {len(drugs)} drug batches")
        return DrugImportResult(success=imported > 0, imported=imported, errors=errors)

    def bulk_transfer(self, transfers: List[TransferRequest]) -> BulkOperationResult:
        errors: List[str] = []
        processed = 0

        for transfer in transfers:
            try:
                self.store.transfer_drug(transfer)
                processed += 1
            except BaseCustomException as e:
                errors.append(f"Failed to transfer {transfer.batch_number}: {e.message}")

        logger.info(f"Processed {processed} of {len(transfers)} transfers")
        return BulkOperationResult(success=processed > 0, processed=processed, errors=errors)

    def bulk_sale(self, sales: List[SaleRequest]) -> BulkOperationResult:
        errors: List[str] = []
        processed = 0

        for sale in sales:
            try:
                self.store.sell_drug(sale)
                processed += 1
            except BaseCustomException as e:
                errors.append(f"Failed to sell {sale.batch_number}: {e.message}")

        logger.info(f"Processed {processed} of {len(sales)} sales")
        return BulkOperationResult(success=processed > 0, processed=processed, errors=errors)

    def import_csv(self, kind: str, content: str) -> CSVImportResult:
        """Parse, convert and apply one CSV file of the given kind"""
        if kind not in IMPORT_KINDS:
            raise ValidationError(
                message=f"Unknown import type: {kind}",
                details={"allowed": list(IMPORT_KINDS)},
            )

        grid = parse_csv(content)
        result = CSVImportResult(success=False)

        if kind == "drugs":
            drugs, errors = csv_to_drugs(grid)
            result.errors.extend(errors)
            if drugs:
                applied = self.import_drugs(drugs)
                result.drugs_imported = applied.imported
                result.errors.extend(applied.errors)
        elif kind == "transfers":
            transfers, errors = csv_to_transfers(grid)
            result.errors.extend(errors)
            if transfers:
                applied = self.bulk_transfer(transfers)
                result.transfers_imported = applied.processed
                result.errors.extend(applied.errors)
        else:
            sales, errors = csv_to_sales(grid)
            result.errors.extend(errors)
            if sales:
                applied = self.bulk_sale(sales)
                result.sales_imported = applied.processed
                result.errors.extend(applied.errors)

        total = result.drugs_imported + result.transfers_imported + result.sales_imported
        result.success = total > 0
        if result.errors:
            logger.warning(f"CSV {kind} import finished with {len(result.errors)} errors")
        return result
