"""
CSV codec for bulk drug, transfer and sale data.

Conversion never raises on bad input: each problem becomes a human-readable
string ("Row 3: Missing required fields") and the good rows still come back.
Row numbers are 1-based file lines, so the first data row is row 2.
"""
import csv
import io
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from dateutil import parser as date_parser

from pharmatrack.core.config import settings
from pharmatrack.domain.drugs.records import DrugCreate, DrugRecord, SaleRequest, TransferRequest
from pharmatrack.domain.tracking.codec import to_iso_millis
from pharmatrack.services.identifiers import generate_batch_number

Grid = List[List[str]]

DRUG_REQUIRED_HEADERS = ("drugname", "manufacturer", "composition", "productiondate")
TRANSFER_REQUIRED_HEADERS = ("batchnumber", "fromentity", "toentity", "transferdate", "location")
SALE_REQUIRED_HEADERS = ("batchnumber", "pharmacy", "saledate", "price", "location")

DRUG_TEMPLATE = [
    ["batchNumber", "drugName", "manufacturer", "composition", "productionDate", "currentStatus"],
    ["BATCH-CSV001", "Aspirin 100mg", "PharmaCorp Ltd.", "Acetylsalicylic acid, Microcrystalline cellulose", "2024-01-15", "manufactured"],
    ["BATCH-CSV002", "Ibuprofen 200mg", "MediTech Industries", "Ibuprofen, Lactose monohydrate", "2024-01-20", "manufactured"],
]
TRANSFER_TEMPLATE = [
    ["batchNumber", "fromEntity", "toEntity", "transferDate", "location"],
    ["BATCH-CSV001", "PharmaCorp Ltd.", "MedDistribution Co.", "2024-01-20", "Distribution Center A"],
    ["BATCH-CSV002", "MediTech Industries", "Regional Distributors", "2024-01-22", "Warehouse B"],
]
SALE_TEMPLATE = [
    ["batchNumber", "pharmacy", "saleDate", "price", "location"],
    ["BATCH-CSV001", "City Pharmacy", "2024-01-25", "12.99", "Downtown Store"],
    ["BATCH-CSV002", "Health Plus Pharmacy", "2024-01-27", "8.49", "Mall Location"],
]

EXPORT_HEADERS = [
    "batchNumber", "drugName", "manufacturer", "composition", "productionDate",
    "expiryDate", "price", "discountedPrice", "currentStatus", "isExpired", "isBlacklisted",
]

_PRICE_NOISE = re.compile(r"[$,]")
_PRICE_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_csv(content: str) -> Grid:
    """Split text into trimmed cells; fully blank lines are dropped"""
    reader = csv.reader(io.StringIO(content.strip()), skipinitialspace=True)
    return [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]


def parse_date(value: str) -> Optional[datetime]:
    """Lenient date parsing; values without a zone are taken as UTC"""
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_price(value: str) -> Optional[float]:
    """Leading decimal number after dropping currency noise; trailing text is ignored"""
    match = _PRICE_NUMBER.match(_PRICE_NOISE.sub("", value))
    if match is None:
        return None
    price = float(match.group())
    if not math.isfinite(price) or price < 0:
        return None
    return price


def _headers(grid: Grid) -> List[str]:
    return [h.lower().strip() for h in grid[0]]


def _missing(headers: Sequence[str], required: Iterable[str]) -> List[str]:
    return [h for h in required if h not in headers]


def _rows(grid: Grid, headers: List[str]) -> Iterable[Tuple[int, Dict[str, str]]]:
    for index, row in enumerate(grid[1:]):
        data = {header: (row[i].strip() if i < len(row) else "") for i, header in enumerate(headers)}
        yield index + 2, data


def csv_to_drugs(grid: Grid) -> Tuple[List[DrugCreate], List[str]]:
    drugs: List[DrugCreate] = []
    errors: List[str] = []

    if len(grid) < 2:
        errors.append("CSV file must contain headers and at least one data row")
        return drugs, errors

    headers = _headers(grid)
    missing = _missing(headers, DRUG_REQUIRED_HEADERS)
    if missing:
        errors.append(f"Missing required headers: {', '.join(missing)}")
        return drugs, errors

    shelf_life = timedelta(days=settings.DEFAULT_SHELF_LIFE_DAYS)
    for line, row in _rows(grid, headers):
        if not row["drugname"] or not row["manufacturer"] or not row["productiondate"]:
            errors.append(f"Row {line}: Missing required fields")
            continue

        production_date = parse_date(row["productiondate"])
        if production_date is None:
            errors.append(f"Row {line}: Invalid production date format")
            continue

        expiry_date = production_date + shelf_life
        if row.get("expirydate"):
            expiry_date = parse_date(row["expirydate"])
            if expiry_date is None:
                errors.append(f"Row {line}: Invalid expiry date format")
                continue

        price = 0.0
        if row.get("price"):
            price = parse_price(row["price"])
            if price is None:
                errors.append(f"Row {line}: Invalid price format")
                continue

        drugs.append(DrugCreate(
            batch_number=row.get("batchnumber") or generate_batch_number(),
            drug_name=row["drugname"],
            manufacturer=row["manufacturer"],
            composition=row["composition"] or "Not specified",
            production_date=production_date,
            expiry_date=expiry_date,
            price=price,
            location=row.get("location") or "Manufacturing Facility",
        ))

    return drugs, errors


def csv_to_transfers(grid: Grid) -> Tuple[List[TransferRequest], List[str]]:
    transfers: List[TransferRequest] = []
    errors: List[str] = []

    if len(grid) < 2:
        return transfers, errors

    headers = _headers(grid)
    missing = _missing(headers, TRANSFER_REQUIRED_HEADERS)
    if missing:
        errors.append(f"Transfer data missing headers: {', '.join(missing)}")
        return transfers, errors

    for line, row in _rows(grid, headers):
        if not row["batchnumber"] or not row["fromentity"] or not row["toentity"] or not row["transferdate"]:
            errors.append(f"Transfer row {line}: Missing required fields")
            continue

        transfer_date = parse_date(row["transferdate"])
        if transfer_date is None:
            errors.append(f"Transfer row {line}: Invalid transfer date format")
            continue

        transfers.append(TransferRequest(
            batch_number=row["batchnumber"],
            from_entity=row["fromentity"],
            to_entity=row["toentity"],
            transfer_date=transfer_date,
            location=row["location"] or "Unknown Location",
        ))

    return transfers, errors


def csv_to_sales(grid: Grid) -> Tuple[List[SaleRequest], List[str]]:
    sales: List[SaleRequest] = []
    errors: List[str] = []

    if len(grid) < 2:
        return sales, errors

    headers = _headers(grid)
    missing = _missing(headers, SALE_REQUIRED_HEADERS)
    if missing:
        errors.append(f"Sale data missing headers: {', '.join(missing)}")
        return sales, errors

    for line, row in _rows(grid, headers):
        if not row["batchnumber"] or not row["pharmacy"] or not row["saledate"] or not row["price"]:
            errors.append(f"Sale row {line}: Missing required fields")
            continue

        sale_date = parse_date(row["saledate"])
        if sale_date is None:
            errors.append(f"Sale row {line}: Invalid sale date format")
            continue

        price = parse_price(row["price"])
        if price is None:
            errors.append(f"Sale row {line}: Invalid price format")
            continue

        sales.append(SaleRequest(
            batch_number=row["batchnumber"],
            pharmacy=row["pharmacy"],
            sale_date=sale_date,
            price=price,
            location=row["location"] or "Unknown Location",
        ))

    return sales, errors


def _quoted(grid: Grid) -> str:
    return "\n".join(",".join(f'"{cell}"' for cell in row) for row in grid)


def drug_csv_template() -> str:
    return _quoted(DRUG_TEMPLATE)


def transfer_csv_template() -> str:
    return _quoted(TRANSFER_TEMPLATE)


def sale_csv_template() -> str:
    return _quoted(SALE_TEMPLATE)


TEMPLATES = {
    "drugs": ("drug_template.csv", drug_csv_template),
    "transfers": ("transfer_template.csv", transfer_csv_template),
    "sales": ("sale_template.csv", sale_csv_template),
}


def export_drugs_csv(records: Iterable[DrugRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for record in records:
        writer.writerow([
            record.batch_number,
            record.drug_name,
            record.manufacturer,
            record.composition,
            to_iso_millis(record.production_date),
            to_iso_millis(record.expiry_date),
            record.price,
            "" if record.discounted_price is None else record.discounted_price,
            record.current_status.value,
            str(record.is_expired).lower(),
            str(record.is_blacklisted).lower(),
        ])
    return buffer.getvalue()
