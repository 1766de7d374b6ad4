"""
Demo batches loaded into an empty store.

Thirty batches of common Indian-market medicines, walked through six supply
chain scenarios (by index % 6) so the dashboards have something to show.
Dates are anchored to the seeding time so that nothing is already expired.
"""
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Union

from pharmatrack.core.config import settings
from pharmatrack.domain.drugs.records import DrugCreate, SaleRequest, TransferRequest

SeedOperation = Union[DrugCreate, TransferRequest, SaleRequest]

CIPLA = "Cipla Ltd."
SUN = "Sun Pharmaceutical Industries Ltd."
REDDY = "Dr. Reddy's Laboratories Ltd."
LUPIN = "Lupin Ltd."
GLENMARK = "Glenmark Pharmaceuticals Ltd."
BIOCON = "Biocon Ltd."

# batch suffix, name, manufacturer, composition, production date in the
# original catalogue, list price
DEMO_CATALOGUE = [
    ("001", "Paracetamol 500mg", CIPLA, "Paracetamol, Starch, Magnesium stearate", date(2024, 1, 15), 25),
    ("002", "Ibuprofen 400mg", SUN, "Ibuprofen, Lactose monohydrate, Croscarmellose sodium", date(2024, 1, 20), 30),
    ("003", "Diclofenac 50mg", REDDY, "Diclofenac sodium, Lactose, Magnesium stearate", date(2024, 1, 25), 35),
    ("004", "Naproxen 250mg", LUPIN, "Naproxen sodium, Povidone, Croscarmellose sodium", date(2024, 1, 28), 40),
    ("005", "Aspirin 100mg", CIPLA, "Acetylsalicylic acid, Microcrystalline cellulose", date(2024, 2, 1), 15),
    ("006", "Celecoxib 200mg", GLENMARK, "Celecoxib, Lactose monohydrate, Sodium lauryl sulfate", date(2024, 2, 3), 120),
    ("007", "Tramadol 50mg", SUN, "Tramadol HCl, Microcrystalline cellulose, Lactose", date(2024, 2, 5), 85),
    ("008", "Codeine 30mg", REDDY, "Codeine phosphate, Lactose, Starch, Magnesium stearate", date(2024, 2, 8), 95),
    ("009", "Morphine 10mg", LUPIN, "Morphine sulfate, Lactose monohydrate, Talc", date(2024, 2, 10), 150),
    ("010", "Fentanyl 25mcg", GLENMARK, "Fentanyl citrate, Lactose, Microcrystalline cellulose", date(2024, 2, 12), 200),
    ("011", "Amoxicillin 500mg", CIPLA, "Amoxicillin trihydrate, Magnesium stearate, Talc", date(2024, 2, 15), 45),
    ("012", "Azithromycin 250mg", SUN, "Azithromycin dihydrate, Lactose, Croscarmellose sodium", date(2024, 2, 18), 75),
    ("013", "Ciprofloxacin 500mg", REDDY, "Ciprofloxacin HCl, Microcrystalline cellulose, Povidone", date(2024, 2, 20), 60),
    ("014", "Doxycycline 100mg", LUPIN, "Doxycycline hyclate, Lactose monohydrate, Sodium starch glycolate", date(2024, 2, 22), 55),
    ("015", "Cephalexin 250mg", GLENMARK, "Cephalexin monohydrate, Magnesium stearate, Silica", date(2024, 2, 25), 50),
    ("016", "Metronidazole 400mg", CIPLA, "Metronidazole, Microcrystalline cellulose, Povidone", date(2024, 2, 28), 35),
    ("017", "Clindamycin 300mg", SUN, "Clindamycin HCl, Lactose, Corn starch", date(2024, 3, 1), 80),
    ("018", "Vancomycin 500mg", REDDY, "Vancomycin HCl, Mannitol, Phosphoric acid", date(2024, 3, 3), 250),
    ("019", "Penicillin V 500mg", LUPIN, "Penicillin V potassium, Lactose, Magnesium stearate", date(2024, 3, 5), 40),
    ("020", "Erythromycin 250mg", GLENMARK, "Erythromycin stearate, Cellulose, Povidone", date(2024, 3, 8), 65),
    ("021", "Metformin 500mg", CIPLA, "Metformin HCl, Povidone, Magnesium stearate", date(2024, 3, 10), 20),
    ("022", "Insulin Glargine 100U/ml", BIOCON, "Insulin glargine, Zinc chloride, Metacresol", date(2024, 3, 12), 450),
    ("023", "Lisinopril 10mg", SUN, "Lisinopril, Mannitol, Starch", date(2024, 3, 15), 25),
    ("024", "Amlodipine 5mg", REDDY, "Amlodipine besylate, Microcrystalline cellulose, Sodium starch glycolate", date(2024, 3, 18), 30),
    ("025", "Atorvastatin 20mg", LUPIN, "Atorvastatin calcium, Lactose monohydrate, Croscarmellose sodium", date(2024, 3, 20), 35),
    ("026", "Levothyroxine 50mcg", GLENMARK, "Levothyroxine sodium, Lactose monohydrate, Microcrystalline cellulose", date(2024, 3, 22), 40),
    ("027", "Warfarin 5mg", CIPLA, "Warfarin sodium, Lactose, Starch, Magnesium stearate", date(2024, 3, 25), 15),
    ("028", "Sertraline 50mg", SUN, "Sertraline HCl, Microcrystalline cellulose, Sodium starch glycolate", date(2024, 3, 28), 55),
    ("029", "Alprazolam 0.5mg", REDDY, "Alprazolam, Lactose monohydrate, Microcrystalline cellulose", date(2024, 3, 30), 70),
    ("030", "Omeprazole 20mg", LUPIN, "Omeprazole, Lactose, Hydroxypropyl methylcellulose", date(2024, 4, 1), 45),
]

CATALOGUE_START = date(2024, 1, 15)
SEED_WINDOW_DAYS = 180


def _scenario(index: int, batch_number: str, manufacturer: str, produced: datetime, price: float) -> List[SeedOperation]:
    def days(n: int) -> datetime:
        return produced + timedelta(days=n)

    def transfer(from_entity: str, to_entity: str, offset: int, location: str) -> TransferRequest:
        return TransferRequest(
            batch_number=batch_number, from_entity=from_entity, to_entity=to_entity,
            transfer_date=days(offset), location=location,
        )

    def sale(pharmacy: str, offset: int, location: str) -> SaleRequest:
        return SaleRequest(
            batch_number=batch_number, pharmacy=pharmacy, sale_date=days(offset),
            price=price, location=location,
        )

    scenario = index % 6
    if scenario == 0 and index < 10:
        return [
            transfer(manufacturer, "MedPlus Distribution Ltd.", 5, "Mumbai Distribution Center"),
            sale("Apollo Pharmacy", 10, "Mumbai Central Branch"),
        ]
    if scenario == 1 and index < 15:
        return [
            transfer(manufacturer, "Alliance Healthcare India", 3, "Delhi Regional Warehouse"),
            sale("MedPlus Pharmacy", 8, "Delhi Central Mall"),
        ]
    if scenario == 2 and index < 20:
        return [
            transfer(manufacturer, "McKesson India", 2, "Bangalore Central Warehouse"),
            sale("PharmEasy", 7, "Bangalore Tech Park"),
        ]
    if scenario == 3 and index < 25:
        return [
            transfer(manufacturer, "MedPlus Distribution Ltd.", 2, "Chennai Regional Hub"),
            transfer("MedPlus Distribution Ltd.", "Alliance Healthcare India", 5, "Chennai Central Hub"),
            sale("Apollo Pharmacy", 9, "Chennai Central Branch"),
        ]
    if scenario == 4 and index < 28:
        return [transfer(manufacturer, "McKesson India", 3, "Hyderabad Regional Warehouse")]
    return []


def build_demo_drugs(now: Optional[datetime] = None) -> List[SeedOperation]:
    """Create, transfer and sale operations in the order they must be applied"""
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=SEED_WINDOW_DAYS)
    operations: List[SeedOperation] = []

    for index, (suffix, name, manufacturer, composition, produced_on, price) in enumerate(DEMO_CATALOGUE):
        produced = window_start + timedelta(days=(produced_on - CATALOGUE_START).days)
        batch_number = f"BATCH-MED{suffix}"
        operations.append(DrugCreate(
            batch_number=batch_number,
            drug_name=name,
            manufacturer=manufacturer,
            composition=composition,
            production_date=produced,
            expiry_date=produced + timedelta(days=settings.DEFAULT_SHELF_LIFE_DAYS),
            price=price,
        ))
        operations.extend(_scenario(index, batch_number, manufacturer, produced, price))

    return operations
