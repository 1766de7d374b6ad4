import threading

import pytest
from datetime import timedelta

from pharmatrack.core.exceptions import ConflictError, DrugNotFoundError
from pharmatrack.domain.drugs.models import DrugStatus
from pharmatrack.domain.drugs.records import (
    DrugCreate, ManufacturedEvent, SaleRequest, SoldEvent, TransferRequest, TransferredEvent
)
from pharmatrack.domain.drugs.repository import DrugRepository
from pharmatrack.domain.drugs.seed import DEMO_CATALOGUE, build_demo_drugs
from pharmatrack.domain.drugs.store import DrugStore
from pharmatrack.domain.tracking.codec import parse_qr_data

from tests.conftest import FIXED_NOW


def _transfer(batch_number="BATCH-TEST01", days=1):
    return TransferRequest(
        batch_number=batch_number,
        from_entity="MFG",
        to_entity="DIST",
        transfer_date=FIXED_NOW + timedelta(days=days),
        location="Warehouse A",
    )


def _sale(batch_number="BATCH-TEST01", days=2, price=90):
    return SaleRequest(
        batch_number=batch_number,
        pharmacy="City Pharmacy",
        sale_date=FIXED_NOW + timedelta(days=days),
        price=price,
        location="Mumbai",
    )


@pytest.mark.unit
class TestDrugLifecycle:
    """Create, transfer and sell through the store."""

    def test_create_drug(self, store, sample_drug) -> None:
        record = store.create_drug(sample_drug)

        assert record.batch_number == "BATCH-TEST01"
        assert record.current_status == DrugStatus.MANUFACTURED
        assert record.is_expired is False
        assert len(record.history) == 1
        assert isinstance(record.history[0], ManufacturedEvent)
        assert record.history[0].entity == "Test Pharma Ltd."
        assert record.history[0].location == "Manufacturing Facility"

    def test_create_generates_batch_number(self, store, sample_drug) -> None:
        drug = sample_drug.model_copy(update={"batch_number": None})
        record = store.create_drug(drug)

        assert record.batch_number.startswith("BATCH-")
        assert len(record.batch_number) == len("BATCH-") + 8
        assert store.exists(record.batch_number)

    def test_create_already_expired(self, store, sample_drug) -> None:
        drug = sample_drug.model_copy(update={
            "batch_number": "BATCH-OLD",
            "expiry_date": FIXED_NOW - timedelta(days=1),
        })
        record = store.create_drug(drug)

        assert record.is_expired is True
        assert record.is_blacklisted is True
        assert record.current_status == DrugStatus.EXPIRED

    def test_full_lifecycle(self, store, sample_drug) -> None:
        store.create_drug(sample_drug)

        transferred = store.transfer_drug(_transfer())
        assert transferred.current_status == DrugStatus.DISTRIBUTED
        assert len(transferred.history) == 2

        sold = store.sell_drug(_sale())
        assert sold.current_status == DrugStatus.SOLD
        assert [e.type for e in sold.history] == ["manufactured", "transferred", "sold"]
        assert isinstance(sold.history[-1], SoldEvent)
        assert sold.history[-1].price == 90
        assert sold.history[-1].entity == "City Pharmacy"

    def test_mutation_does_not_touch_returned_copy(self, store, sample_drug) -> None:
        created = store.create_drug(sample_drug)
        store.transfer_drug(_transfer())

        assert len(created.history) == 1
        assert len(store.get_drug_history("BATCH-TEST01").history) == 2

    def test_transfer_unknown_batch(self, store) -> None:
        with pytest.raises(DrugNotFoundError) as exc_info:
            store.transfer_drug(_transfer("BATCH-MISSING"))
        assert exc_info.value.message == "Drug not found"
        assert exc_info.value.status_code == 404

    def test_sell_unknown_batch(self, store) -> None:
        with pytest.raises(DrugNotFoundError):
            store.sell_drug(_sale("BATCH-MISSING"))

    def test_sale_without_transfer_is_allowed(self, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        record = store.sell_drug(_sale())

        assert record.current_status == DrugStatus.SOLD
        assert len(record.history) == 2

    def test_create_overwrites_existing_batch(self, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        store.transfer_drug(_transfer())
        record = store.create_drug(sample_drug.model_copy(update={"drug_name": "Renamed"}))

        assert record.drug_name == "Renamed"
        assert len(record.history) == 1
        assert len(store.get_all_drugs()) == 1


@pytest.mark.unit
class TestPersistence:
    """Write-through to the database and reload."""

    def test_reload_from_database(self, session_factory, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        store.transfer_drug(_transfer())
        store.sell_drug(_sale())

        reloaded = DrugStore(DrugRepository(session_factory), clock=lambda: FIXED_NOW)
        reloaded.init()
        record = reloaded.get_drug_history("BATCH-TEST01")

        assert record is not None
        assert record.current_status == DrugStatus.SOLD
        assert [e.type for e in record.history] == ["manufactured", "transferred", "sold"]
        assert isinstance(record.history[1], TransferredEvent)
        assert record.history[1].to_entity == "DIST"
        assert record.expiry_date == sample_drug.expiry_date

    def test_seed_only_applies_to_empty_store(self, session_factory, store, sample_drug) -> None:
        store.create_drug(sample_drug)

        reloaded = DrugStore(DrugRepository(session_factory), clock=lambda: FIXED_NOW)
        reloaded.init(seed=build_demo_drugs(FIXED_NOW))

        assert [r.batch_number for r in reloaded.get_all_drugs()] == ["BATCH-TEST01"]

    def test_seed_populates_empty_store(self, store) -> None:
        store.close()
        store.init(seed=build_demo_drugs(FIXED_NOW))

        stats = store.get_statistics()
        assert stats.total == len(DEMO_CATALOGUE)
        assert stats.sold > 0
        assert stats.distributed > 0
        assert stats.manufactured > 0
        assert stats.expired == 0

    def test_reset_clears_database(self, session_factory, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        store.reset()

        reloaded = DrugStore(DrugRepository(session_factory))
        reloaded.init()
        assert reloaded.get_all_drugs() == []
        assert store.get_all_drugs() == []


@pytest.mark.unit
class TestExpiryAndPricing:

    def test_expiry_sweep_flags_expired(self, store, sample_drug) -> None:
        store.create_drug(sample_drug.model_copy(update={"expiry_date": FIXED_NOW + timedelta(days=5)}))

        assert store.update_expiry_status(FIXED_NOW) == []
        flipped = store.update_expiry_status(FIXED_NOW + timedelta(days=6))

        record = store.get_drug_history("BATCH-TEST01")
        assert flipped == ["BATCH-TEST01"]
        assert record.is_expired is True
        assert record.is_blacklisted is True
        assert record.current_status == DrugStatus.EXPIRED
        assert record.discounted_price == 0

    def test_expiry_sweep_sets_discount(self, store, sample_drug) -> None:
        store.create_drug(sample_drug.model_copy(update={"expiry_date": FIXED_NOW + timedelta(days=45)}))
        store.update_expiry_status(FIXED_NOW)

        assert store.get_drug_history("BATCH-TEST01").discounted_price == 70

    def test_expired_batches_are_left_alone(self, store, sample_drug) -> None:
        store.create_drug(sample_drug.model_copy(update={"expiry_date": FIXED_NOW - timedelta(days=1)}))

        assert store.update_expiry_status(FIXED_NOW) == []

    def test_calculate_discounted_price(self, store, sample_drug) -> None:
        record = store.create_drug(sample_drug.model_copy(update={"expiry_date": FIXED_NOW + timedelta(days=20)}))

        assert store.calculate_discounted_price(record) == 50
        assert store.calculate_discounted_price(record, FIXED_NOW - timedelta(days=100)) == 100


@pytest.mark.unit
class TestTrackingCodes:

    def test_issue_tracking_code(self, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        record = store.issue_tracking_code("BATCH-TEST01")

        assert record.qr_code_generated is True
        payload = parse_qr_data(record.qr_code_data)
        assert payload is not None
        assert payload.batch_number == "BATCH-TEST01"
        assert payload.timestamp == int(FIXED_NOW.timestamp() * 1000)

    def test_issue_twice_is_conflict(self, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        store.issue_tracking_code("BATCH-TEST01")

        with pytest.raises(ConflictError) as exc_info:
            store.issue_tracking_code("BATCH-TEST01")
        assert exc_info.value.error_code == "QR_ALREADY_ISSUED"

    def test_get_drug_by_qr(self, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        record = store.issue_tracking_code("BATCH-TEST01")

        assert store.get_drug_by_qr(record.qr_code_data).batch_number == "BATCH-TEST01"
        assert store.get_drug_by_qr("not json") is None
        assert store.get_drug_by_qr(record.qr_code_data.replace("Test Pharma", "Fake Pharma")) is None


@pytest.mark.unit
class TestQueries:

    @pytest.fixture(autouse=True)
    def _populate(self, store, sample_drug) -> None:
        store.create_drug(sample_drug)
        store.create_drug(DrugCreate(
            batch_number="BATCH-TEST02",
            drug_name="Ibuprofen 400mg",
            manufacturer="Sun Pharmaceutical Industries Ltd.",
            production_date=FIXED_NOW - timedelta(days=5),
            expiry_date=FIXED_NOW + timedelta(days=700),
            price=30,
        ))
        store.transfer_drug(_transfer("BATCH-TEST02", days=1))
        store.transfer_drug(_transfer("BATCH-TEST01", days=2))
        store.sell_drug(_sale("BATCH-TEST01", days=3))

    def test_search_by_name(self, store) -> None:
        results = store.search_drugs("ibuprofen")
        assert [r.batch_number for r in results] == ["BATCH-TEST02"]

    def test_search_by_status_and_manufacturer(self, store) -> None:
        assert [r.batch_number for r in store.search_drugs(status=DrugStatus.SOLD)] == ["BATCH-TEST01"]
        assert [r.batch_number for r in store.search_drugs(manufacturer="sun pharma")] == ["BATCH-TEST02"]
        assert len(store.search_drugs()) == 2

    def test_statistics(self, store) -> None:
        stats = store.get_statistics()

        assert stats.total == 2
        assert stats.sold == 1
        assert stats.distributed == 1
        assert stats.manufactured == 0
        assert stats.qr_issued == 0

    def test_recent_transfers_newest_first(self, store) -> None:
        transfers = store.recent_transfers()

        assert [t.batch_number for t in transfers] == ["BATCH-TEST01", "BATCH-TEST02"]
        assert store.recent_transfers(limit=1)[0].batch_number == "BATCH-TEST01"

    def test_recent_sales(self, store) -> None:
        sales = store.recent_sales()

        assert len(sales) == 1
        assert sales[0].pharmacy == "City Pharmacy"
        assert sales[0].price == 90


@pytest.mark.unit
class TestConcurrentAccess:
    """Reads run alongside writes from the request thread pool."""

    def test_reads_while_writing(self, store, sample_drug) -> None:
        errors = []
        done = threading.Event()

        def writer() -> None:
            try:
                for i in range(150):
                    batch_number = f"BATCH-T{i:04d}"
                    store.create_drug(sample_drug.model_copy(update={"batch_number": batch_number}))
                    store.transfer_drug(_transfer(batch_number))
            except Exception as exc:
                errors.append(exc)
            finally:
                done.set()

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            while not done.is_set():
                store.search_drugs(query="zz")
                store.get_statistics()
                store.recent_transfers()
                store.get_all_drugs()
        except Exception as exc:
            errors.append(exc)
        finally:
            thread.join()

        assert errors == []
        stats = store.get_statistics()
        assert stats.total == 150
        assert stats.distributed == 150
        assert len(store.recent_transfers(limit=200)) == 150
