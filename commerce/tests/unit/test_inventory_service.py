import gc
import threading
from datetime import datetime
from unittest.mock import patch

import pytest
from django.test import override_settings
from django.utils import timezone

from commerce.domain.models import Inventory, Product, ProductVariant, StockStatus
from commerce.domain.money import Money
from commerce.services.base import ErrorCodes
from commerce.services.inventory_service import InventoryService


@pytest.mark.unit
class TestInventoryServiceUnit:
    def setup_method(self):
        self.service = InventoryService(max_order_quantity=10)
        self.mug = Product("Campus Mug", Money(1200), inventory=Inventory(quantity=5, low_stock_threshold=5))

    def test_commit_until_sold_out(self):
        assert self.service.stock_status(self.mug).value == StockStatus.LOW_STOCK

        result = self.service.commit(self.mug, None, 5, reference_id="order-1")
        assert result.ok
        assert result.value["old_stock"] == 5
        assert result.value["new_stock"] == 0
        assert self.mug.inventory.quantity == 0
        assert self.service.stock_status(self.mug).value == StockStatus.OUT_OF_STOCK

        result = self.service.commit(self.mug, None, 1, reference_id="order-2")
        assert not result.ok
        assert result.error == ErrorCodes.INSUFFICIENT_STOCK
        assert self.mug.inventory.quantity == 0

    def test_commit_failure_increments_metric(self):
        with patch("commerce.services.inventory_service.stock_commit_failures") as mock_counter:
            self.service.commit(self.mug, None, 6)

        mock_counter.inc.assert_called_once()
        assert self.mug.inventory.quantity == 5

    def test_reserve_does_not_mutate(self):
        result = self.service.reserve(self.mug, None, 2)

        assert result.ok
        assert result.value == 5
        assert self.mug.inventory.quantity == 5

    def test_reserve_is_capped_by_order_limit(self):
        crate = Product("Water Crate", Money(800), inventory=Inventory(quantity=40))

        assert self.service.reserve(crate, None, 1).value == 10

    def test_reserve_insufficient(self):
        result = self.service.reserve(self.mug, None, 6)

        assert not result.ok
        assert result.error == ErrorCodes.INSUFFICIENT_STOCK

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity(self, quantity):
        assert self.service.reserve(self.mug, None, quantity).error == ErrorCodes.INVALID_QUANTITY
        assert self.service.commit(self.mug, None, quantity).error == ErrorCodes.INVALID_QUANTITY

    def test_untracked_inventory_never_decremented(self):
        cookies = Product("Cookies", Money(300), inventory=Inventory(quantity=0, track_inventory=False))

        assert self.service.reserve(cookies, None, 3).value == 10
        result = self.service.commit(cookies, None, 3)
        assert result.ok
        assert cookies.inventory.quantity == 0

    def test_reserved_quantity_is_not_sellable(self):
        tee = Product("Tee", Money(1500), inventory=Inventory(quantity=4, reserved_quantity=3))

        assert self.service.reserve(tee, None, 2).error == ErrorCodes.INSUFFICIENT_STOCK
        assert self.service.commit(tee, None, 1).ok
        assert tee.inventory.quantity == 3

    def test_concurrent_commits_never_oversell(self):
        stock = Product("Limited Print", Money(2500), inventory=Inventory(quantity=20))
        results = []

        def buy():
            results.append(self.service.commit(stock, None, 1).ok)

        threads = [threading.Thread(target=buy) for _ in range(50)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 20
        assert stock.inventory.quantity == 0

    def test_zero_order_cap_is_kept(self):
        closed = InventoryService(max_order_quantity=0)

        assert closed.max_order_quantity == 0
        assert closed.reserve(self.mug, None, 1).value == 0

    def test_order_cap_read_from_settings(self):
        with override_settings(INVENTORY_MAX_ORDER_QUANTITY=3):
            service = InventoryService()

        assert service.max_order_quantity == 3
        assert service.reserve(self.mug, None, 1).value == 3

    def test_commit_locks_are_released(self):
        for index in range(5):
            product = Product(f"Sticker {index}", Money(200), inventory=Inventory(quantity=3))
            assert self.service.commit(product, None, 1).ok
        gc.collect()

        assert len(self.service._locks) == 0

    def test_commit_timestamp_is_aware(self):
        result = self.service.commit(self.mug, None, 1)

        assert timezone.is_aware(datetime.fromisoformat(result.value["committed_at"]))


@pytest.mark.unit
class TestInventoryServiceVariants:
    def setup_method(self):
        self.service = InventoryService(max_order_quantity=10)
        self.small = ProductVariant("Tee", Money(1500), attributes={"Size": "S"}, inventory=Inventory(quantity=2))
        self.large = ProductVariant("Tee", Money(1700), attributes={"Size": "L"}, inventory=Inventory(quantity=7))
        self.tee = Product(
            "Homecoming Tee",
            Money(1500),
            variants=[self.small, self.large],
            inventory=Inventory(quantity=100),
        )

    def test_variant_required(self):
        assert self.service.reserve(self.tee, None, 1).error == ErrorCodes.VARIANT_REQUIRED

    def test_foreign_variant_rejected(self):
        other = ProductVariant("Tee", Money(1500), attributes={"Size": "M"}, inventory=Inventory(quantity=9))

        assert self.service.commit(self.tee, other, 1).error == ErrorCodes.VARIANT_NOT_FOUND

    def test_commit_decrements_variant_only(self):
        assert self.service.commit(self.tee, self.large, 3).ok

        assert self.large.inventory.quantity == 4
        assert self.small.inventory.quantity == 2
        assert self.tee.inventory.quantity == 100

    def test_total_inventory_sums_variants(self):
        assert self.service.total_inventory(self.tee) == 9

    def test_low_stock_items(self):
        with patch("commerce.services.inventory_service.stock_low_alert") as mock_gauge:
            low = self.service.low_stock_items([self.tee])

        assert low == [(self.tee, self.small)]
        mock_gauge.set.assert_called_once_with(1)

    def test_aggregate_stock_status(self):
        assert self.service.stock_status(self.tee).value == StockStatus.IN_STOCK
        assert self.service.stock_status(self.tee, self.small).value == StockStatus.LOW_STOCK
