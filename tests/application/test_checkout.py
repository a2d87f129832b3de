"""Tests for CheckoutService: partial fulfillment, failure modes and tickets."""

import threading
import uuid

import pytest
from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from app.core.exceptions import (
    CartAlreadyCompletedError,
    CartNotFoundError,
    CartStateError,
    CheckoutFailedError,
    EmptyCartError,
    NotFoundError,
)
from app.database import Database
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService
from app.services.inventory_service import ProductInventory


@pytest.fixture()
def cart(cart_service, user_id):
    return cart_service.get_or_create_cart(user_id)


class TestFullCheckout:
    def test_all_lines_fulfilled(
        self, checkout_service, cart_service, inventory, make_product, cart, user_id
    ):
        pen = make_product(price=2.5, stock=10)
        book = make_product(price=20.0, stock=1)
        cart_service.add_product(cart.id, pen.id, 4)
        cart_service.add_product(cart.id, book.id, 1)

        result = checkout_service.purchase(cart.id)

        assert result.products_not_processed == []
        assert not result.is_partial
        assert result.ticket.amount == pytest.approx(30.0)
        assert result.ticket.purchaser == user_id
        assert result.ticket.cart_id == cart.id
        assert len(result.ticket.code) == 16
        assert {i.product_id: i.quantity for i in result.ticket.items} == {
            pen.id: 4,
            book.id: 1,
        }

        assert inventory.get_by_id(pen.id).stock == 6
        assert inventory.get_by_id(book.id).stock == 0

        stored = cart_service.get_cart(cart.id)
        assert stored.status == "completed"
        assert stored.is_empty

    def test_ticket_uses_snapshot_prices(
        self, checkout_service, cart_service, inventory, make_product, cart
    ):
        product = make_product(price=10.0, stock=5)
        cart_service.add_product(cart.id, product.id, 2)

        inventory.update(product.id, ProductUpdate(price=99.0))

        result = checkout_service.purchase(cart.id)
        assert result.ticket.amount == pytest.approx(20.0)
        assert result.ticket.items[0].unit_price == 10.0

    def test_next_get_or_create_returns_fresh_cart(
        self, checkout_service, cart_service, make_product, cart, user_id
    ):
        cart_service.add_product(cart.id, make_product().id, 1)
        checkout_service.purchase(cart.id)

        fresh = cart_service.get_or_create_cart(user_id)
        assert fresh.id != cart.id
        assert fresh.is_empty


class TestPartialCheckout:
    def test_short_line_is_reported_and_kept(
        self, checkout_service, cart_service, inventory, make_product, cart
    ):
        plenty = make_product(price=5.0, stock=10)
        scarce = make_product(price=8.0, stock=1)
        cart_service.add_product(cart.id, plenty.id, 2)
        cart_service.add_product(cart.id, scarce.id, 1)
        cart_service.update_product_quantity(cart.id, scarce.id, 3)

        result = checkout_service.purchase(cart.id)

        assert result.is_partial
        assert result.products_not_processed == [str(scarce.id)]
        assert result.ticket.amount == pytest.approx(10.0)
        assert [i.product_id for i in result.ticket.items] == [plenty.id]

        assert inventory.get_by_id(plenty.id).stock == 8
        assert inventory.get_by_id(scarce.id).stock == 1

        stored = cart_service.get_cart(cart.id)
        assert stored.status == "completed"
        assert [i.product_id for i in stored.items] == [scarce.id]
        assert stored.total_items == 3
        assert stored.total_amount == pytest.approx(24.0)

    def test_removed_product_is_not_processed(
        self, db, checkout_service, cart_service, inventory, make_product, cart
    ):
        kept = make_product(stock=5)
        gone = make_product(stock=5)
        cart_service.add_product(cart.id, kept.id, 1)
        cart_service.add_product(cart.id, gone.id, 1)

        with db.session() as session:
            session.delete(inventory.repo.get_by_id(session, gone.id))
            session.commit()

        result = checkout_service.purchase(cart.id)
        assert result.products_not_processed == [str(gone.id)]
        assert [i.product_id for i in result.ticket.items] == [kept.id]

    def test_deactivated_product_is_not_processed(
        self, checkout_service, cart_service, inventory, make_product, cart
    ):
        active = make_product(stock=5)
        retired = make_product(stock=5)
        cart_service.add_product(cart.id, active.id, 1)
        cart_service.add_product(cart.id, retired.id, 1)

        inventory.update(retired.id, ProductUpdate(is_active=False))

        result = checkout_service.purchase(cart.id)
        assert result.products_not_processed == [str(retired.id)]
        assert inventory.get_by_id(retired.id).stock == 5

    def test_stock_sold_between_add_and_checkout(
        self, checkout_service, cart_service, inventory, make_product, cart
    ):
        product = make_product(stock=3)
        filler = make_product(stock=3)
        cart_service.add_product(cart.id, product.id, 3)
        cart_service.add_product(cart.id, filler.id, 1)

        # Another buyer takes part of the stock first
        inventory.reserve(product.id, 2)

        result = checkout_service.purchase(cart.id)
        assert result.products_not_processed == [str(product.id)]
        assert inventory.get_by_id(product.id).stock == 1

    def test_clear_cart_on_checkout(self, db, inventory, cart_service, make_product, cart):
        service = CheckoutService(db, inventory, clear_cart_on_checkout=True)
        ok = make_product(stock=5)
        cart_service.add_product(cart.id, ok.id, 1)

        # Raise the quantity past stock; updates skip the advisory check
        scarce = make_product(stock=1)
        cart_service.add_product(cart.id, scarce.id, 1)
        cart_service.update_product_quantity(cart.id, scarce.id, 2)

        result = service.purchase(cart.id)
        assert result.products_not_processed == [str(scarce.id)]

        stored = cart_service.get_cart(cart.id)
        assert stored.status == "completed"
        assert stored.is_empty


class TestCheckoutFailures:
    def test_nothing_fulfillable_leaves_everything_untouched(
        self, checkout_service, cart_service, inventory, make_product, cart
    ):
        a = make_product(stock=1)
        b = make_product(stock=2)
        cart_service.add_product(cart.id, a.id, 1)
        cart_service.add_product(cart.id, b.id, 2)
        cart_service.update_product_quantity(cart.id, a.id, 5)
        cart_service.update_product_quantity(cart.id, b.id, 5)

        with pytest.raises(CheckoutFailedError) as exc_info:
            checkout_service.purchase(cart.id)

        assert exc_info.value.status_code == 409
        assert sorted(exc_info.value.not_processed) == sorted([str(a.id), str(b.id)])
        assert inventory.get_by_id(a.id).stock == 1
        assert inventory.get_by_id(b.id).stock == 2

        stored = cart_service.get_cart(cart.id)
        assert stored.status == "active"
        assert stored.total_items == 10
        assert checkout_service.list_tickets(stored.user_id) == []

    def test_empty_cart(self, checkout_service, cart):
        with pytest.raises(EmptyCartError) as exc_info:
            checkout_service.purchase(cart.id)
        assert exc_info.value.status_code == 400

    def test_completed_cart_cannot_be_purchased_again(
        self, checkout_service, cart_service, inventory, make_product, cart
    ):
        product = make_product(stock=10)
        cart_service.add_product(cart.id, product.id, 1)
        checkout_service.purchase(cart.id)

        with pytest.raises(CartAlreadyCompletedError):
            checkout_service.purchase(cart.id)
        assert inventory.get_by_id(product.id).stock == 9

    def test_completed_cart_rejects_mutations(
        self, checkout_service, cart_service, make_product, cart
    ):
        product = make_product()
        cart_service.add_product(cart.id, product.id, 1)
        checkout_service.purchase(cart.id)

        with pytest.raises(CartStateError):
            cart_service.add_product(cart.id, product.id, 1)

    def test_unknown_cart(self, checkout_service):
        with pytest.raises(CartNotFoundError):
            checkout_service.purchase(uuid.uuid4())

    def test_other_users_cart(self, checkout_service, cart_service, make_product, cart):
        cart_service.add_product(cart.id, make_product().id, 1)
        with pytest.raises(CartNotFoundError):
            checkout_service.purchase(cart.id, user_id=uuid.uuid4())


class TestTickets:
    def test_ticket_lookup_and_listing(
        self, checkout_service, cart_service, make_product, user_id
    ):
        codes = []
        for _ in range(2):
            cart = cart_service.get_or_create_cart(user_id)
            cart_service.add_product(cart.id, make_product().id, 1)
            codes.append(checkout_service.purchase(cart.id).ticket.code)

        assert codes[0] != codes[1]
        listed = checkout_service.list_tickets(user_id)
        assert {t.code for t in listed} == set(codes)

        ticket = checkout_service.get_ticket(codes[0], user_id=user_id)
        assert ticket.code == codes[0]
        assert ticket.items[0].line_total == pytest.approx(10.0)

    def test_ticket_of_another_user_is_not_found(
        self, checkout_service, cart_service, make_product, cart
    ):
        cart_service.add_product(cart.id, make_product().id, 1)
        code = checkout_service.purchase(cart.id).ticket.code

        with pytest.raises(NotFoundError):
            checkout_service.get_ticket(code, user_id=uuid.uuid4())


class TestReservationOrder:
    def test_stock_is_reserved_in_product_id_order(
        self, checkout_service, cart_service, inventory, make_product, cart, monkeypatch
    ):
        first, second = sorted(
            [make_product(stock=5), make_product(stock=5)], key=lambda p: str(p.id)
        )
        # Cart lines deliberately in the opposite order
        cart_service.add_product(cart.id, second.id, 1)
        cart_service.add_product(cart.id, first.id, 1)

        reserved = []
        reserve = inventory.reserve

        def recording_reserve(product_id, quantity, session=None):
            reserved.append(product_id)
            return reserve(product_id, quantity, session=session)

        monkeypatch.setattr(inventory, "reserve", recording_reserve)

        result = checkout_service.purchase(cart.id)

        assert reserved == [first.id, second.id]
        assert [i.product_id for i in result.ticket.items] == [second.id, first.id]

    def test_overlapping_carts_checked_out_concurrently(self, file_db):
        inventory = ProductInventory(file_db)
        carts = CartService(file_db, inventory)
        checkout = CheckoutService(file_db, inventory)
        a = inventory.create(
            ProductCreate(title="Lamp", code="A-1", price=5.0, stock=1, category="home")
        )
        b = inventory.create(
            ProductCreate(title="Rug", code="B-1", price=7.0, stock=1, category="home")
        )

        cart_ids = []
        for products in ([a, b], [b, a]):
            cart = carts.get_or_create_cart(uuid.uuid4())
            for product in products:
                carts.add_product(cart.id, product.id, 1)
            cart_ids.append(cart.id)

        barrier = threading.Barrier(2)
        outcomes = [None, None]

        def worker(index):
            barrier.wait()
            try:
                outcomes[index] = checkout.purchase(cart_ids[index])
            except CheckoutFailedError as exc:
                outcomes[index] = exc

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        tickets = [o for o in outcomes if not isinstance(o, CheckoutFailedError)]
        sold = sum(len(t.ticket.items) for t in tickets)
        assert sold == 2
        assert inventory.get_by_id(a.id).stock == 0
        assert inventory.get_by_id(b.id).stock == 0


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture()
def fk_db():
    """In-memory SQLite with foreign keys enforced, as on Postgres."""
    database = Database(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(database.engine, "connect", _enable_foreign_keys)
    database.create_all()

    yield database

    database.drop_all()
    database.dispose()


class TestDeletingPurchasedCart:
    def test_ticket_survives_cart_deletion(self, fk_db, user_id):
        inventory = ProductInventory(fk_db)
        carts = CartService(fk_db, inventory)
        checkout = CheckoutService(fk_db, inventory)
        product = inventory.create(
            ProductCreate(title="Kettle", code="K-1", price=30.0, stock=2, category="home")
        )
        cart = carts.get_or_create_cart(user_id)
        carts.add_product(cart.id, product.id, 1)
        code = checkout.purchase(cart.id).ticket.code

        carts.delete_cart(cart.id)

        with pytest.raises(CartNotFoundError):
            carts.get_cart(cart.id)
        ticket = checkout.get_ticket(code, user_id=user_id)
        assert ticket.cart_id is None
        assert ticket.amount == pytest.approx(30.0)
