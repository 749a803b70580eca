import pytest
from decimal import Decimal
from zoneinfo import ZoneInfo

from app import create_app
from app.database import create_all, drop_all, get_session
from app.models import MenuItem, StockItem, Ingredient, Promo, RecurrenceRule
from app.services import order_service

UTC = ZoneInfo('UTC')


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function', autouse=True)
def schema(app):
    """Fresh schema for every test."""
    create_all()
    yield
    get_session().remove()
    drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def utc():
    return UTC


@pytest.fixture(scope='function')
def bread(session):
    """Stock item: bread buns (10 on hand)."""
    item = StockItem(name='Bread', unit='un', stock=Decimal('10'), min_stock=Decimal('2'), is_active=True)
    session.add(item)
    session.commit()
    return item


@pytest.fixture(scope='function')
def cheese(session):
    """Stock item: cheese (5 kg on hand)."""
    item = StockItem(name='Cheese', unit='kg', stock=Decimal('5'), min_stock=Decimal('1'), is_active=True)
    session.add(item)
    session.commit()
    return item


@pytest.fixture(scope='function')
def burger(session, bread, cheese):
    """Menu item at $100 using 1 bread and 0.5 cheese per unit."""
    item = MenuItem(name='Cheeseburger', price=Decimal('100.00'), is_active=True)
    session.add(item)
    session.flush()
    session.add_all([
        Ingredient(menu_item_id=item.id, stock_item_id=bread.id, quantity_used=Decimal('1')),
        Ingredient(menu_item_id=item.id, stock_item_id=cheese.id, quantity_used=Decimal('0.5')),
    ])
    session.commit()
    return item


@pytest.fixture(scope='function')
def soda(session):
    """Menu item at $10 with no ingredients."""
    item = MenuItem(name='Soda', price=Decimal('10.00'), is_active=True)
    session.add(item)
    session.commit()
    return item


@pytest.fixture(scope='function')
def half_price_promo(session, burger):
    """Always-on 50% promo on the burger."""
    promo = Promo(
        menu_item_id=burger.id,
        name='Half price burger',
        type='percentage_discount',
        percentage=Decimal('50'),
        always=True,
        is_active=True
    )
    session.add(promo)
    session.commit()
    return promo


@pytest.fixture(scope='function')
def happy_hour_promo(session, burger):
    """50% on the burger, Fridays 18:00-20:00 only."""
    promo = Promo(
        menu_item_id=burger.id,
        name='Happy hour',
        type='percentage_discount',
        percentage=Decimal('50'),
        always=False,
        is_active=True
    )
    promo.recurrence_rules.append(RecurrenceRule(day_of_week='Friday', start_time='18:00', end_time='20:00'))
    session.add(promo)
    session.commit()
    return promo


@pytest.fixture(scope='function')
def order(session):
    """Open order."""
    return order_service.create_order(session, customer='Table 4')
