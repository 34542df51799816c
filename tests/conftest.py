import pytest

from mealhub import create_app
from mealhub.database import Base, get_database, get_session
from mealhub.models import Supplier, MenuItem


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    with app.app_context():
        get_database().create_all()
    return app


@pytest.fixture(autouse=True)
def app_context(app):
    """Run every test inside an app context and leave empty tables behind."""
    with app.app_context():
        yield
        session = get_session()
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.remove()


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
def supplier_id(session):
    """Supplier with a 2.00 delivery fee."""
    supplier = Supplier(
        name='Burger Barn',
        location='Main St 12',
        phone='555-0100',
        delivery_fee_cents=200,
        eta_min=20,
        eta_max=30
    )
    session.add(supplier)
    session.commit()
    return supplier.id


@pytest.fixture(scope='function')
def other_supplier_id(session):
    supplier = Supplier(name='Taco Town', delivery_fee_cents=150)
    session.add(supplier)
    session.commit()
    return supplier.id


@pytest.fixture(scope='function')
def menu(session, supplier_id, other_supplier_id):
    """
    Menu item ids keyed by a short name.

    burger (5.00) and fries (3.00) belong to Burger Barn, taco (4.00) to Taco Town.
    """
    burger = MenuItem(supplier_id=supplier_id, name='Burger', price_cents=500, stock=10)
    fries = MenuItem(supplier_id=supplier_id, name='Fries', price_cents=300, stock=10)
    taco = MenuItem(supplier_id=other_supplier_id, name='Taco', price_cents=400, stock=10)
    session.add_all([burger, fries, taco])
    session.commit()
    return {'burger': burger.id, 'fries': fries.id, 'taco': taco.id}


@pytest.fixture(scope='function')
def last_unit_id(session, supplier_id):
    """Menu item with a single unit left."""
    item = MenuItem(supplier_id=supplier_id, name='Daily Special', price_cents=900, stock=1)
    session.add(item)
    session.commit()
    return item.id
