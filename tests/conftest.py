import pytest
from decimal import Decimal

from invoicer import create_app
from invoicer.database import get_session, init_schema, drop_schema
from invoicer.models import AppUser, UserRole, Product, Customer, CustomerType


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite, no CSRF)."""
    return create_app('config.TestConfig')


@pytest.fixture(autouse=True)
def fresh_schema(app):
    """Every test starts from empty tables."""
    get_session().remove()
    drop_schema()
    init_schema()
    yield
    get_session().remove()


@pytest.fixture(scope='function')
def session(app):
    """Database session inside an application context."""
    with app.app_context():
        session = get_session()
        yield session
        session.rollback()


@pytest.fixture(scope='function')
def client(app, session):
    """Create test client (shares the test's application context)."""
    return app.test_client()


@pytest.fixture(scope='function')
def admin_user(session):
    user = AppUser(username='admin', role=UserRole.ADMIN, active=True)
    user.set_password('admin123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def staff_user(session):
    user = AppUser(username='staff', role=UserRole.STAFF, active=True)
    user.set_password('staff123')
    session.add(user)
    session.commit()
    return user


def _login(app, user):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['user_id'] = user.id
    return client


@pytest.fixture(scope='function')
def admin_client(app, admin_user):
    """Test client logged in as Admin."""
    return _login(app, admin_user)


@pytest.fixture(scope='function')
def staff_client(app, staff_user):
    """Test client logged in as Billing Staff."""
    return _login(app, staff_user)


@pytest.fixture(scope='function')
def keyboard(session):
    """Product with stock 50, retail 45.00, wholesale 35.00."""
    product = Product(
        item_code='KB001',
        name='Wireless Keyboard',
        stock=50,
        retail_price=Decimal('45.00'),
        wholesale_price=Decimal('35.00')
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def monitor(session):
    """Product with stock 20, retail 350.00, wholesale 300.00."""
    product = Product(
        item_code='MN003',
        name='27-inch 4K Monitor',
        stock=20,
        retail_price=Decimal('350.00'),
        wholesale_price=Decimal('300.00')
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def retail_customer(session):
    """Retail customer owing 75.20 against a 500.00 limit."""
    customer = Customer(
        name='Jane Smith',
        customer_type=CustomerType.RETAIL,
        phone='555-0101',
        credit_limit=Decimal('500.00'),
        outstanding_balance=Decimal('75.20')
    )
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def wholesale_customer(session):
    """Wholesale customer owing 4900.00 against a 5000.00 limit."""
    customer = Customer(
        name='Tech Solutions Inc',
        customer_type=CustomerType.WHOLESALE,
        credit_limit=Decimal('5000.00'),
        outstanding_balance=Decimal('4900.00')
    )
    session.add(customer)
    session.commit()
    return customer
