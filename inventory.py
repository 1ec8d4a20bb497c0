"""Data access for the inventory manager.

Every function here runs inside a Flask application context and talks to the
database through the shared ``db.session``. Bad input raises
:class:`ValidationError`; database failures are rolled back, logged and
re-raised for the caller to report.
"""
import logging
import math
from collections import namedtuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from models import db, User, InventoryItem, Project, ProjectMaterial, Expense, Sale

logger = logging.getLogger(__name__)

TABLES = ('users', 'inventory', 'projects', 'project_materials', 'expenses', 'sales')

ProfitSummary = namedtuple('ProfitSummary', ['total_sales', 'total_expenses', 'profit'])


class ValidationError(ValueError):
    pass


class DuplicateUserError(ValidationError):
    pass


def _commit(action):
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Database error while %s", action)
        raise


def _require_text(value, message):
    value = (value or '').strip()
    if not value:
        raise ValidationError(message)
    return value


def _check_finite(value, message):
    if value is not None and not math.isfinite(value):
        raise ValidationError(message)


def create_tables():
    """Create every table that does not exist yet. Safe to call repeatedly."""
    db.create_all()
    logger.debug("Tables ready: %s", ', '.join(TABLES))


# -------------------------
# Users
# -------------------------
def add_user(username, password):
    username = (username or '').strip()
    if not username or not password:
        raise ValidationError("Username and password are required.")
    if len(username) < 3 or len(username) > 80:
        raise ValidationError("Username must be between 3 and 80 characters.")
    if len(password) < 4:
        raise ValidationError("Password must be at least 4 characters long.")
    if User.query.filter_by(username=username).first():
        raise DuplicateUserError("Username already exists. Please choose another.")

    user = User(username=username, password_hash=generate_password_hash(password))
    db.session.add(user)
    _commit(f"adding user {username!r}")
    logger.info("Registered user %r", username)
    return user


def load_users():
    return User.query.order_by(User.username).all()


def get_authenticated_user(username, password):
    """Return the user for an exact username/password pair, otherwise None."""
    if not username or not password:
        return None
    user = User.query.filter_by(username=username).first()
    if user and check_password_hash(user.password_hash, password):
        return user
    return None


def authenticate_user(username, password):
    return get_authenticated_user(username, password) is not None


# -------------------------
# Materials
# -------------------------
def _check_material_numbers(quantity, cost):
    _check_finite(cost, "Please enter a valid cost.")
    if quantity is not None and quantity < 0:
        raise ValidationError("Quantity cannot be negative.")
    if cost is not None and cost < 0:
        raise ValidationError("Cost cannot be negative.")


def add_material(name, quantity, cost):
    name = _require_text(name, "Please enter a material name.")
    _check_material_numbers(quantity, cost)
    item = InventoryItem(name=name, quantity=int(quantity), cost=float(cost))
    db.session.add(item)
    _commit(f"adding material {name!r}")
    logger.info("Added material %r (quantity=%s, cost=%.2f)", name, item.quantity, item.cost)
    return item


def load_materials():
    return InventoryItem.query.order_by(InventoryItem.id).all()


def get_material(item_id):
    return db.session.get(InventoryItem, item_id)


def update_material(item_id, name=None, quantity=None, cost=None):
    """Update the given fields of one material; fields left as None keep their value."""
    item = get_material(item_id)
    if item is None:
        raise ValidationError(f"Material #{item_id} not found.")
    if name is not None:
        name = _require_text(name, "Please enter a material name.")
    _check_material_numbers(quantity, cost)

    if name is not None:
        item.name = name
    if quantity is not None:
        item.quantity = int(quantity)
    if cost is not None:
        item.cost = float(cost)
    _commit(f"updating material #{item_id}")
    logger.info("Updated material #%s", item_id)
    return item


def _detach_from_projects(item_ids):
    (ProjectMaterial.query
        .filter(ProjectMaterial.material_id.in_(item_ids))
        .update({ProjectMaterial.material_id: None}))


def remove_material(item_id):
    item = get_material(item_id)
    if item is None:
        raise ValidationError(f"Material #{item_id} not found.")
    name = item.name
    _detach_from_projects([item.id])
    db.session.delete(item)
    _commit(f"removing material #{item_id}")
    logger.info("Removed material #%s (%r)", item_id, name)
    return True


def remove_materials_by_name(name):
    """Delete every material called ``name`` and return how many rows went."""
    items = InventoryItem.query.filter_by(name=name).all()
    if not items:
        return 0
    _detach_from_projects([item.id for item in items])
    for item in items:
        db.session.delete(item)
    _commit(f"removing materials named {name!r}")
    logger.info("Removed %d material(s) named %r", len(items), name)
    return len(items)


# -------------------------
# Projects
# -------------------------
def add_project(name):
    name = _require_text(name, "Please enter a project name.")
    project = Project(name=name)
    db.session.add(project)
    _commit(f"adding project {name!r}")
    logger.info("Added project %r", name)
    return project


def load_projects():
    return Project.query.order_by(Project.id).all()


def get_project(project_id):
    return db.session.get(Project, project_id)


def assign_material(project_id, material_id, quantity):
    project = get_project(project_id)
    if project is None:
        raise ValidationError(f"Project #{project_id} not found.")
    material = get_material(material_id)
    if material is None:
        raise ValidationError(f"Material #{material_id} not found.")
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than zero.")

    link = ProjectMaterial(project=project, material=material, quantity=int(quantity))
    db.session.add(link)
    _commit(f"assigning material #{material_id} to project #{project_id}")
    logger.info("Assigned %d x %r to project %r", link.quantity, material.name, project.name)
    return link


def project_cost(project):
    return sum(link.quantity * link.material.cost
               for link in project.materials if link.material is not None)


# -------------------------
# Expenses
# -------------------------
def add_expense(description, amount):
    description = _require_text(description, "Please enter a description.")
    _check_finite(amount, "Please enter a valid amount.")
    if amount < 0:
        raise ValidationError("Amount cannot be negative.")
    expense = Expense(description=description, amount=float(amount))
    db.session.add(expense)
    _commit(f"adding expense {description!r}")
    logger.info("Added expense %r (%.2f)", description, expense.amount)
    return expense


def load_expenses():
    return Expense.query.order_by(Expense.id).all()


def total_expenses():
    return float(db.session.query(func.coalesce(func.sum(Expense.amount), 0.0)).scalar())


# -------------------------
# Sales
# -------------------------
def add_sale(item, quantity, price):
    item = _require_text(item, "Please enter an item name.")
    _check_finite(price, "Please enter a valid price.")
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than zero.")
    if price < 0:
        raise ValidationError("Price cannot be negative.")
    sale = Sale(item=item, quantity=int(quantity), price=float(price))
    db.session.add(sale)
    _commit(f"adding sale of {item!r}")
    logger.info("Added sale %r (quantity=%d, price=%.2f)", item, sale.quantity, sale.price)
    return sale


def load_sales():
    return Sale.query.order_by(Sale.id).all()


def total_sales():
    total = func.coalesce(func.sum(Sale.price * Sale.quantity), 0.0)
    return float(db.session.query(total).scalar())


def calculate_profit(sales, cost_prices):
    """Gross profit of ``sales`` given one cost price per sale, in the same order.

    Each sale contributes ``(price - cost) * quantity``.
    """
    sales = list(sales)
    cost_prices = list(cost_prices)
    if len(sales) != len(cost_prices):
        raise ValidationError(
            f"Expected {len(sales)} cost prices, got {len(cost_prices)}.")
    profit = 0.0
    for sale, cost in zip(sales, cost_prices):
        profit += (sale.price - cost) * sale.quantity
    return profit


def profit_summary():
    sales_total = total_sales()
    expenses_total = total_expenses()
    return ProfitSummary(sales_total, expenses_total, sales_total - expenses_total)


# -------------------------
# Database views
# -------------------------
def _check_table(table):
    if table not in TABLES:
        raise ValidationError(f"Unknown table: {table}")
    return db.Model.metadata.tables[table]


def table_counts():
    counts = []
    for table in TABLES:
        count = db.session.query(func.count()).select_from(_check_table(table)).scalar()
        counts.append((table, count))
    return counts


def table_rows(table):
    """Return ``(columns, rows)`` for a raw dump of one table."""
    model_table = _check_table(table)
    columns = [column.name for column in model_table.columns]
    rows = db.session.execute(model_table.select().order_by(model_table.c.id)).all()
    return columns, [tuple(row) for row in rows]
