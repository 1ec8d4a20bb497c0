"""Interactive text menu over the inventory database.

Navigation is a single loop over :class:`Screen` values: each screen handler
does its work and returns the screen to show next, so returning to a parent
menu never grows the call stack.
"""
import logging
from enum import Enum

import click
from sqlalchemy.exc import SQLAlchemyError

import inventory
from inventory import ValidationError

logger = logging.getLogger(__name__)


class Screen(Enum):
    WELCOME = 'welcome'
    MAIN = 'main'
    MATERIALS = 'materials'
    PROJECTS = 'projects'
    EXPENSES = 'expenses'
    SALES = 'sales'
    DATABASE = 'database'
    EXIT = 'exit'


class ConsoleMenu:
    def __init__(self):
        self.current_user = None
        self.screen = Screen.WELCOME
        self.handlers = {
            Screen.WELCOME: self.welcome_menu,
            Screen.MAIN: self.main_menu,
            Screen.MATERIALS: self.materials_menu,
            Screen.PROJECTS: self.projects_menu,
            Screen.EXPENSES: self.expenses_menu,
            Screen.SALES: self.sales_menu,
            Screen.DATABASE: self.database_menu,
        }

    def run(self):
        while self.screen is not Screen.EXIT:
            self.screen = self.handlers[self.screen]()
        click.echo('Goodbye!')

    # -------------------------
    # Helpers
    # -------------------------
    def _choose(self, title, options):
        click.echo('')
        click.echo(f'=== {title} ===')
        for number, label in enumerate(options, start=1):
            click.echo(f'{number}. {label}')
        return click.prompt('Choice', type=click.IntRange(1, len(options)))

    def _attempt(self, action, *args):
        """Run one data operation, reporting failures instead of leaving the menu."""
        try:
            return action(*args)
        except ValidationError as e:
            click.echo(f'Error: {e}')
        except SQLAlchemyError as e:
            click.echo(f'Database error: {e}')
        return None

    def _require_login(self):
        if self.current_user is None:
            click.echo('Please log in to change inventory data.')
            return False
        return True

    def _show(self, records, empty_message):
        if not records:
            click.echo(empty_message)
        for record in records:
            click.echo(record.display_info())

    # -------------------------
    # Welcome and authentication
    # -------------------------
    def welcome_menu(self):
        choice = self._choose('Inventory Management System',
                              ['Login', 'Register', 'Guest Mode', 'Exit'])
        if choice == 1:
            return Screen.MAIN if self.login() else Screen.WELCOME
        if choice == 2:
            self.register()
            return Screen.WELCOME
        if choice == 3:
            self.current_user = None
            return Screen.MAIN
        return Screen.EXIT

    def login(self):
        username = click.prompt('Username').strip()
        password = click.prompt('Password', hide_input=True)
        user = self._attempt(inventory.get_authenticated_user, username, password)
        if user is None:
            logger.warning("Failed console login for %s", username)
            click.echo('Invalid username or password.')
            return False
        self.current_user = user.username
        logger.info("Console login for %s", username)
        click.echo('Logged in successfully.')
        return True

    def register(self):
        username = click.prompt('Username').strip()
        password = click.prompt('Password', hide_input=True)
        confirm_password = click.prompt('Confirm password', hide_input=True)
        if password != confirm_password:
            click.echo('Passwords do not match.')
            return False
        if self._attempt(inventory.add_user, username, password) is None:
            return False
        click.echo('Registration successful! Please login.')
        return True

    # -------------------------
    # Main menu
    # -------------------------
    def main_menu(self):
        click.echo('')
        click.echo(f'Welcome, {self.current_user or "guest"}!')
        choice = self._choose('Main Menu', [
            'Material Inventory', 'Project Tracking', 'Expense Logging',
            'Sales Tracker', 'Database Overview', 'Log out',
        ])
        if choice == 6:
            self.current_user = None
            return Screen.WELCOME
        return [Screen.MATERIALS, Screen.PROJECTS, Screen.EXPENSES,
                Screen.SALES, Screen.DATABASE][choice - 1]

    # -------------------------
    # Materials
    # -------------------------
    def materials_menu(self):
        choice = self._choose('Material Inventory', [
            'List materials', 'Add material', 'Edit material',
            'Delete material', 'Delete materials by name', 'Back',
        ])
        if choice == 1:
            self._show(inventory.load_materials(), 'No materials recorded.')
        elif choice == 6:
            return Screen.MAIN
        elif self._require_login():
            if choice == 2:
                name = click.prompt('Name')
                quantity = click.prompt('Quantity', type=int)
                cost = click.prompt('Cost', type=float)
                if self._attempt(inventory.add_material, name, quantity, cost):
                    click.echo('Material added successfully!')
            elif choice == 3:
                self.edit_material()
            elif choice == 4:
                item_id = click.prompt('Material ID', type=int)
                if self._attempt(inventory.remove_material, item_id):
                    click.echo('Material deleted successfully!')
            elif choice == 5:
                name = click.prompt('Name')
                removed = self._attempt(inventory.remove_materials_by_name, name)
                if removed is not None:
                    click.echo(f'Deleted {removed} material(s).')
        return Screen.MATERIALS

    def edit_material(self):
        item = inventory.get_material(click.prompt('Material ID', type=int))
        if item is None:
            click.echo('Material not found.')
            return
        name = click.prompt('Name', default=item.name)
        quantity = click.prompt('Quantity', type=int, default=item.quantity)
        cost = click.prompt('Cost', type=float, default=item.cost)
        if self._attempt(inventory.update_material, item.id, name, quantity, cost):
            click.echo('Material updated successfully!')

    # -------------------------
    # Projects
    # -------------------------
    def projects_menu(self):
        choice = self._choose('Project Tracking', [
            'List projects', 'Add project', 'Project details',
            'Assign material to project', 'Back',
        ])
        if choice == 1:
            self._show(inventory.load_projects(), 'No projects recorded.')
        elif choice == 3:
            project = inventory.get_project(click.prompt('Project ID', type=int))
            if project is None:
                click.echo('Project not found.')
            else:
                click.echo(f'Project Name: {project.name}')
                self._show(project.materials, 'No materials assigned.')
                click.echo(f'Material cost: {inventory.project_cost(project):.2f}')
        elif choice == 5:
            return Screen.MAIN
        elif self._require_login():
            if choice == 2:
                if self._attempt(inventory.add_project, click.prompt('Project name')):
                    click.echo('Project added successfully!')
            elif choice == 4:
                project_id = click.prompt('Project ID', type=int)
                material_id = click.prompt('Material ID', type=int)
                quantity = click.prompt('Quantity', type=int)
                if self._attempt(inventory.assign_material, project_id, material_id, quantity):
                    click.echo('Material assigned to project.')
        return Screen.PROJECTS

    # -------------------------
    # Expenses
    # -------------------------
    def expenses_menu(self):
        choice = self._choose('Expense Logging', ['List expenses', 'Add expense', 'Back'])
        if choice == 1:
            self._show(inventory.load_expenses(), 'No expenses recorded.')
            click.echo(f'Total expenses: {inventory.total_expenses():.2f}')
        elif choice == 3:
            return Screen.MAIN
        elif self._require_login():
            description = click.prompt('Description')
            amount = click.prompt('Amount', type=float)
            if self._attempt(inventory.add_expense, description, amount):
                click.echo('Expense added successfully!')
        return Screen.EXPENSES

    # -------------------------
    # Sales
    # -------------------------
    def sales_menu(self):
        choice = self._choose('Sales Tracker', ['List sales', 'Add sale', 'Calculate profit', 'Back'])
        if choice == 1:
            self._show(inventory.load_sales(), 'No sales recorded.')
            click.echo(f'Total sales: {inventory.total_sales():.2f}')
        elif choice == 3:
            self.calculate_profit()
        elif choice == 4:
            return Screen.MAIN
        elif self._require_login():
            item = click.prompt('Item')
            quantity = click.prompt('Quantity', type=int)
            price = click.prompt('Price', type=float)
            if self._attempt(inventory.add_sale, item, quantity, price):
                click.echo('Sale added successfully!')
        return Screen.SALES

    def calculate_profit(self):
        sales = inventory.load_sales()
        if sales:
            cost_prices = [
                click.prompt(f'Cost price for {sale.item} (sold {sale.quantity} at {sale.price:.2f})',
                             type=float)
                for sale in sales
            ]
            gross_profit = inventory.calculate_profit(sales, cost_prices)
            click.echo(f'Gross profit: {gross_profit:.2f}')

        summary = inventory.profit_summary()
        click.echo(f'Total Sales: {summary.total_sales:.2f}')
        click.echo(f'Total Expenses: {summary.total_expenses:.2f}')
        click.echo(f'Profit: {summary.profit:.2f}')

    # -------------------------
    # Database overview
    # -------------------------
    def database_menu(self):
        click.echo('')
        for table, count in inventory.table_counts():
            click.echo(f'{table}: {count} rows')
        choice = self._choose('Database', [f'Show {table}' for table in inventory.TABLES] + ['Back'])
        if choice > len(inventory.TABLES):
            return Screen.MAIN

        columns, rows = inventory.table_rows(inventory.TABLES[choice - 1])
        click.echo(' | '.join(columns))
        for row in rows:
            click.echo(' | '.join(str(value) for value in row))
        return Screen.DATABASE


def main():
    """Entry point for the ``inventory-manager`` console script."""
    from app import create_app

    app = create_app()
    with app.app_context():
        ConsoleMenu().run()
