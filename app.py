import logging
import os

import click
from flask import Blueprint, Flask, render_template, request, redirect, url_for, flash, send_file, abort, current_app
from flask_login import LoginManager, login_user, login_required, logout_user
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

import inventory
import console
import reports
from inventory import ValidationError
from models import db, User, InventoryItem, Project

login_manager = LoginManager()
login_manager.login_view = 'main.login'
login_manager.login_message = 'Please log in to change inventory data.'
migrate = Migrate()

bp = Blueprint('main', __name__, cli_group=None)

DB_ERROR = 'A database error occurred. Please try again.'


def create_app(test_config=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config['SECRET_KEY'] = 'dev'
    app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///' + os.path.join(app.instance_path, 'inventory_manager.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['LOG_LEVEL'] = 'INFO'
    app.config.from_prefixed_env('INVENTORY')
    if test_config is not None:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app.logger.setLevel(app.config['LOG_LEVEL'])

    os.makedirs(app.instance_path, exist_ok=True)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    app.register_blueprint(bp)

    with app.app_context():
        inventory.create_tables()

    return app


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


def _parse_number(value, kind):
    return kind((value or '').strip())


# -------------------------
# Welcome and authentication
# -------------------------
@bp.route('/')
def index():
    return render_template('index.html')


@bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')

        if not username or not password:
            flash('Please enter both username and password.', 'error')
            return render_template('login.html')

        current_app.logger.info("Login attempt - Username: %s", username)
        user = inventory.get_authenticated_user(username, password)
        if user:
            login_user(user)
            flash('Logged in successfully.', 'success')
            return redirect(url_for('main.dashboard'))

        current_app.logger.warning("Failed login for %s", username)
        flash('Invalid username or password.', 'error')
        return render_template('login.html')

    return render_template('login.html')


@bp.route('/register', methods=['GET', 'POST'])
def register():
    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')
        confirm_password = request.form.get('confirm_password', '')

        if not username or not password or not confirm_password:
            flash('Please fill in all fields.', 'error')
            return render_template('register.html')

        if password != confirm_password:
            flash('Passwords do not match.', 'error')
            return render_template('register.html')

        try:
            inventory.add_user(username, password)
        except ValidationError as e:
            flash(str(e), 'error')
            return render_template('register.html')
        except SQLAlchemyError:
            flash(DB_ERROR, 'error')
            return render_template('register.html')

        flash('Registration successful! Please login.', 'success')
        return redirect(url_for('main.login'))

    return render_template('register.html')


@bp.route('/logout')
@login_required
def logout():
    logout_user()
    flash('Logged out successfully.', 'success')
    return redirect(url_for('main.index'))


@bp.route('/dashboard')
def dashboard():
    return render_template('dashboard.html', counts=inventory.table_counts())


# -------------------------
# Materials
# -------------------------
@bp.route('/materials')
def materials():
    return render_template('materials.html', items=inventory.load_materials())


@bp.route('/add_material', methods=['GET', 'POST'])
@login_required
def add_material():
    if request.method == 'POST':
        name = request.form.get('name', '')
        try:
            quantity = _parse_number(request.form.get('quantity'), int)
            cost = _parse_number(request.form.get('cost'), float)
        except ValueError:
            flash('Please enter valid numbers for quantity and cost.', 'error')
            return render_template('material_form.html', item=None)

        try:
            inventory.add_material(name, quantity, cost)
        except ValidationError as e:
            flash(str(e), 'error')
            return render_template('material_form.html', item=None)
        except SQLAlchemyError:
            flash(DB_ERROR, 'error')
            return render_template('material_form.html', item=None)

        flash('Material added successfully!', 'success')
        return redirect(url_for('main.materials'))

    return render_template('material_form.html', item=None)


@bp.route('/edit_material/<int:id>', methods=['GET', 'POST'])
@login_required
def edit_material(id):
    item = db.get_or_404(InventoryItem, id)

    if request.method == 'POST':
        name = request.form.get('name', '')
        try:
            quantity = _parse_number(request.form.get('quantity'), int)
            cost = _parse_number(request.form.get('cost'), float)
        except ValueError:
            flash('Please enter valid numbers for quantity and cost.', 'error')
            return render_template('material_form.html', item=item)

        try:
            inventory.update_material(id, name=name, quantity=quantity, cost=cost)
        except ValidationError as e:
            flash(str(e), 'error')
            return render_template('material_form.html', item=item)
        except SQLAlchemyError:
            flash(DB_ERROR, 'error')
            return render_template('material_form.html', item=item)

        flash('Material updated successfully!', 'success')
        return redirect(url_for('main.materials'))

    return render_template('material_form.html', item=item)


@bp.route('/delete_material/<int:id>', methods=['POST'])
@login_required
def delete_material(id):
    db.get_or_404(InventoryItem, id)
    try:
        inventory.remove_material(id)
    except SQLAlchemyError:
        flash(DB_ERROR, 'error')
        return redirect(url_for('main.materials'))
    flash('Material deleted successfully!', 'success')
    return redirect(url_for('main.materials'))


# -------------------------
# Projects
# -------------------------
@bp.route('/projects')
def projects():
    return render_template('projects.html', projects=inventory.load_projects(),
                           project_cost=inventory.project_cost)


@bp.route('/add_project', methods=['GET', 'POST'])
@login_required
def add_project():
    if request.method == 'POST':
        try:
            inventory.add_project(request.form.get('name', ''))
        except ValidationError as e:
            flash(str(e), 'error')
            return render_template('project_form.html')
        except SQLAlchemyError:
            flash(DB_ERROR, 'error')
            return render_template('project_form.html')

        flash('Project added successfully!', 'success')
        return redirect(url_for('main.projects'))

    return render_template('project_form.html')


@bp.route('/project/<int:id>')
def project_details(id):
    project = db.get_or_404(Project, id)
    return render_template('project_details.html', project=project,
                           cost=inventory.project_cost(project),
                           items=inventory.load_materials())


@bp.route('/project/<int:id>/assign', methods=['POST'])
@login_required
def assign_material(id):
    db.get_or_404(Project, id)
    try:
        material_id = _parse_number(request.form.get('material_id'), int)
        quantity = _parse_number(request.form.get('quantity'), int)
    except ValueError:
        flash('Please choose a material and enter a valid quantity.', 'error')
        return redirect(url_for('main.project_details', id=id))

    try:
        inventory.assign_material(id, material_id, quantity)
    except ValidationError as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        flash(DB_ERROR, 'error')
    else:
        flash('Material assigned to project.', 'success')
    return redirect(url_for('main.project_details', id=id))


# -------------------------
# Expenses
# -------------------------
@bp.route('/expenses')
def expenses():
    return render_template('expenses.html', expenses=inventory.load_expenses(),
                           total=inventory.total_expenses())


@bp.route('/add_expense', methods=['GET', 'POST'])
@login_required
def add_expense():
    if request.method == 'POST':
        description = request.form.get('description', '')
        try:
            amount = _parse_number(request.form.get('amount'), float)
        except ValueError:
            flash('Please enter a valid amount.', 'error')
            return render_template('expense_form.html')

        try:
            inventory.add_expense(description, amount)
        except ValidationError as e:
            flash(str(e), 'error')
            return render_template('expense_form.html')
        except SQLAlchemyError:
            flash(DB_ERROR, 'error')
            return render_template('expense_form.html')

        flash('Expense added successfully!', 'success')
        return redirect(url_for('main.expenses'))

    return render_template('expense_form.html')


# -------------------------
# Sales
# -------------------------
@bp.route('/sales')
def sales():
    return render_template('sales.html', sales=inventory.load_sales(),
                           total=inventory.total_sales())


@bp.route('/add_sale', methods=['GET', 'POST'])
@login_required
def add_sale():
    if request.method == 'POST':
        item = request.form.get('item', '')
        try:
            quantity = _parse_number(request.form.get('quantity'), int)
            price = _parse_number(request.form.get('price'), float)
        except ValueError:
            flash('Please enter valid numbers for quantity and price.', 'error')
            return render_template('sale_form.html')

        try:
            inventory.add_sale(item, quantity, price)
        except ValidationError as e:
            flash(str(e), 'error')
            return render_template('sale_form.html')
        except SQLAlchemyError:
            flash(DB_ERROR, 'error')
            return render_template('sale_form.html')

        flash('Sale added successfully!', 'success')
        return redirect(url_for('main.sales'))

    return render_template('sale_form.html')


@bp.route('/profit', methods=['GET', 'POST'])
def profit():
    all_sales = inventory.load_sales()
    gross_profit = None

    if request.method == 'POST':
        try:
            cost_prices = [_parse_number(request.form.get(f'cost_{sale.id}'), float)
                           for sale in all_sales]
        except ValueError:
            flash('Please enter a valid cost price for every sale.', 'error')
        else:
            gross_profit = inventory.calculate_profit(all_sales, cost_prices)

    return render_template('profit.html', sales=all_sales,
                           summary=inventory.profit_summary(),
                           gross_profit=gross_profit)


# -------------------------
# Database views and reports
# -------------------------
@bp.route('/database/<table>')
def database(table):
    if table not in inventory.TABLES:
        abort(404)
    columns, rows = inventory.table_rows(table)
    return render_template('database.html', table=table, columns=columns, rows=rows,
                           exportable=table in reports.REPORT_TABLES)


@bp.route('/generate_report/<table>')
def generate_report(table):
    if table not in reports.REPORT_TABLES:
        abort(404)

    report_type = request.args.get('type', 'pdf')
    if report_type == 'csv':
        return send_file(reports.generate_csv_report(table), mimetype='text/csv',
                         as_attachment=True, download_name=f'{table}_report.csv')
    return send_file(reports.generate_pdf_report(table), mimetype='application/pdf',
                     as_attachment=True, download_name=f'{table}_report.pdf')


# -------------------------
# CLI
# -------------------------
@bp.cli.command('init-db')
def init_db():
    inventory.create_tables()
    click.echo('Database tables are ready.')


@bp.cli.command('reset-db')
def reset_db():
    db.drop_all()
    inventory.create_tables()
    click.echo('Database has been reset.')


@bp.cli.command('create-user')
@click.argument('username')
@click.password_option()
def create_user(username, password):
    try:
        inventory.add_user(username, password)
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"User '{username}' created successfully")


@bp.cli.command('menu')
def menu():
    console.ConsoleMenu().run()
