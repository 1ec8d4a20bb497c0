from sqlalchemy.exc import SQLAlchemyError

import inventory


def run_menu(runner, *lines):
    return runner.invoke(args=['menu'], input=''.join(f'{line}\n' for line in lines))


def test_guest_session_and_exit(runner):
    result = run_menu(runner, 3, 6, 4)
    assert result.exit_code == 0
    assert 'Welcome, guest!' in result.output
    assert 'Goodbye!' in result.output


def test_invalid_choice_is_asked_again(runner):
    result = run_menu(runner, 9, 'x', 4)
    assert result.exit_code == 0
    assert result.output.count('Choice:') == 3
    assert 'Goodbye!' in result.output


def test_register_login_and_add_material(runner, app):
    result = run_menu(
        runner,
        2, 'alice', 'secret', 'secret',  # register
        1, 'alice', 'secret',            # login
        1, 2, 'Widget', 5, 2.5,          # materials -> add
        1,                               # list
        6, 6, 4,                         # back, log out, exit
    )
    assert result.exit_code == 0, result.output
    assert 'Registration successful! Please login.' in result.output
    assert 'Welcome, alice!' in result.output
    assert 'Material added successfully!' in result.output
    assert 'Widget - quantity: 5, cost: 2.50' in result.output

    with app.app_context():
        [item] = inventory.load_materials()
        assert (item.name, item.quantity, item.cost) == ('Widget', 5, 2.5)


def test_register_rejects_mismatched_passwords(runner, app):
    result = run_menu(runner, 2, 'alice', 'secret', 'other', 4)
    assert 'Passwords do not match.' in result.output
    with app.app_context():
        assert inventory.load_users() == []


def test_failed_login_stays_on_welcome(runner, app):
    with app.app_context():
        inventory.add_user('alice', 'secret')
    result = run_menu(runner, 1, 'alice', 'wrong', 4)
    assert result.exit_code == 0
    assert 'Invalid username or password.' in result.output
    assert 'Welcome, alice!' not in result.output


def test_guest_cannot_change_data(runner, app):
    result = run_menu(runner, 3, 1, 2, 6, 3, 2, 3, 6, 4)
    assert result.output.count('Please log in to change inventory data.') == 2
    with app.app_context():
        assert inventory.load_materials() == []
        assert inventory.load_expenses() == []


def test_edit_and_delete_materials(runner, app):
    with app.app_context():
        inventory.add_user('alice', 'secret')
        plank_id = inventory.add_material('Plank', 10, 4.0).id
        inventory.add_material('Screw', 100, 0.1)
        inventory.add_material('Screw', 20, 0.12)

    result = run_menu(
        runner,
        1, 'alice', 'secret',
        1, 3, plank_id, '', 7, '',  # edit: keep name and cost
        5, 'Screw',                 # delete by name
        6, 6, 4,
    )
    assert result.exit_code == 0, result.output
    assert 'Material updated successfully!' in result.output
    assert 'Deleted 2 material(s).' in result.output

    with app.app_context():
        [item] = inventory.load_materials()
        assert (item.name, item.quantity, item.cost) == ('Plank', 7, 4.0)


def test_profit_asks_for_cost_prices(runner, app):
    with app.app_context():
        inventory.add_sale('Chair', 2, 100)
        inventory.add_sale('Stool', 1, 50)
        inventory.add_expense('Wood', 30)

    result = run_menu(runner, 3, 4, 3, 60, 40, 4, 6, 4)
    assert result.exit_code == 0, result.output
    assert 'Gross profit: 90.00' in result.output
    assert 'Total Sales: 250.00' in result.output
    assert 'Total Expenses: 30.00' in result.output
    assert 'Profit: 220.00' in result.output


def test_project_details_list_assigned_materials(runner, app):
    with app.app_context():
        inventory.add_user('alice', 'secret')
        project_id = inventory.add_project('Bookshelf').id
        plank_id = inventory.add_material('Plank', 10, 4.0).id

    result = run_menu(
        runner,
        1, 'alice', 'secret',
        2, 4, project_id, plank_id, 3,  # assign
        3, project_id,                  # details
        5, 6, 4,
    )
    assert result.exit_code == 0, result.output
    assert 'Material assigned to project.' in result.output
    assert 'Plank x 3' in result.output
    assert 'Material cost: 12.00' in result.output


def test_database_overview(runner, app):
    with app.app_context():
        inventory.add_expense('Wood', 80)

    result = run_menu(runner, 3, 5, 5, 7, 6, 4)
    assert result.exit_code == 0, result.output
    assert 'expenses: 1 rows' in result.output
    assert 'id | description | amount' in result.output
    assert '1 | Wood | 80.0' in result.output


def test_back_navigation_does_not_nest(runner):
    # Each round trip returns to the main menu through the screen loop
    trips = [1, 6] * 800
    result = run_menu(runner, 3, *trips, 6, 4)
    assert result.exit_code == 0
    assert result.output.count('=== Material Inventory ===') == 800


def test_create_user_command(runner, app):
    result = runner.invoke(args=['create-user', 'bob', '--password', 'hunter2'])
    assert result.exit_code == 0
    assert "User 'bob' created successfully" in result.output
    with app.app_context():
        assert inventory.authenticate_user('bob', 'hunter2')

    result = runner.invoke(args=['create-user', 'bob', '--password', 'hunter2'])
    assert result.exit_code == 1
    assert 'Username already exists.' in result.output


def test_reset_db_command(runner, app):
    with app.app_context():
        inventory.add_material('Plank', 10, 4.0)

    result = runner.invoke(args=['reset-db'])
    assert 'Database has been reset.' in result.output
    with app.app_context():
        assert inventory.load_materials() == []


def test_init_db_command(runner):
    result = runner.invoke(args=['init-db'])
    assert 'Database tables are ready.' in result.output


def test_failed_bulk_delete_reports_no_count(runner, app, monkeypatch):
    with app.app_context():
        inventory.add_user('alice', 'secret')

    def broken_delete(name):
        raise SQLAlchemyError('disk I/O error')

    monkeypatch.setattr(inventory, 'remove_materials_by_name', broken_delete)
    result = run_menu(runner, 1, 'alice', 'secret', 1, 5, 'Widget', 6, 6, 4)
    assert result.exit_code == 0, result.output
    assert 'Database error: disk I/O error' in result.output
    assert 'Deleted' not in result.output


def test_database_error_during_login_stays_in_menu(runner, monkeypatch):
    def broken_lookup(username, password):
        raise SQLAlchemyError('database is locked')

    monkeypatch.setattr(inventory, 'get_authenticated_user', broken_lookup)
    result = run_menu(runner, 1, 'alice', 'secret', 4)
    assert result.exit_code == 0, result.output
    assert 'Database error: database is locked' in result.output
    assert 'Invalid username or password.' in result.output
    assert 'Goodbye!' in result.output
