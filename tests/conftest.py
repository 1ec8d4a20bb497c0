import pytest

import inventory
from app import create_app


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    })
    yield app


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def auth_client(app, client):
    with app.app_context():
        inventory.add_user('alice', 'secret')
    client.post('/login', data={'username': 'alice', 'password': 'secret'})
    return client
