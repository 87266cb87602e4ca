import pytest

from frota import database
from frota.models_db import Base
from tests.factories.model_factories import (
    AutomacaoFactory,
    ChecklistFactory,
    SolicitacaoFactory,
    TemplateFactory,
    UnidadeFactory,
    UsuarioFactory,
    ViaturaFactory,
)


@pytest.fixture
def db_session():
    """In-memory SQLite, shared by the test and the app under test (StaticPool)."""
    database.init_db("sqlite://")
    Base.metadata.create_all(bind=database.engine)
    session = database.db_session
    yield session
    session.remove()
    Base.metadata.drop_all(bind=database.engine)
    database.engine.dispose()


@pytest.fixture
def app(db_session):
    from frota.app import create_app
    app = create_app({
        'TESTING': True,
        'RATELIMIT_ENABLED': False,
        'SECRET_KEY': 'test-secret',
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def login(client):
    """Log a user in through the real endpoint. Factory users have password 'senha123'."""
    def _login(usuario, senha='senha123'):
        response = client.post('/auth/login', json={'email': usuario.email, 'senha': senha})
        assert response.status_code == 200, response.get_json()
        return response
    return _login


@pytest.fixture
def unidade_factory():
    return UnidadeFactory


@pytest.fixture
def usuario_factory():
    return UsuarioFactory


@pytest.fixture
def viatura_factory():
    return ViaturaFactory


@pytest.fixture
def template_factory():
    return TemplateFactory


@pytest.fixture
def automacao_factory():
    return AutomacaoFactory


@pytest.fixture
def solicitacao_factory():
    return SolicitacaoFactory


@pytest.fixture
def checklist_factory():
    return ChecklistFactory
