import logging
import os
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from .config import config

# Variáveis Globais
engine = None
db_session = None

logger = logging.getLogger(__name__)


def normalize_database_url(database_url: Optional[str]) -> Optional[str]:
    """
    Normaliza a URL do banco.
    - Se for Postgres, garante que sslmode=require esteja presente.
    - Aceita o prefixo legado 'postgres://'.
    """
    if not database_url:
        return None

    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]

    try:
        url = make_url(database_url)
    except Exception:
        # Mantém a URL como está se não for parseável pelo SQLAlchemy
        return database_url

    if url.drivername.startswith("postgresql") and "sslmode" not in url.query:
        if url.host not in (None, "localhost", "127.0.0.1", "db"):
            url = url.update_query_dict({"sslmode": "require"})

    return url.render_as_string(hide_password=False)


def build_engine(database_url: str):
    """
    SQLite (dev/testes) usa StaticPool para compartilhar o banco em memória
    entre threads; nos demais bancos NullPool evita estouro de conexões em
    ambiente serverless.
    """
    if database_url.startswith("sqlite"):
        eng = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(eng, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return eng

    return create_engine(
        database_url,
        pool_pre_ping=True,
        poolclass=NullPool,
        connect_args={"connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10"))},
    )


def init_db(database_url: Optional[str] = None):
    global engine, db_session
    database_url = normalize_database_url(database_url or config.DATABASE_URL)
    if not database_url:
        logger.warning("DATABASE_URL não encontrada na Config. Verifique as variáveis de ambiente.")
        return None

    # Masking URL for security in logs
    masked_url = database_url.split("@")[-1] if "@" in database_url else database_url.split(":")[0]
    logger.info(f"Conectando ao banco: {masked_url}")

    try:
        engine = build_engine(database_url)
        db_session = scoped_session(sessionmaker(autoflush=False, expire_on_commit=False, bind=engine))
    except Exception as e:
        logger.error(f"Erro ao criar engine do banco: {e}")
        raise
    logger.info("Conexão com Banco de Dados Inicializada")
    return engine


def create_all():
    """Cria as tabelas que ainda não existem (dev/testes)."""
    from .models_db import Base
    if engine is None:
        init_db()
    Base.metadata.create_all(bind=engine)


def get_session():
    """Sessão do escopo atual (thread/requisição); removida no teardown do app."""
    if db_session is None:
        init_db()
    if db_session is None:
        raise RuntimeError("Banco de dados não configurado (DATABASE_URL ausente)")
    return db_session()
