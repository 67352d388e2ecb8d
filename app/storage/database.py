import logging
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_engine_from_url(database_url: str) -> Engine:
    """
    Cria um engine SQLAlchemy a partir de uma URL de banco de dados.

    - PostgreSQL: pool_pre_ping=True para detectar conexões perdidas.
    - SQLite: liberado para uso entre threads (workers do uvicorn).
      Banco em memória usa uma única conexão compartilhada, senão cada
      conexão veria um banco vazio.
    """
    url = database_url.lower()

    if url.startswith("postgres"):
        engine = create_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )
        logger.info("Engine PostgreSQL criado com pool_pre_ping=True")
        return engine

    if url.startswith("sqlite"):
        in_memory = url in ("sqlite://", "sqlite:///:memory:")
        options = {"connect_args": {"check_same_thread": False}}
        if in_memory:
            options["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=False, **options)
        logger.info(f"Engine SQLite criado: in_memory={in_memory}")
        return engine

    engine = create_engine(database_url, echo=False)
    logger.info(f"Engine criado: dialect={engine.dialect.name}")
    return engine


def create_session_factory(database_url: str, create_tables: bool = False, env: str = "dev") -> sessionmaker:
    """
    Cria uma factory de sessões SQLAlchemy.

    Args:
        database_url: URL de conexão do banco
        create_tables: Se True, cria tabelas automaticamente (apenas dev/test).
                       Em produção, use migrações Alembic!
        env: "dev" ou "prod"
    """
    engine = create_engine_from_url(database_url)

    if create_tables:
        if env == "prod":
            logger.warning(
                "⚠️  create_tables=True em produção ignorado. "
                "Use migrações Alembic ao invés de criar tabelas automaticamente."
            )
        else:
            # Registra os modelos no metadata antes do create_all
            from . import models  # noqa: F401

            logger.info("Criando tabelas automaticamente (modo dev/test)")
            Base.metadata.create_all(bind=engine)

    return sessionmaker(bind=engine, expire_on_commit=False)
