from sqlalchemy import update
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import settings
from app.core.errors import EditConflictError


def _engine_options(database_url: str) -> dict:
    """Opciones del motor según el dialecto"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    # Ninguna consulta puede bloquear más allá del timeout configurado
    timeout = settings.db_query_timeout_seconds
    options = {"pool_timeout": timeout}
    if database_url.startswith("postgresql"):
        options["connect_args"] = {
            "options": f"-c statement_timeout={timeout * 1000}",
            "connect_timeout": timeout,
        }
    return options


# Crear el motor de la base de datos
engine = create_engine(
    settings.database_url,
    echo=settings.sql_echo,  # Mostrar consultas SQL si se pide
    pool_pre_ping=True,      # Verificar conexiones antes de usarlas
    **_engine_options(settings.database_url),
)


def create_db_and_tables():
    """Crear todas las tablas en la base de datos"""
    import app.models  # noqa: F401  registra las tablas en la metadata

    SQLModel.metadata.create_all(engine)


def get_session():
    """Generador de sesiones de base de datos"""
    with Session(engine) as session:
        yield session


def update_with_version(session: Session, record, changes: dict):
    """
    Aplicar `changes` solo si la versión leída sigue vigente.

    Si otra petición actualizó el registro primero no se modifica ninguna
    fila y se lanza EditConflictError.
    """
    model = type(record)
    statement = (
        update(model)
        .where(model.id == record.id, model.version == record.version)
        .values(**changes, version=model.version + 1)
        .execution_options(synchronize_session=False)
    )
    result = session.exec(statement)
    if result.rowcount == 0:
        session.rollback()
        raise EditConflictError()
    session.commit()
    session.refresh(record)
    return record
