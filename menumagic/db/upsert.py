from sqlalchemy.orm import Session


def insert_for_dialect(db: Session):
    """Dialect insert() exposing on_conflict_do_update / on_conflict_do_nothing."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Unsupported database dialect for upsert: {dialect}")
    return insert
