from sqlalchemy import and_, delete, select, update

from app.database import session_scope
from app.models.db_config import Databases

_OPERATORS = {
    ">": lambda column, value: column > value,
    ">=": lambda column, value: column >= value,
    "<": lambda column, value: column < value,
    "<=": lambda column, value: column <= value,
    "=": lambda column, value: column == value,
    "!=": lambda column, value: column != value,
}


def _model(db: str):
    model = getattr(Databases, db, None)
    if model is None:
        raise ValueError(f"Unknown table '{db}'")
    return model


def _conditions(model, filters: dict) -> list:
    conditions = []
    for field, value in filters.items():
        if not hasattr(model, field):
            raise ValueError(
                f"{model.__name__} has no column '{field}'"
            )
        column = getattr(model, field)
        # A tuple is an (operator, value) pair, e.g. (">=", now)
        if isinstance(value, tuple):
            operator, condition_value = value
            if operator not in _OPERATORS:
                raise ValueError(f"Unsupported operator '{operator}'")
            conditions.append(_OPERATORS[operator](column, condition_value))
        elif value is None:
            conditions.append(column.is_(None))
        else:
            conditions.append(column == value)
    return conditions


def _delete_records(db: str, **kwargs) -> int:
    model = _model(db)
    conditions = _conditions(model, kwargs)

    with session_scope() as session:
        result = session.execute(
            delete(model).where(*conditions)
        )
        return result.rowcount


def _add_record(db: str, **kwargs):
    model = _model(db)

    instance = model(**kwargs)

    with session_scope() as session:
        session.add(instance)
        session.flush()
    return instance


def _select_one_or_none(db: str, **kwargs):
    model = _model(db)

    with session_scope() as session:
        return session.execute(
            select(model).where(and_(*_conditions(model, kwargs)))
        ).scalar_one_or_none()


def _update_records(
    db: str,
    *,
    values: dict,
    **filters
) -> int:
    model = _model(db)
    conditions = _conditions(model, filters)

    with session_scope() as session:
        result = session.execute(
            update(model)
            .where(*conditions)
            .values(**values)
        )

        return result.rowcount
