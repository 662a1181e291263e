# jobmatch/db/upsert.py
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_DIALECT_INSERT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def upsert_row(s: Session, model, values: dict, key_cols: tuple[str, ...], update_cols: tuple[str, ...]) -> bool:
    """
    Insert `values` into `model`'s table, or update `update_cols` on conflict
    over `key_cols`. Returns True when a new row was created.

    Existence is probed first so the caller can report created vs updated;
    the ON CONFLICT clause still settles a concurrent insert of the same key
    (last write wins on the updated columns).
    """
    table = model.__table__
    where = [table.c[k] == values[k] for k in key_cols]
    existed = s.execute(select(table.c.id).where(*where)).first() is not None

    make_insert = _DIALECT_INSERT.get(s.get_bind().dialect.name)
    if make_insert is None:
        # dialect without ON CONFLICT: plain update-or-insert
        if existed:
            s.execute(table.update().where(*where).values({c: values[c] for c in update_cols}))
        else:
            s.execute(table.insert().values(**values))
        return not existed

    stmt = make_insert(table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(key_cols),
        set_={c: stmt.excluded[c] for c in update_cols},
    )
    s.execute(stmt)
    return not existed
