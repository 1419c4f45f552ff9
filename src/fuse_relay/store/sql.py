from __future__ import annotations

from psycopg import sql as psql

TABLE = "relay_records"

RECORD_COLS = ["id", "captured_at", "payload", "status"]

HEALTH = "SELECT 1"

INSERT_PENDING = psql.SQL(
    "INSERT INTO {} (captured_at, payload, status) "
    "VALUES (%(captured_at)s, %(payload)s, 'pending') RETURNING id"
).format(psql.Identifier(TABLE))

# captured_at is the capture order; id breaks ties between equal timestamps
OLDEST_PENDING = psql.SQL(
    "SELECT {cols} FROM {} WHERE status = 'pending' ORDER BY captured_at, id LIMIT 1"
).format(
    psql.Identifier(TABLE),
    cols=psql.SQL(", ").join(psql.Identifier(c) for c in RECORD_COLS),
)

MARK_DONE = psql.SQL(
    "UPDATE {} SET status = 'done', updated_at = NOW() "
    "WHERE id = %(id)s AND status = 'pending'"
).format(psql.Identifier(TABLE))

COUNT_PENDING = psql.SQL("SELECT count(*) FROM {} WHERE status = 'pending'").format(
    psql.Identifier(TABLE)
)
