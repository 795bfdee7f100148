"""Database DDL functions for ticket-tracker.

- Functions returning psycopg2.sql.Composed objects with sql.Identifier for schema
- UUID primary keys generated by the application
- DOUBLE PRECISION epoch timestamps
- ticket_history.seq keeps insertion order for history reads
"""

from psycopg2 import sql


def get_users_table_sql(schema: str) -> sql.Composed:
    """Users table DDL for the given schema."""
    sch = sql.Identifier(schema)
    return sql.SQL("""
        CREATE TABLE IF NOT EXISTS {}.users (
            id UUID PRIMARY KEY,
            username TEXT NOT NULL UNIQUE,
            password TEXT,
            role TEXT NOT NULL DEFAULT 'USER'
        );
    """).format(sch)


def get_tickets_table_sql(schema: str) -> sql.Composed:
    """Tickets table DDL for the given schema."""
    sch = sql.Identifier(schema)
    return sql.SQL("""
        CREATE TABLE IF NOT EXISTS {}.tickets (
            id UUID PRIMARY KEY,
            subject TEXT,
            description TEXT,
            created_by UUID,
            modified_by UUID,
            assigned_to UUID,
            created_at DOUBLE PRECISION,
            modified_at DOUBLE PRECISION,
            status TEXT NOT NULL DEFAULT 'NEW',
            FOREIGN KEY (created_by) REFERENCES {}.users(id),
            FOREIGN KEY (modified_by) REFERENCES {}.users(id),
            FOREIGN KEY (assigned_to) REFERENCES {}.users(id)
        );
    """).format(sch, sch, sch, sch)


def get_ticket_history_table_sql(schema: str) -> sql.Composed:
    """Ticket history (audit trail) table DDL for the given schema."""
    sch = sql.Identifier(schema)
    return sql.SQL("""
        CREATE TABLE IF NOT EXISTS {}.ticket_history (
            id UUID PRIMARY KEY,
            seq BIGSERIAL,
            ticket_id UUID NOT NULL,
            type TEXT NOT NULL,
            update_date DOUBLE PRECISION,
            updated_by UUID,
            text TEXT,
            FOREIGN KEY (ticket_id) REFERENCES {}.tickets(id) ON DELETE CASCADE,
            FOREIGN KEY (updated_by) REFERENCES {}.users(id)
        );
    """).format(sch, sch, sch)


def get_tickets_indexes_sql(schema: str) -> sql.Composed:
    """Indexes for ticket tables in the given schema."""
    sch = sql.Identifier(schema)
    return sql.SQL("""
        CREATE INDEX IF NOT EXISTS {idx_assigned}
            ON {sch}.tickets(assigned_to)
            WHERE assigned_to IS NOT NULL;
        CREATE INDEX IF NOT EXISTS {idx_history}
            ON {sch}.ticket_history(ticket_id, seq);
    """).format(
        sch=sch,
        idx_assigned=sql.Identifier(f"idx_{schema}_tickets_assigned_to"),
        idx_history=sql.Identifier(f"idx_{schema}_ticket_history_ticket"),
    )


def get_all_ticket_tables_sql(schema: str) -> sql.Composed:
    """All ticket tables for the given schema."""
    return (
        get_users_table_sql(schema)
        + get_tickets_table_sql(schema)
        + get_ticket_history_table_sql(schema)
        + get_tickets_indexes_sql(schema)
    )
