"""001 – Initial schema: users, leave, extended absences, bonus grants, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            email       TEXT UNIQUE,
            full_name   TEXT,
            role        VARCHAR(20) NOT NULL DEFAULT 'employee'
                        CHECK (role IN ('employee', 'manager', 'admin')),
            start_date  DATE,
            is_active   BOOLEAN NOT NULL DEFAULT TRUE,
            manager_id  UUID REFERENCES users(id),
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_users_manager ON users(manager_id)")

    # ── 2. leave_types ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_types (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name              VARCHAR(100) NOT NULL UNIQUE,
            description       TEXT,
            is_paid           BOOLEAN NOT NULL DEFAULT TRUE,
            supports_half_day BOOLEAN NOT NULL DEFAULT FALSE,
            quota             INTEGER,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 3. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id       UUID NOT NULL REFERENCES users(id),
            leave_type_id UUID NOT NULL REFERENCES leave_types(id),
            start_date    DATE NOT NULL,
            end_date      DATE,
            is_half_day   BOOLEAN NOT NULL DEFAULT FALSE,
            half_day_type VARCHAR(20)
                          CHECK (half_day_type IN ('morning', 'afternoon')),
            status        VARCHAR(20) NOT NULL DEFAULT 'pending'
                          CHECK (status IN ('pending', 'approved', 'rejected', 'canceled')),
            message       TEXT,
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            updated_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX ix_leave_requests_user_start
            ON leave_requests(user_id, start_date)
    """)

    # ── 4. extended_absences ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE extended_absences (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            start_date  DATE NOT NULL,
            end_date    DATE NOT NULL,
            reason      TEXT,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_absence_date_order CHECK (end_date >= start_date)
        )
    """)
    op.execute("""
        CREATE INDEX ix_extended_absences_user_end
            ON extended_absences(user_id, end_date)
    """)

    # ── 5. bonus_leave_grants ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE bonus_leave_grants (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id      UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            year         INTEGER NOT NULL,
            days_granted INTEGER NOT NULL,
            days_used    INTEGER NOT NULL DEFAULT 0,
            reason       TEXT,
            granted_by   UUID REFERENCES users(id),
            granted_at   TIMESTAMPTZ DEFAULT NOW(),
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_bonus_days_granted_positive CHECK (days_granted > 0),
            CONSTRAINT ck_bonus_days_used_range
                CHECK (days_used >= 0 AND days_used <= days_granted)
        )
    """)
    op.execute("""
        CREATE INDEX ix_bonus_leave_grants_user_year
            ON bonus_leave_grants(user_id, year)
    """)

    # ── 6. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID REFERENCES users(id),
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   UUID NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id ON audit_trail(actor_id)")
    op.execute("""
        CREATE INDEX ix_audit_trail_entity
            ON audit_trail(entity_type, entity_id)
    """)

    # ── Seed: default leave types ─────────────────────────────────────────
    op.execute("""
        INSERT INTO leave_types (name, description, is_paid, supports_half_day) VALUES
            ('Annual Leave', 'Paid annual leave counted against the tenure quota', TRUE,  TRUE),
            ('Sick Leave',   'Paid sick leave',                                    TRUE,  TRUE),
            ('Unpaid Leave', 'Unpaid leave, not counted against the quota',        FALSE, FALSE)
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "bonus_leave_grants",
        "extended_absences",
        "leave_requests",
        "leave_types",
        "users",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
