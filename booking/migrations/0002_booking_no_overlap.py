# PostgreSQL only: the database itself rejects two PENDING/CONFIRMED bookings
# of one professional whose [start_time, end_time) ranges intersect.
# Other backends rely on BookingManager's lock + recheck (BEGIN IMMEDIATE on SQLite).

from django.db import migrations

CREATE_CONSTRAINT = """
CREATE EXTENSION IF NOT EXISTS btree_gist;
ALTER TABLE booking_booking
    ADD CONSTRAINT booking_no_overlap
    EXCLUDE USING gist (
        professional_id WITH =,
        tstzrange(start_time, end_time, '[)') WITH &&
    )
    WHERE (status IN ('PENDING', 'CONFIRMED'));
"""

DROP_CONSTRAINT = "ALTER TABLE booking_booking DROP CONSTRAINT IF EXISTS booking_no_overlap;"


def add_overlap_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(CREATE_CONSTRAINT)


def drop_overlap_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(DROP_CONSTRAINT)


class Migration(migrations.Migration):

    dependencies = [
        ("booking", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(add_overlap_constraint, drop_overlap_constraint),
    ]
