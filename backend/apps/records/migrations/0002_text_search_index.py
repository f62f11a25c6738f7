"""
Full-text index over name, email and mobile number.

PostgreSQL only; other backends rely on the plain column indexes.
"""
from django.db import migrations

INDEX_NAME = 'prescodatas_text_gin'


def create_text_index(apps, schema_editor):
    if schema_editor.connection.vendor != 'postgresql':
        return
    schema_editor.execute(
        f"CREATE INDEX IF NOT EXISTS {INDEX_NAME} ON prescodatas USING gin ("
        "to_tsvector('simple', coalesce(name, '') || ' ' || coalesce(email, '') || ' ' || coalesce(mobile_no, ''))"
        ")"
    )


def drop_text_index(apps, schema_editor):
    if schema_editor.connection.vendor != 'postgresql':
        return
    schema_editor.execute(f"DROP INDEX IF EXISTS {INDEX_NAME}")


class Migration(migrations.Migration):

    dependencies = [
        ('records', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_text_index, drop_text_index),
    ]
