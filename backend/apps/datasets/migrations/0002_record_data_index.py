"""
Index every key of DynamicRecord.data.

jsonb GIN indexes exist only on PostgreSQL; other backends skip this step.
"""
from django.db import migrations

INDEX_NAME = 'datasets_record_data_gin'


def create_data_index(apps, schema_editor):
    if schema_editor.connection.vendor != 'postgresql':
        return
    schema_editor.execute(
        f"CREATE INDEX IF NOT EXISTS {INDEX_NAME} "
        f"ON datasets_dynamicrecord USING gin (data jsonb_path_ops)"
    )


def drop_data_index(apps, schema_editor):
    if schema_editor.connection.vendor != 'postgresql':
        return
    schema_editor.execute(f"DROP INDEX IF EXISTS {INDEX_NAME}")


class Migration(migrations.Migration):

    dependencies = [
        ('datasets', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_data_index, drop_data_index),
    ]
