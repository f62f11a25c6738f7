from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PrescoData',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('s_no', models.IntegerField(unique=True)),
                ('account_number', models.BigIntegerField(db_index=True)),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('address', models.TextField()),
                ('units_held', models.DecimalField(decimal_places=6, max_digits=24)),
                ('rights_due', models.DecimalField(decimal_places=6, max_digits=24)),
                ('amount', models.DecimalField(decimal_places=6, max_digits=24)),
                ('mobile_no', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('email', models.CharField(blank=True, db_index=True, max_length=254, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'shareholder record',
                'db_table': 'prescodatas',
                'ordering': ['s_no'],
            },
        ),
    ]
