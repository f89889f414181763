from django.db import migrations, models
import stockdesk.catalog.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.CharField(default=stockdesk.catalog.models.new_record_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('code', models.CharField(db_index=True, max_length=50)),
                ('name', models.CharField(max_length=200)),
                ('line', models.CharField(choices=[('FORD', 'FORD'), ('CHEVROLET', 'CHEVROLET'), ('DODGE', 'DODGE'), ('MERCEDES BENZ', 'MERCEDES BENZ'), ('FIAT', 'FIAT'), ('VOLKSWAGEN', 'VOLKSWAGEN'), ('PEUGEOT', 'PEUGEOT'), ('CITROEN', 'CITROEN'), ('TOYOTA', 'TOYOTA'), ('RENAULT', 'RENAULT'), ('HONDA', 'HONDA'), ('UNIVERSAL', 'UNIVERSAL')], db_index=True, default='UNIVERSAL', max_length=30)),
                ('details', models.TextField(blank=True, default='')),
                ('stock', models.IntegerField(default=0)),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('image_url', models.CharField(blank=True, max_length=500, null=True)),
                ('price_usd', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('details_en', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
            },
        ),
    ]
